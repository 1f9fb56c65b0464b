"""Go source parsing adapters."""

from .go_parser import GoSourceParser

__all__ = ["GoSourceParser"]
