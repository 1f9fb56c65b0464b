"""Coverage profile adapters."""

from .profile_parser import GoProfileParser

__all__ = ["GoProfileParser"]
