"""Validation of synthesized Go tests."""

from .pipeline import ValidationPipeline

__all__ = ["ValidationPipeline"]
