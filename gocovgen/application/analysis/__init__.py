"""Source analysis and coverage mapping."""

from .coverage_mapper import CoverageMapper
from .source_analyzer import SourceAnalyzer

__all__ = ["CoverageMapper", "SourceAnalyzer"]
