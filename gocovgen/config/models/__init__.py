"""Configuration models for gocovgen, organized by concern."""

from .analysis import DEFAULT_EXCLUDE_DIRS, AnalysisConfig
from .generation import GenerationConfig, TemplateStyle
from .main import GoCovGenConfig, deep_merge
from .output import OutputConfig, ValidationConfig

__all__ = [
    "GoCovGenConfig",
    "AnalysisConfig",
    "GenerationConfig",
    "ValidationConfig",
    "OutputConfig",
    "TemplateStyle",
    "DEFAULT_EXCLUDE_DIRS",
    "deep_merge",
]
