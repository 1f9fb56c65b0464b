"""Configuration management for gocovgen."""

from .loader import ConfigLoader, ConfigurationError, load_config
from .models import (
    AnalysisConfig,
    GenerationConfig,
    GoCovGenConfig,
    OutputConfig,
    ValidationConfig,
)

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "load_config",
    "GoCovGenConfig",
    "AnalysisConfig",
    "GenerationConfig",
    "ValidationConfig",
    "OutputConfig",
]
