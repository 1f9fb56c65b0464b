"""Main gocovgen configuration model."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .analysis import AnalysisConfig
from .generation import GenerationConfig
from .output import OutputConfig, ValidationConfig


class GoCovGenConfig(BaseModel):
    """
    Main configuration model for gocovgen.

    The configuration is an immutable value: it is built once per command and
    passed explicitly to every component that needs it.
    """

    analysis: AnalysisConfig = Field(
        default_factory=AnalysisConfig,
        description="Source walk and coverage mapping",
    )

    generation: GenerationConfig = Field(
        default_factory=GenerationConfig,
        description="Test and mock synthesis",
    )

    validation: ValidationConfig = Field(
        default_factory=ValidationConfig,
        description="Post-generation validation pipeline",
    )

    output: OutputConfig = Field(
        default_factory=OutputConfig,
        description="Result output",
    )

    def get_nested_value(self, key: str, default=None):
        """Get configuration value using dot notation (e.g., 'analysis.min_complexity')."""
        value: Any = self.model_dump()

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def update_from_dict(self, updates: dict[str, Any]) -> "GoCovGenConfig":
        """Return a new configuration with values from a dictionary merged in."""
        return GoCovGenConfig(**deep_merge(self.model_dump(), updates))

    model_config = ConfigDict(frozen=True, extra="forbid")


def deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Deeply merge updates into base dictionary."""
    result = base.copy()

    for key, value in updates.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result
