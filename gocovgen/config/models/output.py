"""Validation and output configuration models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ValidationConfig(BaseModel):
    """Configuration for the post-generation validation pipeline."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(
        default=True,
        description="Run the validation pipeline after writing generated files",
    )

    run_tests: bool = Field(
        default=True,
        description="Run the execution stage (go test) after a successful build",
    )


class OutputConfig(BaseModel):
    """Configuration for result output."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    output_format: Literal["console", "json"] = Field(
        default="console",
        description="Result format for the analyze and report commands",
    )

    output_dir: str | None = Field(
        default=None,
        description="Directory where JSON results are written; stdout when unset",
    )

    verbose: bool = Field(default=False, description="Enable debug logging")
