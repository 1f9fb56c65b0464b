"""Test and mock generation configuration models."""

import fnmatch
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

TemplateStyle = Literal["standard", "testify", "table", "ginkgo"]


class GenerationConfig(BaseModel):
    """Configuration for test synthesis."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    template_style: TemplateStyle = Field(
        default="standard",
        description="Assertion style: standard, testify, table or ginkgo (rendered as standard)",
    )

    table_driven: bool = Field(
        default=True,
        description="Render table-driven tests for functions with more than one parameter",
    )

    generate_mocks: bool = Field(
        default=True,
        description="Generate testify mocks for interface-typed parameters",
    )

    generate_benchmarks: bool = Field(
        default=False,
        description="Emit a Benchmark function next to every generated test",
    )

    overwrite_tests: bool = Field(
        default=False,
        description="Rewrite existing *_test.go files instead of skipping them",
    )

    max_test_cases: int = Field(
        default=10, ge=1, le=100,
        description="Upper bound on generated cases per function",
    )

    ignore_functions: list[str] = Field(
        default_factory=list,
        description="fnmatch patterns of function names never targeted",
    )

    random_seed: int | None = Field(
        default=None,
        description="Seed for the randomized strategy; None means non-deterministic",
    )

    templates_dir: str | None = Field(
        default=None,
        description="Directory of *.go.j2 templates overriding the built-in ones by name",
    )

    @field_validator("ignore_functions")
    @classmethod
    def validate_ignore_patterns(cls, v):
        """Patterns must be non-empty strings."""
        for pattern in v:
            if not pattern.strip():
                raise ValueError("ignore_functions patterns cannot be empty")
        return v

    def is_ignored_function(self, name: str) -> bool:
        """Check a function name against the ignore patterns."""
        return any(fnmatch.fnmatchcase(name, pattern) for pattern in self.ignore_functions)
