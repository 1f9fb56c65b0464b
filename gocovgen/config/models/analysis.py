"""Source analysis and coverage mapping configuration models."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_EXCLUDE_DIRS = ["vendor", "testdata", ".git", "node_modules"]


class AnalysisConfig(BaseModel):
    """Configuration for walking Go sources and reconciling coverage."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    exclude_dirs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS),
        description="Directory names skipped entirely during the source walk",
    )

    include_tests: bool = Field(
        default=False,
        description="Also analyze *_test.go files",
    )

    skip_hidden_dirs: bool = Field(
        default=True,
        description="Skip directories whose name starts with '.'",
    )

    coverage_threshold: float = Field(
        default=80.0, ge=0.0, le=100.0,
        description="Files below this coverage percentage are reported as gaps",
    )

    min_complexity: int = Field(
        default=1, ge=1,
        description="Uncovered functions below this complexity are not targeted",
    )

    high_complexity_threshold: int = Field(
        default=10, ge=1,
        description="Functions above this complexity count as high complexity",
    )

    strict_path_matching: bool = Field(
        default=False,
        description="Leave files unmatched instead of taking the first of several equally specific profile paths",
    )

    profile_path: str | None = Field(
        default=None,
        description="Coverage profile to read; defaults to <project>/coverage.out when present",
    )

    profile_output: str = Field(
        default="coverage.out",
        description="Where a generated profile is written, relative to the project",
    )

    package_pattern: str = Field(
        default="./...",
        description="Package pattern passed to 'go test' when generating a profile",
    )

    build_tags: list[str] = Field(
        default_factory=list,
        description="Build tags passed as -tags to go commands",
    )

    @field_validator("exclude_dirs")
    @classmethod
    def validate_exclude_dirs(cls, v):
        """Directory names must be bare names, not paths or globs."""
        for name in v:
            if not name or not name.strip():
                raise ValueError("exclude_dirs entries cannot be empty")
            if "/" in name or "\\" in name:
                raise ValueError(f"exclude_dirs entries must be directory names: {name}")
        return v
