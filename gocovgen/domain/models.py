"""
Domain models for the gocovgen system.

This module contains the core domain models using Pydantic for validation
and serialization. Structural values (declarations, coverage blocks,
profiles) are immutable; per-run aggregates are rebuilt on every run rather
than mutated in place.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .go_types import TypeDescriptor


class GoCovGenError(Exception):
    """Base exception for gocovgen domain errors."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class StructuralParseError(GoCovGenError):
    """A single source file could not be parsed."""

    def __init__(
        self,
        message: str,
        file: str = "",
        line: int = 0,
        column: int = 0,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause)
        self.file = file
        self.line = line
        self.column = column


class ProfileFormatError(GoCovGenError):
    """A coverage profile is malformed; fatal to profile parsing."""

    def __init__(
        self, message: str, line_number: int | None = None, cause: Exception | None = None
    ) -> None:
        super().__init__(message, cause)
        self.line_number = line_number


class ValidationFailure(GoCovGenError):
    """A validation gate reported failing diagnostics."""

    def __init__(self, stage: str, diagnostics: list[str]) -> None:
        super().__init__(
            f"Validation failed at the {stage} stage with {len(diagnostics)} problem(s)"
        )
        self.stage = stage
        self.diagnostics = diagnostics


class GenerationSkip(GoCovGenError):
    """A target could not be synthesized; the batch continues without it."""

    def __init__(self, target: str, reason: str) -> None:
        super().__init__(f"Skipped {target}: {reason}")
        self.target = target
        self.reason = reason


# ---------------------------------------------------------------------------
# Structural source model
# ---------------------------------------------------------------------------


class ParseErrorRecord(BaseModel):
    """A per-file parse failure collected during a source walk."""

    model_config = ConfigDict(frozen=True)

    file: str = Field(..., description="Project-relative path of the file")
    message: str = Field(..., description="Parser diagnostic")
    line: int = Field(0, ge=0, description="1-based line of the first error")
    column: int = Field(0, ge=0, description="1-based column of the first error")


class ParamDecl(BaseModel):
    """A declared function parameter."""

    model_config = ConfigDict(frozen=True)

    name: str = Field("", description="Parameter name; empty when unnamed")
    type: TypeDescriptor = Field(..., description="Parameter type")


class ResultDecl(BaseModel):
    """A declared function result."""

    model_config = ConfigDict(frozen=True)

    name: str = Field("", description="Result name; empty when unnamed")
    type: TypeDescriptor = Field(..., description="Result type")


class CoverageStats(BaseModel):
    """Statement counts aggregated from coverage blocks."""

    model_config = ConfigDict(frozen=True)

    total_statements: int = Field(0, ge=0)
    covered_statements: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_counts(self) -> CoverageStats:
        """Covered statements can never exceed the total."""
        if self.covered_statements > self.total_statements:
            raise ValueError("covered_statements cannot exceed total_statements")
        return self

    @property
    def percentage(self) -> float | None:
        """Coverage percentage, or None when there are no statements."""
        if self.total_statements == 0:
            return None
        return self.covered_statements / self.total_statements * 100.0

    @property
    def covered(self) -> bool:
        return self.covered_statements > 0

    def __add__(self, other: CoverageStats) -> CoverageStats:
        return CoverageStats(
            total_statements=self.total_statements + other.total_statements,
            covered_statements=self.covered_statements + other.covered_statements,
        )


class FunctionDecl(BaseModel):
    """
    Represents a single Go function or method declaration.

    Built once by the source analyzer and immutable thereafter. Coverage is
    attached by the mapper on a copy; ``coverage`` is None when no coverage
    block falls inside the declaration's span ("coverage unknown").
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Function or method name")
    owner: str | None = Field(
        None, description="Receiver type name without '*' for methods"
    )
    receiver_pointer: bool = Field(False, description="Whether the receiver is a pointer")
    parameters: list[ParamDecl] = Field(default_factory=list)
    results: list[ResultDecl] = Field(default_factory=list)
    file: str = Field(..., description="Project-relative path of the declaring file")
    package: str = Field(..., description="Go package name")
    start_line: int = Field(..., ge=1)
    end_line: int = Field(..., ge=1)
    is_exported: bool = False
    is_method: bool = False
    complexity: int = Field(1, ge=1, description="Cyclomatic complexity")
    is_testable: bool = False
    has_error_result: bool = False
    signature: str = ""
    type_parameters: list[str] = Field(
        default_factory=list, description="Type parameter names of a generic function or receiver"
    )
    coverage: CoverageStats | None = None

    @field_validator("end_line")
    @classmethod
    def validate_span(cls, v: int, info: ValidationInfo) -> int:
        """Validate that the span is ordered (start <= end)."""
        start = info.data.get("start_line")
        if start is not None and v < start:
            raise ValueError("end_line must be greater than or equal to start_line")
        return v

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}.{self.name}" if self.owner else self.name

    @property
    def key(self) -> str:
        """Identity of the declaration within a project."""
        return f"{self.file}:{self.qualified_name}"

    @property
    def test_name(self) -> str:
        return f"Test{self.test_suffix}"

    @property
    def benchmark_name(self) -> str:
        return f"Benchmark{self.test_suffix}"

    @property
    def test_suffix(self) -> str:
        # go test ignores Test<x> when x starts with a lowercase letter
        if self.owner:
            return f"{self.owner[:1].upper()}{self.owner[1:]}_{self.name}"
        return self.name

    @property
    def coverage_percent(self) -> float | None:
        return self.coverage.percentage if self.coverage else None

    @property
    def is_covered(self) -> bool:
        return bool(self.coverage and self.coverage.covered)

    @property
    def is_generic(self) -> bool:
        return bool(self.type_parameters)


class MethodSpec(BaseModel):
    """A method required by an interface declaration."""

    model_config = ConfigDict(frozen=True)

    name: str
    parameters: list[ParamDecl] = Field(default_factory=list)
    results: list[ResultDecl] = Field(default_factory=list)


class InterfaceDecl(BaseModel):
    """A Go interface type declared in source."""

    model_config = ConfigDict(frozen=True)

    name: str
    file: str
    package: str
    start_line: int = Field(1, ge=1)
    methods: list[MethodSpec] = Field(default_factory=list)
    embedded: list[str] = Field(
        default_factory=list, description="Embedded interface or constraint elements"
    )


class FileModel(BaseModel):
    """A parsed Go source file and its aggregated coverage."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Project-relative path")
    package: str
    imports: dict[str, str] = Field(
        default_factory=dict, description="Import alias (or last path segment) to import path"
    )
    functions: list[FunctionDecl] = Field(default_factory=list)
    interfaces: list[InterfaceDecl] = Field(default_factory=list)
    type_decls: dict[str, str] = Field(
        default_factory=dict, description="Declared type name to underlying type text"
    )
    line_count: int = 0
    coverage: CoverageStats | None = None
    profile_path: str | None = Field(
        None, description="Reported profile path this file was matched to"
    )

    @property
    def function_coverage(self) -> float | None:
        if not self.functions:
            return None
        covered = sum(1 for fn in self.functions if fn.is_covered)
        return covered / len(self.functions) * 100.0


class PackageModel(BaseModel):
    """A Go package: files sharing a directory and package clause."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: str = Field(..., description="Directory relative to the project root ('.' for root)")
    files: dict[str, FileModel] = Field(default_factory=dict)
    coverage: CoverageStats | None = None

    @property
    def functions(self) -> list[FunctionDecl]:
        return [fn for file in self.files.values() for fn in file.functions]

    @property
    def complexity(self) -> int:
        return sum(fn.complexity for fn in self.functions)

    @property
    def total_functions(self) -> int:
        return len(self.functions)

    @property
    def covered_functions(self) -> int:
        return sum(1 for fn in self.functions if fn.is_covered)


# ---------------------------------------------------------------------------
# Coverage profile
# ---------------------------------------------------------------------------


class CoverageMode(str, Enum):
    """Instrumentation modes accepted by ``go test -covermode``."""

    SET = "set"
    COUNT = "count"
    ATOMIC = "atomic"


class CoverageBlock(BaseModel):
    """One profile line: a source span with statement and execution counts."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    num_stmts: int
    count: int

    @property
    def covered(self) -> bool:
        return self.count > 0


class CoverageProfile(BaseModel):
    """A parsed coverage profile: mode plus blocks grouped by reported path."""

    model_config = ConfigDict(frozen=True)

    mode: str
    blocks: list[CoverageBlock] = Field(default_factory=list)
    files: dict[str, list[CoverageBlock]] = Field(default_factory=dict)

    @classmethod
    def from_blocks(cls, mode: str, blocks: list[CoverageBlock]) -> CoverageProfile:
        """Group blocks by literal reported path, preserving profile order."""
        files: dict[str, list[CoverageBlock]] = {}
        for block in blocks:
            files.setdefault(block.file_name, []).append(block)
        return cls(mode=mode, blocks=list(blocks), files=files)


# ---------------------------------------------------------------------------
# Analysis results
# ---------------------------------------------------------------------------


class ProjectInfo(BaseModel):
    """Facts about the Go module being analyzed."""

    root: str
    module_path: str = ""
    go_version: str = ""
    go_files: int = 0
    test_files: int = 0
    total_lines: int = 0
    total_functions: int = 0


class CoverageSummary(BaseModel):
    """Project-wide statistics derived from the mapped tree."""

    total_packages: int = 0
    total_files: int = 0
    total_functions: int = 0
    covered_functions: int = 0
    total_statements: int = 0
    covered_statements: int = 0
    overall_coverage: float | None = None
    line_coverage: float | None = None
    branch_coverage: float | None = None
    function_coverage: float | None = None
    public_functions: int = 0
    private_functions: int = 0
    public_coverage: float | None = None
    private_coverage: float | None = None
    methods: int = 0
    method_coverage: float | None = None
    average_complexity: float = 0.0
    max_complexity: int = 0
    high_complexity_functions: int = 0


class CoverageGap(BaseModel):
    """A file whose coverage falls below a threshold."""

    file: str
    package: str
    coverage: float
    uncovered_statements: int
    uncovered_functions: list[str] = Field(default_factory=list)


class PackageMetrics(BaseModel):
    """Per-package rollup for reporting."""

    name: str
    path: str
    coverage: float | None
    total_functions: int
    covered_functions: int
    function_coverage: float | None
    complexity: int
    files: int


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"
    UNKNOWN = "unknown"


class CoverageTrend(BaseModel):
    """Change in overall coverage between two analysis runs."""

    timestamp: datetime = Field(default_factory=datetime.now)
    current_coverage: float | None = None
    previous_coverage: float | None = None
    change: float | None = None
    direction: TrendDirection = TrendDirection.UNKNOWN


class MappingWarning(BaseModel):
    """A non-fatal observation made while reconciling profile paths."""

    file: str
    message: str
    candidates: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Outcome of one analysis run."""

    project_path: str
    timestamp: datetime = Field(default_factory=datetime.now)
    packages: dict[str, PackageModel] = Field(default_factory=dict)
    uncovered_functions: list[FunctionDecl] = Field(default_factory=list)
    summary: CoverageSummary = Field(default_factory=CoverageSummary)
    project_info: ProjectInfo | None = None
    profile_path: str | None = None
    profile_mode: str | None = None
    parse_errors: list[ParseErrorRecord] = Field(default_factory=list)
    mapping_warnings: list[MappingWarning] = Field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def overall_coverage(self) -> float | None:
        return self.summary.overall_coverage

    @property
    def files(self) -> list[FileModel]:
        return [f for pkg in self.packages.values() for f in pkg.files.values()]

    @property
    def functions(self) -> list[FunctionDecl]:
        return [fn for f in self.files for fn in f.functions]


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class Strategy(str, Enum):
    """
    Data-generation strategies.

    POSITIVE is nominal, NEGATIVE adversarial, EDGE boundary, ZERO zero-like
    and RANDOM randomized.
    """

    POSITIVE = "positive"
    NEGATIVE = "negative"
    EDGE = "edge"
    RANDOM = "random"
    ZERO = "zero"


class GeneratedValue(BaseModel):
    """A generated value paired with its Go literal."""

    model_config = ConfigDict(frozen=True)

    value: Any = None
    literal: str


class CaseInput(BaseModel):
    """One parameter binding of a generated test case."""

    model_config = ConfigDict(frozen=True)

    name: str
    type_text: str
    value: Any = None
    literal: str


class MockExpectation(BaseModel):
    """A call expectation programmed on a mock before the call under test."""

    model_config = ConfigDict(frozen=True)

    mock_var: str
    method: str
    arguments: list[str] = Field(default_factory=list)
    returns: list[str] = Field(default_factory=list)


class MockBinding(BaseModel):
    """A mock standing in for one interface-typed parameter of a target."""

    model_config = ConfigDict(frozen=True)

    parameter_index: int = Field(..., ge=0)
    variable: str = Field(..., description="Local variable holding the mock")
    mock_name: str = Field(..., description="Mock struct name, e.g. MockStore")
    expectations: list[MockExpectation] = Field(default_factory=list)


class GeneratedTestCase(BaseModel):
    """A single synthesized test case for a function."""

    model_config = ConfigDict(frozen=True)

    name: str
    strategy: Strategy
    description: str = ""
    inputs: list[CaseInput] = Field(default_factory=list)
    expected: GeneratedValue | None = Field(
        None, description="Heuristic expected first result; None when unknown"
    )
    expect_error: bool = False
    error_pattern: str | None = None
    mock_expectations: list[MockExpectation] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class MockParam(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeDescriptor


class MockResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeDescriptor


class MockMethod(BaseModel):
    """A method signature to be forwarded by a mock."""

    model_config = ConfigDict(frozen=True)

    name: str
    parameters: list[MockParam] = Field(default_factory=list)
    results: list[MockResult] = Field(default_factory=list)


class MockInterfaceDecl(BaseModel):
    """An interface located in source for which a mock will be generated."""

    model_config = ConfigDict(frozen=True)

    name: str
    package: str
    file: str = Field(..., description="Project-relative file declaring the interface")
    imports: dict[str, str] = Field(default_factory=dict)
    methods: list[MockMethod] = Field(default_factory=list)

    @property
    def mock_name(self) -> str:
        return f"Mock{self.name}"


class GeneratedMock(BaseModel):
    interface: MockInterfaceDecl
    path: str
    content: str


class GeneratedFile(BaseModel):
    """A test file produced (or, in dry-run, that would be produced)."""

    path: str
    package: str
    tests_generated: int = 0
    test_names: list[str] = Field(default_factory=list)
    size: int = 0
    created: bool = False
    modified: bool = False


class SkippedTarget(BaseModel):
    target: str
    reason: str


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationStage(str, Enum):
    SYNTAX = "syntax"
    BUILD = "build"
    EXECUTION = "execution"
    QUALITY = "quality"


class StageResult(BaseModel):
    """Outcome of one validation gate."""

    stage: ValidationStage
    passed: bool = True
    skipped: bool = False
    diagnostics: list[str] = Field(default_factory=list)
    duration_seconds: float = 0.0


class ValidationResult(BaseModel):
    """Outcome of running the validation pipeline over synthesized files."""

    valid: bool = False
    stages: list[StageResult] = Field(default_factory=list)
    syntax_errors: list[str] = Field(default_factory=list)
    compile_errors: list[str] = Field(default_factory=list)
    runtime_errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    tests_run: int = 0
    tests_passed: int = 0
    tests_failed: int = 0
    coverage: float | None = None
    duration_seconds: float = 0.0

    def stage(self, stage: ValidationStage) -> StageResult | None:
        for result in self.stages:
            if result.stage == stage:
                return result
        return None

    def ensure_valid(self) -> None:
        """Raise ``ValidationFailure`` for the first failing stage."""
        for result in self.stages:
            if not result.passed:
                raise ValidationFailure(result.stage.value, list(result.diagnostics))


class GenerationResult(BaseModel):
    """Outcome of one generation run."""

    project_path: str
    timestamp: datetime = Field(default_factory=datetime.now)
    dry_run: bool = False
    generated_files: list[GeneratedFile] = Field(default_factory=list)
    generated_mocks: list[GeneratedMock] = Field(default_factory=list)
    tests_generated: int = 0
    files_created: int = 0
    files_modified: int = 0
    functions_targeted: int = 0
    estimated_coverage: float | None = None
    skipped: list[SkippedTarget] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    validation: ValidationResult | None = None
    duration_seconds: float = 0.0


# ---------------------------------------------------------------------------
# Collaborator values
# ---------------------------------------------------------------------------


class TestFunctionScan(BaseModel):
    """Static facts about one ``Test*`` function in a Go test file."""

    __test__ = False

    name: str
    start_line: int = 1
    empty_body: bool = False
    has_assertion: bool = False
    is_table_driven: bool = False
    uses_subtests: bool = False


class ProcessResult(BaseModel):
    """Captured outcome of an external process invocation."""

    command: list[str]
    cwd: str | None = None
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout, self.stderr) if part)
