"""Global fixtures and utilities for the gocovgen test suite.

Provides a small on-disk Go module with a matching coverage profile, a
scripted process runner standing in for the Go toolchain, and a factory for
hand-built function declarations.
"""

import pytest

from gocovgen.adapters.io.filesystem import LocalFileSystem
from gocovgen.adapters.parsing.go_parser import GoSourceParser
from gocovgen.domain.go_types import parse_type_expr
from gocovgen.domain.models import FunctionDecl, ParamDecl, ProcessResult, ResultDecl


# ================================================================================
# Sample Go module
# ================================================================================

GO_MOD = """module example.com/calc

go 1.21
"""

CALC_GO = """package calc

import "errors"

// Add returns the sum of two integers.
func Add(a, b int) int {
\treturn a + b
}

// Divide divides a by divisor.
func Divide(a, divisor float64) (float64, error) {
\tif divisor == 0 {
\t\treturn 0, errors.New("division by zero")
\t}
\treturn a / divisor, nil
}

func Classify(n int) string {
\tswitch {
\tcase n < 0:
\t\treturn "negative"
\tcase n == 0:
\t\treturn "zero"
\tdefault:
\t\treturn "positive"
\t}
}

type Counter struct {
\tcount int
}

func (c *Counter) Increment(step int) int {
\tc.count += step
\treturn c.count
}

func helper() {}
"""

STORE_GO = """package service

import "context"

type Store interface {
\tGet(ctx context.Context, key string) (string, error)
\tPut(key, value string) error
\tClose()
}

type Service struct {
\tstore Store
}

func Lookup(store Store, key string) (string, error) {
\treturn store.Get(context.Background(), key)
}
"""

# Add and Increment executed; Divide and Classify not; service/ absent.
COVERAGE_PROFILE = """mode: set
example.com/calc/calc.go:6.24,8.2 1 1
example.com/calc/calc.go:11.50,12.18 1 0
example.com/calc/calc.go:12.18,14.3 1 0
example.com/calc/calc.go:15.2,15.25 1 0
example.com/calc/calc.go:18.30,19.9 1 0
example.com/calc/calc.go:20.13,21.20 1 0
example.com/calc/calc.go:22.14,23.16 1 0
example.com/calc/calc.go:24.10,25.20 1 0
example.com/calc/calc.go:33.43,35.16 2 3
"""


@pytest.fixture
def go_project(tmp_path):
    """Create a Go module with two packages and a coverage profile."""
    project = tmp_path / "calc"
    project.mkdir()
    (project / "go.mod").write_text(GO_MOD)
    (project / "calc.go").write_text(CALC_GO)
    (project / "service").mkdir()
    (project / "service" / "store.go").write_text(STORE_GO)
    (project / "coverage.out").write_text(COVERAGE_PROFILE)

    # Excluded directories are never parsed
    (project / "vendor" / "dep").mkdir(parents=True)
    (project / "vendor" / "dep" / "dep.go").write_text("package dep\n\nfunc Dep() {}\n")
    (project / ".cache").mkdir()
    (project / ".cache" / "junk.go").write_text("this is not go")
    return project


@pytest.fixture
def parser():
    """Return a tree-sitter backed Go parser."""
    return GoSourceParser()


@pytest.fixture
def filesystem():
    return LocalFileSystem()


# ================================================================================
# Toolchain stand-in
# ================================================================================


class FakeProcessRunner:
    """ProcessRunnerPort returning canned results chosen by command prefix.

    ``responses`` maps a command prefix such as ``"go build"`` to a
    ``(returncode, stdout)`` pair; unmatched commands succeed silently.
    """

    def __init__(self, responses: dict[str, tuple[int, str]] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[list[str]] = []

    def run(self, command: list[str], cwd) -> ProcessResult:
        self.calls.append(list(command))
        joined = " ".join(command)
        for prefix, (returncode, stdout) in self.responses.items():
            if joined.startswith(prefix):
                return ProcessResult(
                    command=list(command), cwd=str(cwd), returncode=returncode, stdout=stdout
                )
        return ProcessResult(command=list(command), cwd=str(cwd), returncode=0)


@pytest.fixture
def fake_runner():
    """Factory fixture for scripted process runners."""

    def _make(responses: dict[str, tuple[int, str]] | None = None) -> FakeProcessRunner:
        return FakeProcessRunner(responses)

    return _make


# ================================================================================
# Declarations
# ================================================================================


@pytest.fixture
def make_function():
    """Factory fixture building FunctionDecl values from type text.

    Usage:
        def test_something(make_function):
            fn = make_function("Add", [("a", "int"), ("b", "int")], ["int"])
    """

    def _make(
        name: str,
        params: list[tuple[str, str]] | None = None,
        results: list[str] | None = None,
        owner: str | None = None,
        file: str = "calc.go",
        package: str = "calc",
        complexity: int = 1,
    ) -> FunctionDecl:
        parameters = [ParamDecl(name=n, type=parse_type_expr(t)) for n, t in params or []]
        result_decls = [ResultDecl(type=parse_type_expr(t)) for t in results or []]
        return FunctionDecl(
            name=name,
            owner=owner,
            receiver_pointer=owner is not None,
            parameters=parameters,
            results=result_decls,
            file=file,
            package=package,
            start_line=1,
            end_line=3,
            is_exported=name[:1].isupper(),
            is_method=owner is not None,
            complexity=complexity,
            is_testable=name[:1].isupper(),
            has_error_result=any(r.type.is_error for r in result_decls),
        )

    return _make
