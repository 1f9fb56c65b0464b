"""
Tests for the validation pipeline.

The Go toolchain is replaced by a scripted runner; syntax and quality gates
use the real tree-sitter parser.
"""

import pytest

from gocovgen.adapters.io.process_runner import ProcessExecutionError
from gocovgen.application.validation.pipeline import ValidationPipeline, parse_test_output
from gocovgen.domain.models import ValidationFailure, ValidationStage

GOOD_TEST = """package calc

import "testing"

func TestAdd(t *testing.T) {
\tif Add(1, 2) != 3 {
\t\tt.Errorf("Add(1, 2) != 3")
\t}
}
"""

WEAK_TEST = """package calc

import "testing"

func TestEmpty(t *testing.T) {}

func TestNoAssert(t *testing.T) {
\t_ = Add(1, 2)
}
"""

BROKEN_TEST = "package calc\n\nfunc TestBroken( {\n"

GO_TEST_OUTPUT = """=== RUN   TestAdd
--- PASS: TestAdd (0.00s)
=== RUN   TestDivide
--- PASS: TestDivide (0.00s)
PASS
ok  \texample.com/calc\t0.002s\tcoverage: 100.0% of statements
=== RUN   TestLookup
--- PASS: TestLookup (0.00s)
PASS
ok  \texample.com/calc/service\t0.003s\tcoverage: 50.0% of statements
"""

FAILING_OUTPUT = """=== RUN   TestAdd
--- PASS: TestAdd (0.00s)
=== RUN   TestDivide
    calc_test.go:12: Divide() error = <nil>, wantErr true
--- FAIL: TestDivide (0.00s)
FAIL
FAIL\texample.com/calc\t0.002s
"""


class TestParseTestOutput:
    """Test parsing of go test -v -cover output."""

    def test_passes_and_mean_coverage(self):
        passed, failed, failures, coverage = parse_test_output(GO_TEST_OUTPUT)
        assert (passed, failed, failures) == (3, 0, [])
        assert coverage == pytest.approx(75.0)

    def test_failures(self):
        passed, failed, failures, coverage = parse_test_output(FAILING_OUTPUT)
        assert (passed, failed) == (1, 1)
        assert failures == ["TestDivide"]
        assert coverage is None

    def test_empty_output(self):
        assert parse_test_output("") == (0, 0, [], None)


class TestValidationPipeline:
    """Test suite for the ordered validation gates."""

    @pytest.fixture
    def project(self, tmp_path):
        (tmp_path / "good_test.go").write_text(GOOD_TEST)
        return tmp_path

    def pipeline(self, parser, filesystem, runner=None, **kwargs):
        return ValidationPipeline(parser, filesystem, process_runner=runner, **kwargs)

    def test_all_stages_pass(self, parser, filesystem, fake_runner, project):
        runner = fake_runner({"go test -v -cover": (0, GO_TEST_OUTPUT)})
        result = self.pipeline(parser, filesystem, runner).validate(project, ["good_test.go"])

        assert result.valid
        result.ensure_valid()
        assert [s.stage for s in result.stages] == list(ValidationStage)
        assert not any(s.skipped for s in result.stages)
        assert result.tests_run == 3
        assert result.tests_passed == 3
        assert result.coverage == pytest.approx(75.0)
        assert runner.calls == [
            ["go", "build", "./..."],
            ["go", "test", "-run", "^$", "./..."],
            ["go", "test", "-v", "-cover", "./..."],
        ]

    def test_syntax_failure_skips_build_and_execution(self, parser, filesystem, fake_runner, project):
        (project / "broken_test.go").write_text(BROKEN_TEST)
        runner = fake_runner()

        result = self.pipeline(parser, filesystem, runner).validate(
            project, ["good_test.go", "broken_test.go"]
        )

        assert not result.valid
        assert len(result.syntax_errors) == 1
        assert "broken_test.go" in result.syntax_errors[0]
        assert result.stage(ValidationStage.BUILD).skipped
        assert result.stage(ValidationStage.EXECUTION).skipped
        assert runner.calls == []

    def test_unreadable_file_is_a_syntax_error(self, parser, filesystem, project):
        result = self.pipeline(parser, filesystem).validate(project, ["missing_test.go"])
        assert not result.valid
        assert "cannot read file" in result.syntax_errors[0]

    def test_build_failure(self, parser, filesystem, fake_runner, project):
        runner = fake_runner({"go build": (1, "./calc.go:3:1: undefined: Foo")})
        result = self.pipeline(parser, filesystem, runner).validate(project, ["good_test.go"])

        assert not result.valid
        assert "undefined: Foo" in result.compile_errors[0]
        assert result.stage(ValidationStage.EXECUTION).skipped
        assert len(runner.calls) == 1

        with pytest.raises(ValidationFailure) as exc_info:
            result.ensure_valid()
        assert exc_info.value.stage == "build"
        assert "undefined: Foo" in exc_info.value.diagnostics[0]

    def test_test_compile_failure(self, parser, filesystem, fake_runner, project):
        runner = fake_runner({"go test -run": (2, "good_test.go:6:5: undefined: Add")})
        result = self.pipeline(parser, filesystem, runner).validate(project, ["good_test.go"])

        assert not result.stage(ValidationStage.BUILD).passed
        assert result.compile_errors[0].startswith("go test -run ^$ ./... failed:")

    def test_toolchain_missing(self, parser, filesystem, project):
        class MissingToolchain:
            def run(self, command, cwd):
                raise ProcessExecutionError("go: executable file not found")

        result = self.pipeline(parser, filesystem, MissingToolchain()).validate(
            project, ["good_test.go"]
        )
        assert not result.valid
        assert "executable file not found" in result.compile_errors[0]

    def test_execution_failure(self, parser, filesystem, fake_runner, project):
        runner = fake_runner({"go test -v": (1, FAILING_OUTPUT)})
        result = self.pipeline(parser, filesystem, runner).validate(project, ["good_test.go"])

        assert not result.valid
        assert result.runtime_errors == ["Test failed: TestDivide"]
        assert result.tests_failed == 1

    def test_nonzero_exit_without_failures(self, parser, filesystem, fake_runner, project):
        runner = fake_runner({"go test -v": (2, "panic: boom")})
        result = self.pipeline(parser, filesystem, runner).validate(project, ["good_test.go"])
        assert result.runtime_errors == ["go test -v -cover ./... exited with 2"]

    def test_without_runner_only_static_gates_run(self, parser, filesystem, project):
        result = self.pipeline(parser, filesystem).validate(project, ["good_test.go"])

        assert result.valid
        assert result.stage(ValidationStage.BUILD).skipped
        assert result.stage(ValidationStage.EXECUTION).skipped

    def test_run_tests_disabled(self, parser, filesystem, fake_runner, project):
        runner = fake_runner()
        result = self.pipeline(parser, filesystem, runner, run_tests=False).validate(
            project, ["good_test.go"]
        )

        assert result.valid
        assert result.stage(ValidationStage.EXECUTION).skipped
        assert len(runner.calls) == 2

    def test_build_tags(self, parser, filesystem, fake_runner, project):
        runner = fake_runner()
        self.pipeline(parser, filesystem, runner, build_tags=["integration"]).validate(
            project, ["good_test.go"]
        )
        assert all("-tags=integration" in call for call in runner.calls)

    def test_quality_warnings_do_not_fail(self, parser, filesystem, project):
        (project / "weak_test.go").write_text(WEAK_TEST)
        result = self.pipeline(parser, filesystem).validate(project, ["weak_test.go"])

        assert result.valid
        assert len(result.warnings) == 2
        assert "Empty test function TestEmpty" in result.warnings[0]
        assert "TestNoAssert" in result.warnings[1]
        assert "lacks assertions" in result.warnings[1]

    def test_validate_individual_test(self, parser, filesystem, fake_runner, project):
        runner = fake_runner()
        pipeline = self.pipeline(parser, filesystem, runner)

        result = pipeline.validate_individual_test(project / "good_test.go")

        assert result.valid
        assert [s.stage for s in result.stages] == [ValidationStage.SYNTAX, ValidationStage.QUALITY]
        assert runner.calls == []

    def test_summary(self, parser, filesystem, fake_runner, project):
        runner = fake_runner({"go test -v": (1, FAILING_OUTPUT)})
        pipeline = self.pipeline(parser, filesystem, runner)
        assert pipeline.summary() == "No validation has been run."

        pipeline.validate(project, ["good_test.go"])
        text = pipeline.summary()

        assert "Overall Status: FAILED" in text
        assert "  execution: failed" in text
        assert "Tests Failed: 1" in text
        assert "Runtime Errors: 1\n  - Test failed: TestDivide" in text
