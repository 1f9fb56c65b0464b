"""
Validation pipeline for synthesized Go tests.

Four ordered gates:
1. Syntax: every synthesized file parses
2. Build: ``go build ./...`` then ``go test -run ^$ ./...`` compile cleanly
3. Execution: ``go test -v -cover ./...`` passes; results and coverage parsed
4. Quality: static scan of every parsing test file (warnings only)

Syntax and build gate strictly: a failure skips every later stage except
quality, which always runs over whatever files parse.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Sequence
from pathlib import Path

from ...adapters.io.process_runner import ProcessExecutionError
from ...domain.models import StageResult, ValidationResult, ValidationStage
from ...ports.filesystem_port import FileSystemPort
from ...ports.process_port import ProcessRunnerPort
from ...ports.source_model_port import SourceModelPort

logger = logging.getLogger(__name__)

PASS_MARKER = "--- PASS:"
FAIL_MARKER = "--- FAIL:"
COVERAGE_PATTERN = re.compile(r"coverage:\s+([\d.]+)% of statements")
FAILED_TEST_PATTERN = re.compile(r"--- FAIL:\s+(\S+)")


def parse_test_output(output: str) -> tuple[int, int, list[str], float | None]:
    """
    Parse ``go test -v -cover`` output.

    Returns:
        (passed, failed, failed test names, mean reported package coverage)
    """
    passed = failed = 0
    failures: list[str] = []
    coverages: list[float] = []
    for line in output.splitlines():
        if PASS_MARKER in line:
            passed += 1
        elif FAIL_MARKER in line:
            failed += 1
            match = FAILED_TEST_PATTERN.search(line)
            if match:
                failures.append(match.group(1))
        match = COVERAGE_PATTERN.search(line)
        if match:
            try:
                coverages.append(float(match.group(1)))
            except ValueError:
                logger.debug("Unparseable coverage figure in line: %s", line)
    coverage = sum(coverages) / len(coverages) if coverages else None
    return passed, failed, failures, coverage


class ValidationPipeline:
    """
    Runs the validation gates over a set of synthesized files.

    Args:
        source_model: Parser used for the syntax and quality gates
        filesystem: File access
        process_runner: Go toolchain runner; without one the build and
            execution stages are skipped
        build_tags: Passed as ``-tags`` to go commands
        run_tests: Whether the execution stage runs at all
    """

    def __init__(
        self,
        source_model: SourceModelPort,
        filesystem: FileSystemPort,
        process_runner: ProcessRunnerPort | None = None,
        build_tags: Sequence[str] = (),
        run_tests: bool = True,
    ) -> None:
        self._source_model = source_model
        self._filesystem = filesystem
        self._runner = process_runner
        self._build_tags = list(build_tags)
        self._run_tests = run_tests
        self._last: ValidationResult | None = None

    def validate(self, project_path: str | Path, files: Sequence[str | Path]) -> ValidationResult:
        """
        Validate synthesized files inside a project.

        Args:
            project_path: Go module root used as the working directory
            files: Synthesized files, absolute or relative to project_path
        """
        started = time.perf_counter()
        project = Path(project_path)
        paths = [self._resolve(project, f) for f in files]
        result = ValidationResult(valid=True)
        logger.info("Validating %d synthesized files", len(paths))

        syntax = self._syntax_stage(paths, result)
        result.stages.append(syntax)
        if syntax.passed:
            build = self._build_stage(project, result)
            result.stages.append(build)
            if build.passed and not build.skipped:
                result.stages.append(self._execution_stage(project, result))
            else:
                result.stages.append(_skipped(ValidationStage.EXECUTION, "build did not run or failed"))
        else:
            result.stages.append(_skipped(ValidationStage.BUILD, "syntax errors"))
            result.stages.append(_skipped(ValidationStage.EXECUTION, "syntax errors"))

        result.stages.append(self._quality_stage(paths, result))
        result.valid = all(s.passed for s in result.stages)
        result.duration_seconds = time.perf_counter() - started
        self._last = result

        if result.valid:
            logger.info("Validation passed")
        else:
            logger.warning(
                "Validation failed: %d syntax, %d compile, %d runtime errors",
                len(result.syntax_errors),
                len(result.compile_errors),
                len(result.runtime_errors),
            )
        return result

    def validate_individual_test(self, path: str | Path) -> ValidationResult:
        """Syntax and quality gates for a single test file."""
        started = time.perf_counter()
        target = Path(path)
        result = ValidationResult(valid=True)
        result.stages.append(self._syntax_stage([target], result))
        result.stages.append(self._quality_stage([target], result))
        result.valid = all(s.passed for s in result.stages)
        result.duration_seconds = time.perf_counter() - started
        self._last = result
        return result

    def summary(self, result: ValidationResult | None = None) -> str:
        """Plain-text summary of a validation result (the last one by default)."""
        result = result or self._last
        if result is None:
            return "No validation has been run."

        lines = [
            "Test Validation Summary",
            "=======================",
            f"Overall Status: {'PASSED' if result.valid else 'FAILED'}",
        ]
        for stage in result.stages:
            status = "skipped" if stage.skipped else ("passed" if stage.passed else "failed")
            lines.append(f"  {stage.stage.value}: {status} ({stage.duration_seconds:.2f}s)")
        if result.tests_run:
            lines.append(f"Tests Run: {result.tests_run}")
            lines.append(f"Tests Passed: {result.tests_passed}")
            if result.tests_failed:
                lines.append(f"Tests Failed: {result.tests_failed}")
        if result.coverage is not None:
            lines.append(f"Coverage: {result.coverage:.1f}%")
        for title, items in (
            ("Syntax Errors", result.syntax_errors),
            ("Compile Errors", result.compile_errors),
            ("Runtime Errors", result.runtime_errors),
            ("Warnings", result.warnings),
        ):
            if items:
                lines.append(f"{title}: {len(items)}")
                lines.extend(f"  - {item}" for item in items)
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _syntax_stage(self, paths: list[Path], result: ValidationResult) -> StageResult:
        started = time.perf_counter()
        stage = StageResult(stage=ValidationStage.SYNTAX)
        for path in paths:
            try:
                source = self._filesystem.read_bytes(path)
            except OSError as e:
                message = f"{path}: cannot read file: {e}"
                stage.diagnostics.append(message)
                result.syntax_errors.append(message)
                continue
            for record in self._source_model.check_syntax(source, str(path)):
                message = f"{path}:{record.line}:{record.column}: {record.message}"
                stage.diagnostics.append(message)
                result.syntax_errors.append(message)
        stage.passed = not stage.diagnostics
        stage.duration_seconds = time.perf_counter() - started
        return stage

    def _build_stage(self, project: Path, result: ValidationResult) -> StageResult:
        if self._runner is None:
            return _skipped(ValidationStage.BUILD, "no Go toolchain runner configured")

        started = time.perf_counter()
        stage = StageResult(stage=ValidationStage.BUILD)
        for command in (
            ["go", "build", *self._tag_args(), "./..."],
            ["go", "test", *self._tag_args(), "-run", "^$", "./..."],
        ):
            try:
                outcome = self._runner.run(command, cwd=project)
            except ProcessExecutionError as e:
                message = f"{' '.join(command)}: {e}"
                stage.diagnostics.append(message)
                result.compile_errors.append(message)
                break
            if not outcome.ok:
                message = f"{' '.join(command)} failed:\n{outcome.output.strip()}"
                stage.diagnostics.append(message)
                result.compile_errors.append(message)
                break
        stage.passed = not stage.diagnostics
        stage.duration_seconds = time.perf_counter() - started
        return stage

    def _execution_stage(self, project: Path, result: ValidationResult) -> StageResult:
        if not self._run_tests or self._runner is None:
            return _skipped(ValidationStage.EXECUTION, "test execution disabled")

        started = time.perf_counter()
        stage = StageResult(stage=ValidationStage.EXECUTION)
        command = ["go", "test", *self._tag_args(), "-v", "-cover", "./..."]
        try:
            outcome = self._runner.run(command, cwd=project)
        except ProcessExecutionError as e:
            message = f"{' '.join(command)}: {e}"
            stage.diagnostics.append(message)
            result.runtime_errors.append(message)
            stage.passed = False
            stage.duration_seconds = time.perf_counter() - started
            return stage

        passed, failed, failures, coverage = parse_test_output(outcome.output)
        result.tests_passed = passed
        result.tests_failed = failed
        result.tests_run = passed + failed
        result.coverage = coverage

        for name in failures:
            message = f"Test failed: {name}"
            stage.diagnostics.append(message)
            result.runtime_errors.append(message)
        if not outcome.ok and not failures:
            message = f"{' '.join(command)} exited with {outcome.returncode}"
            stage.diagnostics.append(message)
            result.runtime_errors.append(message)

        stage.passed = not stage.diagnostics
        stage.duration_seconds = time.perf_counter() - started
        return stage

    def _quality_stage(self, paths: list[Path], result: ValidationResult) -> StageResult:
        started = time.perf_counter()
        stage = StageResult(stage=ValidationStage.QUALITY)
        for path in paths:
            if not path.name.endswith("_test.go"):
                continue
            try:
                source = self._filesystem.read_bytes(path)
            except OSError:
                continue
            if self._source_model.check_syntax(source, str(path)):
                continue
            for scan in self._source_model.scan_test_functions(source):
                warnings: list[str] = []
                if scan.empty_body:
                    warnings.append(f"Empty test function {scan.name} in {path}")
                else:
                    if not scan.has_assertion:
                        warnings.append(f"Test function {scan.name} in {path} lacks assertions")
                    if scan.is_table_driven and not scan.uses_subtests:
                        warnings.append(
                            f"Table test function {scan.name} in {path} lacks t.Run calls"
                        )
                stage.diagnostics.extend(warnings)
                result.warnings.extend(warnings)
        stage.duration_seconds = time.perf_counter() - started
        return stage

    def _tag_args(self) -> list[str]:
        if not self._build_tags:
            return []
        return [f"-tags={','.join(self._build_tags)}"]

    @staticmethod
    def _resolve(project: Path, path: str | Path) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else project / candidate


def _skipped(stage: ValidationStage, reason: str) -> StageResult:
    return StageResult(stage=stage, passed=True, skipped=True, diagnostics=[reason])
