"""
Generate Use Case - synthesis of Go tests for uncovered functions.

Turns the prioritized uncovered functions of an ``AnalysisResult`` into
``<source>_test.go`` files: test data per strategy, mocks for interface
parameters, rendered tests and an optional validation pass. Per-target
failures are recorded as skips and never abort the batch.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path, PurePosixPath

from ..config.models import GoCovGenConfig
from ..domain.go_types import TypeKind
from ..domain.models import (
    AnalysisResult,
    FileModel,
    FunctionDecl,
    GeneratedFile,
    GeneratedMock,
    GenerationResult,
    GenerationSkip,
    MockBinding,
    MockInterfaceDecl,
    SkippedTarget,
    StructuralParseError,
)
from ..ports.filesystem_port import FileSystemPort
from ..ports.process_port import ProcessRunnerPort
from ..ports.source_model_port import SourceModelPort
from .analysis.coverage_mapper import functions_by_file
from .generation.data_generator import STDLIB_INTERFACES, DataGenerator, parameter_name
from .generation.mock_generator import MockGenerator
from .generation.template_engine import TemplateEngine, TemplateRenderError, mock_variable
from .validation.pipeline import ValidationPipeline

logger = logging.getLogger(__name__)


class GenerateUseCaseError(Exception):
    """Exception for Generate Use Case specific errors."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


def target_test_path(source_path: str) -> str:
    """``pkg/calc.go`` -> ``pkg/calc_test.go``."""
    path = PurePosixPath(source_path)
    return str(path.with_name(f"{path.stem}_test.go"))


def is_mock_declaration(fn: FunctionDecl) -> bool:
    """Methods of mocks this tool generated are never targeted."""
    name = PurePosixPath(fn.file).name
    return bool(fn.owner and fn.owner.startswith("Mock") and name.startswith("mock_"))


class _PackageContext:
    """Per-package collaborators shared by every target file of a package."""

    def __init__(self, files: list[FileModel], seed: int | None) -> None:
        self.files = files
        self.type_decls: dict[str, str] = {}
        interfaces: set[str] = set()
        for file_model in files:
            self.type_decls.update(file_model.type_decls)
            interfaces.update(i.name for i in file_model.interfaces)
        self.data = DataGenerator(seed=seed, type_decls=self.type_decls, interfaces=interfaces)


class GenerateUseCase:
    """
    Use case for synthesizing tests from an analysis result.

    Only a failure to write a file aborts the run; everything else is
    recorded on the ``GenerationResult``.
    """

    def __init__(
        self,
        source_model: SourceModelPort,
        filesystem: FileSystemPort,
        process_runner: ProcessRunnerPort | None = None,
        config: GoCovGenConfig | None = None,
        dry_run: bool = False,
        template_engine: TemplateEngine | None = None,
        validation_pipeline: ValidationPipeline | None = None,
    ) -> None:
        self._config = config or GoCovGenConfig()
        self._generation = self._config.generation
        self._source_model = source_model
        self._filesystem = filesystem
        self._runner = process_runner
        self._dry_run = dry_run
        self._engine = template_engine or TemplateEngine(
            style=self._generation.template_style,
            table_driven=self._generation.table_driven,
            templates_dir=self._generation.templates_dir,
        )
        self._pipeline = validation_pipeline or ValidationPipeline(
            source_model,
            filesystem,
            process_runner,
            build_tags=self._config.analysis.build_tags,
            run_tests=self._config.validation.run_tests,
        )

    def generate(self, analysis: AnalysisResult, validate: bool | None = None) -> GenerationResult:
        """
        Generate tests for the uncovered functions of an analysis.

        Args:
            analysis: Result of ``AnalyzeUseCase.analyze``
            validate: Run the validation pipeline afterwards; defaults to
                ``validation.enabled``. Never runs in dry-run mode.

        Returns:
            GenerationResult with files, mocks, skips and counts

        Raises:
            GenerateUseCaseError: If a synthesized file cannot be written
        """
        started = time.perf_counter()
        project = Path(analysis.project_path)
        result = GenerationResult(project_path=str(project), dry_run=self._dry_run)
        logger.info("Starting test generation for project: %s", project)

        targets = self.select_targets(analysis, result)
        files_by_path = {f.path: f for f in analysis.files}
        contexts: dict[str, _PackageContext] = {}
        mocks: dict[str, MockInterfaceDecl] = {}

        for source_path, functions in functions_by_file(targets).items():
            file_model = files_by_path.get(source_path)
            if file_model is None:
                for fn in functions:
                    self._skip(result, GenerationSkip(fn.key, "source file not in analysis"))
                continue
            package_key = str(PurePosixPath(source_path).parent)
            if package_key not in contexts:
                siblings = [
                    f for f in analysis.files
                    if str(PurePosixPath(f.path).parent) == package_key
                    and f.package == file_model.package
                ]
                contexts[package_key] = _PackageContext(siblings, self._generation.random_seed)
            self._generate_file(project, file_model, functions, contexts[package_key], mocks, result)

        if mocks:
            self._write_mocks(project, list(mocks.values()), result)

        result.estimated_coverage = estimate_coverage(analysis, result.functions_targeted)
        result.duration_seconds = time.perf_counter() - started

        should_validate = self._config.validation.enabled if validate is None else validate
        if should_validate and not self._dry_run and result.generated_files:
            written = [f.path for f in result.generated_files] + [m.path for m in result.generated_mocks]
            result.validation = self._pipeline.validate(project, written)

        logger.info(
            "Generation completed. Tests: %d, files created: %d, modified: %d, skipped targets: %d",
            result.tests_generated,
            result.files_created,
            result.files_modified,
            len(result.skipped),
        )
        return result

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def select_targets(self, analysis: AnalysisResult, result: GenerationResult) -> list[FunctionDecl]:
        """Uncovered testable functions that generation will attempt."""
        targets: list[FunctionDecl] = []
        for fn in analysis.uncovered_functions:
            if not fn.is_testable or is_mock_declaration(fn):
                continue
            if self._generation.is_ignored_function(fn.name):
                logger.debug("Ignoring %s by configured pattern", fn.qualified_name)
                continue
            if fn.is_generic:
                self._skip(result, GenerationSkip(fn.key, "generic functions are not supported"))
                continue
            targets.append(fn)
        return targets

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def _generate_file(
        self,
        project: Path,
        file_model: FileModel,
        functions: list[FunctionDecl],
        context: _PackageContext,
        mocks: dict[str, MockInterfaceDecl],
        result: GenerationResult,
    ) -> None:
        relative = target_test_path(file_model.path)
        absolute = project / relative
        exists = self._filesystem.exists(absolute)

        existing_source = ""
        existing_names: set[str] = set()
        existing_imports: dict[str, str] = {}
        if exists:
            if not self._generation.overwrite_tests:
                message = f"Test file {relative} exists, skipping (use --overwrite to add tests)"
                logger.warning(message)
                result.warnings.append(message)
                for fn in functions:
                    self._skip(result, GenerationSkip(fn.key, f"test file {relative} exists"))
                return
            existing_source = self._filesystem.read_text(absolute)
            try:
                existing = self._source_model.parse_source(existing_source.encode("utf-8"), relative)
            except StructuralParseError as e:
                for fn in functions:
                    self._skip(result, GenerationSkip(fn.key, f"existing {relative} does not parse: {e}"))
                return
            if existing.package != file_model.package:
                for fn in functions:
                    self._skip(
                        result,
                        GenerationSkip(fn.key, f"{relative} uses package {existing.package}"),
                    )
                return
            existing_imports = existing.imports
            existing_names = {fn.name for fn in existing.functions if fn.owner is None}

        # Mock return literals may use qualifiers from the interface's own file
        candidate_imports = dict(file_model.imports)
        bodies: list[str] = []
        test_names: list[str] = []
        for fn in functions:
            if fn.test_name in existing_names:
                self._skip(result, GenerationSkip(fn.key, f"{fn.test_name} already exists"))
                continue
            try:
                rendered = self._render_function(
                    fn, file_model, context, mocks, result, candidate_imports
                )
            except GenerationSkip as skip:
                self._skip(result, skip)
                continue
            for name, body in rendered:
                if name in existing_names:
                    continue
                existing_names.add(name)
                bodies.append(body)
                test_names.append(name)
            result.functions_targeted += 1

        if not bodies:
            return

        if exists:
            content = self._engine.append_to_file(
                existing_source, bodies, candidate_imports, existing_imports
            )
        else:
            content = self._engine.render_file(file_model.package, bodies, candidate_imports)

        if not self._dry_run:
            self._write(absolute, content)
        logger.debug("%s %s (%d tests)", "Modified" if exists else "Created", relative, len(test_names))

        result.generated_files.append(
            GeneratedFile(
                path=relative,
                package=file_model.package,
                tests_generated=len(test_names),
                test_names=test_names,
                size=len(content.encode("utf-8")),
                created=not exists,
                modified=exists,
            )
        )
        result.tests_generated += len(test_names)
        if exists:
            result.files_modified += 1
        else:
            result.files_created += 1

    def _render_function(
        self,
        fn: FunctionDecl,
        file_model: FileModel,
        context: _PackageContext,
        mocks: dict[str, MockInterfaceDecl],
        result: GenerationResult,
        imports: dict[str, str],
    ) -> list[tuple[str, str]]:
        cases = context.data.generate_cases(fn, self._generation.max_test_cases)
        if not cases:
            raise GenerationSkip(fn.key, "no test data could be generated")

        bindings = self._bind_mocks(fn, file_model, context, mocks, result, imports)
        try:
            rendered = [
                (fn.test_name, self._engine.render_test(fn, cases, bindings, context.type_decls))
            ]
            if self._generation.generate_benchmarks:
                rendered.append(
                    (
                        fn.benchmark_name,
                        self._engine.render_benchmark(fn, cases, bindings, context.type_decls),
                    )
                )
        except TemplateRenderError as e:
            raise GenerationSkip(fn.key, str(e)) from e
        return rendered

    # ------------------------------------------------------------------
    # Mocks
    # ------------------------------------------------------------------

    def _bind_mocks(
        self,
        fn: FunctionDecl,
        file_model: FileModel,
        context: _PackageContext,
        mocks: dict[str, MockInterfaceDecl],
        result: GenerationResult,
        imports: dict[str, str],
    ) -> list[MockBinding]:
        if not self._generation.generate_mocks:
            return []

        generator = self._mock_generator(context)
        bindings: list[MockBinding] = []
        for index, type_ in generator.interface_parameters(fn, context.files):
            if type_.kind != TypeKind.NAMED:
                continue
            if type_.text in STDLIB_INTERFACES or type_.text == "context.Context":
                continue
            decl = generator.locate(type_, file_model, context.files)
            if decl is None:
                message = f"Cannot locate interface {type_.text} for {fn.qualified_name}; no mock generated"
                logger.warning(message)
                if message not in result.warnings:
                    result.warnings.append(message)
                continue
            mocks.setdefault(decl.mock_name + "@" + decl.file, decl)
            for alias, path in decl.imports.items():
                imports.setdefault(alias, path)
            variable = mock_variable(parameter_name(fn.parameters[index], index))
            bindings.append(
                MockBinding(
                    parameter_index=index,
                    variable=variable,
                    mock_name=decl.mock_name,
                    expectations=generator.expectations(variable, decl),
                )
            )
        return bindings

    def _mock_generator(self, context: _PackageContext) -> MockGenerator:
        return MockGenerator(render=self._engine.render_mock, zero_literal=context.data.zero_literal)

    def _write_mocks(
        self, project: Path, decls: list[MockInterfaceDecl], result: GenerationResult
    ) -> None:
        generator = MockGenerator(render=self._engine.render_mock)
        for decl in decls:
            mock: GeneratedMock = generator.generate(decl)
            absolute = project / mock.path
            if self._filesystem.exists(absolute) and not self._generation.overwrite_tests:
                logger.info("Mock file %s exists; keeping it", mock.path)
                continue
            if not self._dry_run:
                self._write(absolute, mock.content)
            result.generated_mocks.append(mock)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _write(self, path: Path, content: str) -> None:
        try:
            self._filesystem.write_text(path, content)
        except OSError as e:
            raise GenerateUseCaseError(f"Failed to write {path}: {e}", cause=e) from e

    @staticmethod
    def _skip(result: GenerationResult, skip: GenerationSkip) -> None:
        logger.warning(str(skip))
        result.skipped.append(SkippedTarget(target=skip.target, reason=skip.reason))


def estimate_coverage(analysis: AnalysisResult, targeted: int) -> float | None:
    """
    Optimistic coverage after generation.

    Each targeted function is assumed to become fully covered, weighted by
    its share of all functions; capped at 100.
    """
    overall = analysis.overall_coverage
    if overall is None:
        return None
    total = analysis.summary.total_functions
    if not targeted or not total:
        return overall
    return min(100.0, overall + targeted / total * 100.0)
