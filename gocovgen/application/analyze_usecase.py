"""
Analyze Use Case - coverage analysis of a Go project.

Runs the source analyzer and the profile parser independently, reconciles
them through the coverage mapper and returns a single ``AnalysisResult``
with packages, summary statistics and the prioritized list of uncovered
functions.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from ..adapters.coverage.profile_parser import GoProfileParser
from ..adapters.io.file_discovery import FileDiscoveryError
from ..adapters.io.process_runner import ProcessExecutionError
from ..config.models import AnalysisConfig
from ..domain.models import AnalysisResult, CoverageProfile, ProfileFormatError
from ..ports.filesystem_port import FileSystemPort
from ..ports.process_port import ProcessRunnerPort
from ..ports.source_model_port import SourceModelPort
from .analysis.coverage_mapper import CoverageMapper, build_summary, uncovered_functions
from .analysis.source_analyzer import SourceAnalyzer

logger = logging.getLogger(__name__)


class AnalyzeUseCaseError(Exception):
    """Exception for Analyze Use Case specific errors."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class AnalyzeUseCase:
    """
    Use case for analyzing the coverage of a Go project.

    Only a missing project root, an unreadable or malformed profile, or a
    toolchain that cannot be started abort the run; per-file parse failures
    and ambiguous path matches are reported on the result.
    """

    def __init__(
        self,
        source_model: SourceModelPort,
        filesystem: FileSystemPort,
        process_runner: ProcessRunnerPort | None = None,
        config: AnalysisConfig | None = None,
        profile_parser: GoProfileParser | None = None,
    ) -> None:
        self._config = config or AnalysisConfig()
        self._filesystem = filesystem
        self._analyzer = SourceAnalyzer(source_model, filesystem, self._config)
        self._profile_parser = profile_parser or GoProfileParser(process_runner)
        self._mapper = CoverageMapper(self._config)

    def analyze(
        self,
        project_path: str | Path,
        profile_path: str | Path | None = None,
        generate_profile: bool = False,
        package_pattern: str | None = None,
    ) -> AnalysisResult:
        """
        Analyze a project and its coverage.

        Args:
            project_path: Go module root
            profile_path: Explicit profile; overrides ``analysis.profile_path``
            generate_profile: Run ``go test`` to produce a fresh profile first
            package_pattern: Package pattern for profile generation

        Returns:
            AnalysisResult for the run

        Raises:
            AnalyzeUseCaseError: On fatal failures, with the cause attached
        """
        started = time.perf_counter()
        project = Path(project_path)
        logger.info("Starting analysis for project: %s", project)

        try:
            source = self._analyzer.analyze(project)
            resolved_profile, profile = self._load_profile(
                project, profile_path, generate_profile, package_pattern
            )
        except FileDiscoveryError as e:
            raise AnalyzeUseCaseError(f"Analysis failed: {e}", cause=e) from e
        except ProfileFormatError as e:
            logger.error("Coverage profile rejected: %s", e)
            raise AnalyzeUseCaseError(f"Invalid coverage profile: {e}", cause=e) from e
        except ProcessExecutionError as e:
            raise AnalyzeUseCaseError(f"Profile generation failed: {e}", cause=e) from e

        packages, warnings = self._mapper.map(
            source.packages, profile, source.project_info.module_path
        )
        summary = build_summary(packages, self._config.high_complexity_threshold)

        result = AnalysisResult(
            project_path=source.root,
            packages=packages,
            uncovered_functions=uncovered_functions(packages, self._config.min_complexity),
            summary=summary,
            project_info=source.project_info,
            profile_path=str(resolved_profile) if resolved_profile else None,
            profile_mode=profile.mode if profile else None,
            parse_errors=source.parse_errors,
            mapping_warnings=warnings,
            duration_seconds=time.perf_counter() - started,
        )

        logger.info(
            "Analysis completed. Functions: %d, uncovered: %d, coverage: %s",
            summary.total_functions,
            len(result.uncovered_functions),
            "unknown" if summary.overall_coverage is None else f"{summary.overall_coverage:.1f}%",
        )
        return result

    def _load_profile(
        self,
        project: Path,
        profile_path: str | Path | None,
        generate_profile: bool,
        package_pattern: str | None,
    ) -> tuple[Path | None, CoverageProfile | None]:
        if generate_profile:
            output, _ = self._profile_parser.generate_profile(
                project,
                output=profile_path or self._config.profile_output,
                package_pattern=package_pattern or self._config.package_pattern,
                build_tags=self._config.build_tags,
            )
            if not self._filesystem.exists(output):
                raise ProfileFormatError(f"go test did not produce a profile at {output}")
            return output, self._parse(output)

        candidate = profile_path or self._config.profile_path
        if candidate:
            path = Path(candidate)
            if not path.is_absolute():
                path = project / path
            return path, self._parse(path)

        default = project / self._config.profile_output
        if self._filesystem.exists(default):
            logger.debug("Using coverage profile found at %s", default)
            return default, self._parse(default)

        logger.info("No coverage profile found; coverage will be reported as unknown")
        return None, None

    def _parse(self, path: Path) -> CoverageProfile:
        return self._profile_parser.ensure_valid(self._profile_parser.parse_file(path))
