"""Dependency injection container for CLI commands."""

from typing import Any

from ..adapters.coverage.profile_parser import GoProfileParser
from ..adapters.io.filesystem import LocalFileSystem
from ..adapters.io.process_runner import SubprocessRunner
from ..adapters.parsing.go_parser import GoSourceParser
from ..application.analyze_usecase import AnalyzeUseCase
from ..application.generate_usecase import GenerateUseCase
from ..application.generation.template_engine import TemplateEngine
from ..application.validation.pipeline import ValidationPipeline
from ..config.models import GoCovGenConfig


class DependencyError(Exception):
    """Raised when dependency injection fails."""

    pass


def create_dependency_container(
    config: GoCovGenConfig, dry_run: bool = False
) -> dict[str, Any]:
    """
    Create a dependency injection container with all required services.

    Args:
        config: gocovgen configuration
        dry_run: Whether generation should write nothing

    Returns:
        Dictionary containing all service instances

    Raises:
        DependencyError: If dependency creation fails
    """
    try:
        container: dict[str, Any] = {"config": config}

        # Adapters
        container["source_model"] = GoSourceParser()
        container["filesystem"] = LocalFileSystem()
        container["process_runner"] = SubprocessRunner()
        container["profile_parser"] = GoProfileParser(container["process_runner"])

        # Application services
        container["template_engine"] = TemplateEngine(
            style=config.generation.template_style,
            table_driven=config.generation.table_driven,
            templates_dir=config.generation.templates_dir,
        )
        container["validation_pipeline"] = ValidationPipeline(
            container["source_model"],
            container["filesystem"],
            container["process_runner"],
            build_tags=config.analysis.build_tags,
            run_tests=config.validation.run_tests,
        )

        # Use cases
        container["analyze_usecase"] = AnalyzeUseCase(
            source_model=container["source_model"],
            filesystem=container["filesystem"],
            process_runner=container["process_runner"],
            config=config.analysis,
            profile_parser=container["profile_parser"],
        )
        container["generate_usecase"] = GenerateUseCase(
            source_model=container["source_model"],
            filesystem=container["filesystem"],
            process_runner=container["process_runner"],
            config=config,
            dry_run=dry_run,
            template_engine=container["template_engine"],
            validation_pipeline=container["validation_pipeline"],
        )
        return container

    except Exception as e:
        raise DependencyError(f"Failed to create dependency container: {e}") from e
