"""Main CLI entry point for gocovgen."""

import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

import click
from rich.console import Console

from ..adapters.io.logging_setup import setup_logging
from ..adapters.io.rich_cli import GOCOVGEN_THEME, RichCliComponents
from ..application.analysis.coverage_mapper import (
    coverage_gaps,
    high_complexity_uncovered,
    package_metrics,
    trend,
)
from ..application.analyze_usecase import AnalyzeUseCaseError
from ..application.generate_usecase import GenerateUseCaseError
from ..config.loader import ConfigLoader, ConfigurationError
from ..config.models import GoCovGenConfig
from ..domain.models import AnalysisResult, ValidationFailure, ValidationResult
from .dependency_injection import DependencyError, create_dependency_container

logger = logging.getLogger(__name__)


class ClickContext:
    """Context object for Click commands."""

    def __init__(self) -> None:
        self.config_path: Path | None = None
        self.rich_cli: RichCliComponents | None = None
        self.verbose: bool = False
        self.quiet: bool = False
        self.dry_run: bool = False


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Reduce output: only errors are logged",
)
@click.option(
    "--dry-run", "--dry", is_flag=True, help="Preview operations without writing files"
)
@click.version_option(package_name="gocovgen")
@click.pass_context
def app(
    ctx: click.Context,
    config: Path | None,
    verbose: bool,
    quiet: bool,
    dry_run: bool,
) -> None:
    """gocovgen - coverage analysis and test generation for Go projects."""
    ctx.ensure_object(ClickContext)
    ctx.obj.config_path = config
    ctx.obj.verbose = verbose
    ctx.obj.quiet = quiet
    ctx.obj.dry_run = dry_run
    ctx.obj.rich_cli = RichCliComponents(Console(theme=GOCOVGEN_THEME))

    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING
    setup_logging(level)
    logger.debug("Debug mode enabled - verbose logging active")


def _fail(ctx: click.Context, message: str, title: str) -> NoReturn:
    ctx.obj.rich_cli.display_error(message, title)
    sys.exit(1)


def _exit_if_invalid(results: list[ValidationResult]) -> None:
    for result in results:
        try:
            result.ensure_valid()
        except ValidationFailure as e:
            logger.debug("%s: %s", e.message, e.diagnostics)
            sys.exit(1)


def _load_config(
    ctx: click.Context, project_path: Path, cli_overrides: dict[str, Any] | None = None
) -> GoCovGenConfig:
    """Load configuration searched for in the project directory."""
    try:
        loader = ConfigLoader(ctx.obj.config_path, search_dir=project_path)
        overrides = dict(cli_overrides or {})
        if ctx.obj.verbose:
            overrides.setdefault("output", {})["verbose"] = True
        return loader.load_config(cli_overrides=overrides or None)
    except ConfigurationError as e:
        logger.error(f"Configuration initialization failed: {e}")
        _fail(ctx, f"Configuration error: {e}", "Configuration Failed")


def _container(ctx: click.Context, config: GoCovGenConfig) -> dict[str, Any]:
    try:
        return create_dependency_container(config, dry_run=ctx.obj.dry_run)
    except DependencyError as e:
        _fail(ctx, str(e), "Initialization Failed")


def _analyze(
    ctx: click.Context,
    container: dict[str, Any],
    project_path: Path,
    **kwargs: Any,
) -> AnalysisResult:
    try:
        return container["analyze_usecase"].analyze(project_path, **kwargs)
    except AnalyzeUseCaseError as e:
        logger.debug("Analysis failed", exc_info=ctx.obj.verbose)
        _fail(ctx, str(e), "Analysis Failed")


def _emit_json(content: str, output: Path | None, default_dir: str | None, name: str) -> None:
    if output is None and default_dir:
        output = Path(default_dir) / name
    if output is None:
        click.echo(content)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")
    logger.info(f"Results written to {output}")


def _overrides(section: str, **values: Any) -> dict[str, Any]:
    """Nested override dict of the values that were given."""
    present = {k: v for k, v in values.items() if v is not None}
    return {section: present} if present else {}


# ============================================================================
# MAIN COMMANDS
# ============================================================================


@app.command()
@click.argument("project_path", type=click.Path(exists=True, path_type=Path), default=".")
@click.option(
    "--profile",
    "-p",
    type=click.Path(path_type=Path),
    help="Coverage profile to read (default: coverage.out when present)",
)
@click.option(
    "--generate-profile", is_flag=True, help="Run 'go test' to produce a fresh profile first"
)
@click.option("--package", "package_pattern", help="Package pattern for profile generation")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    help="Output format",
)
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Write JSON results here")
@click.pass_context
def analyze(
    ctx: click.Context,
    project_path: Path,
    profile: Path | None,
    generate_profile: bool,
    package_pattern: str | None,
    output_format: str | None,
    output: Path | None,
) -> None:
    """Analyze coverage of a Go project."""
    config = _load_config(
        ctx, project_path, _overrides("output", output_format=output_format)
    )
    container = _container(ctx, config)
    result = _analyze(
        ctx,
        container,
        project_path,
        profile_path=profile,
        generate_profile=generate_profile,
        package_pattern=package_pattern,
    )

    if config.output.output_format == "json":
        _emit_json(
            result.model_dump_json(indent=2), output, config.output.output_dir, "analysis.json"
        )
        return

    ctx.obj.rich_cli.display_analysis(
        result, package_metrics(result), config.analysis.coverage_threshold
    )


@app.command()
@click.argument("project_path", type=click.Path(exists=True, path_type=Path), default=".")
@click.option(
    "--style",
    type=click.Choice(["standard", "testify", "table", "ginkgo"], case_sensitive=False),
    help="Test template style",
)
@click.option("--overwrite", is_flag=True, help="Add tests to existing test files")
@click.option("--benchmarks", is_flag=True, help="Also generate benchmarks")
@click.option("--no-mocks", is_flag=True, help="Do not generate mocks for interface parameters")
@click.option("--no-validate", is_flag=True, help="Skip the validation pipeline")
@click.option("--max-cases", type=click.IntRange(1, 100), help="Maximum cases per function")
@click.option("--seed", type=int, help="Random seed for deterministic test data")
@click.option("--profile", "-p", type=click.Path(path_type=Path), help="Coverage profile to read")
@click.pass_context
def generate(
    ctx: click.Context,
    project_path: Path,
    style: str | None,
    overwrite: bool,
    benchmarks: bool,
    no_mocks: bool,
    no_validate: bool,
    max_cases: int | None,
    seed: int | None,
    profile: Path | None,
) -> None:
    """Generate Go tests for uncovered functions."""
    overrides = _overrides(
        "generation",
        template_style=style,
        overwrite_tests=True if overwrite else None,
        generate_benchmarks=True if benchmarks else None,
        generate_mocks=False if no_mocks else None,
        max_test_cases=max_cases,
        random_seed=seed,
    )
    if no_validate:
        overrides["validation"] = {"enabled": False}

    config = _load_config(ctx, project_path, overrides)
    container = _container(ctx, config)

    if ctx.obj.dry_run:
        ctx.obj.rich_cli.display_info("DRY RUN: no files will be written", "Dry Run Mode")

    analysis = _analyze(ctx, container, project_path, profile_path=profile)
    if analysis.profile_path is None:
        ctx.obj.rich_cli.display_warning(
            "No coverage profile found; all testable functions are treated as uncovered", "No Profile"
        )
    if not analysis.uncovered_functions:
        ctx.obj.rich_cli.display_success("No uncovered functions found", "Nothing To Do")
        return

    try:
        result = container["generate_usecase"].generate(analysis)
    except GenerateUseCaseError as e:
        logger.debug("Generation failed", exc_info=ctx.obj.verbose)
        _fail(ctx, str(e), "Generation Failed")

    ctx.obj.rich_cli.display_generation(result)
    if result.validation is not None:
        _exit_if_invalid([result.validation])


@app.command()
@click.argument("project_path", type=click.Path(exists=True, path_type=Path))
@click.argument("files", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option(
    "--static-only", is_flag=True, help="Only run the syntax and quality checks on each file"
)
@click.pass_context
def validate(
    ctx: click.Context, project_path: Path, files: tuple[Path, ...], static_only: bool
) -> None:
    """Validate Go test files inside a project."""
    config = _load_config(ctx, project_path)
    container = _container(ctx, config)
    pipeline = container["validation_pipeline"]

    if static_only:
        results = [
            pipeline.validate_individual_test(f if f.is_absolute() else project_path / f)
            for f in files
        ]
        for result in results:
            ctx.obj.rich_cli.display_validation(result)
        _exit_if_invalid(results)
        return

    result = pipeline.validate(project_path, list(files))
    ctx.obj.rich_cli.display_validation(result)
    _exit_if_invalid([result])


@app.command()
@click.argument("project_path", type=click.Path(exists=True, path_type=Path), default=".")
@click.option(
    "--threshold",
    type=click.FloatRange(0, 100),
    help="Coverage threshold for gaps (default: analysis.coverage_threshold)",
)
@click.option("--profile", "-p", type=click.Path(path_type=Path), help="Coverage profile to read")
@click.option(
    "--previous",
    type=click.Path(exists=True, path_type=Path),
    help="JSON result of an earlier 'analyze --format json' run, for the coverage trend",
)
@click.pass_context
def report(
    ctx: click.Context,
    project_path: Path,
    threshold: float | None,
    profile: Path | None,
    previous: Path | None,
) -> None:
    """Report coverage gaps, package metrics and complex uncovered code."""
    config = _load_config(ctx, project_path)
    container = _container(ctx, config)
    result = _analyze(ctx, container, project_path, profile_path=profile)
    limit = config.analysis.coverage_threshold if threshold is None else threshold
    rich_cli = ctx.obj.rich_cli

    gaps = coverage_gaps(result, limit)
    if gaps:
        rich_cli.print_table(rich_cli.create_gaps_table(gaps))
    else:
        rich_cli.display_success(f"No files below {limit:.1f}% coverage", "Coverage Gaps")

    rich_cli.print_table(rich_cli.create_package_table(package_metrics(result), limit))

    complex_uncovered = high_complexity_uncovered(
        result, config.analysis.high_complexity_threshold
    )
    if complex_uncovered:
        rich_cli.print_table(
            rich_cli.create_uncovered_table(complex_uncovered, "High Complexity Uncovered")
        )

    if previous is not None:
        try:
            earlier = AnalysisResult.model_validate_json(previous.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            _fail(ctx, f"Cannot read previous result {previous}: {e}", "Report Failed")
        rich_cli.display_trend(trend(earlier, result))


@app.command(name="init-config")
@click.option(
    "--path",
    type=click.Path(path_type=Path),
    default=Path(".gocovgen.yml"),
    show_default=True,
    help="Where to write the sample configuration",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def init_config(ctx: click.Context, path: Path, force: bool) -> None:
    """Write a sample configuration file."""
    if path.exists() and not force:
        _fail(ctx, f"{path} already exists (use --force to overwrite)", "Init Failed")
    try:
        written = ConfigLoader().create_sample_config(path)
    except OSError as e:
        _fail(ctx, f"Cannot write {path}: {e}", "Init Failed")
    ctx.obj.rich_cli.display_success(f"Configuration written to {written}", "Config Created")


if __name__ == "__main__":
    app()
