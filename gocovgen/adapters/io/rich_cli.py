"""
Rich console components for gocovgen.

Tables and panels used by the CLI to present analysis, generation,
validation and report results. All output goes through a themed Console so
that tests can capture it with ``Console(file=StringIO())``.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from ...domain.models import (
    AnalysisResult,
    CoverageGap,
    CoverageTrend,
    FunctionDecl,
    GenerationResult,
    PackageMetrics,
    ValidationResult,
)

# Restricted palette: one accent, three status colors, one muted tone
GOCOVGEN_THEME = Theme(
    {
        "info": "cyan",
        "muted": "dim",
        "highlight": "bold cyan",
        "success": "green",
        "warning": "yellow",
        "error": "bold red",
    }
)

MAX_LISTED_FUNCTIONS = 25


def format_percent(value: float | None) -> str:
    """Render a percentage, or 'n/a' for unknown coverage."""
    if value is None:
        return "n/a"
    return f"{value:.1f}%"


def coverage_style(value: float | None, threshold: float = 80.0) -> str:
    if value is None:
        return "muted"
    if value >= threshold:
        return "success"
    if value >= threshold / 2:
        return "warning"
    return "error"


class RichCliComponents:
    """Factory and printer for the CLI's Rich renderables."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(theme=GOCOVGEN_THEME)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def display_error(self, message: str, title: str = "Error") -> None:
        self.console.print(Panel(message, title=f"[error]{title}[/]", border_style="red"))

    def display_warning(self, message: str, title: str = "Warning") -> None:
        self.console.print(Panel(message, title=f"[warning]{title}[/]", border_style="yellow"))

    def display_info(self, message: str, title: str = "Info") -> None:
        self.console.print(Panel(message, title=f"[info]{title}[/]", border_style="cyan"))

    def display_success(self, message: str, title: str = "Success") -> None:
        self.console.print(Panel(message, title=f"[success]{title}[/]", border_style="green"))

    def print_table(self, table: Table) -> None:
        self.console.print(table)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def create_package_table(
        self, metrics: list[PackageMetrics], threshold: float = 80.0
    ) -> Table:
        table = Table(title="Package Coverage", header_style="highlight")
        table.add_column("Package", style="info")
        table.add_column("Path", style="muted")
        table.add_column("Files", justify="right")
        table.add_column("Functions", justify="right")
        table.add_column("Covered", justify="right")
        table.add_column("Complexity", justify="right")
        table.add_column("Coverage", justify="right")

        for metric in metrics:
            table.add_row(
                metric.name,
                metric.path,
                str(metric.files),
                str(metric.total_functions),
                str(metric.covered_functions),
                str(metric.complexity),
                f"[{coverage_style(metric.coverage, threshold)}]"
                f"{format_percent(metric.coverage)}[/]",
            )
        return table

    def create_uncovered_table(
        self, functions: list[FunctionDecl], title: str = "Uncovered Functions"
    ) -> Table:
        table = Table(title=title, header_style="highlight")
        table.add_column("Function", style="info")
        table.add_column("File", style="muted")
        table.add_column("Line", justify="right")
        table.add_column("Complexity", justify="right")
        table.add_column("Coverage", justify="right")

        for fn in functions[:MAX_LISTED_FUNCTIONS]:
            table.add_row(
                fn.qualified_name,
                fn.file,
                str(fn.start_line),
                str(fn.complexity),
                format_percent(fn.coverage_percent),
            )
        if len(functions) > MAX_LISTED_FUNCTIONS:
            table.caption = f"{len(functions) - MAX_LISTED_FUNCTIONS} more not shown"
        return table

    def create_summary_panel(self, result: AnalysisResult) -> Panel:
        summary = result.summary
        lines = [
            f"Project: [highlight]{result.project_path}[/]",
        ]
        if result.project_info and result.project_info.module_path:
            lines.append(f"Module: {result.project_info.module_path}")
        lines.extend(
            [
                f"Packages: {summary.total_packages}   Files: {summary.total_files}",
                f"Functions: {summary.covered_functions}/{summary.total_functions} covered "
                f"({format_percent(summary.function_coverage)})",
                f"Statements: {summary.covered_statements}/{summary.total_statements} "
                f"({format_percent(summary.overall_coverage)})",
                f"Average complexity: {summary.average_complexity:.1f}   "
                f"Max: {summary.max_complexity}   High: {summary.high_complexity_functions}",
            ]
        )
        if result.profile_path:
            lines.append(f"[muted]Profile: {result.profile_path} ({result.profile_mode})[/]")
        else:
            lines.append("[muted]No coverage profile; coverage is unknown[/]")
        return Panel("\n".join(lines), title="Coverage Analysis", border_style="cyan")

    def display_analysis(
        self,
        result: AnalysisResult,
        metrics: list[PackageMetrics],
        threshold: float = 80.0,
    ) -> None:
        self.console.print(self.create_summary_panel(result))
        if metrics:
            self.print_table(self.create_package_table(metrics, threshold))
        if result.uncovered_functions:
            self.print_table(self.create_uncovered_table(result.uncovered_functions))
        for error in result.parse_errors:
            self.console.print(
                f"[warning]Parse error[/] {error.file}:{error.line}:{error.column} {error.message}"
            )
        for warning in result.mapping_warnings:
            self.console.print(f"[warning]Mapping[/] {warning.file}: {warning.message}")

    def create_gaps_table(self, gaps: list[CoverageGap]) -> Table:
        table = Table(title="Coverage Gaps", header_style="highlight")
        table.add_column("File", style="info")
        table.add_column("Package", style="muted")
        table.add_column("Coverage", justify="right")
        table.add_column("Uncovered stmts", justify="right")
        table.add_column("Uncovered functions")

        for gap in gaps:
            table.add_row(
                gap.file,
                gap.package,
                f"[{coverage_style(gap.coverage)}]{format_percent(gap.coverage)}[/]",
                str(gap.uncovered_statements),
                ", ".join(gap.uncovered_functions) or "-",
            )
        return table

    def display_trend(self, trend: CoverageTrend) -> None:
        if trend.change is None:
            self.console.print("[muted]Coverage trend unavailable[/]")
            return
        style = {"up": "success", "down": "error"}.get(trend.direction.value, "muted")
        self.console.print(
            f"Coverage trend: [{style}]{trend.direction.value}[/] "
            f"{format_percent(trend.previous_coverage)} -> {format_percent(trend.current_coverage)} "
            f"({trend.change:+.1f} pts)"
        )

    # ------------------------------------------------------------------
    # Generation and validation
    # ------------------------------------------------------------------

    def create_generation_table(self, result: GenerationResult) -> Table:
        title = "Generated Tests (dry run)" if result.dry_run else "Generated Tests"
        table = Table(title=title, header_style="highlight")
        table.add_column("File", style="info")
        table.add_column("Package", style="muted")
        table.add_column("Tests", justify="right")
        table.add_column("Status")

        for generated in result.generated_files:
            if result.dry_run:
                status = "[muted]would write[/]"
            elif generated.created:
                status = "[success]created[/]"
            else:
                status = "[warning]modified[/]"
            table.add_row(
                generated.path, generated.package, str(generated.tests_generated), status
            )
        for mock in result.generated_mocks:
            table.add_row(mock.path, mock.interface.package, "-", "[info]mock[/]")
        return table

    def display_generation(self, result: GenerationResult) -> None:
        if result.generated_files or result.generated_mocks:
            self.print_table(self.create_generation_table(result))

        lines = [
            f"Functions targeted: {result.functions_targeted}",
            f"Tests generated: {result.tests_generated}",
            f"Files created: {result.files_created}   modified: {result.files_modified}",
            f"Estimated coverage: {format_percent(result.estimated_coverage)}",
        ]
        if result.skipped:
            lines.append(f"Skipped: {len(result.skipped)}")
        self.display_success("\n".join(lines), "Generation Complete")

        for skipped in result.skipped:
            self.console.print(f"[muted]skipped {skipped.target}: {skipped.reason}[/]")
        for warning in result.warnings:
            self.console.print(f"[warning]warning[/] {warning}")
        for error in result.errors:
            self.console.print(f"[error]error[/] {error}")

        if result.validation is not None:
            self.display_validation(result.validation)

    def create_validation_table(self, result: ValidationResult) -> Table:
        table = Table(title="Validation", header_style="highlight")
        table.add_column("Stage", style="info")
        table.add_column("Result")
        table.add_column("Diagnostics", justify="right")
        table.add_column("Time", justify="right")

        for stage in result.stages:
            if stage.skipped:
                status = "[muted]skipped[/]"
            elif stage.passed:
                status = "[success]passed[/]"
            else:
                status = "[error]failed[/]"
            table.add_row(
                stage.stage.value,
                status,
                str(len(stage.diagnostics)),
                f"{stage.duration_seconds:.2f}s",
            )
        return table

    def display_validation(self, result: ValidationResult) -> None:
        self.print_table(self.create_validation_table(result))
        for error in result.syntax_errors + result.compile_errors + result.runtime_errors:
            self.console.print(f"[error]{error}[/]")
        for warning in result.warnings:
            self.console.print(f"[warning]{warning}[/]")

        if result.tests_run:
            self.console.print(
                f"Tests: {result.tests_passed}/{result.tests_run} passed, "
                f"coverage {format_percent(result.coverage)}"
            )
        if result.valid:
            self.console.print("[success]Generated tests are valid[/]")
        else:
            self.console.print("[error]Generated tests failed validation[/]")
