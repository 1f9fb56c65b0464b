"""
Coverage Mapper - reconciles a coverage profile with the source model.

The profile reports paths as import-path-qualified names
(``example.com/mod/pkg/file.go``) while the source model uses paths relative
to the project root. Neither namespace is authoritative, so both sides are
expanded into path variants (every suffix of the path) and matched by the
most specific shared variant.

Coverage is then aggregated bottom-up: function, file, package, project.
A function or file with no matching blocks reports ``coverage=None``
("unknown"), which is distinct from 0%.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ...config.models import AnalysisConfig
from ...domain.models import (
    AnalysisResult,
    CoverageBlock,
    CoverageGap,
    CoverageProfile,
    CoverageStats,
    CoverageSummary,
    CoverageTrend,
    FileModel,
    FunctionDecl,
    MappingWarning,
    PackageMetrics,
    PackageModel,
    TrendDirection,
)

logger = logging.getLogger(__name__)


def path_variants(path: str) -> list[str]:
    """
    Return the ordered textual variants of a path used for matching.

    The path itself comes first, then every suffix obtained by dropping
    leading segments (longest first), ending with the bare file name.

    >>> path_variants("example.com/calc/calc.go")
    ['example.com/calc/calc.go', 'calc/calc.go', 'calc.go']
    """
    normalized = path.replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    segments = [s for s in normalized.split("/") if s]

    variants: list[str] = []
    for candidate in [normalized] + ["/".join(segments[i:]) for i in range(len(segments))]:
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants


def sum_blocks(blocks: Iterable[CoverageBlock]) -> CoverageStats:
    total = covered = 0
    for block in blocks:
        total += block.num_stmts
        if block.count > 0:
            covered += block.num_stmts
    return CoverageStats(total_statements=total, covered_statements=covered)


def sum_stats(stats: Iterable[CoverageStats | None]) -> CoverageStats | None:
    """Sum the known stats; None when every input is unknown."""
    known = [s for s in stats if s is not None]
    if not known:
        return None
    total = CoverageStats()
    for s in known:
        total = total + s
    return total


def percentage(part: int, whole: int) -> float | None:
    return part / whole * 100.0 if whole else None


class CoverageMapper:
    """Attaches profile coverage to packages, files and functions."""

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self.config = config or AnalysisConfig()

    def map(
        self,
        packages: dict[str, PackageModel],
        profile: CoverageProfile | None,
        module_path: str = "",
    ) -> tuple[dict[str, PackageModel], list[MappingWarning]]:
        """
        Return copies of the packages with coverage attached.

        Args:
            packages: Packages built by the source analyzer
            profile: Parsed profile; None leaves every coverage unknown
            module_path: Module path from go.mod; when known, the exact
                ``<module>/<relative path>`` match is tried first

        Returns:
            (mapped packages, mapping warnings)
        """
        if profile is None:
            return dict(packages), []

        index = self.build_index(profile)
        warnings: list[MappingWarning] = []
        mapped: dict[str, PackageModel] = {}

        claims: dict[str, list[tuple[int, str]]] = {}
        for package in packages.values():
            for file_model in package.files.values():
                reported, variant = self._match(file_model.path, index, module_path, warnings)
                if reported is not None:
                    claims.setdefault(reported, []).append((variant.count("/"), file_model.path))
        owned = {
            owner: reported
            for reported, owner in self.resolve_claims(claims, warnings).items()
            if owner is not None
        }

        for key, package in packages.items():
            files = {}
            for rel, file_model in package.files.items():
                reported = owned.get(file_model.path)
                files[rel] = self.map_file(
                    file_model, reported, profile.files.get(reported, []) if reported else None
                )
            mapped[key] = package.model_copy(
                update={"files": files, "coverage": sum_stats(f.coverage for f in files.values())}
            )

        matched = sum(
            1 for pkg in mapped.values() for f in pkg.files.values() if f.profile_path
        )
        total = sum(len(pkg.files) for pkg in mapped.values())
        logger.info(f"Matched {matched}/{total} files against the coverage profile")
        return mapped, warnings

    def build_index(self, profile: CoverageProfile) -> dict[str, list[str]]:
        """Index every reported path by each of its variants, in profile order."""
        index: dict[str, list[str]] = {}
        for reported in profile.files:
            for variant in path_variants(reported):
                entries = index.setdefault(variant, [])
                if reported not in entries:
                    entries.append(reported)
        return index

    def match_file(
        self,
        file_path: str,
        index: dict[str, list[str]],
        module_path: str = "",
        warnings: list[MappingWarning] | None = None,
    ) -> str | None:
        """Return the reported profile path for a project file, or None."""
        return self._match(file_path, index, module_path, warnings)[0]

    def resolve_claims(
        self,
        claims: dict[str, list[tuple[int, str]]],
        warnings: list[MappingWarning] | None = None,
    ) -> dict[str, str | None]:
        """
        Give every reported path to at most one project file.

        Args:
            claims: Reported path -> (match depth, project file) in walk order;
                depth is the number of directory segments in the matched variant

        Returns:
            Reported path -> owning project file, None when left unowned
        """
        owners: dict[str, str | None] = {}
        for reported, claimants in claims.items():
            if len(claimants) == 1:
                owners[reported] = claimants[0][1]
                continue

            deepest = max(depth for depth, _ in claimants)
            top = [path for depth, path in claimants if depth == deepest]
            if len(top) == 1 or not self.config.strict_path_matching:
                owner = top[0]
            else:
                owner = None
            owners[reported] = owner

            paths = [path for _, path in claimants]
            for path in paths:
                if path == owner:
                    continue
                if owner is None:
                    message = f"'{reported}' is claimed by several files; left unmatched"
                else:
                    message = f"'{reported}' is already matched by {owner}; left unmatched"
                logger.warning(f"{path}: {message}")
                if warnings is not None:
                    warnings.append(MappingWarning(file=path, message=message, candidates=paths))
        return owners

    def _match(
        self,
        file_path: str,
        index: dict[str, list[str]],
        module_path: str = "",
        warnings: list[MappingWarning] | None = None,
    ) -> tuple[str | None, str]:
        probes = path_variants(file_path)
        if module_path:
            probes.insert(0, f"{module_path.rstrip('/')}/{probes[0]}")

        for variant in probes:
            candidates = index.get(variant)
            if not candidates:
                continue
            if len(candidates) == 1:
                return candidates[0], variant

            if self.config.strict_path_matching:
                message = f"ambiguous match on '{variant}'; left unmatched"
                chosen = None
            else:
                message = f"ambiguous match on '{variant}'; using {candidates[0]}"
                chosen = candidates[0]
            logger.warning(f"{file_path}: {message}")
            if warnings is not None:
                warnings.append(
                    MappingWarning(file=file_path, message=message, candidates=list(candidates))
                )
            return chosen, variant

        logger.debug(f"No coverage data for {file_path}")
        return None, ""

    def map_file(
        self,
        file_model: FileModel,
        reported: str | None,
        blocks: list[CoverageBlock] | None,
    ) -> FileModel:
        if reported is None or blocks is None:
            return file_model

        functions = [self.map_function(fn, blocks) for fn in file_model.functions]
        return file_model.model_copy(
            update={
                "functions": functions,
                "coverage": sum_blocks(blocks),
                "profile_path": reported,
            }
        )

    def map_function(self, fn: FunctionDecl, blocks: list[CoverageBlock]) -> FunctionDecl:
        contained = [
            b for b in blocks if b.start_line >= fn.start_line and b.end_line <= fn.end_line
        ]
        if not contained:
            return fn
        return fn.model_copy(update={"coverage": sum_blocks(contained)})


# ---------------------------------------------------------------------------
# Queries over a mapped tree
# ---------------------------------------------------------------------------


def all_functions(packages: dict[str, PackageModel]) -> list[FunctionDecl]:
    return [fn for pkg in packages.values() for fn in pkg.functions]


def uncovered_functions(
    packages: dict[str, PackageModel], min_complexity: int = 1
) -> list[FunctionDecl]:
    """Testable functions without executed statements, most complex first."""
    uncovered = [
        fn
        for fn in all_functions(packages)
        if fn.is_testable and not fn.is_covered and fn.complexity >= min_complexity
    ]
    return sorted(uncovered, key=lambda fn: (-fn.complexity, fn.file, fn.start_line))


def build_summary(
    packages: dict[str, PackageModel], high_complexity_threshold: int = 10
) -> CoverageSummary:
    functions = all_functions(packages)
    testable = [fn for fn in functions if fn.is_testable]
    public = [fn for fn in functions if fn.is_exported]
    private = [fn for fn in functions if not fn.is_exported]
    methods = [fn for fn in functions if fn.is_method]

    def covered_percent(group: list[FunctionDecl]) -> float | None:
        return percentage(sum(1 for fn in group if fn.is_covered), len(group))

    stats = sum_stats(pkg.coverage for pkg in packages.values())
    overall = stats.percentage if stats else None
    complexities = [fn.complexity for fn in functions]

    return CoverageSummary(
        total_packages=len(packages),
        total_files=sum(len(pkg.files) for pkg in packages.values()),
        total_functions=len(testable),
        covered_functions=sum(1 for fn in testable if fn.is_covered),
        total_statements=stats.total_statements if stats else 0,
        covered_statements=stats.covered_statements if stats else 0,
        overall_coverage=overall,
        line_coverage=overall,
        branch_coverage=overall,
        function_coverage=covered_percent(testable),
        public_functions=len(public),
        private_functions=len(private),
        public_coverage=covered_percent(public),
        private_coverage=covered_percent(private),
        methods=len(methods),
        method_coverage=covered_percent(methods),
        average_complexity=sum(complexities) / len(complexities) if complexities else 0.0,
        max_complexity=max(complexities, default=0),
        high_complexity_functions=sum(
            1 for c in complexities if c > high_complexity_threshold
        ),
    )


def coverage_gaps(result: AnalysisResult, threshold: float) -> list[CoverageGap]:
    """Files with known coverage below threshold, lowest coverage first."""
    gaps = []
    for package in result.packages.values():
        for file_model in package.files.values():
            stats = file_model.coverage
            if stats is None or stats.percentage is None or stats.percentage >= threshold:
                continue
            gaps.append(
                CoverageGap(
                    file=file_model.path,
                    package=package.name,
                    coverage=stats.percentage,
                    uncovered_statements=stats.total_statements - stats.covered_statements,
                    uncovered_functions=[
                        fn.qualified_name
                        for fn in file_model.functions
                        if fn.is_testable and not fn.is_covered
                    ],
                )
            )
    return sorted(gaps, key=lambda gap: (gap.coverage, gap.file))


def package_metrics(result: AnalysisResult) -> list[PackageMetrics]:
    metrics = []
    for package in result.packages.values():
        metrics.append(
            PackageMetrics(
                name=package.name,
                path=package.path,
                coverage=package.coverage.percentage if package.coverage else None,
                total_functions=package.total_functions,
                covered_functions=package.covered_functions,
                function_coverage=percentage(package.covered_functions, package.total_functions),
                complexity=package.complexity,
                files=len(package.files),
            )
        )
    return sorted(metrics, key=lambda m: m.path)


def trend(previous: AnalysisResult | None, current: AnalysisResult) -> CoverageTrend:
    current_coverage = current.overall_coverage
    if previous is None or previous.overall_coverage is None or current_coverage is None:
        return CoverageTrend(current_coverage=current_coverage)

    change = current_coverage - previous.overall_coverage
    if change > 0:
        direction = TrendDirection.UP
    elif change < 0:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.STABLE
    return CoverageTrend(
        current_coverage=current_coverage,
        previous_coverage=previous.overall_coverage,
        change=change,
        direction=direction,
    )


def functions_by_file(functions: Iterable[FunctionDecl]) -> dict[str, list[FunctionDecl]]:
    """Group functions by source file, keeping first-seen file order."""
    groups: dict[str, list[FunctionDecl]] = {}
    for fn in functions:
        groups.setdefault(fn.file, []).append(fn)
    return groups


def high_complexity_uncovered(result: AnalysisResult, threshold: int = 10) -> list[FunctionDecl]:
    return [fn for fn in result.uncovered_functions if fn.complexity > threshold]
