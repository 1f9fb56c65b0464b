"""
Tests for the Analyze Use Case.

Runs the full analysis over an on-disk Go module: source walk, profile
parsing, path reconciliation and the prioritized uncovered list.
"""

from unittest.mock import MagicMock

import pytest

from conftest import COVERAGE_PROFILE
from gocovgen.adapters.coverage.profile_parser import GoProfileParser
from gocovgen.adapters.io.process_runner import ProcessExecutionError
from gocovgen.application.analysis.source_analyzer import SourceAnalyzer
from gocovgen.application.analyze_usecase import AnalyzeUseCase, AnalyzeUseCaseError
from gocovgen.config.models import AnalysisConfig
from gocovgen.domain.models import ProcessResult, ProfileFormatError


class TestSourceAnalyzer:
    """Test suite for the structural walk."""

    def test_packages_grouped_by_directory(self, go_project, parser, filesystem):
        analysis = SourceAnalyzer(parser, filesystem).analyze(go_project)

        assert set(analysis.packages) == {".", "service"}
        assert analysis.packages["."].name == "calc"
        assert analysis.packages["service"].path == "service"
        assert list(analysis.packages["service"].files) == ["service/store.go"]

    def test_excluded_and_hidden_directories_skipped(self, go_project, parser, filesystem):
        analysis = SourceAnalyzer(parser, filesystem).analyze(go_project)

        assert all(not f.path.startswith(("vendor", ".cache")) for f in analysis.files)
        assert analysis.parse_errors == []

    def test_project_info(self, go_project, parser, filesystem):
        (go_project / "calc_test.go").write_text("package calc\n")
        info = SourceAnalyzer(parser, filesystem).analyze(go_project).project_info

        assert info.module_path == "example.com/calc"
        assert info.go_version == "1.21"
        assert info.go_files == 2
        assert info.test_files == 1
        assert info.total_functions == 6

    def test_test_files_excluded_unless_configured(self, go_project, parser, filesystem):
        (go_project / "calc_test.go").write_text(
            'package calc\n\nimport "testing"\n\nfunc TestAdd(t *testing.T) {}\n'
        )
        default = SourceAnalyzer(parser, filesystem).analyze(go_project)
        included = SourceAnalyzer(parser, filesystem, AnalysisConfig(include_tests=True)).analyze(
            go_project
        )

        assert "calc_test.go" not in default.packages["."].files
        assert "calc_test.go" in included.packages["."].files

    def test_external_test_package_gets_its_own_key(self, go_project, parser, filesystem):
        (go_project / "calc_ext_test.go").write_text("package calc_test\n")
        analysis = SourceAnalyzer(
            parser, filesystem, AnalysisConfig(include_tests=True)
        ).analyze(go_project)

        assert analysis.packages[".#calc_test"].name == "calc_test"
        assert analysis.packages[".#calc_test"].path == "."

    def test_parse_failures_are_collected(self, go_project, parser, filesystem):
        (go_project / "broken.go").write_text("package calc\n\nfunc Broken( {\n")
        analysis = SourceAnalyzer(parser, filesystem).analyze(go_project)

        assert [e.file for e in analysis.parse_errors] == ["broken.go"]
        assert "calc.go" in analysis.packages["."].files


class TestAnalyzeUseCase:
    """Test suite for AnalyzeUseCase."""

    @pytest.fixture
    def usecase(self, parser, filesystem):
        return AnalyzeUseCase(parser, filesystem)

    def test_analysis_with_default_profile(self, usecase, go_project):
        result = usecase.analyze(go_project)

        assert result.profile_path == str(go_project / "coverage.out")
        assert result.profile_mode == "set"
        assert result.summary.total_packages == 2
        assert result.summary.total_functions == 5
        assert result.summary.covered_functions == 2
        assert result.overall_coverage == pytest.approx(30.0)
        assert result.mapping_warnings == []

    def test_uncovered_functions_prioritized(self, usecase, go_project):
        result = usecase.analyze(go_project)

        names = [fn.qualified_name for fn in result.uncovered_functions]
        assert names == ["Classify", "Divide", "Lookup"]
        lookup = result.uncovered_functions[-1]
        # service/ has no profile entries, so its coverage is unknown
        assert lookup.coverage is None

    def test_function_coverage_attached(self, usecase, go_project):
        result = usecase.analyze(go_project)
        by_name = {fn.qualified_name: fn for fn in result.functions}

        assert by_name["Add"].coverage_percent == 100.0
        assert by_name["Counter.Increment"].coverage_percent == 100.0
        assert by_name["Divide"].coverage_percent == 0.0

    def test_without_profile_coverage_is_unknown(self, usecase, go_project):
        (go_project / "coverage.out").unlink()
        result = usecase.analyze(go_project)

        assert result.profile_path is None
        assert result.overall_coverage is None
        assert len(result.uncovered_functions) == 5

    def test_explicit_relative_profile(self, usecase, go_project):
        (go_project / "coverage.out").rename(go_project / "cover.txt")
        result = usecase.analyze(go_project, profile_path="cover.txt")
        assert result.profile_path == str(go_project / "cover.txt")
        assert result.overall_coverage == pytest.approx(30.0)

    def test_malformed_profile_aborts(self, usecase, go_project):
        (go_project / "coverage.out").write_text("mode: set\ncalc.go:1.1,2.2 1\n")

        with pytest.raises(AnalyzeUseCaseError) as exc_info:
            usecase.analyze(go_project)
        assert isinstance(exc_info.value.cause, ProfileFormatError)

    def test_missing_project_aborts(self, usecase, tmp_path):
        with pytest.raises(AnalyzeUseCaseError, match="does not exist"):
            usecase.analyze(tmp_path / "missing")

    def test_generate_profile(self, parser, filesystem, go_project):
        profile_path = go_project / "coverage.out"
        profile_path.unlink()

        def write_profile(command, cwd):
            profile_path.write_text(COVERAGE_PROFILE)
            return ProcessResult(command=command, cwd=str(cwd), returncode=0)

        runner = MagicMock()
        runner.run.side_effect = write_profile
        usecase = AnalyzeUseCase(parser, filesystem, process_runner=runner)

        result = usecase.analyze(go_project, generate_profile=True)

        runner.run.assert_called_once()
        assert "./..." in runner.run.call_args[0][0]
        assert result.overall_coverage == pytest.approx(30.0)

    def test_generate_profile_without_output(self, parser, filesystem, go_project, fake_runner):
        (go_project / "coverage.out").unlink()
        usecase = AnalyzeUseCase(parser, filesystem, process_runner=fake_runner())

        with pytest.raises(AnalyzeUseCaseError):
            usecase.analyze(go_project, generate_profile=True)

    def test_toolchain_cannot_start(self, parser, filesystem, go_project):
        runner = MagicMock()
        runner.run.side_effect = ProcessExecutionError("go: not found")
        usecase = AnalyzeUseCase(parser, filesystem, profile_parser=GoProfileParser(runner))

        with pytest.raises(AnalyzeUseCaseError, match="Profile generation failed"):
            usecase.analyze(go_project, generate_profile=True)
