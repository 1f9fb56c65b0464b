"""
Tests for the Go coverage profile parser.
"""

from pathlib import Path

import pytest

from conftest import COVERAGE_PROFILE
from gocovgen.adapters.coverage.profile_parser import GoProfileParser
from gocovgen.domain.models import CoverageBlock, CoverageProfile, ProfileFormatError


class TestParseText:
    """Test suite for GoProfileParser.parse_text."""

    @pytest.fixture
    def profile_parser(self):
        return GoProfileParser()

    def test_parses_mode_and_blocks(self, profile_parser):
        profile = profile_parser.parse_text(COVERAGE_PROFILE)

        assert profile.mode == "set"
        assert len(profile.blocks) == 9
        assert list(profile.files) == ["example.com/calc/calc.go"]

        first = profile.blocks[0]
        assert (first.start_line, first.start_col, first.end_line, first.end_col) == (6, 24, 8, 2)
        assert first.num_stmts == 1
        assert first.count == 1
        assert first.covered

    def test_blocks_grouped_by_reported_path(self, profile_parser):
        text = "mode: count\na/x.go:1.1,2.2 1 0\nb/y.go:1.1,2.2 2 5\na/x.go:3.1,4.2 1 7\n"
        profile = profile_parser.parse_text(text)

        assert [len(blocks) for blocks in profile.files.values()] == [2, 1]
        assert profile.files["a/x.go"][1].count == 7

    def test_blank_lines_are_ignored(self, profile_parser):
        profile = profile_parser.parse_text("mode: atomic\n\na.go:1.1,2.2 1 0\n\n")
        assert len(profile.blocks) == 1

    def test_path_containing_colon(self, profile_parser):
        profile = profile_parser.parse_text("mode: set\nC:/src/calc.go:1.1,2.2 1 0\n")
        assert profile.blocks[0].file_name == "C:/src/calc.go"

    @pytest.mark.parametrize(
        "text,line_number",
        [
            ("", 1),
            ("calc.go:1.1,2.2 1 0\n", 1),
            ("mode: bogus\n", 1),
            ("mode: set\ncalc.go:6.24,8.2 1\n", 2),
            ("mode: set\ncalc.go:1.1,2.2 1 0\ncalc.go:6-24,8.2 1 1\n", 3),
            ("mode: set\ncalc.go:6.24,8.2 one 1\n", 2),
            ("mode: set\n6.24,8.2 1 1\n", 2),
        ],
    )
    def test_malformed_profiles(self, profile_parser, text, line_number):
        with pytest.raises(ProfileFormatError) as exc_info:
            profile_parser.parse_text(text)
        assert exc_info.value.line_number == line_number

    def test_parse_file_missing(self, profile_parser, tmp_path):
        with pytest.raises(ProfileFormatError) as exc_info:
            profile_parser.parse_file(tmp_path / "missing.out")
        assert isinstance(exc_info.value.cause, OSError)


class TestValidate:
    """Test profile well-formedness checks."""

    def test_valid_profile(self):
        profile_parser = GoProfileParser()
        profile = profile_parser.parse_text(COVERAGE_PROFILE)
        assert profile_parser.validate(profile) == []
        assert profile_parser.ensure_valid(profile) is profile

    def test_empty_profile(self):
        profile_parser = GoProfileParser()
        profile = profile_parser.parse_text("mode: set\n")
        assert profile_parser.validate(profile) == ["profile contains no coverage blocks"]
        with pytest.raises(ProfileFormatError):
            profile_parser.ensure_valid(profile)

    def test_inconsistent_blocks(self):
        block = CoverageBlock(
            file_name="a.go", start_line=5, start_col=1, end_line=2, end_col=1, num_stmts=0, count=-1
        )
        problems = GoProfileParser().validate(CoverageProfile.from_blocks("set", [block]))

        assert any("start position is after end position" in p for p in problems)
        assert any("statement count must be positive" in p for p in problems)
        assert any("execution count cannot be negative" in p for p in problems)


class TestGenerateProfile:
    """Test profile generation through the process runner."""

    def test_runs_go_test_with_coverage(self, fake_runner, tmp_path):
        runner = fake_runner()
        profile_parser = GoProfileParser(runner)

        output, result = profile_parser.generate_profile(
            tmp_path, package_pattern="./pkg/...", build_tags=["integration", "e2e"]
        )

        assert output == tmp_path.resolve() / "coverage.out"
        assert result.ok
        command = runner.calls[0]
        assert command[:2] == ["go", "test"]
        assert f"-coverprofile={output}" in command
        assert "-covermode=atomic" in command
        assert "-tags=integration,e2e" in command
        assert command[-1] == "./pkg/..."

    def test_failing_tests_are_reported_not_raised(self, fake_runner, tmp_path):
        runner = fake_runner({"go test": (1, "--- FAIL: TestX")})
        output, result = GoProfileParser(runner).generate_profile(tmp_path, output=Path("c.out"))

        assert not result.ok
        assert output.name == "c.out"

    def test_requires_a_runner(self, tmp_path):
        with pytest.raises(ValueError):
            GoProfileParser().generate_profile(tmp_path)
