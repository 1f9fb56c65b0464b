"""
Go coverage profile adapter.

Parses the text produced by ``go test -coverprofile`` into a
``CoverageProfile`` and can invoke the toolchain to produce one. The format
is a ``mode:`` header followed by one block per line::

    mode: atomic
    example.com/calc/calc.go:5.25,7.2 1 3
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ...domain.models import (
    CoverageBlock,
    CoverageMode,
    CoverageProfile,
    ProcessResult,
    ProfileFormatError,
)
from ...ports.process_port import ProcessRunnerPort

logger = logging.getLogger(__name__)

VALID_MODES = frozenset(mode.value for mode in CoverageMode)

_POSITION = re.compile(r"^(\d+)\.(\d+),(\d+)\.(\d+)$")


class GoProfileParser:
    """Reads, validates and generates Go coverage profiles."""

    def __init__(self, process_runner: ProcessRunnerPort | None = None) -> None:
        self.process_runner = process_runner

    def parse_text(self, text: str) -> CoverageProfile:
        """
        Parse profile text in a single pass.

        Raises:
            ProfileFormatError: On an unknown mode or any malformed block line;
                the error names the 1-based line number
        """
        lines = text.splitlines()
        if not lines or not lines[0].strip():
            raise ProfileFormatError("Empty coverage profile", line_number=1)

        header = lines[0].strip()
        if not header.startswith("mode:"):
            raise ProfileFormatError(
                f"Expected 'mode:' header, got {header!r}", line_number=1
            )
        mode = header[len("mode:") :].strip()
        if mode not in VALID_MODES:
            raise ProfileFormatError(f"Unknown coverage mode {mode!r}", line_number=1)

        blocks = []
        for line_number, raw in enumerate(lines[1:], start=2):
            line = raw.strip()
            if not line:
                continue
            blocks.append(self._parse_block(line, line_number))

        logger.debug(f"Parsed {len(blocks)} coverage blocks (mode {mode})")
        return CoverageProfile.from_blocks(mode, blocks)

    def parse_file(self, path: str | Path) -> CoverageProfile:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ProfileFormatError(f"Cannot read coverage profile {path}: {e}", cause=e) from e
        except UnicodeDecodeError as e:
            raise ProfileFormatError(f"Coverage profile {path} is not UTF-8 text", cause=e) from e
        return self.parse_text(text)

    def _parse_block(self, line: str, line_number: int) -> CoverageBlock:
        fields = line.split(" ")
        if len(fields) != 3:
            raise ProfileFormatError(
                f"Line {line_number}: expected 3 space-separated fields, got {len(fields)}",
                line_number=line_number,
            )
        location, num_stmts, count = fields

        file_name, sep, span = location.rpartition(":")
        if not sep or not file_name:
            raise ProfileFormatError(
                f"Line {line_number}: missing ':' between path and position",
                line_number=line_number,
            )
        match = _POSITION.match(span)
        if not match:
            raise ProfileFormatError(
                f"Line {line_number}: malformed position {span!r}",
                line_number=line_number,
            )
        try:
            stmts = int(num_stmts)
            hits = int(count)
        except ValueError as e:
            raise ProfileFormatError(
                f"Line {line_number}: statement and execution counts must be integers",
                line_number=line_number,
                cause=e,
            ) from e

        start_line, start_col, end_line, end_col = (int(g) for g in match.groups())
        return CoverageBlock(
            file_name=file_name,
            start_line=start_line,
            start_col=start_col,
            end_line=end_line,
            end_col=end_col,
            num_stmts=stmts,
            count=hits,
        )

    def validate(self, profile: CoverageProfile) -> list[str]:
        """Return every well-formedness problem found in a parsed profile."""
        problems = []
        if not profile.mode:
            problems.append("coverage mode is empty")
        elif profile.mode not in VALID_MODES:
            problems.append(f"unknown coverage mode {profile.mode!r}")
        if not profile.blocks:
            problems.append("profile contains no coverage blocks")

        for index, block in enumerate(profile.blocks, start=1):
            where = f"block {index} ({block.file_name or '?'})"
            if not block.file_name:
                problems.append(f"{where}: empty file name")
            if block.start_line <= 0 or block.end_line <= 0:
                problems.append(f"{where}: line numbers must be positive")
            if (block.start_line, block.start_col) > (block.end_line, block.end_col):
                problems.append(f"{where}: start position is after end position")
            if block.num_stmts <= 0:
                problems.append(f"{where}: statement count must be positive")
            if block.count < 0:
                problems.append(f"{where}: execution count cannot be negative")
        return problems

    def ensure_valid(self, profile: CoverageProfile) -> CoverageProfile:
        problems = self.validate(profile)
        if problems:
            raise ProfileFormatError("Invalid coverage profile: " + "; ".join(problems))
        return profile

    def generate_profile(
        self,
        project_path: str | Path,
        output: str | Path = "coverage.out",
        package_pattern: str = "./...",
        build_tags: list[str] | None = None,
    ) -> tuple[Path, ProcessResult]:
        """
        Run ``go test`` with coverage instrumentation in the project directory.

        Args:
            project_path: Go module root
            output: Profile path, resolved against the project when relative
            package_pattern: Packages to test
            build_tags: Optional build tags

        Returns:
            (absolute profile path, process result); a failing test run is
            reported through the result, not raised

        Raises:
            ProcessExecutionError: If ``go`` cannot be started
        """
        if self.process_runner is None:
            raise ValueError("A process runner is required to generate a profile")

        project = Path(project_path).resolve()
        output_path = Path(output)
        if not output_path.is_absolute():
            output_path = project / output_path

        command = ["go", "test", f"-coverprofile={output_path}", "-covermode=atomic"]
        if build_tags:
            command.append(f"-tags={','.join(build_tags)}")
        command.append(package_pattern or "./...")

        logger.info(f"Generating coverage profile: {' '.join(command)}")
        result = self.process_runner.run(command, cwd=project)
        if not result.ok:
            logger.warning(
                f"go test exited with status {result.returncode} while generating the profile"
            )
        return output_path, result
