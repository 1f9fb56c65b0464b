"""
Source Model Port interface definition.

This module defines the capability the analyzer, mock generator and
validation pipeline need from a Go grammar: given source text, produce
declarations with name, parameters, results, span and complexity.
"""

from typing_extensions import Protocol

from ..domain.models import FileModel, ParseErrorRecord, TestFunctionScan


class SourceModelPort(Protocol):
    """
    Interface for building the structural source model of Go files.

    Implementations may use any parser or grammar library for Go; the rest
    of the system only sees domain models.
    """

    def parse_source(self, source: bytes, path: str) -> FileModel:
        """
        Parse one Go compilation unit into a FileModel.

        Args:
            source: Raw file contents
            path: Project-relative path recorded on the model and its declarations

        Returns:
            FileModel with package name, imports, functions and interfaces

        Raises:
            StructuralParseError: If the source does not parse cleanly
        """
        ...

    def check_syntax(self, source: bytes, path: str) -> list[ParseErrorRecord]:
        """
        Report syntax errors in a compilation unit.

        Returns:
            Empty list when the source parses cleanly
        """
        ...

    def scan_test_functions(self, source: bytes) -> list[TestFunctionScan]:
        """
        Collect static facts about every ``Test*`` function in a test file.

        Returns:
            One scan record per test function, in source order
        """
        ...
