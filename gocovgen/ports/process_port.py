"""
Process Runner Port interface definition.

This module defines how the system invokes external toolchain commands
(profile generation, build, test execution).
"""

from pathlib import Path

from typing_extensions import Protocol

from ..domain.models import ProcessResult


class ProcessRunnerPort(Protocol):
    """Interface for running external commands synchronously."""

    def run(self, command: list[str], cwd: str | Path) -> ProcessResult:
        """
        Run a command to completion in a working directory.

        There is no timeout: a hang in the invoked process hangs the caller.

        Args:
            command: Executable and arguments
            cwd: Working directory

        Returns:
            ProcessResult with exit status and captured output. A non-zero
            exit status is reported, not raised.

        Raises:
            ProcessExecutionError: If the command cannot be started at all
        """
        ...
