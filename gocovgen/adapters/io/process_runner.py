"""
Process runner adapter.

Implements ``ProcessRunnerPort`` on top of the safe subprocess helpers. Exit
statuses are reported through ``ProcessResult``; only a failure to start the
process at all is raised.
"""

import logging
import time
from pathlib import Path

from ...domain.models import GoCovGenError, ProcessResult
from .subprocess_safe import run_subprocess_simple

logger = logging.getLogger(__name__)


class ProcessExecutionError(GoCovGenError):
    """Raised when an external command cannot be started."""

    pass


class SubprocessRunner:
    """Runs toolchain commands synchronously with no internal timeout."""

    def __init__(self, env: dict[str, str] | None = None) -> None:
        self.env = env

    def run(self, command: list[str], cwd: str | Path) -> ProcessResult:
        logger.debug("Running %s in %s", " ".join(command), cwd)
        started = time.perf_counter()
        try:
            stdout, stderr, returncode = run_subprocess_simple(
                command, timeout=None, cwd=cwd, env=self.env, raise_on_error=False
            )
        except OSError as e:
            raise ProcessExecutionError(
                f"Failed to start {' '.join(command)}: {e}", cause=e
            ) from e

        duration = time.perf_counter() - started
        if returncode != 0:
            logger.debug(
                "Command %s exited with %d after %.2fs",
                command[0],
                returncode,
                duration,
            )
        return ProcessResult(
            command=list(command),
            cwd=str(cwd),
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            duration_seconds=duration,
        )
