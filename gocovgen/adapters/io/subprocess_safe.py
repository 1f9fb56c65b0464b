"""
Safe subprocess execution utilities.

This module provides subprocess execution with proper cleanup and process
isolation so that an interrupted run does not leave orphaned ``go`` processes
behind.

Toolchain commands are allowed to run as long as they need: ``timeout`` is
None by default, and a hang in the invoked process hangs the caller.

## Usage Examples

```python
from gocovgen.adapters.io.subprocess_safe import run_subprocess_simple

stdout, stderr, returncode = run_subprocess_simple(
    ["go", "build", "./..."], cwd=project, raise_on_error=False
)
```
"""

import contextlib
import logging
import subprocess
from pathlib import Path

# Module-level logger
logger = logging.getLogger(__name__)


class SubprocessError(Exception):
    """Base exception for subprocess-related errors."""

    pass


class SubprocessTimeoutError(SubprocessError):
    """Raised when a subprocess operation times out."""

    pass


class SubprocessExecutionError(SubprocessError):
    """Raised when a subprocess returns a non-zero exit code."""

    def __init__(
        self,
        message: str,
        returncode: int = 1,
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(message)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


@contextlib.contextmanager
def run_subprocess_safe(
    cmd: list[str],
    timeout: float | None = None,
    cwd: str | Path | None = None,
    env: dict[str, str] | None = None,
):
    """
    Run a subprocess command with robust cleanup on timeout or interruption.

    Args:
        cmd: Command and arguments to execute
        timeout: Maximum time to wait in seconds; None waits indefinitely
        cwd: Working directory for the subprocess
        env: Environment variables for the subprocess

    Yields:
        tuple: (stdout, stderr) from the command

    Raises:
        SubprocessTimeoutError: If command exceeds timeout
        SubprocessExecutionError: If command returns non-zero exit code
        OSError: If command cannot be executed
    """
    proc = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
        text=True,
        cwd=cwd,
        env=env,
        start_new_session=True,  # Create new process group for better isolation
    )

    try:
        stdout, stderr = proc.communicate(timeout=timeout)
        if proc.returncode != 0:
            raise SubprocessExecutionError(
                f"Command {cmd} failed with exit code {proc.returncode}",
                returncode=proc.returncode,
                stdout=stdout or "",
                stderr=stderr or "",
            )
        yield stdout, stderr

    except subprocess.TimeoutExpired:
        logger.warning(f"Command {cmd} timed out after {timeout} seconds")
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        proc.communicate()  # Clean up zombie process
        raise SubprocessTimeoutError(
            f"Command {cmd} timed out after {timeout} seconds"
        ) from None

    finally:
        if proc.poll() is None:  # Process still running
            try:
                proc.terminate()
            except ProcessLookupError:
                pass
            try:
                proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                logger.warning(f"Force killing stubborn process: {cmd}")
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
                proc.wait()


def run_subprocess_simple(
    cmd: list[str],
    timeout: float | None = None,
    cwd: str | Path | None = None,
    env: dict[str, str] | None = None,
    raise_on_error: bool = True,
) -> tuple[str, str, int]:
    """
    Simple wrapper for running subprocess commands safely.

    Args:
        cmd: Command and arguments to execute
        timeout: Maximum time to wait in seconds; None waits indefinitely
        cwd: Working directory for the subprocess
        env: Environment variables for the subprocess
        raise_on_error: Whether to raise exception on non-zero exit codes

    Returns:
        tuple: (stdout, stderr, return_code)
    """
    try:
        with run_subprocess_safe(cmd, timeout, cwd, env) as (
            stdout,
            stderr,
        ):
            return stdout or "", stderr or "", 0

    except SubprocessExecutionError as e:
        if raise_on_error:
            raise
        return e.stdout, e.stderr, e.returncode

    except SubprocessTimeoutError as e:
        if raise_on_error:
            raise
        return "", str(e), -1
