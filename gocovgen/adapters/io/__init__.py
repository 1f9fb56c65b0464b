"""
IO adapters for files, processes and console output.
"""

from .file_discovery import FileDiscoveryError, FileDiscoveryService, is_test_file
from .filesystem import LocalFileSystem
from .process_runner import ProcessExecutionError, SubprocessRunner
from .rich_cli import GOCOVGEN_THEME, RichCliComponents

__all__ = [
    "FileDiscoveryService",
    "FileDiscoveryError",
    "is_test_file",
    "LocalFileSystem",
    "SubprocessRunner",
    "ProcessExecutionError",
    "RichCliComponents",
    "GOCOVGEN_THEME",
]
