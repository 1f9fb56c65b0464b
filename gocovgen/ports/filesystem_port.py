"""
File System Port interface definition.

This module defines the filesystem operations used by analysis and
generation: recursive walks with per-directory skipping, reads and writes.
"""

from collections.abc import Callable, Iterator
from pathlib import Path

from typing_extensions import Protocol


class FileSystemPort(Protocol):
    """Interface for filesystem access rooted at arbitrary paths."""

    def walk_files(
        self, root: str | Path, skip_dir: Callable[[str], bool]
    ) -> Iterator[Path]:
        """
        Yield every file below root, never descending into skipped directories.

        Args:
            root: Directory to walk
            skip_dir: Predicate over a directory's base name

        Yields:
            Absolute file paths in a stable (sorted) order
        """
        ...

    def read_bytes(self, path: str | Path) -> bytes:
        ...

    def read_text(self, path: str | Path) -> str:
        ...

    def write_text(self, path: str | Path, content: str) -> None:
        """Write content, creating parent directories as needed."""
        ...

    def exists(self, path: str | Path) -> bool:
        ...
