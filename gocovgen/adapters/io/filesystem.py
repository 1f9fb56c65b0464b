"""
Local filesystem adapter implementing ``FileSystemPort``.
"""

import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalFileSystem:
    """Reads, writes and walks the local disk."""

    def walk_files(
        self, root: str | Path, skip_dir: Callable[[str], bool]
    ) -> Iterator[Path]:
        root = Path(root)
        for current, dirs, files in os.walk(root):
            # Filter directories in-place to avoid scanning excluded directories
            dirs[:] = sorted(d for d in dirs if not skip_dir(d))
            for filename in sorted(files):
                yield Path(current) / filename

    def read_bytes(self, path: str | Path) -> bytes:
        return Path(path).read_bytes()

    def read_text(self, path: str | Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: str | Path, content: str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.debug(f"Wrote {len(content)} bytes to {path}")

    def exists(self, path: str | Path) -> bool:
        return Path(path).exists()
