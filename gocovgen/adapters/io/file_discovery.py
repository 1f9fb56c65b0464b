"""
File Discovery Service - Go source and test file discovery.

Walks a project for .go files with the configured directory exclusions.
The source analyzer uses it for the structural walk and project info.
"""

import logging
from pathlib import Path

from ...config.models import AnalysisConfig
from ...ports.filesystem_port import FileSystemPort
from .filesystem import LocalFileSystem

logger = logging.getLogger(__name__)

GO_SUFFIX = ".go"
TEST_SUFFIX = "_test.go"


class FileDiscoveryError(Exception):
    """Exception raised when file discovery fails."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class FileDiscoveryService:
    """
    Service for discovering and filtering Go files in a project.

    Excluded directories are never descended into; hidden directories are
    skipped unless configured otherwise.
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        filesystem: FileSystemPort | None = None,
    ) -> None:
        self.config = config or AnalysisConfig()
        self.filesystem = filesystem or LocalFileSystem()
        self._exclude_dirs_set = set(self.config.exclude_dirs)

    def should_skip_directory(self, name: str) -> bool:
        """Check a directory base name against the exclusion rules."""
        if name in self._exclude_dirs_set:
            return True
        return self.config.skip_hidden_dirs and name.startswith(".") and name not in (".", "..")

    def discover_go_files(self, project_path: str | Path) -> list[Path]:
        """
        Discover every .go file in a project, tests included.

        Args:
            project_path: Root path of the project to search

        Returns:
            Sorted list of absolute paths

        Raises:
            FileDiscoveryError: If the project root is missing or unreadable
        """
        root = self._validate_root(project_path)

        try:
            files = [
                path
                for path in self.filesystem.walk_files(root, self.should_skip_directory)
                if path.name.endswith(GO_SUFFIX)
            ]
        except OSError as e:
            logger.error(f"Filesystem error during discovery in {root}: {e}")
            raise FileDiscoveryError(
                f"Go file discovery failed due to filesystem error: {e}", cause=e
            ) from e

        logger.debug(f"Discovered {len(files)} Go files in {root}")
        return files

    def _validate_root(self, project_path: str | Path) -> Path:
        if not project_path:
            raise FileDiscoveryError("Project path cannot be empty")

        root = Path(project_path)
        if not root.exists():
            raise FileDiscoveryError(f"Project path does not exist: {root}")
        if not root.is_dir():
            raise FileDiscoveryError(f"Project path must be a directory: {root}")
        return root.resolve()


def is_test_file(path: str | Path) -> bool:
    return Path(path).name.endswith(TEST_SUFFIX)
