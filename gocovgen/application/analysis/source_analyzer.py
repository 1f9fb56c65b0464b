"""
Source Analyzer - builds the structural model of a Go project.

Walks the project with the configured exclusions, parses every Go file
through the ``SourceModelPort`` and groups the resulting file models into
packages keyed by directory. Per-file parse failures are collected and never
abort the walk.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, Field

from ...adapters.io.file_discovery import FileDiscoveryService, is_test_file
from ...config.models import AnalysisConfig
from ...domain.models import (
    FileModel,
    PackageModel,
    ParseErrorRecord,
    ProjectInfo,
    StructuralParseError,
)
from ...ports.filesystem_port import FileSystemPort
from ...ports.source_model_port import SourceModelPort

logger = logging.getLogger(__name__)

_MODULE_DIRECTIVE = re.compile(r"^module\s+(\S+)", re.MULTILINE)
_GO_DIRECTIVE = re.compile(r"^go\s+(\S+)", re.MULTILINE)


class SourceAnalysis(BaseModel):
    """Structural model of one project, before coverage is attached."""

    root: str
    packages: dict[str, PackageModel] = Field(default_factory=dict)
    parse_errors: list[ParseErrorRecord] = Field(default_factory=list)
    project_info: ProjectInfo

    @property
    def files(self) -> list[FileModel]:
        return [f for pkg in self.packages.values() for f in pkg.files.values()]


class SourceAnalyzer:
    """Walks a Go project and builds FileModels grouped by package."""

    def __init__(
        self,
        source_model: SourceModelPort,
        filesystem: FileSystemPort,
        config: AnalysisConfig | None = None,
        file_discovery: FileDiscoveryService | None = None,
    ) -> None:
        self.config = config or AnalysisConfig()
        self._source_model = source_model
        self._filesystem = filesystem
        self._file_discovery = file_discovery or FileDiscoveryService(self.config, filesystem)

    def analyze(self, project_path: str | Path) -> SourceAnalysis:
        """
        Build the structural model for every Go file under project_path.

        Raises:
            FileDiscoveryError: If the project root is missing or unreadable
        """
        all_files = self._file_discovery.discover_go_files(project_path)
        root = Path(project_path).resolve()
        sources = [
            path
            for path in all_files
            if self.config.include_tests or not is_test_file(path)
        ]
        logger.info(f"Analyzing {len(sources)} Go files in {root}")

        grouped: dict[str, dict[str, FileModel]] = {}
        names: dict[str, str] = {}
        parse_errors: list[ParseErrorRecord] = []

        for path in sources:
            rel = relative_posix(path, root)
            try:
                model = self.parse_file(path, rel)
            except StructuralParseError as e:
                logger.warning(f"Skipping {rel}: {e}")
                parse_errors.append(
                    ParseErrorRecord(file=rel, message=str(e), line=e.line, column=e.column)
                )
                continue
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable file {rel}: {e}")
                parse_errors.append(ParseErrorRecord(file=rel, message=str(e)))
                continue

            key = self._package_key(rel, model.package, names)
            grouped.setdefault(key, {})[rel] = model

        packages = {
            key: PackageModel(name=names[key], path=package_dir(key), files=files)
            for key, files in grouped.items()
        }

        info = self.project_info(root, all_files, packages)
        logger.info(
            f"Found {len(packages)} packages, {info.total_functions} functions, "
            f"{len(parse_errors)} parse errors"
        )
        return SourceAnalysis(
            root=str(root), packages=packages, parse_errors=parse_errors, project_info=info
        )

    def parse_file(self, path: str | Path, rel_path: str) -> FileModel:
        source = self._filesystem.read_bytes(path)
        return self._source_model.parse_source(source, rel_path)

    def project_info(
        self, root: Path, all_files: list[Path], packages: dict[str, PackageModel]
    ) -> ProjectInfo:
        module_path, go_version = read_go_mod(root, self._filesystem)
        files = [f for pkg in packages.values() for f in pkg.files.values()]
        return ProjectInfo(
            root=str(root),
            module_path=module_path,
            go_version=go_version,
            go_files=sum(1 for p in all_files if not is_test_file(p)),
            test_files=sum(1 for p in all_files if is_test_file(p)),
            total_lines=sum(f.line_count for f in files),
            total_functions=sum(len(f.functions) for f in files),
        )

    def _package_key(self, rel_path: str, package: str, names: dict[str, str]) -> str:
        directory = str(PurePosixPath(rel_path).parent)
        key = directory
        # External test packages (package foo_test) share the directory
        if key in names and names[key] != package:
            key = f"{directory}#{package}"
        names.setdefault(key, package)
        return key


def package_dir(key: str) -> str:
    return key.split("#", 1)[0]


def relative_posix(path: str | Path, root: Path) -> str:
    path = Path(path)
    try:
        return path.resolve().relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def read_go_mod(root: Path, filesystem: FileSystemPort) -> tuple[str, str]:
    """Return the (module path, go version) declared in root/go.mod, empty when absent."""
    go_mod = root / "go.mod"
    if not filesystem.exists(go_mod):
        return "", ""
    try:
        text = filesystem.read_text(go_mod)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Cannot read {go_mod}: {e}")
        return "", ""
    module = _MODULE_DIRECTIVE.search(text)
    version = _GO_DIRECTIVE.search(text)
    return (
        module.group(1).strip('"') if module else "",
        version.group(1) if version else "",
    )
