"""Common interface of all package manager drivers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from fnmatch import fnmatch
from pathlib import Path
from typing import ClassVar

import structlog

from ort_analyzer.config import AnalyzerConfig
from ort_analyzer.exceptions import AnalyzerError
from ort_analyzer.models import Identifier, Project, ProjectAnalyzerResult
from ort_analyzer.process import CommandLineTool
from ort_analyzer.vcs import get_path_info

log = structlog.get_logger("ort_analyzer.managers")


def format_error(error: BaseException) -> str:
    return f"{type(error).__name__}: {error}"


class PackageManager(CommandLineTool, ABC):
    """Resolves the dependencies of one ecosystem's definition files.

    Subclasses declare ``name`` and ``globs_for_definition_files`` and
    implement :meth:`resolve_dependencies`. Callers use :meth:`resolve`,
    which turns analyzer errors into an error entry of the result so one
    broken definition file does not stop the analysis of the others.
    """

    name: ClassVar[str]
    globs_for_definition_files: ClassVar[list[str]]

    def __init__(self, analysis_root: Path, config: AnalyzerConfig | None = None) -> None:
        self.analysis_root = analysis_root.resolve()
        self.config = config or AnalyzerConfig()
        self.command_timeout = self.config.command_timeout

    def __repr__(self) -> str:
        return f"{type(self).__name__}(analysis_root={str(self.analysis_root)!r})"

    # ── discovery ──────────────────────────────────────────────────────────

    def matches(self, path: Path) -> bool:
        return any(fnmatch(path.name, pattern) for pattern in self.globs_for_definition_files)

    # ── resolution ─────────────────────────────────────────────────────────

    def before_resolution(self, definition_files: list[Path]) -> None:
        """Hook run once before the first definition file is resolved."""
        if definition_files and not self.config.ignore_tool_versions:
            self.check_version(definition_files[0].parent)

    @abstractmethod
    def resolve_dependencies(self, definition_file: Path) -> ProjectAnalyzerResult:
        """Resolve *definition_file* into a project with scopes and packages.

        May raise any AnalyzerError; :meth:`resolve` handles it.
        """
        ...

    def resolve(self, definition_file: Path) -> ProjectAnalyzerResult:
        """Resolve *definition_file*, never raising for analyzer or I/O errors."""
        definition_file = definition_file.resolve()
        log.info("manager.resolve", manager=self.name, definition_file=str(definition_file))
        try:
            return self.resolve_dependencies(definition_file)
        except (AnalyzerError, OSError) as e:
            log.error(
                "manager.resolve_failed",
                manager=self.name,
                definition_file=str(definition_file),
                error=format_error(e),
            )
            return self.error_result(definition_file, [format_error(e)])

    def error_result(self, definition_file: Path, errors: list[str]) -> ProjectAnalyzerResult:
        """A result without dependencies that only carries *errors*."""
        path = self.definition_file_path(definition_file)
        project = Project(
            id=Identifier(self.name, "", path, ""),
            definition_file_path=path,
        )
        return ProjectAnalyzerResult(project=project, errors=tuple(errors))

    # ── helpers ────────────────────────────────────────────────────────────

    def definition_file_path(self, definition_file: Path) -> str:
        """Path of the definition file relative to its VCS root, else to the analysis root."""
        path = get_path_info(definition_file).path
        if path:
            return path
        try:
            return definition_file.resolve().relative_to(self.analysis_root).as_posix()
        except ValueError:
            return definition_file.as_posix()
