"""Narrow working tree queries: VCS type, remote URL, revision and path to root.

Only Git and Mercurial are supported. Queries never fail: a directory that is
not under version control (or whose VCS tool is missing) yields ``VcsInfo.EMPTY``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

from ort_analyzer.exceptions import ProcessError
from ort_analyzer.models import VcsInfo, process_package_vcs
from ort_analyzer.process import run_process

log = structlog.get_logger("ort_analyzer.vcs")

_QUERY_TIMEOUT = 30.0


@dataclass(frozen=True)
class _VcsTool:
    type: str
    root_cmd: tuple[str, ...]
    url_cmd: tuple[str, ...]
    revision_cmd: tuple[str, ...]


_TOOLS: tuple[_VcsTool, ...] = (
    _VcsTool(
        type="git",
        root_cmd=("git", "rev-parse", "--show-toplevel"),
        url_cmd=("git", "config", "--get", "remote.origin.url"),
        revision_cmd=("git", "rev-parse", "HEAD"),
    ),
    _VcsTool(
        type="mercurial",
        root_cmd=("hg", "root"),
        url_cmd=("hg", "paths", "default"),
        revision_cmd=("hg", "--debug", "id", "-i"),
    ),
)


def _query(cmd: tuple[str, ...], cwd: Path) -> str | None:
    try:
        result = run_process(*cmd, cwd=cwd, timeout=_QUERY_TIMEOUT)
    except ProcessError as e:
        log.debug("vcs.query_failed", command=list(cmd), error=str(e))
        return None
    if not result.is_success:
        return None
    return result.stdout.strip()


@dataclass(frozen=True)
class WorkingTree:
    """A directory checked out from a VCS."""

    type: str
    root: Path
    url: str
    revision: str

    def path_to_root(self, path: Path) -> str:
        """Path of *path* relative to the working tree root, using forward slashes."""
        try:
            rel = path.resolve().relative_to(self.root).as_posix()
        except ValueError:
            return ""
        return "" if rel == "." else rel

    def info(self, path: Path | None = None) -> VcsInfo:
        rel = self.path_to_root(path) if path is not None else ""
        return VcsInfo(type=self.type, url=self.url, revision=self.revision, path=rel)


def detect_working_tree(directory: Path) -> WorkingTree | None:
    """Return the working tree containing *directory*, or None."""
    directory = directory if directory.is_dir() else directory.parent
    if not directory.is_dir():
        return None

    for tool in _TOOLS:
        root = _query(tool.root_cmd, directory)
        if not root:
            continue
        root_path = Path(root).resolve()
        try:
            directory.resolve().relative_to(root_path)
        except ValueError:
            continue
        # Trailing "+" marks local modifications in Mercurial's revision output.
        revision = (_query(tool.revision_cmd, directory) or "").rstrip("+")
        url = _query(tool.url_cmd, directory) or ""
        return WorkingTree(type=tool.type, root=root_path, url=url, revision=revision)

    return None


def get_path_info(path: Path) -> VcsInfo:
    """VCS info for *path* including its path relative to the working tree root."""
    tree = detect_working_tree(path)
    if tree is None:
        return VcsInfo.EMPTY
    return tree.info(path)


def process_project_vcs(
    project_dir: Path,
    vcs_from_package: VcsInfo = VcsInfo.EMPTY,
    homepage_url: str = "",
) -> VcsInfo:
    """Processed VCS info of a project: working tree info, completed by declared info."""
    from_tree = get_path_info(project_dir).normalize()
    return from_tree.merge(process_package_vcs(vcs_from_package, homepage_url))
