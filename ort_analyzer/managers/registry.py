"""Package manager registry: match definition files to drivers."""

from __future__ import annotations

import os
from pathlib import Path

from ort_analyzer.config import AnalyzerConfig
from ort_analyzer.managers.base import PackageManager

MANAGER_REGISTRY: dict[str, type[PackageManager]] = {}

# Directories never searched for definition files.
_SKIP_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".stack-work",
    "node_modules",
    "__pycache__",
    ".tox",
    ".venv",
    "venv",
}


def register_manager(manager_cls: type[PackageManager]) -> type[PackageManager]:
    """Register a driver class by its name. Usable as a class decorator."""
    MANAGER_REGISTRY[manager_cls.name] = manager_cls
    return manager_cls


def create_managers(
    analysis_root: Path,
    config: AnalyzerConfig | None = None,
    names: list[str] | None = None,
) -> list[PackageManager]:
    """Instantiate the registered drivers, optionally limited to *names* (case-insensitive)."""
    config = config or AnalyzerConfig()
    wanted = names if names is not None else config.enabled_managers
    selected = []
    for name, manager_cls in sorted(MANAGER_REGISTRY.items()):
        if wanted is not None and name.lower() not in {w.lower() for w in wanted}:
            continue
        selected.append(manager_cls(analysis_root, config))
    return selected


def find_definition_files(
    root: Path,
    managers: list[PackageManager],
) -> dict[PackageManager, list[Path]]:
    """Walk *root* and map each driver to the definition files it applies to."""
    found: dict[PackageManager, list[Path]] = {m: [] for m in managers}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            for manager in managers:
                if manager.matches(path):
                    found[manager].append(path)
    return {m: files for m, files in found.items() if files}
