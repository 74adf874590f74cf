"""Run all applicable package managers over a directory tree."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from ort_analyzer.config import AnalyzerConfig
from ort_analyzer.exceptions import AnalyzerError
from ort_analyzer.managers import PackageManager, create_managers, find_definition_files
from ort_analyzer.managers.base import format_error
from ort_analyzer.models import ProjectAnalyzerResult

log = structlog.get_logger("ort_analyzer.analyzer")


@dataclass
class AnalyzerRun:
    """All project results of one analysis, ordered by definition file path."""

    root: Path
    results: list[ProjectAnalyzerResult] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(r.errors for r in self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": str(self.root),
            "results": [r.to_dict() for r in self.results],
        }


class Analyzer:
    """Finds definition files and resolves each of them independently."""

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self.config = config or AnalyzerConfig()

    def analyze(self, root: Path, names: list[str] | None = None) -> AnalyzerRun:
        root = root.resolve()
        managers = create_managers(root, self.config, names)
        found = find_definition_files(root, managers)
        log.info(
            "analyzer.start",
            root=str(root),
            managers=[m.name for m in managers],
            definition_files=sum(len(files) for files in found.values()),
        )

        results: list[ProjectAnalyzerResult] = []
        jobs: list[tuple[PackageManager, Path]] = []
        for manager, files in found.items():
            try:
                manager.before_resolution(files)
            except AnalyzerError as e:
                log.error("analyzer.manager_unavailable", manager=manager.name, error=format_error(e))
                results.extend(manager.error_result(f, [format_error(e)]) for f in files)
                continue
            jobs.extend((manager, f) for f in files)

        if jobs:
            workers = min(self.config.max_workers, len(jobs))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(manager.resolve, f) for manager, f in jobs]
                for (manager, f), future in zip(jobs, futures):
                    try:
                        results.append(future.result())
                    except Exception as e:
                        log.exception(
                            "analyzer.resolve_crashed",
                            manager=manager.name,
                            definition_file=str(f),
                        )
                        results.append(manager.error_result(f, [format_error(e)]))

        results.sort(key=lambda r: (r.project.definition_file_path, r.project.id))
        log.info(
            "analyzer.done",
            projects=len(results),
            failed=sum(1 for r in results if r.errors),
        )
        return AnalyzerRun(root=root, results=results)
