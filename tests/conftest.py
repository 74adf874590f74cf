"""Shared pytest fixtures for the ORT analyzer tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from ort_analyzer.config import AnalyzerConfig
from ort_analyzer.process import ProcessResult


@pytest.fixture
def no_vcs():
    """Pretend no directory is under version control."""
    with patch("ort_analyzer.vcs.detect_working_tree", return_value=None) as mock:
        yield mock


@pytest.fixture
def config() -> AnalyzerConfig:
    return AnalyzerConfig(ignore_tool_versions=True, command_timeout=10.0)


def make_result(command: list[str], stdout: str = "", stderr: str = "", exit_code: int = 0) -> ProcessResult:
    return ProcessResult(command=command, stdout=stdout, stderr=stderr, exit_code=exit_code)


def write(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path
