"""Analyzer configuration resolved from ``ORT_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

import structlog

log = structlog.get_logger("ort_analyzer.config")

DEFAULT_HACKAGE_URL = "https://hackage.haskell.org"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("config.invalid_int", variable=name, value=raw, default=default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("config.invalid_float", variable=name, value=raw, default=default)
        return default


def _env_list(name: str) -> list[str]:
    raw = os.environ.get(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class AnalyzerConfig:
    """Settings shared by all package managers of one analyzer run."""

    command_timeout: float = 600.0  # seconds per external command
    http_timeout: float = 30.0  # seconds per meta-data request
    max_workers: int = 4
    ignore_tool_versions: bool = False
    hackage_url: str = DEFAULT_HACKAGE_URL
    bitbake_recipes: list[str] = field(default_factory=list)
    enabled_managers: list[str] | None = None  # None = all registered managers

    @classmethod
    def from_env(cls) -> AnalyzerConfig:
        """Build a config from the environment, falling back to defaults."""
        enabled = _env_list("ORT_ENABLED_MANAGERS")
        return cls(
            command_timeout=_env_float("ORT_COMMAND_TIMEOUT", 600.0),
            http_timeout=_env_float("ORT_HTTP_TIMEOUT", 30.0),
            max_workers=max(1, _env_int("ORT_MAX_WORKERS", 4)),
            ignore_tool_versions=(
                os.environ.get("ORT_IGNORE_TOOL_VERSIONS", "").strip().lower() in _TRUE_VALUES
            ),
            hackage_url=os.environ.get("ORT_HACKAGE_URL", DEFAULT_HACKAGE_URL).rstrip("/"),
            bitbake_recipes=_env_list("ORT_BITBAKE_RECIPES"),
            enabled_managers=enabled or None,
        )
