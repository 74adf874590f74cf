"""Logging for the analyzer: structlog events rendered through stdlib handlers.

Every module logs through ``structlog.get_logger("ort_analyzer.<area>")``.
Output always goes to stderr, stdout is reserved for results.
"""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

LEVEL_ENV = "ORT_LOG_LEVEL"
FORMAT_ENV = "ORT_LOG_FORMAT"

# Third-party loggers that only matter when they warn.
_QUIET_LOGGERS = ("httpx", "httpcore")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    *level* and *fmt* override ``ORT_LOG_LEVEL`` (default INFO) and
    ``ORT_LOG_FORMAT`` (``console`` or ``json``, default console).
    """
    log_level = (level or os.environ.get(LEVEL_ENV) or "INFO").upper()
    log_format = (fmt or os.environ.get(FORMAT_ENV) or "console").lower()

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    loggers = {"ort_analyzer": {"level": log_level}}
    loggers.update({name: {"level": "WARNING"} for name in _QUIET_LOGGERS})

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "analyzer": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(log_format),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "analyzer",
                },
            },
            "root": {"handlers": ["stderr"], "level": log_level},
            "loggers": loggers,
        }
    )
