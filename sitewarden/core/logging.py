"""Structured logging configuration — structlog + stdlib logging."""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

from sitewarden.exceptions import ConfigError

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_FORMATS = ("console", "json")

# -v, -vv on the command line; no flag defers to SITEWARDEN_LOG_LEVEL
_VERBOSITY_LEVELS = ("INFO", "DEBUG")


def level_for_verbosity(verbosity: int) -> str | None:
    """Map a repeated ``-v`` count to a log level, ``None`` for no flag."""
    if verbosity <= 0:
        return None
    return _VERBOSITY_LEVELS[min(verbosity, len(_VERBOSITY_LEVELS)) - 1]


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and stdlib logging.

    Reads from environment variables:
        SITEWARDEN_LOG_LEVEL  — log level when *level* is not given (default: WARNING)
        SITEWARDEN_LOG_FORMAT — console | json (default: console)

    Raises :class:`ConfigError` for an unknown level or format.

    Logs go to stderr so that reports written to stdout stay machine-readable.
    At DEBUG each event carries ``thread_name``, so records from the
    ``sitewarden-scan`` worker pool can be told apart.
    """
    log_level = (level or os.environ.get("SITEWARDEN_LOG_LEVEL", "WARNING")).upper()
    log_format = os.environ.get("SITEWARDEN_LOG_FORMAT", "console").lower()
    if log_level not in _LEVELS:
        raise ConfigError(
            f"SITEWARDEN_LOG_LEVEL must be one of {', '.join(_LEVELS)}, got {log_level!r}"
        )
    if log_format not in _FORMATS:
        raise ConfigError(
            f"SITEWARDEN_LOG_FORMAT must be one of {', '.join(_FORMATS)}, got {log_format!r}"
        )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if log_level == "DEBUG":
        # Scanner workers log concurrently; name the pool thread behind each event
        shared_processors.append(
            structlog.processors.CallsiteParameterAdder(
                {structlog.processors.CallsiteParameter.THREAD_NAME}
            )
        )

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "structlog",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": log_level,
            },
            "loggers": {
                "sitewarden": {"level": log_level},
                "httpx": {"level": "WARNING"},
                "httpcore": {"level": "WARNING"},
            },
        }
    )
