"""
Structured logging utilities for core-api.

Centralizes logging configuration so the HTTP server, the CLI and the database
helper log the same way. Uses standard library logging with a human-readable
formatter by default and an optional JSON formatter for structured logs.
Outside development the caller location is added to every line; when a log
file is configured, records are written there as well.

Usage:
    from core_api.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=False)
    log = get_logger(__name__)
    log.info("Running mysql query", extra={"action": "users", "sql": sql})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from core_api.config import Settings

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as JSON string."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    for key, value in vars(record).items():
        if key not in _RESERVED_ATTRS and not key.startswith("_"):
            payload[key] = value
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    if hasattr(record, "extra") and isinstance(record.extra, dict):
        payload.update(record.extra)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter for structured logs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def effective_log_level(settings: "Settings") -> str:
    """
    DEBUG everywhere but production, INFO in production; LOG_LEVEL wins when set.
    """
    if settings.log_level:
        return settings.log_level.upper()
    return "INFO" if settings.is_production else "DEBUG"


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: Optional[str] = None,
    include_caller: bool = False,
    force: bool = True,
) -> None:
    """
    Configure root logging.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    json_logs : bool
        Whether to emit logs as JSON. If False, uses a concise human formatter.
    log_file : str, optional
        Also write records to this file.
    include_caller : bool
        Append `path:line` of the logging call to console lines.
    force : bool
        Whether to override existing logging configuration (recommended in CLI apps).
    """
    formatter_name = "json" if json_logs else "console"
    console_format = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    if include_caller:
        console_format += " | %(pathname)s:%(lineno)d"

    handlers: Dict[str, Dict[str, Any]] = {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": formatter_name,
            "level": level,
        }
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": log_file,
            "encoding": "utf-8",
            "formatter": formatter_name,
            "level": level,
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "format": console_format,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {
                    "()": JsonFormatter,
                },
            },
            "handlers": handlers,
            "root": {
                "handlers": list(handlers),
                "level": level,
            },
        }
    )


def configure_from_settings(settings: "Settings") -> None:
    """Apply the logging setup implied by the application settings."""
    configure_logging(
        level=effective_log_level(settings),
        json_logs=settings.log_json,
        log_file=settings.log_file,
        include_caller=not settings.is_development,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger with the given name. If name is None, returns the root logger.
    """
    return logging.getLogger(name)


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "effective_log_level",
    "get_logger",
    "JsonFormatter",
]
