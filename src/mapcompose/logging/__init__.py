"""Logging setup for map composition, rendering and WMS discovery.

Pipeline operations log at DEBUG with the operation name in ``extra``; builds,
document loads and network calls log at INFO. Readers and HTTP clients pulled
in by the sources and WMS helpers are held at WARNING unless mapcompose itself
runs at DEBUG.
"""

from __future__ import annotations

import json
import logging
from logging import Logger
from logging.config import dictConfig
from typing import Any, Dict, Optional

PACKAGE_LOGGER = "mapcompose"
LIBRARY_LOGGERS = ("urllib3", "fiona", "pyogrio", "branca")
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, including any ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in payload:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(
    *,
    level: str = "INFO",
    json_logs: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Route mapcompose logs to the console and, optionally, a file."""

    formatter = "json" if json_logs else "plain"
    formatters: Dict[str, Dict[str, Any]] = {
        "plain": {"format": "%(asctime)s %(levelname)-7s %(name)s: %(message)s", "datefmt": TIMESTAMP_FORMAT},
        "json": {"()": JSONFormatter, "datefmt": TIMESTAMP_FORMAT},
    }

    handlers: Dict[str, Dict[str, Any]] = {
        "console": {"class": "logging.StreamHandler", "formatter": formatter},
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": log_file,
            "encoding": "utf-8",
            "formatter": formatter,
        }

    level = level.upper()
    library_level = "DEBUG" if level == "DEBUG" else "WARNING"
    loggers = {name: {"level": library_level} for name in LIBRARY_LOGGERS}
    loggers[PACKAGE_LOGGER] = {"level": level}

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "handlers": handlers,
            "loggers": loggers,
            "root": {"handlers": list(handlers), "level": level},
        }
    )


def get_logger(name: str) -> Logger:
    """Return the logger for a mapcompose module."""

    return logging.getLogger(name)
