"""Logging configuration with text and JSON line output."""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import UTC, datetime
from typing import Any

from taskboard.core.config import settings

APP_LOGGER_NAME = "taskboard"

# Attributes present on every LogRecord; anything else came in through `extra=`.
_RESERVED_RECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    },
)

_configured = False


def _record_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """Render one JSON object per log line, including `extra=` fields."""

    def __init__(self, *, use_utc: bool = False) -> None:
        super().__init__()
        self._use_utc = use_utc

    def _timestamp(self, record: logging.LogRecord) -> str:
        if self._use_utc:
            return datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        return datetime.fromtimestamp(record.created).astimezone().isoformat()

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self._timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_record_extras(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter that appends `extra=` fields as key=value pairs."""

    def __init__(self, *, use_utc: bool = False) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
        if use_utc:
            self.converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        rendered = super().format(record)
        extras = _record_extras(record)
        if not extras:
            return rendered
        pairs = " ".join(f"{key}={value}" for key, value in extras.items())
        return f"{rendered} {pairs}"


def configure_logging() -> None:
    """Install the application log handler once; repeated calls are no-ops."""
    global _configured  # noqa: PLW0603
    if _configured:
        return

    formatter: logging.Formatter
    if settings.log_format == "json":
        formatter = JsonFormatter(use_utc=settings.log_use_utc)
    else:
        formatter = TextFormatter(use_utc=settings.log_use_utc)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.handlers.clear()
    app_logger.addHandler(handler)
    app_logger.setLevel(settings.log_level.upper())
    app_logger.propagate = False

    # Keep SQL echo and access logs out of the app stream unless they are problems.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger nested under the application logger."""
    if name == APP_LOGGER_NAME or name.startswith(f"{APP_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")
