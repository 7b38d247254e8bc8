"""Logging configuration with text/JSON formatters and a TRACE level."""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import UTC, datetime
from typing import Any

from app.core.config import settings

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

_HANDLER_NAME = "task-board-stream"
_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
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


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_")
    }


class TextFormatter(logging.Formatter):
    """Human-readable formatter that appends `extra` fields as key=value pairs."""

    def __init__(self, *, use_utc: bool) -> None:
        super().__init__(_TEXT_FORMAT)
        if use_utc:
            self.converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = _extra_fields(record)
        if not extras:
            return base
        rendered = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        return f"{base} {rendered}"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, including all `extra` fields."""

    def __init__(self, *, use_utc: bool) -> None:
        super().__init__()
        self._use_utc = use_utc

    def format(self, record: logging.LogRecord) -> str:
        tz = UTC if self._use_utc else None
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=tz).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_extra_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _resolve_level(name: str) -> int:
    value = name.strip().upper()
    if value == "TRACE":
        return TRACE_LEVEL
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> None:
    """Install the application stream handler on the root logger (idempotent)."""
    root = logging.getLogger()
    root.setLevel(_resolve_level(settings.log_level))
    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    if settings.log_format == "json":
        handler.setFormatter(JsonFormatter(use_utc=settings.log_use_utc))
    else:
        handler.setFormatter(TextFormatter(use_utc=settings.log_use_utc))
    root.addHandler(handler)

    # Uvicorn installs its own handlers; route them through ours instead.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; configuration happens once in `configure_logging`."""
    return logging.getLogger(name)
