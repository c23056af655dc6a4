"""Structured logging helpers for orbit-track."""

from __future__ import annotations

import contextlib
import contextvars
import datetime as _dt
import json
import logging
import os
import sys
from typing import Any, Dict, Iterable, Optional

_LOGGER_NAME = "orbit_track"
_CONTEXT: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "orbit_track_log_context", default={}
)


def _resolve_level(level: Optional[str | int]) -> int:
    if isinstance(level, int):
        return level
    if level is None:
        level = os.getenv("ORBIT_TRACK_LOG_LEVEL", "INFO")
    try:
        return int(level)
    except (TypeError, ValueError):
        numeric = logging.getLevelName(str(level).upper())
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


class JSONFormatter(logging.Formatter):
    """Render log records as JSON with contextual metadata."""

    _SKIP_FIELDS: Iterable[str] = {
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
        "module",
        "msecs",
        "message",
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
    }

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": _dt.datetime.now(_dt.timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = _CONTEXT.get()
        if context:
            payload["context"] = _jsonable(context)

        extras = {
            key: value for key, value in record.__dict__.items() if key not in self._SKIP_FIELDS
        }
        if extras:
            payload["extra"] = _jsonable(extras)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_fallback, sort_keys=False)


def _json_fallback(value: Any) -> Any:
    if isinstance(value, (_dt.datetime, _dt.date)):
        return value.isoformat()
    return repr(value)


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(item) for item in value]
    if isinstance(value, (_dt.datetime, _dt.date)):
        return value.isoformat()
    return value


def configure_logging(
    level: Optional[str | int] = None,
    stream: Optional[Any] = None,
    force: bool = False,
) -> logging.Logger:
    """Configure the package logger with JSON output."""

    logger = logging.getLogger(_LOGGER_NAME)
    if force:
        logger.handlers.clear()
    if logger.handlers and not force:
        return logger

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter())

    logger.addHandler(handler)
    logger.setLevel(_resolve_level(level))
    logger.propagate = False

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a child logger of the package logger.

    Modules outside :mod:`orbit_track` (``sampling``, ``timeline`` ...) log
    through here so a single :func:`configure_logging` call covers them.
    """

    base = _LOGGER_NAME
    if not name:
        return logging.getLogger(base)
    if name.startswith(base):
        return logging.getLogger(name)
    return logging.getLogger(f"{base}.{name}")


@contextlib.contextmanager
def log_context(**kwargs: Any):
    """Context manager to bind contextual metadata to emitted logs."""

    current = dict(_CONTEXT.get())
    current.update({k: v for k, v in kwargs.items() if v is not None})
    token = _CONTEXT.set(current)
    try:
        yield
    finally:
        _CONTEXT.reset(token)


__all__ = ["JSONFormatter", "configure_logging", "get_logger", "log_context"]
