"""Common helpers for the orbit-track CLI."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..logging import configure_logging as _configure_json_logging

LOG_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

EXIT_OK = 0
EXIT_BAD_INPUT = 2


def add_shared_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the CLI options that are common to every subcommand."""

    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=sorted(LOG_LEVELS),
        help="Logging verbosity (default: ORBIT_TRACK_LOG_LEVEL or INFO).",
    )


def configure_logging(level_name: str) -> None:
    """Route package logs to stderr as JSON at the requested level."""

    level = LOG_LEVELS.get(level_name.upper(), logging.INFO)
    _configure_json_logging(level=level, force=True)


def parse_datetime(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid datetime '{value}'") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_step(value: str) -> float:
    """Parse ``60``, ``90s``, ``5m``, ``1h`` or ``PT5M`` into seconds."""

    v = value.strip().lower()
    if v.startswith("pt"):
        v = v[2:]
    try:
        if v.endswith("h"):
            seconds = timedelta(hours=float(v[:-1])).total_seconds()
        elif v.endswith("m"):
            seconds = timedelta(minutes=float(v[:-1])).total_seconds()
        elif v.endswith("s"):
            seconds = float(v[:-1])
        else:
            seconds = float(v)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid step '{value}'") from exc
    if seconds <= 0:
        raise argparse.ArgumentTypeError("step must be positive")
    return seconds


def now_utc(override: Optional[datetime] = None) -> datetime:
    return override or datetime.now(timezone.utc)
