"""Application configuration loader for orbit-track."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, TypeVar

from propagate.frames import FrameMode
from sampling.cache import DEFAULT_MAX_SAMPLES
from simulation.clock import LoopPolicy

__all__ = [
    "AppConfig",
    "ClockSettings",
    "load_config",
]

_ENV_PREFIX = "ORBIT_TRACK_"

T = TypeVar("T")


@dataclass(frozen=True)
class ClockSettings:
    """Defaults for clocks created by the CLI."""

    multiplier: float = 1.0
    loop_policy: LoopPolicy = LoopPolicy.UNBOUNDED


@dataclass(frozen=True)
class AppConfig:
    """Container for derived application configuration."""

    live_step_seconds: float = 1.0
    export_step_seconds: float = 60.0
    frame_mode: FrameMode = FrameMode.GEODETIC
    max_samples: int = DEFAULT_MAX_SAMPLES
    log_level: str = "INFO"
    clock: ClockSettings = field(default_factory=ClockSettings)


def _positive_float(raw: str) -> float:
    value = float(raw)
    if value <= 0:
        raise ValueError("must be positive")
    return value


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value <= 0:
        raise ValueError("must be positive")
    return value


def _read(env: Mapping[str, str], name: str, parse: Callable[[str], T], default: T) -> T:
    key = f"{_ENV_PREFIX}{name}"
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return parse(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid value for {key}: {raw!r} ({exc})") from exc


def load_config(env: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Load configuration from environment variables."""

    env_map: Mapping[str, str]
    if env is None:
        env_map = os.environ
    else:
        env_map = env

    clock = ClockSettings(
        multiplier=_read(env_map, "MULTIPLIER", float, 1.0),
        loop_policy=_read(env_map, "LOOP_POLICY", LoopPolicy.from_string, LoopPolicy.UNBOUNDED),
    )

    return AppConfig(
        live_step_seconds=_read(env_map, "LIVE_STEP", _positive_float, 1.0),
        export_step_seconds=_read(env_map, "EXPORT_STEP", _positive_float, 60.0),
        frame_mode=_read(env_map, "FRAME_MODE", FrameMode.from_string, FrameMode.GEODETIC),
        max_samples=_read(env_map, "MAX_SAMPLES", _positive_int, DEFAULT_MAX_SAMPLES),
        log_level=_read(env_map, "LOG_LEVEL", str.upper, "INFO"),
        clock=clock,
    )
