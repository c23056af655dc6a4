"""Simulation clock with loop/scrub support and explicit tick subscriptions."""
from __future__ import annotations

import datetime as dt
import enum
import itertools
from typing import Callable, Dict, Optional

from propagate.service import ensure_utc

TickListener = Callable[["SimulationClock"], None]


class LoopPolicy(str, enum.Enum):
    """Behaviour of the clock at the edges of its playback range."""

    UNBOUNDED = "UNBOUNDED"
    CLAMPED = "CLAMPED"
    LOOP_STOP = "LOOP_STOP"

    @classmethod
    def from_string(cls, value: str) -> "LoopPolicy":
        try:
            return cls(value.strip().upper().replace("-", "_"))
        except ValueError as exc:
            raise ValueError(f"Unknown loop policy '{value}'") from exc


class TickSubscription:
    """Handle for one registered tick listener.

    Use as a context manager or call :meth:`dispose`; disposing twice is a
    no-op.
    """

    def __init__(self, clock: "SimulationClock", token: int) -> None:
        self._clock: Optional[SimulationClock] = clock
        self._token = token

    @property
    def active(self) -> bool:
        return self._clock is not None

    def dispose(self) -> None:
        if self._clock is None:
            return
        self._clock._unsubscribe(self._token)
        self._clock = None

    def __enter__(self) -> "TickSubscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()


class SimulationClock:
    def __init__(
        self,
        start: dt.datetime,
        stop: Optional[dt.datetime] = None,
        current: Optional[dt.datetime] = None,
        multiplier: float = 1.0,
        loop_policy: LoopPolicy = LoopPolicy.UNBOUNDED,
        should_animate: bool = True,
    ) -> None:
        self.start = ensure_utc(start)
        self.stop = ensure_utc(stop) if stop is not None else None
        if self.stop is not None and self.stop < self.start:
            raise ValueError("stop must not be before start")
        self.loop_policy = LoopPolicy(loop_policy)
        if self.loop_policy != LoopPolicy.UNBOUNDED and self.stop is None:
            raise ValueError(f"{self.loop_policy.value} requires a stop time")
        self.multiplier = float(multiplier)
        self.should_animate = should_animate
        self._current = ensure_utc(current) if current is not None else self.start
        self._listeners: Dict[int, TickListener] = {}
        self._tokens = itertools.count()

    @property
    def current_time(self) -> dt.datetime:
        return self._current

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def on_tick(self, listener: TickListener) -> TickSubscription:
        token = next(self._tokens)
        self._listeners[token] = listener
        return TickSubscription(self, token)

    def _unsubscribe(self, token: int) -> None:
        self._listeners.pop(token, None)

    def play(self) -> None:
        self.should_animate = True

    def pause(self) -> None:
        self.should_animate = False

    def set_time(self, when: dt.datetime) -> None:
        """Scrub to ``when`` without firing listeners."""
        self._current = ensure_utc(when)

    def _apply_range(self, candidate: dt.datetime) -> dt.datetime:
        if self.loop_policy == LoopPolicy.UNBOUNDED or self.stop is None:
            return candidate
        if self.loop_policy == LoopPolicy.CLAMPED:
            return min(max(candidate, self.start), self.stop)
        if self.multiplier >= 0 and candidate > self.stop:
            return self.start
        if self.multiplier < 0 and candidate < self.start:
            return self.stop
        return candidate

    def tick(self, real_seconds: float) -> dt.datetime:
        """Advance by ``real_seconds`` of wall time and notify listeners."""

        if self.should_animate:
            delta = dt.timedelta(seconds=real_seconds * self.multiplier)
            self._current = self._apply_range(self._current + delta)
        for listener in list(self._listeners.values()):
            listener(self)
        return self._current


__all__ = ["LoopPolicy", "SimulationClock", "TickListener", "TickSubscription"]
