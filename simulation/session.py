"""Per-satellite tracking session driven by the simulation clock."""
from __future__ import annotations

import dataclasses
import datetime as dt
from typing import TYPE_CHECKING, List, Optional, Protocol, Sequence, Tuple

from orbit_track.logging import get_logger, log_context
from orbit_track.tle import OrbitalElementSet
from propagate.frames import FrameMode, FramedPosition, FrameTransformAdapter, ReferenceFrame, Vector3
from propagate.service import PropagationError, Propagator
from sampling.cache import DEFAULT_MAX_SAMPLES, OrbitSample, OrbitSampleCache, slot_count
from sampling.resolver import NoValidSampleError, TimeIndexResolver
from simulation.clock import SimulationClock, TickSubscription

if TYPE_CHECKING:
    from orbit_track.config import AppConfig

LOGGER = get_logger("simulation.session")


@dataclasses.dataclass(frozen=True)
class TickResult:
    """Outcome of one tick: either a framed position or a typed failure."""

    tick_time: dt.datetime
    sample: Optional[OrbitSample] = None
    sample_time: Optional[dt.datetime] = None
    position: Optional[FramedPosition] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_dict(self) -> dict:
        payload: dict = {"tick_time": self.tick_time.isoformat()}
        if self.error is not None:
            payload["error"] = f"{type(self.error).__name__}: {self.error}"
            return payload
        if self.sample_time is not None:
            payload["sample_time"] = self.sample_time.isoformat()
        if self.sample is not None:
            payload["offset_seconds"] = self.sample.offset_seconds
        if self.position is None:
            return payload
        payload["frame"] = self.position.frame.value
        payload["position_m"] = list(self.position.position_m)
        if self.position.geodetic is not None:
            payload["geodetic"] = dataclasses.asdict(self.position.geodetic)
        if self.position.camera_rotation is not None:
            payload["camera_rotation"] = [list(row) for row in self.position.camera_rotation]
        return payload


class RenderSink(Protocol):
    def update_position(self, result: TickResult) -> None:
        ...

    def update_orbit(self, positions: Sequence[Vector3], frame: ReferenceFrame) -> None:
        ...

    def report_error(self, error: Exception) -> None:
        ...


class RecordingSink:
    """In-memory sink used by the CLI and tests."""

    def __init__(self) -> None:
        self.results: List[TickResult] = []
        self.orbits: List[Tuple[ReferenceFrame, List[Vector3]]] = []
        self.errors: List[Exception] = []

    def update_position(self, result: TickResult) -> None:
        self.results.append(result)

    def update_orbit(self, positions: Sequence[Vector3], frame: ReferenceFrame) -> None:
        self.orbits.append((frame, list(positions)))

    def report_error(self, error: Exception) -> None:
        self.errors.append(error)


class TrackingSession:
    """Owns the resolver, the frame adapter and the clock subscription.

    Use as a context manager; the tick subscription is released on every
    exit path.
    """

    def __init__(
        self,
        elements: OrbitalElementSet,
        clock: SimulationClock,
        sink: RenderSink,
        *,
        step: float = 1.0,
        frame_mode: FrameMode = FrameMode.GEODETIC,
        propagator: Optional[Propagator] = None,
        max_samples: int = DEFAULT_MAX_SAMPLES,
    ) -> None:
        count = slot_count(elements.orbital_period, step) if step > 0 else 0
        if count > max_samples:
            raise ValueError(
                f"step {step}s yields {count} samples per rebuild, above the limit of {max_samples}"
            )
        self.elements = elements
        self.clock = clock
        self.sink = sink
        self.adapter = FrameTransformAdapter(frame_mode)
        self.resolver = TimeIndexResolver(elements, step, propagator=propagator, max_samples=max_samples)
        self._subscription: Optional[TickSubscription] = None

    @classmethod
    def from_config(
        cls,
        elements: OrbitalElementSet,
        clock: SimulationClock,
        sink: RenderSink,
        config: AppConfig,
        propagator: Optional[Propagator] = None,
    ) -> "TrackingSession":
        return cls(
            elements,
            clock,
            sink,
            step=config.live_step_seconds,
            frame_mode=config.frame_mode,
            propagator=propagator,
            max_samples=config.max_samples,
        )

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def start(self) -> "TrackingSession":
        if self.active:
            return self
        self.resolver.add_rebuild_listener(self._on_rebuild)
        self._subscription = self.clock.on_tick(self.on_tick)
        try:
            self.update(self.clock.current_time)
        except BaseException:
            self.close()
            raise
        return self

    def on_tick(self, clock: SimulationClock) -> None:
        self.update(clock.current_time)

    def update(self, when: dt.datetime) -> TickResult:
        with log_context(norad_id=self.elements.norad_id):
            try:
                sample = self.resolver.resolve(when)
                sample_time = self.resolver.sample_time(sample)
                position = self.adapter.adapt(sample.position, sample_time, when)
            except (NoValidSampleError, PropagationError) as exc:
                LOGGER.warning("tick_failed", extra={"when": when, "error": str(exc)})
                result = TickResult(tick_time=when, error=exc)
                self.sink.report_error(exc)
            else:
                result = TickResult(
                    tick_time=when,
                    sample=sample,
                    sample_time=sample_time,
                    position=position,
                )
            self.sink.update_position(result)
        return result

    def _on_rebuild(self, cache: OrbitSampleCache) -> None:
        positions = self.adapter.adapt_orbit(cache.timed_positions())
        LOGGER.debug(
            "orbit_rebuilt",
            extra={"epoch": cache.epoch, "samples": len(positions), "failures": cache.failures},
        )
        self.sink.update_orbit(positions, self.adapter.output_frame)

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        self.resolver.dispose()

    def __enter__(self) -> "TrackingSession":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["RecordingSink", "RenderSink", "TickResult", "TrackingSession"]
