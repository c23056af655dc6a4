"""Precomputed, time-indexed orbit trajectories covering one period."""
from __future__ import annotations

import dataclasses
import datetime as dt
import math
from typing import Iterator, List, Optional, Tuple

from orbit_track.logging import get_logger
from orbit_track.tle import OrbitalElementSet
from propagate.frames import Vector3
from propagate.service import PropagationError, Propagator, SGP4Propagator, ensure_utc

LOGGER = get_logger("sampling.cache")

KM_TO_M = 1000.0
DEFAULT_MAX_SAMPLES = 100_000


@dataclasses.dataclass(frozen=True)
class OrbitSample:
    offset_seconds: float
    position: Vector3  # inertial frame, metres


@dataclasses.dataclass(frozen=True)
class OrbitSampleCache:
    """One orbital period of samples taken every ``step`` seconds from ``epoch``.

    ``slots`` holds one entry per offset ``i * step < period``; an entry is
    ``None`` where propagation failed. ``fallback`` maps each slot to the
    slot actually served for it so lookups stay O(1) across gaps.
    """

    epoch: dt.datetime
    period: float
    step: float
    slots: Tuple[Optional[OrbitSample], ...]
    fallback: Tuple[int, ...]
    failures: int = 0

    @property
    def end(self) -> dt.datetime:
        return self.epoch + dt.timedelta(seconds=self.period)

    @property
    def samples(self) -> Tuple[OrbitSample, ...]:
        return tuple(sample for sample in self.slots if sample is not None)

    @property
    def is_empty(self) -> bool:
        return not self.fallback or self.fallback[0] < 0

    def __len__(self) -> int:
        return len(self.slots)

    def __iter__(self) -> Iterator[OrbitSample]:
        return iter(self.samples)

    def contains(self, when: dt.datetime) -> bool:
        return self.epoch <= when < self.end

    def sample_time(self, sample: OrbitSample) -> dt.datetime:
        return self.epoch + dt.timedelta(seconds=sample.offset_seconds)

    def slot_index(self, elapsed_seconds: float) -> int:
        index = int(round(elapsed_seconds / self.step))
        return min(max(index, 0), len(self.slots) - 1)

    def sample_at(self, index: int) -> Optional[OrbitSample]:
        """Sample served for slot ``index``; ``None`` only when the cache is empty."""
        target = self.fallback[index]
        if target < 0:
            return None
        return self.slots[target]

    def timed_positions(self) -> List[Tuple[dt.datetime, Vector3]]:
        return [(self.sample_time(sample), sample.position) for sample in self.samples]


def _fallback_table(slots: List[Optional[OrbitSample]]) -> Tuple[int, ...]:
    table: List[int] = []
    last_valid = -1
    for idx, sample in enumerate(slots):
        if sample is not None:
            last_valid = idx
        table.append(last_valid)
    # Leading gaps have no preceding sample; serve the first valid one.
    first_valid = next((idx for idx, sample in enumerate(slots) if sample is not None), -1)
    return tuple(first_valid if target < 0 else target for target in table)


def slot_count(period: float, step: float) -> int:
    count = math.ceil(period / step)
    # Guard float rounding so that the last offset stays strictly below period.
    while count > 0 and (count - 1) * step >= period:
        count -= 1
    while count * step < period:
        count += 1
    return count


def build_cache(
    elements: OrbitalElementSet,
    epoch: dt.datetime,
    step: float,
    propagator: Optional[Propagator] = None,
    max_samples: int = DEFAULT_MAX_SAMPLES,
) -> OrbitSampleCache:
    """Propagate one full period of ``elements`` starting at ``epoch``."""

    if step <= 0:
        raise ValueError("step must be positive")
    epoch = ensure_utc(epoch)
    period = elements.orbital_period
    count = slot_count(period, step)
    if count > max_samples:
        raise ValueError(
            f"{count} samples exceed the per-build limit of {max_samples}; use a larger step"
        )

    propagator = propagator or SGP4Propagator()
    slots: List[Optional[OrbitSample]] = []
    failures = 0
    last_error: Optional[PropagationError] = None

    for i in range(count):
        offset = i * step
        try:
            state = propagator.propagate(elements, epoch + dt.timedelta(seconds=offset))
        except PropagationError as exc:
            failures += 1
            last_error = exc
            slots.append(None)
            continue
        x, y, z = state.position_km
        slots.append(OrbitSample(offset, (x * KM_TO_M, y * KM_TO_M, z * KM_TO_M)))

    if failures:
        LOGGER.warning(
            "propagation_failures",
            extra={
                "norad_id": elements.norad_id,
                "epoch": epoch,
                "failures": failures,
                "slots": count,
                "last_error": str(last_error),
            },
        )
    LOGGER.debug(
        "cache_built",
        extra={"norad_id": elements.norad_id, "epoch": epoch, "samples": count - failures, "step": step},
    )

    return OrbitSampleCache(
        epoch=epoch,
        period=period,
        step=step,
        slots=tuple(slots),
        fallback=_fallback_table(slots),
        failures=failures,
    )


__all__ = ["DEFAULT_MAX_SAMPLES", "OrbitSample", "OrbitSampleCache", "build_cache", "slot_count"]
