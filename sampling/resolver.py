"""Map simulation clock readings onto the precomputed orbit cache."""
from __future__ import annotations

import datetime as dt
from typing import Callable, List, Optional

from orbit_track.logging import get_logger
from orbit_track.tle import OrbitalElementSet
from propagate.service import Propagator, SGP4Propagator, ensure_utc
from sampling.cache import DEFAULT_MAX_SAMPLES, OrbitSample, OrbitSampleCache, build_cache

LOGGER = get_logger("sampling.resolver")

RebuildListener = Callable[[OrbitSampleCache], None]


class NoValidSampleError(LookupError):
    """The cache holds no sample at all after a rebuild."""


class StaleCacheDetected(Exception):
    """Internal signal: the clock left the cached window."""

    def __init__(self, when: dt.datetime, cache: Optional[OrbitSampleCache]) -> None:
        self.when = when
        self.cache = cache
        if cache is None:
            reason = "no cache built yet"
        elif when < cache.epoch:
            reason = "clock moved before cache epoch"
        else:
            reason = "clock reached cache end"
        super().__init__(reason)
        self.reason = reason


class TimeIndexResolver:
    """Owns the orbit cache and answers per-tick position lookups.

    A rebuild is anchored at the reading that left the window, so the index
    space stays valid whether the clock runs forward, backward or wraps.
    """

    def __init__(
        self,
        elements: OrbitalElementSet,
        step: float,
        propagator: Optional[Propagator] = None,
        max_samples: int = DEFAULT_MAX_SAMPLES,
    ) -> None:
        if step <= 0:
            raise ValueError("step must be positive")
        self.elements = elements
        self.step = step
        self.max_samples = max_samples
        self._propagator = propagator or SGP4Propagator()
        self._cache: Optional[OrbitSampleCache] = None
        self._listeners: List[RebuildListener] = []
        self.rebuild_count = 0

    @property
    def cache(self) -> Optional[OrbitSampleCache]:
        return self._cache

    @property
    def cache_end(self) -> Optional[dt.datetime]:
        return self._cache.end if self._cache else None

    def add_rebuild_listener(self, listener: RebuildListener) -> None:
        self._listeners.append(listener)

    def remove_rebuild_listener(self, listener: RebuildListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _check_window(self, when: dt.datetime) -> OrbitSampleCache:
        cache = self._cache
        if cache is None or not cache.contains(when):
            raise StaleCacheDetected(when, cache)
        return cache

    def rebuild(self, when: dt.datetime) -> OrbitSampleCache:
        """Replace the cache with one anchored at ``when``."""

        cache = build_cache(
            self.elements,
            when,
            self.step,
            propagator=self._propagator,
            max_samples=self.max_samples,
        )
        # Bound only once fully built; a lookup never sees a partial cache.
        self._cache = cache
        self.rebuild_count += 1
        for listener in list(self._listeners):
            listener(cache)
        return cache

    def resolve(self, when: dt.datetime) -> OrbitSample:
        when = ensure_utc(when)
        try:
            cache = self._check_window(when)
        except StaleCacheDetected as signal:
            LOGGER.debug(
                "cache_stale",
                extra={"norad_id": self.elements.norad_id, "reason": signal.reason, "when": when},
            )
            cache = self.rebuild(when)

        elapsed = (when - cache.epoch).total_seconds()
        sample = cache.sample_at(cache.slot_index(elapsed))
        if sample is None:
            raise NoValidSampleError(
                f"No valid sample for {self.elements.norad_id}: all {len(cache)} propagations failed"
            )
        return sample

    def sample_time(self, sample: OrbitSample) -> dt.datetime:
        if self._cache is None:
            raise NoValidSampleError("No cache has been built")
        return self._cache.sample_time(sample)

    def dispose(self) -> None:
        self._listeners.clear()
        self._cache = None


__all__ = ["NoValidSampleError", "StaleCacheDetected", "TimeIndexResolver"]
