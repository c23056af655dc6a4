"""Orbit sample cache and the clock-driven resolver that owns it."""

from .cache import OrbitSample, OrbitSampleCache, build_cache
from .resolver import NoValidSampleError, StaleCacheDetected, TimeIndexResolver

__all__ = [
    "OrbitSample",
    "OrbitSampleCache",
    "build_cache",
    "NoValidSampleError",
    "StaleCacheDetected",
    "TimeIndexResolver",
]
