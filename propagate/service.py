"""Satellite propagation capability built on top of SGP4."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

from sgp4.api import SGP4_ERRORS, jday

from orbit_track.tle import OrbitalElementSet
from propagate.frames import StateVector


class PropagationError(RuntimeError):
    """A single propagation request failed; callers may skip the sample."""


class Propagator(Protocol):
    def propagate(self, elements: OrbitalElementSet, when: datetime) -> StateVector:
        """Return the inertial (TEME) state in kilometres at ``when``."""
        ...


def ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt.astimezone(timezone.utc)


class SGP4Propagator:
    """Propagate element sets with the ``sgp4`` library."""

    def propagate(self, elements: OrbitalElementSet, when: datetime) -> StateVector:
        ts = ensure_utc(when)
        jd, fr = jday(ts.year, ts.month, ts.day, ts.hour, ts.minute,
                      ts.second + ts.microsecond / 1_000_000)
        error, position, velocity = elements.satrec.sgp4(jd, fr)
        if error != 0:
            message = SGP4_ERRORS.get(error, f"SGP4 error code {error}")
            raise PropagationError(f"{elements.norad_id} at {ts.isoformat()}: {message}")
        return StateVector(tuple(position), tuple(velocity))


__all__ = ["PropagationError", "Propagator", "SGP4Propagator", "ensure_utc"]
