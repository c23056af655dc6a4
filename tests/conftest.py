from __future__ import annotations

import datetime as dt
import math
from typing import Callable, List, Optional

import pytest

from orbit_track.tle import OrbitalElementSet, parse_elements, tle_epoch
from propagate.frames import StateVector
from propagate.service import PropagationError

ISS_NAME = "ISS (ZARYA)"
ISS_LINE1 = "1 25544U 98067A   24322.09401066  .00019103  00000-0  34302-3 0  9998"
ISS_LINE2 = "2 25544  51.6410 277.8367 0007583 226.0535 235.5529 15.49882713482266"
ISS_EPOCH = tle_epoch(ISS_LINE1)


class CircularPropagator:
    """Deterministic equatorial circular orbit with the element set's period."""

    def __init__(
        self,
        radius_km: float = 6778.0,
        fail_when: Optional[Callable[[dt.datetime], bool]] = None,
    ) -> None:
        self.radius_km = radius_km
        self.fail_when = fail_when
        self.calls: List[dt.datetime] = []

    def position_at(self, elements: OrbitalElementSet, when: dt.datetime):
        angle = 2 * math.pi * (when - ISS_EPOCH).total_seconds() / elements.orbital_period
        return (self.radius_km * math.cos(angle), self.radius_km * math.sin(angle), 0.0)

    def propagate(self, elements: OrbitalElementSet, when: dt.datetime) -> StateVector:
        self.calls.append(when)
        if self.fail_when is not None and self.fail_when(when):
            raise PropagationError(f"synthetic failure at {when.isoformat()}")
        return StateVector(self.position_at(elements, when), (0.0, 0.0, 0.0))


@pytest.fixture
def iss_elements() -> OrbitalElementSet:
    return parse_elements(ISS_LINE1, ISS_LINE2, name=ISS_NAME)


@pytest.fixture
def iss_epoch() -> dt.datetime:
    return ISS_EPOCH


@pytest.fixture
def make_propagator():
    return CircularPropagator


@pytest.fixture
def iss_tle_file(tmp_path):
    path = tmp_path / "25544.tle"
    path.write_text(f"{ISS_NAME}\n{ISS_LINE1}\n{ISS_LINE2}\n", encoding="utf-8")
    return path
