from __future__ import annotations

import dataclasses
import datetime as dt
import math

import pytest

from propagate.service import PropagationError, SGP4Propagator


class _DecayedSatrec:
    def sgp4(self, jd, fr):
        return 6, (math.nan, math.nan, math.nan), (math.nan, math.nan, math.nan)


def test_sgp4_propagates_near_epoch(iss_elements, iss_epoch) -> None:
    state = SGP4Propagator().propagate(iss_elements, iss_epoch + dt.timedelta(minutes=10))
    radius = math.sqrt(sum(c * c for c in state.position_km))
    speed = math.sqrt(sum(c * c for c in state.velocity_km_s))
    assert 6600 < radius < 6900
    assert 7.0 < speed < 8.0


def test_sgp4_is_deterministic(iss_elements, iss_epoch) -> None:
    propagator = SGP4Propagator()
    when = iss_epoch + dt.timedelta(seconds=1234.5)
    assert propagator.propagate(iss_elements, when) == propagator.propagate(iss_elements, when)


def test_sgp4_error_codes_raise_propagation_error(iss_elements, iss_epoch) -> None:
    decayed = dataclasses.replace(iss_elements, satrec=_DecayedSatrec())
    with pytest.raises(PropagationError, match="25544"):
        SGP4Propagator().propagate(decayed, iss_epoch)


def test_naive_datetimes_are_rejected(iss_elements) -> None:
    with pytest.raises(ValueError, match="timezone-aware"):
        SGP4Propagator().propagate(iss_elements, dt.datetime(2024, 11, 17, 3, 0, 0))
