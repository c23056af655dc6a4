from __future__ import annotations

import datetime as dt
import math

import pytest

from sampling.cache import build_cache, slot_count


def _slot_of(epoch: dt.datetime, step: float):
    def index(when: dt.datetime) -> int:
        return round((when - epoch).total_seconds() / step)

    return index


def test_slot_count_matches_ceil() -> None:
    assert slot_count(5575.24, 60.0) == 93
    assert slot_count(5575.24, 1.0) == 5576
    assert slot_count(120.0, 60.0) == 2
    assert slot_count(10.0, 3.0) == 4


@pytest.mark.parametrize("step", [1.0, 7.5, 60.0])
def test_cache_covers_exactly_one_period(iss_elements, iss_epoch, make_propagator, step) -> None:
    cache = build_cache(iss_elements, iss_epoch, step, propagator=make_propagator())
    period = iss_elements.orbital_period

    assert cache.period == period
    assert len(cache) == math.ceil(period / step)
    assert [sample.offset_seconds for sample in cache.samples] == [i * step for i in range(len(cache))]
    last = cache.samples[-1].offset_seconds
    assert cache.samples[0].offset_seconds == 0
    assert last < period <= last + step
    assert cache.failures == 0


def test_positions_are_converted_to_metres(iss_elements, iss_epoch, make_propagator) -> None:
    propagator = make_propagator()
    cache = build_cache(iss_elements, iss_epoch, 60.0, propagator=propagator)
    for sample in cache.samples:
        expected_km = propagator.position_at(iss_elements, cache.sample_time(sample))
        assert sample.position == tuple(c * 1000.0 for c in expected_km)


def test_propagation_times_follow_offsets(iss_elements, iss_epoch, make_propagator) -> None:
    propagator = make_propagator()
    build_cache(iss_elements, iss_epoch, 60.0, propagator=propagator)
    assert propagator.calls[0] == iss_epoch
    assert propagator.calls[5] == iss_epoch + dt.timedelta(seconds=300)


def test_build_is_deterministic_with_sgp4(iss_elements, iss_epoch) -> None:
    first = build_cache(iss_elements, iss_epoch, 60.0)
    second = build_cache(iss_elements, iss_epoch, 60.0)
    assert first.samples == second.samples
    assert len(first.samples) == 93


def test_failed_offsets_leave_gaps(iss_elements, iss_epoch, make_propagator) -> None:
    index = _slot_of(iss_epoch, 60.0)
    propagator = make_propagator(fail_when=lambda when: index(when) in {3, 4, 50})
    cache = build_cache(iss_elements, iss_epoch, 60.0, propagator=propagator)

    assert cache.failures == 3
    assert len(cache) == 93
    assert len(cache.samples) == 90
    assert cache.slots[3] is None and cache.slots[4] is None and cache.slots[50] is None
    for i, sample in enumerate(cache.slots):
        if sample is not None:
            assert sample.offset_seconds == i * 60.0


def test_all_failures_produce_empty_cache(iss_elements, iss_epoch, make_propagator) -> None:
    cache = build_cache(iss_elements, iss_epoch, 60.0, propagator=make_propagator(fail_when=lambda _: True))
    assert cache.is_empty
    assert cache.samples == ()
    assert cache.failures == len(cache)
    assert cache.sample_at(0) is None


def test_window_bounds(iss_elements, iss_epoch, make_propagator) -> None:
    cache = build_cache(iss_elements, iss_epoch, 60.0, propagator=make_propagator())
    assert cache.contains(iss_epoch)
    assert not cache.contains(cache.end)
    assert not cache.contains(iss_epoch - dt.timedelta(microseconds=1))


def test_rejects_non_positive_step(iss_elements, iss_epoch, make_propagator) -> None:
    with pytest.raises(ValueError, match="positive"):
        build_cache(iss_elements, iss_epoch, 0.0, propagator=make_propagator())


def test_rejects_builds_over_frame_budget(iss_elements, iss_epoch, make_propagator) -> None:
    propagator = make_propagator()
    with pytest.raises(ValueError, match="per-build limit"):
        build_cache(iss_elements, iss_epoch, 0.01, propagator=propagator, max_samples=10_000)
    assert propagator.calls == []


def test_rejects_naive_epoch(iss_elements, iss_epoch, make_propagator) -> None:
    with pytest.raises(ValueError, match="timezone-aware"):
        build_cache(iss_elements, iss_epoch.replace(tzinfo=None), 60.0, propagator=make_propagator())
