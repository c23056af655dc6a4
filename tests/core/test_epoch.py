from __future__ import annotations

import calendar
import datetime as dt

from hypothesis import given, strategies as st


SECONDS_PER_DAY = 86_400
MICROS_PER_DAY = SECONDS_PER_DAY * 1_000_000

from orbit_track.tle import tle_epoch as epoch

BASE_LINE1 = "1 25544U 98067A   20344.91719907  .00001264  00000-0  29621-4 0  9993"
PREFIX = BASE_LINE1[:18]
SUFFIX = BASE_LINE1[32:]


def build_line1(year: int, day: int, seconds: int, micros: int) -> str:
    total_micro = seconds * 1_000_000 + micros
    frac_scaled = round(total_micro * 100_000_000 / MICROS_PER_DAY)
    adj_day = day
    if frac_scaled >= 100_000_000:
        adj_day += 1
        frac_scaled -= 100_000_000
    epoch_field = f"{year % 100:02d}{adj_day:03d}.{frac_scaled:08d}"
    return f"{PREFIX}{epoch_field}{SUFFIX}"


@st.composite
def epoch_fields(draw):
    year = draw(st.integers(min_value=1957, max_value=2056))
    days_in_year = 366 if calendar.isleap(year) else 365
    day = draw(st.integers(min_value=1, max_value=days_in_year))
    # Keep the last day of the year from rounding over into January.
    last_second = 86398 if day == days_in_year else 86399
    seconds = draw(st.integers(min_value=0, max_value=last_second))
    micros = draw(st.integers(min_value=0, max_value=999_999))
    return year, day, seconds, micros


@given(epoch_fields())
def test_epoch_matches_manual(fields) -> None:
    year, day, seconds, micros = fields
    line1 = build_line1(year, day, seconds, micros)
    result = epoch(line1)
    expected = dt.datetime(year, 1, 1, tzinfo=dt.timezone.utc) + dt.timedelta(
        days=day - 1, seconds=seconds, microseconds=micros
    )
    assert result.tzinfo is dt.timezone.utc
    assert result.year == year
    delta = abs(result - expected)
    assert delta <= dt.timedelta(microseconds=900)
