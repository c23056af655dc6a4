from __future__ import annotations

import datetime as dt
import math

import pytest

from propagate.frames import (
    FrameMode,
    FrameModeError,
    FrameTransformAdapter,
    ReferenceFrame,
    WGS84_A_KM,
    WGS84_B_KM,
    eci_to_geodetic,
    geodetic_to_fixed,
    inertial_to_fixed_matrix,
    rotate,
    sidereal_time,
)

J2000 = dt.datetime(2000, 1, 1, 12, 0, 0, tzinfo=dt.timezone.utc)
WHEN = dt.datetime(2024, 11, 17, 3, 0, 0, tzinfo=dt.timezone.utc)
POSITION_M = (4_000_000.0, 3_000_000.0, 4_500_000.0)


def _norm(vector) -> float:
    return math.sqrt(sum(c * c for c in vector))


def test_sidereal_time_at_j2000() -> None:
    assert sidereal_time(J2000) == pytest.approx(math.radians(280.46061837), abs=1e-8)


def test_sidereal_time_requires_timezone() -> None:
    with pytest.raises(ValueError):
        sidereal_time(J2000.replace(tzinfo=None))


def test_equatorial_point_geodetic() -> None:
    geodetic = eci_to_geodetic((WGS84_A_KM + 400.0, 0.0, 0.0), 0.0)
    assert geodetic.longitude_deg == pytest.approx(0.0)
    assert geodetic.latitude_deg == pytest.approx(0.0)
    assert geodetic.height_m == pytest.approx(400_000.0, abs=1e-6)


def test_sidereal_angle_shifts_longitude() -> None:
    geodetic = eci_to_geodetic((WGS84_A_KM + 400.0, 0.0, 0.0), math.pi / 2)
    assert geodetic.longitude_deg == pytest.approx(-90.0)


def test_polar_point_geodetic() -> None:
    geodetic = eci_to_geodetic((0.0, 0.0, 7000.0), 0.0)
    assert geodetic.latitude_deg == pytest.approx(90.0)
    assert geodetic.height_m == pytest.approx((7000.0 - WGS84_B_KM) * 1000.0, abs=1e-3)


def test_geodetic_round_trip_to_fixed() -> None:
    position_km = tuple(c / 1000.0 for c in POSITION_M)
    fixed = geodetic_to_fixed(eci_to_geodetic(position_km, 0.0))
    assert fixed == pytest.approx(POSITION_M, abs=1e-2)


def test_fixed_rotation_preserves_radius() -> None:
    rotated = rotate(inertial_to_fixed_matrix(sidereal_time(WHEN)), POSITION_M)
    assert _norm(rotated) == pytest.approx(_norm(POSITION_M))
    assert rotate(inertial_to_fixed_matrix(0.0), POSITION_M) == POSITION_M


def test_geodetic_mode_uses_sample_time() -> None:
    adapter = FrameTransformAdapter(FrameMode.GEODETIC)
    tick_time = WHEN + dt.timedelta(minutes=10)
    framed = adapter.adapt(POSITION_M, WHEN, tick_time)

    assert framed.frame == ReferenceFrame.FIXED
    assert framed.camera_rotation is None
    assert framed.geodetic == adapter.to_geodetic(POSITION_M, WHEN)
    assert framed.geodetic != adapter.to_geodetic(POSITION_M, tick_time)
    assert framed.position_m == pytest.approx(geodetic_to_fixed(framed.geodetic))
    assert _norm(framed.position_m) == pytest.approx(_norm(POSITION_M), rel=1e-9)


def test_camera_mode_keeps_inertial_position() -> None:
    adapter = FrameTransformAdapter(FrameMode.BODY_FIXED_CAMERA)
    tick_time = WHEN + dt.timedelta(minutes=10)
    framed = adapter.adapt(POSITION_M, WHEN, tick_time)

    assert framed.frame == ReferenceFrame.INERTIAL
    assert framed.position_m == POSITION_M
    assert framed.geodetic is None
    assert framed.camera_rotation == inertial_to_fixed_matrix(sidereal_time(tick_time))


def test_camera_rotation_changes_with_tick_time() -> None:
    adapter = FrameTransformAdapter(FrameMode.BODY_FIXED_CAMERA)
    first = adapter.camera_rotation(WHEN)
    second = adapter.camera_rotation(WHEN + dt.timedelta(seconds=1))
    assert first != second
    for row in first:
        assert _norm(row) == pytest.approx(1.0)


def test_modes_cannot_be_mixed() -> None:
    with pytest.raises(FrameModeError):
        FrameTransformAdapter(FrameMode.GEODETIC).camera_rotation(WHEN)
    with pytest.raises(FrameModeError):
        FrameTransformAdapter(FrameMode.BODY_FIXED_CAMERA).to_geodetic(POSITION_M, WHEN)


def test_adapt_orbit_follows_mode() -> None:
    samples = [(WHEN, POSITION_M), (WHEN + dt.timedelta(seconds=60), POSITION_M)]
    inertial = FrameTransformAdapter(FrameMode.BODY_FIXED_CAMERA).adapt_orbit(samples)
    fixed = FrameTransformAdapter(FrameMode.GEODETIC).adapt_orbit(samples)
    assert inertial == [POSITION_M, POSITION_M]
    assert len(fixed) == 2
    assert fixed[0] != fixed[1]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("geodetic", FrameMode.GEODETIC),
        ("BODY_FIXED_CAMERA", FrameMode.BODY_FIXED_CAMERA),
        ("body-fixed-camera", FrameMode.BODY_FIXED_CAMERA),
    ],
)
def test_frame_mode_from_string(raw, expected) -> None:
    assert FrameMode.from_string(raw) is expected


def test_unknown_frame_mode() -> None:
    with pytest.raises(ValueError, match="Unsupported frame mode"):
        FrameMode.from_string("ecef")
