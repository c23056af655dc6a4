"""Reference frame transformations for propagated orbit samples."""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sgp4.api import jday

# WGS-84 ellipsoid, kilometres.
WGS84_A_KM = 6378.137
WGS84_B_KM = 6356.7523142
WGS84_F = (WGS84_A_KM - WGS84_B_KM) / WGS84_A_KM
WGS84_E2 = 2 * WGS84_F - WGS84_F * WGS84_F

_GEODETIC_ITERATIONS = 20

Vector3 = Tuple[float, float, float]
Matrix3 = Tuple[Vector3, Vector3, Vector3]


class ReferenceFrame(str, enum.Enum):
    """Frames a stored or rendered position can be expressed in."""

    INERTIAL = "INERTIAL"
    FIXED = "FIXED"

    @classmethod
    def from_string(cls, value: str) -> "ReferenceFrame":
        try:
            return cls(value.upper())
        except ValueError as exc:
            raise ValueError(f"Unsupported frame '{value}'") from exc


class FrameMode(str, enum.Enum):
    """How live positions are brought into the renderer's frame."""

    GEODETIC = "geodetic"
    BODY_FIXED_CAMERA = "body-fixed-camera"

    @classmethod
    def from_string(cls, value: str) -> "FrameMode":
        try:
            return cls(value.strip().lower().replace("_", "-"))
        except ValueError as exc:
            raise ValueError(f"Unsupported frame mode '{value}'") from exc


class FrameModeError(RuntimeError):
    """Raised when an adapter is asked for the other mode's transform."""


@dataclass(frozen=True)
class StateVector:
    """Position and velocity state vector (kilometres / kilometres per second)."""

    position_km: Vector3
    velocity_km_s: Vector3


@dataclass(frozen=True)
class Geodetic:
    longitude_deg: float
    latitude_deg: float
    height_m: float


@dataclass(frozen=True)
class FramedPosition:
    """A position ready for the renderer.

    ``camera_rotation`` is only set in body-fixed-camera mode, ``geodetic``
    only in geodetic mode.
    """

    frame: ReferenceFrame
    position_m: Vector3
    geodetic: Optional[Geodetic] = None
    camera_rotation: Optional[Matrix3] = None


def sidereal_time(when: datetime) -> float:
    """Greenwich mean sidereal time (radians) for a timezone-aware instant."""

    if when.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    jd, fr = jday(when.year, when.month, when.day, when.hour, when.minute,
                  when.second + when.microsecond / 1_000_000)
    jd_ut1 = jd + fr
    t = (jd_ut1 - 2451545.0) / 36525.0
    gmst_sec = (
        67310.54841
        + (876600.0 * 3600 + 8640184.812866) * t
        + 0.093104 * t * t
        - 6.2e-6 * t * t * t
    )
    gmst_sec = gmst_sec % 86400.0
    if gmst_sec < 0:
        gmst_sec += 86400.0
    return math.radians(gmst_sec / 240.0)


def inertial_to_fixed_matrix(gmst: float) -> Matrix3:
    cos_t = math.cos(gmst)
    sin_t = math.sin(gmst)
    return (
        (cos_t, sin_t, 0.0),
        (-sin_t, cos_t, 0.0),
        (0.0, 0.0, 1.0),
    )


def rotate(matrix: Matrix3, vector: Vector3) -> Vector3:
    x, y, z = vector
    return tuple(row[0] * x + row[1] * y + row[2] * z for row in matrix)  # type: ignore[return-value]


def eci_to_geodetic(position_km: Vector3, gmst: float) -> Geodetic:
    """Convert an inertial position to WGS-84 longitude/latitude/height.

    ``gmst`` must be the sidereal time of the instant the position was
    propagated for.
    """

    x, y, z = position_km
    r = math.sqrt(x * x + y * y)

    longitude = math.atan2(y, x) - gmst
    while longitude < -math.pi:
        longitude += 2 * math.pi
    while longitude > math.pi:
        longitude -= 2 * math.pi

    latitude = math.atan2(z, r)
    c = 1.0
    for _ in range(_GEODETIC_ITERATIONS):
        sin_lat = math.sin(latitude)
        c = 1.0 / math.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)
        latitude = math.atan2(z + WGS84_A_KM * c * WGS84_E2 * sin_lat, r)

    cos_lat = math.cos(latitude)
    if abs(cos_lat) < 1e-12:
        height_km = abs(z) - WGS84_B_KM
    else:
        height_km = r / cos_lat - WGS84_A_KM * c

    return Geodetic(
        longitude_deg=math.degrees(longitude),
        latitude_deg=math.degrees(latitude),
        height_m=height_km * 1000.0,
    )


def geodetic_to_fixed(geodetic: Geodetic) -> Vector3:
    """WGS-84 geodetic coordinates to Earth-fixed Cartesian metres."""

    lon = math.radians(geodetic.longitude_deg)
    lat = math.radians(geodetic.latitude_deg)
    a_m = WGS84_A_KM * 1000.0
    sin_lat = math.sin(lat)
    n = a_m / math.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)
    h = geodetic.height_m
    x = (n + h) * math.cos(lat) * math.cos(lon)
    y = (n + h) * math.cos(lat) * math.sin(lon)
    z = (n * (1.0 - WGS84_E2) + h) * sin_lat
    return (x, y, z)


class FrameTransformAdapter:
    """Stateless conversion of inertial samples for one configured mode."""

    def __init__(self, mode: FrameMode = FrameMode.GEODETIC) -> None:
        self.mode = FrameMode(mode)

    @property
    def output_frame(self) -> ReferenceFrame:
        if self.mode == FrameMode.GEODETIC:
            return ReferenceFrame.FIXED
        return ReferenceFrame.INERTIAL

    def _require(self, mode: FrameMode) -> None:
        if self.mode != mode:
            raise FrameModeError(
                f"Adapter configured for {self.mode.value}; {mode.value} transform would double-correct"
            )

    def to_geodetic(self, position_m: Vector3, sample_time: datetime) -> Geodetic:
        self._require(FrameMode.GEODETIC)
        position_km = tuple(component / 1000.0 for component in position_m)
        return eci_to_geodetic(position_km, sidereal_time(sample_time))  # type: ignore[arg-type]

    def camera_rotation(self, tick_time: datetime) -> Matrix3:
        self._require(FrameMode.BODY_FIXED_CAMERA)
        return inertial_to_fixed_matrix(sidereal_time(tick_time))

    def adapt(self, position_m: Vector3, sample_time: datetime, tick_time: datetime) -> FramedPosition:
        """Adapt one inertial sample.

        ``sample_time`` is the instant the sample was propagated for and
        ``tick_time`` the current clock reading.
        """
        if self.mode == FrameMode.GEODETIC:
            geodetic = self.to_geodetic(position_m, sample_time)
            return FramedPosition(
                frame=ReferenceFrame.FIXED,
                position_m=geodetic_to_fixed(geodetic),
                geodetic=geodetic,
            )
        return FramedPosition(
            frame=ReferenceFrame.INERTIAL,
            position_m=position_m,
            camera_rotation=self.camera_rotation(tick_time),
        )

    def adapt_orbit(self, samples: Iterable[Tuple[datetime, Vector3]]) -> List[Vector3]:
        """Polyline positions for a whole cache in the adapter's output frame."""
        if self.mode == FrameMode.GEODETIC:
            return [geodetic_to_fixed(self.to_geodetic(position, when)) for when, position in samples]
        return [position for _, position in samples]


__all__ = [
    "FrameMode",
    "FrameModeError",
    "FrameTransformAdapter",
    "FramedPosition",
    "Geodetic",
    "Matrix3",
    "ReferenceFrame",
    "StateVector",
    "Vector3",
    "eci_to_geodetic",
    "geodetic_to_fixed",
    "inertial_to_fixed_matrix",
    "rotate",
    "sidereal_time",
]
