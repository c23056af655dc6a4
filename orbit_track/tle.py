"""Parsing and validation of two-line element (TLE) sets."""
from __future__ import annotations

import dataclasses
import datetime as dt
import math
from pathlib import Path
from typing import Optional, Tuple

from sgp4.api import WGS72, Satrec
from sgp4.earth_gravity import wgs72

TLE_LINE_LENGTH = 69
MINUTES_PER_DAY = 1440.0
SECONDS_PER_DAY = 86400.0


class MalformedElementSetError(ValueError):
    """Raised when element set lines cannot be parsed into an orbit."""


def tle_checksum_ok(line: str) -> bool:
    """Return ``True`` when ``line`` satisfies the NORAD checksum rule."""

    line = line.rstrip()
    if not line:
        return False
    try:
        expected = int(line[-1])
    except ValueError:
        return False

    total = 0
    for ch in line[:-1]:
        if ch.isdigit():
            total += int(ch)
        elif ch == "-":
            total += 1
    return (total % 10) == expected


def _catnum_field(line: str) -> str:
    return line[2:7].strip()


def unkozai_mean_motion(satrec: Satrec) -> float:
    """Recover the un-Kozai mean motion (rad/min) that SGP4 initialisation uses.

    Only ``no_kozai``, ``ecco`` and ``inclo`` are read, which both the
    accelerated and the pure-Python ``Satrec`` expose.
    """

    no_kozai = float(satrec.no_kozai)
    if not no_kozai > 0.0:
        return no_kozai
    omeosq = 1.0 - satrec.ecco * satrec.ecco
    rteosq = math.sqrt(omeosq)
    cosio = math.cos(satrec.inclo)
    ak = (wgs72.xke / no_kozai) ** (2.0 / 3.0)
    d1 = 0.75 * wgs72.j2 * (3.0 * cosio * cosio - 1.0) / (rteosq * omeosq)
    delta = d1 / (ak * ak)
    adel = ak * (1.0 - delta * delta - delta * (1.0 / 3.0 + 134.0 * delta * delta / 81.0))
    delta = d1 / (adel * adel)
    return no_kozai / (1.0 + delta)


def tle_epoch(line1: str) -> dt.datetime:
    """Parse the epoch of ``line1`` into a timezone-aware UTC datetime."""

    year2 = int(line1[18:20])
    doy = float(line1[20:32])
    year = 1900 + year2 if year2 >= 57 else 2000 + year2
    day_int = int(doy)
    frac = doy - day_int
    base = dt.datetime(year, 1, 1, tzinfo=dt.timezone.utc) + dt.timedelta(days=day_int - 1)
    return base + dt.timedelta(seconds=frac * SECONDS_PER_DAY)


@dataclasses.dataclass(frozen=True)
class OrbitalElementSet:
    """Immutable, validated element set for one satellite.

    ``satrec`` is the initialised SGP4 record; it is excluded from equality so
    two element sets parsed from the same lines compare equal.
    """

    norad_id: str
    name: Optional[str]
    line1: str
    line2: str
    epoch: dt.datetime
    satrec: Satrec = dataclasses.field(compare=False, repr=False)

    @property
    def mean_motion(self) -> float:
        """Un-Kozai (Brouwer) mean motion in radians per minute."""
        return unkozai_mean_motion(self.satrec)

    @property
    def revolutions_per_day(self) -> float:
        return self.mean_motion * MINUTES_PER_DAY / (2.0 * math.pi)

    @property
    def orbital_period(self) -> float:
        """Orbital period in seconds."""
        return SECONDS_PER_DAY / self.revolutions_per_day

    @property
    def label(self) -> str:
        return self.name or self.norad_id

    def as_text(self, three_line: bool = True) -> str:
        if three_line and self.name:
            return f"{self.name}\n{self.line1}\n{self.line2}\n"
        return f"{self.line1}\n{self.line2}\n"

    def summary(self) -> dict:
        return {
            "norad_id": self.norad_id,
            "name": self.name,
            "epoch": self.epoch.isoformat(),
            "mean_motion_rad_min": self.mean_motion,
            "revolutions_per_day": self.revolutions_per_day,
            "orbital_period_s": self.orbital_period,
        }


def _locate_lines(text: str) -> Tuple[Optional[str], str, str]:
    lines = [ln.rstrip() for ln in text.splitlines() if ln.strip()]
    for idx in range(len(lines)):
        if lines[idx].startswith("1 ") and idx + 1 < len(lines) and lines[idx + 1].startswith("2 "):
            name = None
            if idx - 1 >= 0 and not lines[idx - 1].startswith(("1 ", "2 ")):
                name = lines[idx - 1].strip()
            return name, lines[idx], lines[idx + 1]
    raise MalformedElementSetError("Could not locate a TLE line pair")


def _validate_line(line: str, number: int) -> None:
    if len(line) != TLE_LINE_LENGTH:
        raise MalformedElementSetError(
            f"Line {number} must be {TLE_LINE_LENGTH} characters, got {len(line)}"
        )
    if not line.startswith(f"{number} "):
        raise MalformedElementSetError(f"Line {number} must start with '{number} '")
    if not tle_checksum_ok(line):
        raise MalformedElementSetError(f"Checksum failed on line {number}")


def parse_elements(line1: str, line2: str, name: Optional[str] = None) -> OrbitalElementSet:
    """Validate ``line1``/``line2`` and initialise the SGP4 record."""

    line1 = line1.rstrip()
    line2 = line2.rstrip()
    _validate_line(line1, 1)
    _validate_line(line2, 2)

    cat1 = _catnum_field(line1)
    cat2 = _catnum_field(line2)
    if cat1 != cat2:
        raise MalformedElementSetError("Catalog numbers differ between L1 and L2")

    try:
        epoch = tle_epoch(line1)
        satrec = Satrec.twoline2rv(line1, line2, WGS72)
    except (ValueError, IndexError) as exc:
        raise MalformedElementSetError(f"Unparseable element fields: {exc}") from exc

    if satrec.error != 0 or not unkozai_mean_motion(satrec) > 0.0:
        raise MalformedElementSetError(
            f"Element set for {cat1} does not describe a usable orbit (SGP4 error {satrec.error})"
        )

    return OrbitalElementSet(
        norad_id=cat1,
        name=name or None,
        line1=line1,
        line2=line2,
        epoch=epoch,
        satrec=satrec,
    )


def parse_elements_text(text: str) -> OrbitalElementSet:
    """Parse two- or three-line TLE text into an :class:`OrbitalElementSet`."""

    name, line1, line2 = _locate_lines(text)
    return parse_elements(line1, line2, name=name)


def load_elements(path: Path) -> OrbitalElementSet:
    """Read a TLE file from disk."""

    return parse_elements_text(Path(path).read_text(encoding="utf-8"))


__all__ = [
    "MalformedElementSetError",
    "OrbitalElementSet",
    "load_elements",
    "parse_elements",
    "parse_elements_text",
    "tle_checksum_ok",
    "tle_epoch",
    "unkozai_mean_motion",
]
