"""Typed timeline documents for pre-baked playback."""
from __future__ import annotations

import bisect
import dataclasses
import datetime as dt
import json
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from propagate.frames import ReferenceFrame, Vector3
from simulation.clock import LoopPolicy

Interval = Tuple[dt.datetime, dt.datetime]
Color = Tuple[int, int, int, int]


class TimelineSchemaError(ValueError):
    """A timeline document does not match the expected layout."""


def _iso(value: dt.datetime) -> str:
    return value.isoformat()


def _parse_iso(value: Any, field: str) -> dt.datetime:
    if not isinstance(value, str):
        raise TimelineSchemaError(f"{field} must be an ISO-8601 string")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = dt.datetime.fromisoformat(text)
    except ValueError as exc:
        raise TimelineSchemaError(f"{field} is not a valid ISO-8601 timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        raise TimelineSchemaError(f"{field} must carry a timezone")
    return parsed.astimezone(dt.timezone.utc)


def _parse_interval(value: Any, field: str) -> Interval:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise TimelineSchemaError(f"{field} must be a [start, end] pair")
    start = _parse_iso(value[0], f"{field}[0]")
    end = _parse_iso(value[1], f"{field}[1]")
    if end < start:
        raise TimelineSchemaError(f"{field} ends before it starts")
    return start, end


def _require(mapping: Mapping[str, Any], key: str, where: str) -> Any:
    if not isinstance(mapping, Mapping):
        raise TimelineSchemaError(f"{where} must be an object")
    if key not in mapping:
        raise TimelineSchemaError(f"{where} is missing '{key}'")
    return mapping[key]


@dataclasses.dataclass(frozen=True)
class TrackStyle:
    """Presentation hints for the timeline player."""

    label: str
    point_color: Color = (255, 0, 0, 255)
    pixel_size: int = 10
    label_font: str = "12pt sans-serif"
    path_color: Color = (255, 255, 0, 255)
    path_width: float = 2.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "pointColor": list(self.point_color),
            "pixelSize": self.pixel_size,
            "labelFont": self.label_font,
            "pathColor": list(self.path_color),
            "pathWidth": self.path_width,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TrackStyle":
        label = _require(data, "label", "style")
        defaults = cls(label=str(label))
        return cls(
            label=str(label),
            point_color=tuple(data.get("pointColor", defaults.point_color)),  # type: ignore[arg-type]
            pixel_size=int(data.get("pixelSize", defaults.pixel_size)),
            label_font=str(data.get("labelFont", defaults.label_font)),
            path_color=tuple(data.get("pathColor", defaults.path_color)),  # type: ignore[arg-type]
            path_width=float(data.get("pathWidth", defaults.path_width)),
        )


@dataclasses.dataclass(frozen=True)
class TimelineHeader:
    interval: Interval
    current_time: dt.datetime
    multiplier: float = 1.0
    loop_policy: LoopPolicy = LoopPolicy.LOOP_STOP

    def as_dict(self) -> Dict[str, Any]:
        return {
            "interval": [_iso(self.interval[0]), _iso(self.interval[1])],
            "currentTime": _iso(self.current_time),
            "multiplier": self.multiplier,
            "loopPolicy": self.loop_policy.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimelineHeader":
        interval = _parse_interval(_require(data, "interval", "document"), "document.interval")
        multiplier = _require(data, "multiplier", "document")
        if not isinstance(multiplier, (int, float)) or isinstance(multiplier, bool):
            raise TimelineSchemaError("document.multiplier must be a number")
        try:
            loop_policy = LoopPolicy.from_string(str(_require(data, "loopPolicy", "document")))
        except ValueError as exc:
            raise TimelineSchemaError(str(exc)) from exc
        return cls(
            interval=interval,
            current_time=_parse_iso(_require(data, "currentTime", "document"), "document.currentTime"),
            multiplier=float(multiplier),
            loop_policy=loop_policy,
        )


@dataclasses.dataclass(frozen=True)
class PositionTrack:
    """Flat ``[offset, x, y, z, ...]`` samples in metres relative to ``epoch``."""

    id: str
    availability: Interval
    epoch: dt.datetime
    reference_frame: ReferenceFrame
    samples: Tuple[float, ...]
    style: Optional[TrackStyle] = None

    def __post_init__(self) -> None:
        if len(self.samples) % 4 != 0:
            raise TimelineSchemaError(f"track {self.id}: samples length must be a multiple of 4")
        offsets = self.offsets
        for previous, current in zip(offsets, offsets[1:]):
            if current <= previous:
                raise TimelineSchemaError(f"track {self.id}: sample offsets must be strictly increasing")

    @property
    def offsets(self) -> List[float]:
        return list(self.samples[0::4])

    def __len__(self) -> int:
        return len(self.samples) // 4

    def __iter__(self) -> Iterator[Tuple[float, Vector3]]:
        for idx in range(0, len(self.samples), 4):
            yield self.samples[idx], (self.samples[idx + 1], self.samples[idx + 2], self.samples[idx + 3])

    def sample_time(self, offset: float) -> dt.datetime:
        return self.epoch + dt.timedelta(seconds=offset)

    def position_at(self, offset: float) -> Vector3:
        """Position at ``offset`` seconds; linear between stored samples."""

        offsets = self.offsets
        if not offsets:
            raise LookupError(f"track {self.id} has no samples")
        if offset < offsets[0] or offset > offsets[-1]:
            raise LookupError(f"offset {offset} outside track {self.id} samples")
        idx = bisect.bisect_left(offsets, offset)
        base = idx * 4
        if offsets[idx] == offset:
            return (self.samples[base + 1], self.samples[base + 2], self.samples[base + 3])
        lo = base - 4
        t0, t1 = self.samples[lo], self.samples[base]
        fraction = (offset - t0) / (t1 - t0)
        return tuple(  # type: ignore[return-value]
            self.samples[lo + k] + fraction * (self.samples[base + k] - self.samples[lo + k])
            for k in (1, 2, 3)
        )

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "availability": [_iso(self.availability[0]), _iso(self.availability[1])],
            "epoch": _iso(self.epoch),
            "referenceFrame": self.reference_frame.value,
            "samples": list(self.samples),
        }
        if self.style is not None:
            payload["style"] = self.style.as_dict()
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PositionTrack":
        track_id = str(_require(data, "id", "track"))
        raw_samples = _require(data, "samples", f"track {track_id}")
        if not isinstance(raw_samples, Sequence) or isinstance(raw_samples, (str, bytes)):
            raise TimelineSchemaError(f"track {track_id}: samples must be a list of numbers")
        if any(isinstance(value, bool) or not isinstance(value, (int, float)) for value in raw_samples):
            raise TimelineSchemaError(f"track {track_id}: samples must be a list of numbers")
        try:
            frame = ReferenceFrame.from_string(str(_require(data, "referenceFrame", f"track {track_id}")))
        except ValueError as exc:
            raise TimelineSchemaError(str(exc)) from exc
        style = data.get("style")
        return cls(
            id=track_id,
            availability=_parse_interval(_require(data, "availability", f"track {track_id}"), "track.availability"),
            epoch=_parse_iso(_require(data, "epoch", f"track {track_id}"), "track.epoch"),
            reference_frame=frame,
            samples=tuple(float(value) for value in raw_samples),
            style=TrackStyle.from_dict(style) if style is not None else None,
        )


@dataclasses.dataclass(frozen=True)
class TimelineDocument:
    header: TimelineHeader
    tracks: Tuple[PositionTrack, ...]

    def track(self, track_id: str) -> PositionTrack:
        for track in self.tracks:
            if track.id == track_id:
                return track
        raise KeyError(track_id)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "document": self.header.as_dict(),
            "tracks": [track.as_dict() for track in self.tracks],
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.as_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimelineDocument":
        header = TimelineHeader.from_dict(_require(data, "document", "timeline"))
        tracks = _require(data, "tracks", "timeline")
        if not isinstance(tracks, list):
            raise TimelineSchemaError("timeline.tracks must be a list")
        return cls(header=header, tracks=tuple(PositionTrack.from_dict(track) for track in tracks))

    @classmethod
    def from_json(cls, text: str) -> "TimelineDocument":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TimelineSchemaError(f"timeline is not valid JSON: {exc}") from exc
        return cls.from_dict(data)


__all__ = [
    "PositionTrack",
    "TimelineDocument",
    "TimelineHeader",
    "TimelineSchemaError",
    "TrackStyle",
]
