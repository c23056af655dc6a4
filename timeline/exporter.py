"""Serialize one orbital period into a timeline document."""
from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import List, Optional

from orbit_track.logging import get_logger, log_context
from orbit_track.tle import OrbitalElementSet
from propagate.frames import ReferenceFrame, inertial_to_fixed_matrix, rotate, sidereal_time
from propagate.service import Propagator, SGP4Propagator, ensure_utc
from sampling.cache import DEFAULT_MAX_SAMPLES, OrbitSampleCache, build_cache
from simulation.clock import LoopPolicy
from timeline.schema import PositionTrack, TimelineDocument, TimelineHeader, TrackStyle

LOGGER = get_logger("timeline.exporter")

DEFAULT_EXPORT_STEP = 60.0


def _flatten(cache: OrbitSampleCache, frame: ReferenceFrame) -> List[float]:
    flat: List[float] = []
    for sample in cache.samples:
        position = sample.position
        if frame == ReferenceFrame.FIXED:
            matrix = inertial_to_fixed_matrix(sidereal_time(cache.sample_time(sample)))
            position = rotate(matrix, position)
        flat.extend((sample.offset_seconds, *position))
    return flat


class TimelineExporter:
    """Build pre-baked position tracks for an external timeline player."""

    def __init__(
        self,
        propagator: Optional[Propagator] = None,
        step: float = DEFAULT_EXPORT_STEP,
        multiplier: float = 1.0,
        loop_policy: LoopPolicy = LoopPolicy.LOOP_STOP,
        reference_frame: ReferenceFrame = ReferenceFrame.INERTIAL,
        max_samples: int = DEFAULT_MAX_SAMPLES,
    ) -> None:
        if step <= 0:
            raise ValueError("step must be positive")
        self.propagator = propagator or SGP4Propagator()
        self.step = step
        self.multiplier = multiplier
        self.loop_policy = LoopPolicy(loop_policy)
        self.reference_frame = ReferenceFrame(reference_frame)
        self.max_samples = max_samples

    def export(
        self,
        elements: OrbitalElementSet,
        epoch: dt.datetime,
        step: Optional[float] = None,
        current_time: Optional[dt.datetime] = None,
        style: Optional[TrackStyle] = None,
    ) -> TimelineDocument:
        """Export one full period of ``elements`` starting at ``epoch``.

        Propagation failures only thin out the track. ``current_time``
        defaults to ``epoch``; pass the live clock time to start playback
        elsewhere inside the interval.
        """

        epoch = ensure_utc(epoch)
        step = step if step is not None else self.step
        with log_context(norad_id=elements.norad_id):
            cache = build_cache(
                elements, epoch, step, propagator=self.propagator, max_samples=self.max_samples
            )
            interval = (cache.epoch, cache.end)
            current = ensure_utc(current_time) if current_time is not None else cache.epoch
            if not interval[0] <= current <= interval[1]:
                raise ValueError("current_time must fall inside the exported interval")

            track = PositionTrack(
                id=f"satellite-{elements.norad_id}",
                availability=interval,
                epoch=cache.epoch,
                reference_frame=self.reference_frame,
                samples=tuple(_flatten(cache, self.reference_frame)),
                style=style or TrackStyle(label=elements.label),
            )
            LOGGER.info(
                "timeline_exported",
                extra={"samples": len(track), "failures": cache.failures, "step": step},
            )

        header = TimelineHeader(
            interval=interval,
            current_time=current,
            multiplier=self.multiplier,
            loop_policy=self.loop_policy,
        )
        return TimelineDocument(header=header, tracks=(track,))


def write_timeline(document: TimelineDocument, path: Path, indent: Optional[int] = 2) -> Path:
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document.to_json(indent=indent) + "\n", encoding="utf-8")
    return path


def read_timeline(path: Path) -> TimelineDocument:
    return TimelineDocument.from_json(Path(path).read_text(encoding="utf-8"))


__all__ = ["DEFAULT_EXPORT_STEP", "TimelineExporter", "read_timeline", "write_timeline"]
