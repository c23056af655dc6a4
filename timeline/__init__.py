"""Timeline documents for pre-baked orbit playback."""

from .exporter import TimelineExporter, read_timeline, write_timeline
from .schema import PositionTrack, TimelineDocument, TimelineHeader, TimelineSchemaError, TrackStyle

__all__ = [
    "TimelineExporter",
    "read_timeline",
    "write_timeline",
    "PositionTrack",
    "TimelineDocument",
    "TimelineHeader",
    "TimelineSchemaError",
    "TrackStyle",
]
