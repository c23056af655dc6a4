"""Simulation clock and the tracking session it drives."""

from .clock import LoopPolicy, SimulationClock, TickSubscription
from .session import RecordingSink, RenderSink, TickResult, TrackingSession

__all__ = [
    "LoopPolicy",
    "SimulationClock",
    "TickSubscription",
    "RecordingSink",
    "RenderSink",
    "TickResult",
    "TrackingSession",
]
