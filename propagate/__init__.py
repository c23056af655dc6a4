"""Propagation and frame utilities built on top of SGP4."""

from .frames import (
    FrameMode,
    FrameModeError,
    FramedPosition,
    FrameTransformAdapter,
    Geodetic,
    ReferenceFrame,
    StateVector,
)
from .service import PropagationError, Propagator, SGP4Propagator

__all__ = [
    "FrameMode",
    "FrameModeError",
    "FramedPosition",
    "FrameTransformAdapter",
    "Geodetic",
    "ReferenceFrame",
    "StateVector",
    "PropagationError",
    "Propagator",
    "SGP4Propagator",
]
