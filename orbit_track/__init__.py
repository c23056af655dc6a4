"""Time-synchronized orbit cache for rendering a satellite on a globe.

The element set layer lives here; propagation, sampling, simulation and
timeline export are sibling packages (``propagate``, ``sampling``,
``simulation``, ``timeline``).
"""

from .tle import (
    MalformedElementSetError,
    OrbitalElementSet,
    load_elements,
    parse_elements,
    parse_elements_text,
    tle_checksum_ok,
    tle_epoch,
)

__version__ = "0.1.0"

__all__ = [
    "MalformedElementSetError",
    "OrbitalElementSet",
    "load_elements",
    "parse_elements",
    "parse_elements_text",
    "tle_checksum_ok",
    "tle_epoch",
    "__version__",
]
