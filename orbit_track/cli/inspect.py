"""``inspect`` subcommand: summarise an element set."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from ..tle import MalformedElementSetError, load_elements
from . import common

LOGGER = logging.getLogger("orbit_track.cli.inspect")


def configure_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("inspect", help="Print period and mean motion for a TLE file")
    parser.add_argument("tle_path", type=Path, help="Two- or three-line TLE file")
    parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    parser.set_defaults(handler=run)


def run(ns: argparse.Namespace) -> int:
    try:
        elements = load_elements(ns.tle_path)
    except (OSError, MalformedElementSetError) as exc:
        LOGGER.error("invalid_elements", extra={"path": str(ns.tle_path), "error": str(exc)})
        return common.EXIT_BAD_INPUT

    summary = elements.summary()
    if ns.json:
        print(json.dumps(summary))
        return common.EXIT_OK

    print(f"{elements.label} (NORAD {elements.norad_id})")
    print(f"  epoch          {summary['epoch']}")
    print(f"  mean motion    {summary['mean_motion_rad_min']:.8f} rad/min ({summary['revolutions_per_day']:.8f} rev/day)")
    print(f"  orbital period {summary['orbital_period_s']:.2f} s")
    return common.EXIT_OK
