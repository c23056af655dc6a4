"""``track`` subcommand: drive a headless clock and print per-tick positions."""
from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
from pathlib import Path

from propagate.frames import FrameMode
from simulation.clock import LoopPolicy, SimulationClock
from simulation.session import RecordingSink, TrackingSession

from ..config import load_config
from ..tle import MalformedElementSetError, load_elements
from . import common

LOGGER = logging.getLogger("orbit_track.cli.track")


def configure_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("track", help="Simulate clock ticks and print the satellite position per tick")
    parser.add_argument("tle_path", type=Path, help="Two- or three-line TLE file")
    parser.add_argument("--start", type=common.parse_datetime, help="Clock start (ISO-8601, default UTC now)")
    parser.add_argument(
        "--stop",
        type=common.parse_datetime,
        help="Clock stop; defaults to one orbital period after --start when a loop policy needs it",
    )
    parser.add_argument("--ticks", type=int, default=10, help="Number of ticks to simulate")
    parser.add_argument("--tick-seconds", type=float, default=1.0, help="Wall-clock seconds per tick")
    parser.add_argument("--multiplier", type=float, help="Simulation seconds per wall-clock second")
    parser.add_argument(
        "--loop-policy",
        type=str.upper,
        choices=[policy.value for policy in LoopPolicy],
        help="Clock behaviour at the range edges",
    )
    parser.add_argument(
        "--frame-mode",
        choices=[mode.value for mode in FrameMode],
        help="Geodetic positions or inertial positions with a camera rotation",
    )
    parser.add_argument("--step", type=common.parse_step, help="Live cache sample spacing")
    parser.set_defaults(handler=run)


def run(ns: argparse.Namespace) -> int:
    config = load_config()
    try:
        elements = load_elements(ns.tle_path)
    except (OSError, MalformedElementSetError) as exc:
        LOGGER.error("invalid_elements", extra={"path": str(ns.tle_path), "error": str(exc)})
        return common.EXIT_BAD_INPUT
    if ns.ticks < 0:
        LOGGER.error("invalid_ticks", extra={"ticks": ns.ticks})
        return common.EXIT_BAD_INPUT

    start = common.now_utc(ns.start)
    loop_policy = LoopPolicy(ns.loop_policy) if ns.loop_policy else config.clock.loop_policy
    stop = ns.stop
    if stop is None and loop_policy != LoopPolicy.UNBOUNDED:
        stop = start + dt.timedelta(seconds=elements.orbital_period)

    try:
        clock = SimulationClock(
            start=start,
            stop=stop,
            multiplier=ns.multiplier if ns.multiplier is not None else config.clock.multiplier,
            loop_policy=loop_policy,
        )
        sink = RecordingSink()
        session = TrackingSession(
            elements,
            clock,
            sink,
            step=ns.step or config.live_step_seconds,
            frame_mode=FrameMode(ns.frame_mode) if ns.frame_mode else config.frame_mode,
            max_samples=config.max_samples,
        )
    except ValueError as exc:
        LOGGER.error("track_rejected", extra={"error": str(exc)})
        return common.EXIT_BAD_INPUT

    with session:
        for _ in range(ns.ticks):
            clock.tick(ns.tick_seconds)

    for result in sink.results:
        print(json.dumps(result.as_dict()))
    summary = {"ticks": len(sink.results), "rebuilds": len(sink.orbits), "errors": len(sink.errors)}
    if sink.errors:
        LOGGER.warning("track_complete_with_errors", extra=summary)
    else:
        LOGGER.info("track_complete", extra=summary)
    return common.EXIT_OK
