"""``export`` subcommand: write a timeline document for one orbital period."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from propagate.frames import ReferenceFrame
from simulation.clock import LoopPolicy
from timeline.exporter import TimelineExporter, write_timeline

from ..config import load_config
from ..tle import MalformedElementSetError, load_elements
from . import common

LOGGER = logging.getLogger("orbit_track.cli.export")


def configure_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("export", help="Export one orbital period as a timeline document")
    parser.add_argument("tle_path", type=Path, help="Two- or three-line TLE file")
    parser.add_argument(
        "--epoch",
        type=common.parse_datetime,
        help="Start of the exported period (ISO-8601, default UTC now). Pass the clock start time here.",
    )
    parser.add_argument(
        "--current-time",
        type=common.parse_datetime,
        help="Initial playback time inside the period (default: --epoch)",
    )
    parser.add_argument("--step", type=common.parse_step, help="Sample spacing (seconds, e.g. 60 or PT1M)")
    parser.add_argument("--multiplier", type=float, help="Playback multiplier stored in the document")
    parser.add_argument(
        "--loop-policy",
        type=str.upper,
        choices=[policy.value for policy in LoopPolicy],
        help="Playback range policy stored in the document",
    )
    parser.add_argument(
        "--frame",
        type=str.upper,
        choices=[frame.value for frame in ReferenceFrame],
        default=ReferenceFrame.INERTIAL.value,
        help="Frame of the stored positions",
    )
    parser.add_argument("--output", "-o", default="-", help="Output path, '-' for stdout")
    parser.set_defaults(handler=run)


def run(ns: argparse.Namespace) -> int:
    config = load_config()
    try:
        elements = load_elements(ns.tle_path)
    except (OSError, MalformedElementSetError) as exc:
        LOGGER.error("invalid_elements", extra={"path": str(ns.tle_path), "error": str(exc)})
        return common.EXIT_BAD_INPUT

    exporter = TimelineExporter(
        step=ns.step or config.export_step_seconds,
        multiplier=ns.multiplier if ns.multiplier is not None else config.clock.multiplier,
        loop_policy=LoopPolicy(ns.loop_policy) if ns.loop_policy else LoopPolicy.LOOP_STOP,
        reference_frame=ReferenceFrame(ns.frame),
        max_samples=config.max_samples,
    )
    epoch = common.now_utc(ns.epoch)
    try:
        document = exporter.export(elements, epoch, current_time=ns.current_time)
    except ValueError as exc:
        LOGGER.error("export_rejected", extra={"error": str(exc)})
        return common.EXIT_BAD_INPUT

    if ns.output == "-":
        print(document.to_json(indent=2))
    else:
        path = write_timeline(document, Path(ns.output))
        LOGGER.info("timeline_written", extra={"path": str(path)})
    return common.EXIT_OK
