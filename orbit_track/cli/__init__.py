"""Command line interface for orbit-track."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from ..config import load_config
from . import common, export, inspect, track


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orbit-track",
        description="Time-synchronized orbit cache and timeline export",
    )
    common.add_shared_arguments(parser)
    subparsers = parser.add_subparsers(dest="command")
    inspect.configure_parser(subparsers)
    export.configure_parser(subparsers)
    track.configure_parser(subparsers)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(list(argv) if argv is not None else None)
    if not hasattr(ns, "handler"):
        parser.print_help()
        return 1
    common.configure_logging(ns.log_level or load_config().log_level)
    return ns.handler(ns)


def entrypoint() -> None:
    sys.exit(main())


__all__ = ["build_parser", "entrypoint", "main"]
