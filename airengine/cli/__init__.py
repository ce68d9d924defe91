"""
airengine CLI entry point.

Parses arguments, configures logging and dispatches to the command modules.
All file-system reads and writes of a build happen here, never in the core.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from airengine import __version__
from airengine.errors import AirError

from .commands import add_build_command, add_parse_command

LOG_LEVELS = ("debug", "info", "warning", "error")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_runtime_logging(args: argparse.Namespace) -> None:
    """Configure the ``airengine`` logger from ``--log-level`` or ``AIRENGINE_LOG_LEVEL``."""
    log_level = (getattr(args, "log_level", None) or os.getenv("AIRENGINE_LOG_LEVEL", "info")).lower()
    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    numeric_level = level_map.get(log_level, logging.INFO)

    package_logger = logging.getLogger("airengine")
    package_logger.setLevel(numeric_level)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="airengine",
        description="Compile AIR sources into a React client and a FastAPI server.",
    )
    parser.add_argument("--version", action="version", version=f"airengine {__version__}")
    parser.add_argument("--log-level", choices=LOG_LEVELS, help="Logging level (default: $AIRENGINE_LOG_LEVEL or info)")
    subparsers = parser.add_subparsers(dest="command")
    add_build_command(subparsers)
    add_parse_command(subparsers)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    _configure_runtime_logging(args)
    try:
        return args.func(args)
    except AirError as exc:
        print(exc.format(), file=sys.stderr)
        return 1


__all__ = ["main", "build_parser", "LOG_LEVELS"]
