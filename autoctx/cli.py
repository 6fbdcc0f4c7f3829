#!/usr/bin/env python3
"""
CLI entry point for the autoctx context inference engine.

Defines the following commands:
  autoctx replay LOG [--frequency 5s] [--preset default|low_power] [--json]
  autoctx serve [--host 127.0.0.1] [--port 8000]
  autoctx version
"""

import json
import sys
from argparse import ArgumentParser, Namespace
from importlib.metadata import PackageNotFoundError, version as _get_version

import uvicorn
from rich.console import Console
from rich.table import Table

from autoctx.analysis.replay import ReplayPipeline, ReplayResult
from autoctx.engine.cadence import DEFAULT_FREQUENCY, RECORDING_FREQUENCIES
from autoctx.engine.config import EngineConfig
from autoctx.parsers.sensor_log import ParseStats, parse_sensor_log
from autoctx.server import create_app
from autoctx.utils.log import get_logger
from autoctx.utils.validate import ContextSampleOut

logger = get_logger(__name__)


def replay(log_path: str, frequency: str, preset: str, as_json: bool) -> int:
    """
    Replay a recorded sensor log and print the resolved context timeline.

    Parameters
    ----------
    log_path
        Path to a JSON-Lines sensor log.
    frequency
        Recording cadence to tick at, e.g. "10s".
    preset
        EngineConfig preset name.
    as_json
        Print one JSON object per tick instead of a table.
    """
    logger.info("Replay: log=%s, frequency=%s, preset=%s", log_path, frequency, preset)
    if frequency not in RECORDING_FREQUENCIES:
        logger.warning(
            "Frequency %s is not one of the recording presets (%s)",
            frequency, ", ".join(RECORDING_FREQUENCIES),
        )
    try:
        pipeline = ReplayPipeline(EngineConfig.preset(preset), frequency)
    except ValueError as e:
        logger.error("%s", e)
        return 2

    stats = ParseStats()
    try:
        result = pipeline.run(parse_sensor_log(log_path, stats))
    except OSError as e:
        logger.error("Cannot read %s: %s", log_path, e)
        return 1
    logger.info(
        "Parsed %d lines: %d gps, %d accel, %d skipped",
        stats.lines, stats.gps, stats.accel, stats.skipped,
    )

    if as_json:
        for sample in result.samples:
            print(ContextSampleOut.from_sample(sample).model_dump_json())
    else:
        _print_summary(result)
    return 0


def _print_summary(result: ReplayResult) -> None:
    console = Console()
    table = Table(title=f"Context timeline ({len(result.samples)} ticks)")
    table.add_column("t (ms)", justify="right")
    table.add_column("context")
    table.add_column("quality")
    prev = None
    for sample in result.samples:
        # only print changes to keep long logs readable
        if prev is not None and (sample.context, sample.quality) == prev:
            continue
        prev = (sample.context, sample.quality)
        table.add_row(f"{sample.timestamp_ms:.0f}", sample.context.value, sample.quality.value)
    console.print(table)

    totals = {ctx.value: secs for ctx, secs in result.seconds_by_context().items()}
    console.print(f"Time by context (s): {json.dumps(totals)}")
    console.print(f"Transitions: {result.transitions}")


def serve(host: str, port: int) -> None:
    """
    Spin up FastAPI+Uvicorn exposing per-session context engines.

    Parameters
    ----------
    host
        Interface to bind.
    port
        Port on which to serve HTTP.
    """
    logger.info("Serve: host=%s, port=%d", host, port)
    app = create_app()
    uvicorn.run(app, host=host, port=port)


def version() -> None:
    """
    Print the installed autoctx package version.
    """
    try:
        ver = _get_version("autoctx")
    except PackageNotFoundError:
        ver = "unknown"
    logger.info("autoctx version %s", ver)


def parse_args(argv: list[str] | None = None) -> Namespace:
    """
    Parse command-line arguments and return the populated namespace.
    """
    parser = ArgumentParser(prog="autoctx")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # autoctx replay
    p = subparsers.add_parser("replay", help="Replay a recorded sensor log.")
    p.add_argument("log", type=str, help="JSON-Lines sensor log.")
    p.add_argument(
        "--frequency", type=str, default=DEFAULT_FREQUENCY,
        help=f"Recording cadence; presets: {', '.join(RECORDING_FREQUENCIES)}."
    )
    p.add_argument(
        "--preset", choices=["default", "low_power"], default="default", help="Threshold preset."
    )
    p.add_argument("--json", action="store_true", help="Emit one JSON object per tick.")

    # autoctx serve
    p = subparsers.add_parser("serve", help="Serve via FastAPI + Uvicorn.")
    p.add_argument("--host", type=str, default="127.0.0.1", help="Interface to bind.")
    p.add_argument(
        "--port", type=int, default=8000, help="Port number to serve on."
    )

    # autoctx version
    subparsers.add_parser("version", help="Show autoctx version and exit.")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Entry point: dispatch to the selected subcommand.
    """
    args = parse_args(argv)
    match args.command:
        case "replay":
            return replay(args.log, args.frequency, args.preset, args.json)
        case "serve":
            serve(args.host, args.port)
        case "version":
            version()
        case _:
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
