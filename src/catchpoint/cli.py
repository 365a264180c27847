"""
Command-line interface for the application.

This module provides the main entry point for the CLI.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from catchpoint import __version__
from catchpoint.app import CatchApp, build_app
from catchpoint.config import get_settings
from catchpoint.flows.enrich import enrich_weather
from catchpoint.location import StaticLocator
from catchpoint.schemas import Status

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="catchpoint",
        description="One-tap catch logging with offline-first weather enrichment",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show application info")

    capture_parser = subparsers.add_parser("capture", help="Record a catch here and now")
    capture_parser.add_argument("--lat", type=float, default=None, help="Latitude of the catch")
    capture_parser.add_argument("--lon", type=float, default=None, help="Longitude of the catch")
    capture_parser.add_argument(
        "--accuracy", type=float, default=10.0, help="Fix accuracy in metres (default: 10)"
    )
    capture_parser.add_argument(
        "--offline",
        action="store_true",
        help="Treat the network as offline (weather is fetched later)",
    )

    subparsers.add_parser("pending", help="List catches still waiting on weather or location")
    subparsers.add_parser("enrich", help="Fetch weather for pending catches")

    return parser


def setup_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else get_settings().log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"Data dir: {settings.data_dir}")
    print(f"Weather configured: {bool(settings.openweathermap_api_key)}")
    return 0


async def _capture(app: CatchApp, *, online: bool) -> int:
    # Listeners schedule jobs, so the signal must be pushed inside the loop
    app.network.update(is_connected=online)
    job = app.capture.capture()
    print("Catch saved!")
    try:
        await app.drain()
    finally:
        await app.aclose()

    if job.status is not Status.COMPLETED:
        print(f"Error: {app.capture.feedback.message} ({job.error})", file=sys.stderr)
        return 1

    record = await app.records.get(job.result.record_id)
    if record is None:
        print("Error: catch disappeared before it could be read back", file=sys.stderr)
        return 1
    print(f"  id:        {record.id}")
    print(f"  location:  {record.latitude:.5f}, {record.longitude:.5f} ({job.result.fix.source})")
    if record.weather is not None:
        w = record.weather
        print(f"  weather:   {w.temperature:.1f}°{w.temperature_unit}, {w.condition or 'n/a'}")
    else:
        print("  weather:   pending")
    return 0


def cmd_capture(args: argparse.Namespace) -> int:
    """Handle the 'capture' command."""
    settings = get_settings()
    lat = args.lat if args.lat is not None else settings.default_lat
    lon = args.lon if args.lon is not None else settings.default_lon
    app = build_app(settings, device=StaticLocator(lat, lon, accuracy=args.accuracy))
    return asyncio.run(_capture(app, online=not args.offline))


async def _pending(app: CatchApp) -> int:
    records = await app.records.list_all()
    pending = [r for r in records if r.pending_weather_fetch or r.pending_location_refresh]
    if not pending:
        print("No pending catches.")
        return 0

    for r in pending:
        flags = []
        if r.pending_weather_fetch:
            flags.append("weather")
        if r.pending_location_refresh:
            flags.append("location")
        if r.has_unknown_location:
            flags.append("unknown-location")
        print(f"{r.id}  {r.timestamp.isoformat()}  ({r.latitude:.5f}, {r.longitude:.5f})  "
              f"{', '.join(flags)}")
    return 0


def cmd_pending(_args: argparse.Namespace) -> int:
    """Handle the 'pending' command."""
    return asyncio.run(_pending(build_app(get_settings())))


def cmd_enrich(_args: argparse.Namespace) -> int:
    """Handle the 'enrich' command."""
    result = asyncio.run(enrich_weather())
    if result.get("skipped"):
        print(f"Skipped: {result['skipped']}")
        return 1
    print(f"Processed: {result['processed']}, failed: {result['failed']}")
    return 0 if result["failed"] == 0 else 1


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    setup_logging(args.debug)

    commands = {
        "info": cmd_info,
        "capture": cmd_capture,
        "pending": cmd_pending,
        "enrich": cmd_enrich,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
