#!/usr/bin/env python3
"""
Geocoding CLI for map pins

Commands:
  resolve LAT LON   - Resolve a coordinate to "City, Country"
  search QUERY      - Look up addresses matching a free-text query
  providers         - Show the configured provider chain and limits

Examples:
  pinmap-geocode resolve 48.8566 2.3522
  pinmap-geocode resolve -33.8688 151.2093 --json
  pinmap-geocode search "Tour Eiffel" --json
  pinmap-geocode providers
"""
import argparse
import asyncio
import json
import sys
from typing import List, Optional

from pydantic import ValidationError

from .config import get_settings, runtime_config_summary
from .exceptions import ConfigurationError
from .geocoding import AddressSearch, GeocodingResolver, ResolutionStatus, default_providers
from .logging_config import setup_logging


async def cmd_resolve(args) -> int:
    settings = get_settings()
    # One-off lookup: no burst to debounce
    resolver = GeocodingResolver.from_settings(settings, settle_delay=(0.0, 0.0))
    try:
        state = await resolver.resolve(args.latitude, args.longitude)
    finally:
        await resolver.close()

    if args.json:
        output = {
            "status": state.status.value,
            "label": state.label,
            "city": state.location.city if state.location else None,
            "country": state.location.country if state.location else None,
        }
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        print(state.label)

    return 0 if state.status == ResolutionStatus.RESOLVED else 1


async def cmd_search(args) -> int:
    search = AddressSearch.from_settings(get_settings())
    try:
        matches = await search.search(args.query)
    finally:
        await search.close()

    if args.json:
        output = [
            {
                "display_name": m.display_name,
                "latitude": m.coordinate.latitude,
                "longitude": m.coordinate.longitude,
            }
            for m in matches
        ]
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        for m in matches:
            print(f"{m.coordinate.latitude:.6f}, {m.coordinate.longitude:.6f}  {m.display_name}")

    return 0 if matches else 1


def cmd_providers(args) -> int:
    settings = get_settings()
    summary = runtime_config_summary(settings)
    summary["providers"] = [p.name for p in default_providers(settings)]

    if args.json:
        print(json.dumps(summary, indent=2))
        return 0

    print("Reverse geocoding configuration")
    print("=" * 40)
    for position, name in enumerate(summary.pop("providers"), start=1):
        print(f"  {position}. {name}")
    print()
    for key, value in summary.items():
        print(f"{key}: {value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pinmap-geocode", description="Reverse geocoding and address search for map pins")
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser("resolve", help="Resolve a coordinate to a place label")
    resolve.add_argument("latitude", help="Latitude in decimal degrees")
    resolve.add_argument("longitude", help="Longitude in decimal degrees")
    resolve.add_argument("--json", action="store_true", help="Output the result as JSON")

    search = subparsers.add_parser("search", help="Search addresses by free text")
    search.add_argument("query", help="Address or place name, at least a few characters")
    search.add_argument("--json", action="store_true", help="Output the matches as JSON")

    providers = subparsers.add_parser("providers", help="Show the provider chain")
    providers.add_argument("--json", action="store_true", help="Output the configuration as JSON")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except (ConfigurationError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    setup_logging(
        level=settings.LOG_LEVEL,
        use_json=None if settings.LOG_FORMAT == "auto" else settings.LOG_FORMAT == "json",
    )

    if args.command == "resolve":
        return asyncio.run(cmd_resolve(args))
    if args.command == "search":
        return asyncio.run(cmd_search(args))
    return cmd_providers(args)


if __name__ == "__main__":
    sys.exit(main())
