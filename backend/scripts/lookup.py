"""Query the nearby weather pipelines from the command line and print JSON.

Usage (from `backend/`):
    python -m scripts.lookup search "Seoul"
    python -m scripts.lookup weather 37.5665 126.978
    python -m scripts.lookup country-cities 37.5665 126.978
    python -m scripts.lookup nearby 37.5665 126.978 "South Korea" "Busan"

Configuration comes from the same environment variables (and optional
`backend/.env`) as the API.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv

LOG = logging.getLogger("lookup")


def _to_jsonable(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {k: _to_jsonable(v) for k, v in dataclasses.asdict(obj).items()}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [_to_jsonable(v) for v in obj]
    if isinstance(obj, dict):
        return {k: _to_jsonable(v) for k, v in obj.items()}
    return obj


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lookup", description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("search", help="Forward-geocode a place name")
    p.add_argument("query")

    for name, help_text in (
        ("weather", "Forecast plus neighboring cities with live weather"),
        ("country-cities", "Closest same-country cities"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("lat")
        p.add_argument("lon")

    p = sub.add_parser("nearby", help="Free-text search constrained to a country and radius")
    p.add_argument("lat")
    p.add_argument("lon")
    p.add_argument("country")
    p.add_argument("query")
    return parser


def run(argv: Optional[List[str]] = None, service=None) -> Any:
    """Dispatch a parsed command to the service and return the raw result."""
    args = build_parser().parse_args(argv)
    if service is None:
        from api.dependencies import build_service
        from settings import Settings

        service = build_service(Settings())

    if args.command == "search":
        return service.search_by_name(args.query)
    if args.command == "weather":
        return service.weather_bundle(args.lat, args.lon)
    if args.command == "country-cities":
        return service.country_cities(args.lat, args.lon)
    return service.nearby_search(args.lat, args.lon, args.country, args.query)


def main(argv: Optional[List[str]] = None) -> int:
    from domain.errors import ConfigurationError, InputValidationError, UpstreamError
    from settings import Settings

    load_dotenv(Path(__file__).resolve().parents[1] / ".env")
    logging.basicConfig(level=Settings().LOG_LEVEL)
    try:
        result = run(argv)
    except InputValidationError as exc:
        LOG.error("%s", exc)
        return 2
    except (UpstreamError, ConfigurationError):
        LOG.exception("Lookup failed")
        return 1
    print(json.dumps(_to_jsonable(result), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
