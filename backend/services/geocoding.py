"""Geocoding collaborator: forward search via Open-Meteo, reverse lookup via Nominatim.

Configuration is passed in by the caller; nothing here reads the environment.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from typing import List, Optional

import requests

from domain.errors import UpstreamError
from domain.models import Coordinate, Place, PlaceKind, UNKNOWN_COUNTRY
from services.http_client import DEFAULT_TIMEOUT_SEC, build_session, get_json
from services.provider_schemas import (
    NominatimReverseResponse,
    OpenMeteoSearchResponse,
    parse_payload,
)

OPEN_METEO_GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
NOMINATIM_BASE_URL = "https://nominatim.openstreetmap.org/reverse"
FALLBACK_UA = "nearby-weather/0.1 (contact: example@example.com)"

# GeoNames feature codes for populated places (PPL, PPLA, PPLC, ...).
_LOCALITY_FEATURE = re.compile(r"^PPL")
_ADMIN_FEATURE = re.compile(r"^ADM")

logger = logging.getLogger(__name__)


def _redact_email(ua: str) -> str:
    if "@" not in ua:
        return ua
    return re.sub(r"\S+@\S+", "<redacted>", ua)


def _kinds_from_feature_code(code: Optional[str]) -> tuple[PlaceKind, ...]:
    if not code:
        return ()
    if _LOCALITY_FEATURE.match(code):
        return (PlaceKind.LOCALITY,)
    if _ADMIN_FEATURE.match(code):
        return (PlaceKind.ADMINISTRATIVE_AREA,)
    return (PlaceKind.OTHER,)


def _parse_population(value: object) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(str(value).replace(",", "").strip())
    except ValueError:
        return None


class GeocodingClient:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        search_url: str = OPEN_METEO_GEOCODING_URL,
        reverse_url: str = NOMINATIM_BASE_URL,
        user_agent: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        min_reverse_interval_sec: float = 1.1,
    ):
        if user_agent is None:
            logger.warning(
                "No Nominatim User-Agent configured; using fallback UA. "
                "This may violate Nominatim usage policy."
            )
        self.user_agent = user_agent or FALLBACK_UA
        self.session = session or build_session(self.user_agent)
        self.search_url = search_url
        self.reverse_url = reverse_url
        self.timeout = timeout
        self.min_reverse_interval_sec = min_reverse_interval_sec
        self._lock = threading.Lock()
        self._last_reverse_ts = 0.0
        self._logged_ua = False

    def search_by_name(self, text: str, max_count: int = 5, language: str = "en") -> List[Place]:
        """Forward-geocode a place name. An empty match list is not an error."""
        params = {"name": text, "count": str(max_count), "language": language}
        data = get_json(
            self.session,
            self.search_url,
            service="open-meteo-geocoding",
            params=params,
            timeout=self.timeout,
        )
        payload = parse_payload(OpenMeteoSearchResponse, data, "open-meteo-geocoding")
        places = [
            Place(
                name=item.name,
                coordinate=Coordinate(item.latitude, item.longitude),
                country=item.country or UNKNOWN_COUNTRY,
                timezone=item.timezone,
                population=item.population,
                kinds=_kinds_from_feature_code(item.feature_code),
            )
            for item in payload.results
        ]
        logger.debug("search_by_name %r -> %d results", text, len(places))
        return places

    def _throttle(self) -> None:
        """Keep reverse lookups at or under Nominatim's one request per second."""
        with self._lock:
            now = time.monotonic()
            delta = now - self._last_reverse_ts
            if delta < self.min_reverse_interval_sec:
                time.sleep(self.min_reverse_interval_sec - delta)
            self._last_reverse_ts = time.monotonic()

    def reverse_lookup(self, coordinate: Coordinate, max_count: int = 1, language: str = "en") -> List[Place]:
        """
        Reverse-geocode a coordinate into at most `max_count` places.

        Nominatim returns a single best match, so the list has zero or one
        entries. Population comes from OSM extratags when tagged.
        """
        if max_count <= 0:
            return []
        if not self._logged_ua:
            logger.debug("Nominatim User-Agent: %s", _redact_email(self.user_agent))
            self._logged_ua = True

        params = {
            "format": "jsonv2",
            "lat": f"{coordinate.latitude:.6f}",
            "lon": f"{coordinate.longitude:.6f}",
            "zoom": "10",
            "addressdetails": "1",
            "extratags": "1",
            "accept-language": language,
        }
        self._throttle()
        data = get_json(
            self.session,
            self.reverse_url,
            service="nominatim",
            params=params,
            timeout=self.timeout,
        )
        if isinstance(data, dict) and data.get("error"):
            # "Unable to geocode": open ocean and similar.
            logger.debug("Nominatim reverse found nothing at %s: %s", coordinate, data["error"])
            return []
        payload = parse_payload(NominatimReverseResponse, data, "nominatim")

        address = payload.address
        name = (
            address.get("city")
            or address.get("town")
            or address.get("village")
            or address.get("hamlet")
            or payload.name
            or payload.display_name
        )
        if not name:
            raise UpstreamError("nominatim", "reverse result had no usable name")
        kinds = (PlaceKind.LOCALITY,) if any(k in address for k in ("city", "town", "village", "hamlet")) else ()
        extratags = payload.extratags or {}
        place = Place(
            name=name,
            coordinate=Coordinate(payload.lat, payload.lon),
            country=address.get("country") or (address.get("country_code") or "").upper() or UNKNOWN_COUNTRY,
            population=_parse_population(extratags.get("population")),
            kinds=kinds,
            place_id=str(payload.place_id) if payload.place_id is not None else None,
        )
        return [place]
