"""
Places client backed by the Google Places web service (nearby search + details).
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

import requests

from domain.errors import ConfigurationError, UpstreamError
from domain.models import Coordinate, Place, PlaceKind, PlaceRef, UNKNOWN_COUNTRY
from services.http_client import DEFAULT_TIMEOUT_SEC, build_session, get_json
from services.provider_schemas import (
    GoogleAddressComponent,
    GoogleDetailsResponse,
    GoogleNearbyResponse,
    parse_payload,
)

GOOGLE_PLACES_BASE_URL = "https://maps.googleapis.com/maps/api/place"
DEFAULT_DETAIL_FIELDS = ("address_component", "geometry", "name", "types")

# Only kinds with a Google nearby-search `type` equivalent can be pushed upstream.
_GOOGLE_TYPE_FOR_KIND = {
    PlaceKind.LOCALITY: "locality",
}


def kinds_from_google_types(types: Iterable[str]) -> tuple[PlaceKind, ...]:
    kinds: list[PlaceKind] = []
    for t in types:
        if t == "locality":
            kind = PlaceKind.LOCALITY
        elif t.startswith("administrative_area_level_"):
            kind = PlaceKind.ADMINISTRATIVE_AREA
        elif t == "political":
            kind = PlaceKind.POLITICAL
        else:
            kind = PlaceKind.OTHER
        if kind not in kinds:
            kinds.append(kind)
    return tuple(kinds)


def country_from_components(components: Sequence[GoogleAddressComponent | dict]) -> str:
    """
    Pick the country out of a Google address breakdown.

    Prefers the long name, then the short code, then "Unknown" when no
    component is typed "country".
    """
    for comp in components:
        if isinstance(comp, dict):
            comp = GoogleAddressComponent.model_validate(comp)
        if "country" in comp.types:
            return comp.long_name or comp.short_name or UNKNOWN_COUNTRY
    return UNKNOWN_COUNTRY


class GooglePlacesClient:
    provider = "google"

    def __init__(
        self,
        api_key: Optional[str],
        session: Optional[requests.Session] = None,
        base_url: str = GOOGLE_PLACES_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SEC,
    ):
        self.api_key = api_key
        self.session = session or build_session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def _require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("Missing GOOGLE_MAPS_API_KEY environment variable")
        return self.api_key

    def nearby_search(
        self,
        coordinate: Coordinate,
        radius_m: float,
        kind: Optional[PlaceKind] = None,
    ) -> List[PlaceRef]:
        params = {
            "location": f"{coordinate.latitude},{coordinate.longitude}",
            "radius": str(int(radius_m)),
            "key": self._require_api_key(),
        }
        google_type = _GOOGLE_TYPE_FOR_KIND.get(kind) if kind else None
        if google_type:
            params["type"] = google_type

        data = get_json(
            self.session,
            f"{self.base_url}/nearbysearch/json",
            service="google-places",
            params=params,
            timeout=self.timeout,
        )
        payload = parse_payload(GoogleNearbyResponse, data, "google-places")
        if payload.status == "ZERO_RESULTS":
            return []
        if payload.status != "OK":
            raise UpstreamError(
                "google-places",
                payload.error_message or f"Nearby search failed with status {payload.status}",
            )

        refs = [PlaceRef(place_id=r.place_id, name=r.name) for r in payload.results]
        self.logger.debug(
            "GooglePlacesClient.nearby_search: lat=%.6f lon=%.6f radius_m=%.0f kind=%s got %d results",
            coordinate.latitude,
            coordinate.longitude,
            radius_m,
            kind.value if kind else None,
            len(refs),
        )
        return refs

    def details(self, ref: PlaceRef, fields: Sequence[str] = DEFAULT_DETAIL_FIELDS) -> Place:
        """Resolve a nearby-search reference into a full Place with its authoritative country."""
        params = {
            "place_id": ref.place_id,
            "fields": ",".join(fields),
            "key": self._require_api_key(),
        }
        data = get_json(
            self.session,
            f"{self.base_url}/details/json",
            service="google-places",
            params=params,
            timeout=self.timeout,
        )
        payload = parse_payload(GoogleDetailsResponse, data, "google-places")
        if payload.status != "OK" or payload.result is None:
            raise UpstreamError(
                "google-places",
                payload.error_message or f"Place details failed with status {payload.status}",
            )

        details = payload.result
        location = details.geometry.location
        return Place(
            name=details.name,
            coordinate=Coordinate(location.lat, location.lng),
            country=country_from_components(details.address_components),
            kinds=kinds_from_google_types(details.types),
            place_id=ref.place_id,
        )
