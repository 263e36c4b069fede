"""
Nearby-place aggregation: the pipelines behind the weather, country-cities
and nearby-search endpoints.

Each pipeline runs its stages strictly in sequence:

1. fetch raw candidates from the geocoding / places collaborator
2. (not country cities) dedupe against each other and the origin
3. rank by great-circle distance under the pipeline's distance cap and limit
4. (weather bundle only) enrich with live weather

Inputs are validated before any collaborator is called.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from domain.errors import ConfigurationError, UpstreamError
from domain.models import (
    Coordinate,
    CurrentWeather,
    EnrichedPlace,
    Forecast,
    Place,
    PlaceKind,
    PlaceRef,
    RankedPlace,
    WeatherBundle,
)
from services.candidates import (
    dedupe_places,
    filter_by_country,
    filter_by_kind,
    filter_by_population,
    rank_places,
)
from services.enrichment import (
    BatchDeadlineExceeded,
    EnrichmentPolicy,
    enrich_places,
    fan_out_ordered,
)
from services.validation import parse_coordinate, require_text

logger = logging.getLogger(__name__)

INVALID_COORDINATE_MSG = "Missing or invalid lat/lon parameters"
MISSING_QUERY_MSG = 'Missing query parameter "query"'
MISSING_NEARBY_PARAMS_MSG = "Missing lat, lon, country, or query parameters"


class Geocoder(Protocol):
    def search_by_name(self, text: str, max_count: int = 5, language: str = "en") -> List[Place]: ...

    def reverse_lookup(self, coordinate: Coordinate, max_count: int = 1, language: str = "en") -> List[Place]: ...


class PlacesProvider(Protocol):
    def nearby_search(self, coordinate: Coordinate, radius_m: float, kind: Optional[PlaceKind] = None) -> List[PlaceRef]: ...

    def details(self, ref: PlaceRef) -> Place: ...


class WeatherProvider(Protocol):
    def forecast(self, coordinate: Coordinate, include_daily: bool = True) -> Forecast: ...

    def current_weather(self, coordinate: Coordinate) -> Optional[CurrentWeather]: ...


@dataclass(frozen=True)
class AggregationConfig:
    language: str = "en"
    search_count: int = 5
    locality_radius_m: float = 50_000.0
    neighbor_kind: PlaceKind = PlaceKind.LOCALITY
    neighbor_limit: int = 3
    country_cities_limit: int = 6
    nearby_search_candidates: int = 10
    nearby_search_limit: int = 6
    nearby_search_max_km: float = 800.0
    min_population: Optional[int] = None
    enrichment_policy: EnrichmentPolicy = EnrichmentPolicy.ALL_OR_NOTHING
    max_workers: int = 8
    fan_out_timeout_sec: Optional[float] = 10.0
    reverse_lookup_enabled: bool = False


class NearbyPlacesService:
    def __init__(
        self,
        geocoder: Geocoder,
        places: PlacesProvider,
        weather: WeatherProvider,
        config: Optional[AggregationConfig] = None,
    ):
        self.geocoder = geocoder
        self.places = places
        self.weather = weather
        self.config = config or AggregationConfig()

    # -- public operations --------------------------------------------------

    def search_by_name(self, query: Optional[str]) -> List[Place]:
        text = require_text(query, MISSING_QUERY_MSG)
        try:
            return self.geocoder.search_by_name(text, self.config.search_count, self.config.language)
        except UpstreamError:
            logger.exception("Search error for %r", text)
            raise

    def weather_bundle(self, lat: object, lon: object) -> WeatherBundle:
        origin = parse_coordinate(lat, lon, INVALID_COORDINATE_MSG)
        try:
            forecast = self.weather.forecast(origin)
        except UpstreamError:
            logger.exception("Weather error at %s", origin)
            raise
        return WeatherBundle(
            origin=origin,
            forecast=forecast,
            neighbors=self.neighbors(origin),
            place=self._origin_label(origin),
        )

    def country_cities(self, lat: object, lon: object) -> List[RankedPlace]:
        origin = parse_coordinate(lat, lon, INVALID_COORDINATE_MSG)
        limit = self.config.country_cities_limit
        try:
            candidates = self._nearby_localities(origin, limit)
        except (UpstreamError, ConfigurationError):
            logger.exception("Country cities lookup failed at %s", origin)
            raise
        # Already bounded by the collaborator's search radius.
        return rank_places(candidates, origin, max_distance_km=None, limit=limit)

    def nearby_search(
        self,
        lat: object,
        lon: object,
        country: Optional[str],
        query: Optional[str],
    ) -> List[RankedPlace]:
        origin = parse_coordinate(lat, lon, MISSING_NEARBY_PARAMS_MSG)
        country_name = require_text(country, MISSING_NEARBY_PARAMS_MSG)
        text = require_text(query, MISSING_NEARBY_PARAMS_MSG)
        try:
            raw = self.geocoder.search_by_name(
                text, self.config.nearby_search_candidates, self.config.language
            )
        except UpstreamError:
            logger.exception("Nearby search error for %r in %s", text, country_name)
            raise
        same_country = filter_by_country(raw, country_name)
        deduped = dedupe_places(same_country, origin)
        return rank_places(
            deduped,
            origin,
            max_distance_km=self.config.nearby_search_max_km,
            limit=self.config.nearby_search_limit,
        )

    def neighbors(self, origin: Coordinate) -> List[EnrichedPlace]:
        """
        Closest neighboring localities with live weather, for decorating a
        weather response. Never raises for upstream trouble: the caller still
        gets its primary forecast, just with no neighbors.
        """
        limit = self.config.neighbor_limit
        try:
            candidates = self._nearby_localities(origin, limit)
        except (UpstreamError, ConfigurationError) as exc:
            logger.warning("Nearby lookup failed at %s: %s", origin, exc)
            return []
        candidates = filter_by_population(candidates, self.config.min_population)
        ranked = rank_places(dedupe_places(candidates, origin), origin, max_distance_km=None, limit=limit)
        result = enrich_places(
            ranked,
            self.weather.current_weather,
            policy=self.config.enrichment_policy,
            max_workers=self.config.max_workers,
            timeout=self.config.fan_out_timeout_sec,
        )
        return result.places

    # -- helpers ------------------------------------------------------------

    def _nearby_localities(self, origin: Coordinate, limit: int) -> List[Place]:
        """Nearby search, then a details lookup per reference for the authoritative name and country."""
        kind = self.config.neighbor_kind
        refs = self.places.nearby_search(origin, self.config.locality_radius_m, kind)
        # Over-fetch: some details may turn out not to be of the requested kind.
        refs = refs[: limit * 2]
        try:
            places: Sequence[Place] = fan_out_ordered(
                refs,
                self.places.details,
                max_workers=self.config.max_workers,
                timeout=self.config.fan_out_timeout_sec,
            )
        except BatchDeadlineExceeded as exc:
            raise UpstreamError("places", "details lookups did not finish in time") from exc
        return filter_by_kind(places, kind)

    def _origin_label(self, origin: Coordinate) -> Optional[Place]:
        if not self.config.reverse_lookup_enabled:
            return None
        try:
            matches = self.geocoder.reverse_lookup(origin, 1, self.config.language)
        except UpstreamError as exc:
            logger.warning("Reverse lookup failed at %s: %s", origin, exc)
            return None
        return matches[0] if matches else None
