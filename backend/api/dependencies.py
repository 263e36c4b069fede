"""
Wiring: turn environment settings into explicitly configured collaborators.

This is the only place that reads `settings`; the services themselves take
their configuration as constructor arguments.
"""
from functools import lru_cache

from domain.errors import ConfigurationError
from services.aggregation import AggregationConfig, NearbyPlacesService
from services.enrichment import EnrichmentPolicy
from services.geocoding import GeocodingClient
from services.places_client import GooglePlacesClient
from services.weather import OpenMeteoWeatherClient
from settings import Settings, settings


def build_service(cfg: Settings) -> NearbyPlacesService:
    try:
        policy = EnrichmentPolicy(cfg.NEIGHBOR_ENRICHMENT_POLICY)
    except ValueError as exc:
        raise ConfigurationError(
            f"NEIGHBOR_ENRICHMENT_POLICY must be one of "
            f"{[p.value for p in EnrichmentPolicy]}, got {cfg.NEIGHBOR_ENRICHMENT_POLICY!r}"
        ) from exc

    timeout = cfg.UPSTREAM_TIMEOUT_SECONDS
    return NearbyPlacesService(
        geocoder=GeocodingClient(user_agent=cfg.NOMINATIM_USER_AGENT, timeout=timeout),
        places=GooglePlacesClient(api_key=cfg.GOOGLE_MAPS_API_KEY, timeout=timeout),
        weather=OpenMeteoWeatherClient(timeout=timeout),
        config=AggregationConfig(
            min_population=cfg.NEIGHBOR_MIN_POPULATION,
            enrichment_policy=policy,
            max_workers=cfg.ENRICHMENT_MAX_WORKERS,
            fan_out_timeout_sec=cfg.ENRICHMENT_TIMEOUT_SECONDS,
            reverse_lookup_enabled=cfg.REVERSE_LOOKUP_ENABLED,
        ),
    )


@lru_cache(maxsize=1)
def get_nearby_service() -> NearbyPlacesService:
    """FastAPI dependency returning the process-wide service."""
    return build_service(settings)
