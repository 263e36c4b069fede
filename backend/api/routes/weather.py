"""
Weather and nearby-places API routes.

Handlers are plain `def`: the upstream clients block, so FastAPI runs them on
its thread pool.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from api.dependencies import get_nearby_service
from domain.errors import ConfigurationError, InputValidationError, UpstreamError
from domain.models import CurrentWeather, DailyForecast, EnrichedPlace, Place, RankedPlace
from services.aggregation import NearbyPlacesService

router = APIRouter()


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlaceResponse(CamelModel):
    name: str
    country: str
    latitude: float
    longitude: float
    timezone: Optional[str] = None
    population: Optional[int] = None


class RankedPlaceResponse(PlaceResponse):
    distance_km: float


class CurrentWeatherResponse(CamelModel):
    temperature: float
    windspeed: float
    time: str


class DailyForecastResponse(CamelModel):
    time: str
    temperature_max: Optional[float] = None
    temperature_min: Optional[float] = None
    precipitation_sum: Optional[float] = None


class NeighborResponse(PlaceResponse):
    distance_km: Optional[float] = None
    current: Optional[CurrentWeatherResponse] = None


class WeatherBundleResponse(CamelModel):
    latitude: float
    longitude: float
    timezone: Optional[str] = None
    current: Optional[CurrentWeatherResponse] = None
    daily: List[DailyForecastResponse]
    nearby: List[NeighborResponse]
    place: Optional[PlaceResponse] = None


class PlaceListResponse(CamelModel):
    results: List[PlaceResponse]


class RankedPlaceListResponse(CamelModel):
    results: List[RankedPlaceResponse]


def place_to_response(place: Place) -> PlaceResponse:
    return PlaceResponse(
        name=place.name,
        country=place.country,
        latitude=place.latitude,
        longitude=place.longitude,
        timezone=place.timezone,
        population=place.population,
    )


def ranked_to_response(ranked: RankedPlace) -> RankedPlaceResponse:
    return RankedPlaceResponse(
        **place_to_response(ranked.place).model_dump(),
        distance_km=ranked.distance_km,
    )


def current_to_response(current: Optional[CurrentWeather]) -> Optional[CurrentWeatherResponse]:
    if current is None:
        return None
    return CurrentWeatherResponse(temperature=current.temperature, windspeed=current.windspeed, time=current.time)


def daily_to_response(day: DailyForecast) -> DailyForecastResponse:
    return DailyForecastResponse(
        time=day.time,
        temperature_max=day.temperature_max,
        temperature_min=day.temperature_min,
        precipitation_sum=day.precipitation_sum,
    )


def neighbor_to_response(neighbor: EnrichedPlace) -> NeighborResponse:
    return NeighborResponse(
        **place_to_response(neighbor.place).model_dump(),
        distance_km=neighbor.distance_km,
        current=current_to_response(neighbor.current),
    )


def _upstream_failure(detail: str) -> HTTPException:
    # The upstream message stays in the logs; clients only see `detail`.
    return HTTPException(status_code=502, detail=detail)


@router.get("/search", response_model=PlaceListResponse)
def search(query: Optional[str] = None, service: NearbyPlacesService = Depends(get_nearby_service)):
    """Forward-geocode a place name."""
    try:
        places = service.search_by_name(query)
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except UpstreamError:
        raise _upstream_failure("Failed to search locations")
    return PlaceListResponse(results=[place_to_response(p) for p in places])


@router.get("/weather", response_model=WeatherBundleResponse)
def weather(
    lat: Optional[str] = None,
    lon: Optional[str] = None,
    service: NearbyPlacesService = Depends(get_nearby_service),
):
    """Current weather, daily forecast and the closest neighboring cities with live weather."""
    try:
        bundle = service.weather_bundle(lat, lon)
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except UpstreamError:
        raise _upstream_failure("Failed to load weather data")
    forecast = bundle.forecast
    return WeatherBundleResponse(
        latitude=bundle.origin.latitude,
        longitude=bundle.origin.longitude,
        timezone=forecast.timezone,
        current=current_to_response(forecast.current),
        daily=[daily_to_response(d) for d in forecast.daily],
        nearby=[neighbor_to_response(n) for n in bundle.neighbors],
        place=place_to_response(bundle.place) if bundle.place else None,
    )


@router.get("/country-cities", response_model=RankedPlaceListResponse)
def country_cities(
    lat: Optional[str] = None,
    lon: Optional[str] = None,
    service: NearbyPlacesService = Depends(get_nearby_service),
):
    try:
        results = service.country_cities(lat, lon)
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except (UpstreamError, ConfigurationError):
        raise _upstream_failure("Failed to load cities for this country")
    return RankedPlaceListResponse(results=[ranked_to_response(r) for r in results])


@router.get("/nearby-search", response_model=RankedPlaceListResponse)
def nearby_search(
    lat: Optional[str] = None,
    lon: Optional[str] = None,
    country: Optional[str] = None,
    query: Optional[str] = None,
    service: NearbyPlacesService = Depends(get_nearby_service),
):
    """Same-country places matching `query`, within 800 km of the origin."""
    try:
        results = service.nearby_search(lat, lon, country, query)
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except UpstreamError:
        raise _upstream_failure("Failed to search nearby cities")
    return RankedPlaceListResponse(results=[ranked_to_response(r) for r in results])
