"""
Pydantic schemas for upstream provider payloads.

Only the fields we read are declared. Required fields are required: a payload
missing them fails validation and is reported as an upstream error rather
than silently turned into None.
"""
from __future__ import annotations

from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from domain.errors import UpstreamError

M = TypeVar("M", bound=BaseModel)


def parse_payload(model: Type[M], data: Any, service: str) -> M:
    """Validate `data` against `model`, converting validation failures to UpstreamError."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise UpstreamError(service, f"unexpected payload shape: {exc.error_count()} validation error(s)") from exc


# --- Open-Meteo geocoding -------------------------------------------------


class OpenMeteoLocation(BaseModel):
    name: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    country: Optional[str] = None
    timezone: Optional[str] = None
    population: Optional[int] = None
    feature_code: Optional[str] = None


class OpenMeteoSearchResponse(BaseModel):
    # The key is absent entirely when nothing matched.
    results: List[OpenMeteoLocation] = Field(default_factory=list)


# --- Open-Meteo forecast --------------------------------------------------


class OpenMeteoCurrentWeather(BaseModel):
    temperature: float
    windspeed: float
    time: str


class OpenMeteoDaily(BaseModel):
    time: List[str] = Field(default_factory=list)
    temperature_2m_max: List[Optional[float]] = Field(default_factory=list)
    temperature_2m_min: List[Optional[float]] = Field(default_factory=list)
    precipitation_sum: List[Optional[float]] = Field(default_factory=list)


class OpenMeteoForecastResponse(BaseModel):
    timezone: Optional[str] = None
    current_weather: Optional[OpenMeteoCurrentWeather] = None
    daily: Optional[OpenMeteoDaily] = None


# --- Google Places (legacy web service) -----------------------------------


class GoogleLatLng(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class GoogleGeometry(BaseModel):
    location: GoogleLatLng


class GoogleAddressComponent(BaseModel):
    long_name: Optional[str] = None
    short_name: Optional[str] = None
    types: List[str] = Field(default_factory=list)


class GoogleNearbyResult(BaseModel):
    place_id: str
    name: Optional[str] = None


class GoogleNearbyResponse(BaseModel):
    status: str
    results: List[GoogleNearbyResult] = Field(default_factory=list)
    error_message: Optional[str] = None


class GooglePlaceDetails(BaseModel):
    name: str
    geometry: GoogleGeometry
    address_components: List[GoogleAddressComponent] = Field(default_factory=list)
    types: List[str] = Field(default_factory=list)


class GoogleDetailsResponse(BaseModel):
    status: str
    result: Optional[GooglePlaceDetails] = None
    error_message: Optional[str] = None


# --- Nominatim reverse ----------------------------------------------------


class NominatimReverseResponse(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    name: Optional[str] = None
    display_name: Optional[str] = None
    place_id: Optional[int] = None
    address: dict = Field(default_factory=dict)
    extratags: Optional[dict] = None

    @field_validator("address", mode="before")
    @classmethod
    def _none_address(cls, value: Any) -> Any:
        return value or {}
