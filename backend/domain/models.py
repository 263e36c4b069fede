"""
Core domain models for the nearby weather service.
These are framework-agnostic and transient: built per request from provider
output and dropped once the response is serialized.
"""
from dataclasses import dataclass, field
from enum import Enum
import math
from typing import List, Optional, Tuple

from domain.errors import InputValidationError

UNKNOWN_COUNTRY = "Unknown"


class PlaceKind(str, Enum):
    """
    Provider-neutral classification of a place.

    Provider clients translate their own type tags (e.g. Google's
    "locality") into these kinds so the ranking pipeline never depends on a
    specific provider vocabulary.
    """
    LOCALITY = "locality"
    ADMINISTRATIVE_AREA = "administrative_area"
    POLITICAL = "political"
    OTHER = "other"


@dataclass(frozen=True)
class Coordinate:
    """A validated WGS84 latitude/longitude pair in degrees."""
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        for label, value, bound in (("latitude", self.latitude, 90.0), ("longitude", self.longitude, 180.0)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InputValidationError(f"{label} must be a number")
            if not math.isfinite(value) or abs(value) > bound:
                raise InputValidationError(f"{label} out of range: {value}")


@dataclass(frozen=True)
class Place:
    """A candidate place as returned by a geocoding or places provider."""
    name: str
    coordinate: Coordinate
    country: str = UNKNOWN_COUNTRY
    timezone: Optional[str] = None
    population: Optional[int] = None
    kinds: Tuple[PlaceKind, ...] = ()
    place_id: Optional[str] = None  # provider reference, used for follow-up detail lookups

    @property
    def latitude(self) -> float:
        return self.coordinate.latitude

    @property
    def longitude(self) -> float:
        return self.coordinate.longitude

    def has_kind(self, kind: PlaceKind) -> bool:
        return kind in self.kinds


@dataclass(frozen=True)
class PlaceRef:
    """Opaque handle returned by a nearby search; resolved later via a details lookup."""
    place_id: str
    name: Optional[str] = None


@dataclass(frozen=True)
class RankedPlace:
    """A place plus its great-circle distance from the origin used to rank it."""
    place: Place
    distance_km: float


@dataclass(frozen=True)
class CurrentWeather:
    """Live reading, passed through verbatim from the weather provider."""
    temperature: float
    windspeed: float
    time: str  # observation timestamp in the provider's local-time ISO format


@dataclass(frozen=True)
class DailyForecast:
    time: str
    temperature_max: Optional[float] = None
    temperature_min: Optional[float] = None
    precipitation_sum: Optional[float] = None


@dataclass
class Forecast:
    timezone: Optional[str] = None
    current: Optional[CurrentWeather] = None
    daily: List[DailyForecast] = field(default_factory=list)


@dataclass(frozen=True)
class EnrichedPlace:
    """
    A place annotated with a live weather snapshot.

    `current` is None when the provider had no live reading; it is always
    present in serialized output.
    """
    place: Place
    current: Optional[CurrentWeather] = None
    distance_km: Optional[float] = None


@dataclass
class WeatherBundle:
    """Weather for a coordinate plus its enriched neighboring cities."""
    origin: Coordinate
    forecast: Forecast
    neighbors: List[EnrichedPlace] = field(default_factory=list)
    place: Optional[Place] = None  # reverse-geocoded label for the origin, when available
