"""Weather collaborator backed by the Open-Meteo forecast API."""

from __future__ import annotations

import logging
from typing import List, Optional

import requests

from domain.models import Coordinate, CurrentWeather, DailyForecast, Forecast
from services.http_client import DEFAULT_TIMEOUT_SEC, build_session, get_json
from services.provider_schemas import (
    OpenMeteoCurrentWeather,
    OpenMeteoDaily,
    OpenMeteoForecastResponse,
    parse_payload,
)

OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
DAILY_FIELDS = "temperature_2m_max,temperature_2m_min,precipitation_sum"

logger = logging.getLogger(__name__)


def _at(values: List[Optional[float]], idx: int) -> Optional[float]:
    return values[idx] if idx < len(values) else None


def _to_current(raw: Optional[OpenMeteoCurrentWeather]) -> Optional[CurrentWeather]:
    if raw is None:
        return None
    return CurrentWeather(temperature=raw.temperature, windspeed=raw.windspeed, time=raw.time)


def _to_daily(raw: Optional[OpenMeteoDaily]) -> List[DailyForecast]:
    """Zip Open-Meteo's column arrays into rows, padding short columns with None."""
    if raw is None:
        return []
    return [
        DailyForecast(
            time=day,
            temperature_max=_at(raw.temperature_2m_max, idx),
            temperature_min=_at(raw.temperature_2m_min, idx),
            precipitation_sum=_at(raw.precipitation_sum, idx),
        )
        for idx, day in enumerate(raw.time)
    ]


class OpenMeteoWeatherClient:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = OPEN_METEO_FORECAST_URL,
        timeout: float = DEFAULT_TIMEOUT_SEC,
    ):
        self.session = session or build_session()
        self.base_url = base_url
        self.timeout = timeout

    def _fetch(self, coordinate: Coordinate, include_daily: bool) -> OpenMeteoForecastResponse:
        params = {
            "latitude": str(coordinate.latitude),
            "longitude": str(coordinate.longitude),
            "timezone": "auto",
            "current_weather": "true",
        }
        if include_daily:
            params["daily"] = DAILY_FIELDS
        data = get_json(
            self.session,
            self.base_url,
            service="open-meteo-forecast",
            params=params,
            timeout=self.timeout,
        )
        return parse_payload(OpenMeteoForecastResponse, data, "open-meteo-forecast")

    def forecast(self, coordinate: Coordinate, include_daily: bool = True) -> Forecast:
        payload = self._fetch(coordinate, include_daily)
        return Forecast(
            timezone=payload.timezone,
            current=_to_current(payload.current_weather),
            daily=_to_daily(payload.daily) if include_daily else [],
        )

    def current_weather(self, coordinate: Coordinate) -> Optional[CurrentWeather]:
        """Live reading only; None when the provider has none for this point."""
        current = _to_current(self._fetch(coordinate, include_daily=False).current_weather)
        if current is None:
            logger.debug("No current weather for %s", coordinate)
        return current
