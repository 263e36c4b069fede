from unittest.mock import MagicMock

import pytest

from domain.errors import UpstreamError
from domain.models import Coordinate, CurrentWeather
from services.weather import OpenMeteoWeatherClient


class DummyResponse:
    def __init__(self, json_data, status_code=200):
        self._json = json_data
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self.text = "upstream said no"

    def json(self):
        return self._json


FORECAST = {
    "latitude": 37.55,
    "longitude": 127.0,
    "timezone": "Asia/Seoul",
    "current_weather": {"temperature": 14.2, "windspeed": 7.9, "winddirection": 250, "time": "2026-10-19T14:00"},
    "daily": {
        "time": ["2026-10-19", "2026-10-20"],
        "temperature_2m_max": [18.1, 17.4],
        "temperature_2m_min": [9.0],
        "precipitation_sum": [0.0, None],
    },
}


def _client(payload, status_code=200):
    session = MagicMock()
    session.get.return_value = DummyResponse(payload, status_code)
    return OpenMeteoWeatherClient(session=session, timeout=2.5), session


def test_forecast_maps_current_and_daily_rows():
    client, session = _client(FORECAST)
    forecast = client.forecast(Coordinate(37.5665, 126.978))

    assert forecast.timezone == "Asia/Seoul"
    assert forecast.current == CurrentWeather(temperature=14.2, windspeed=7.9, time="2026-10-19T14:00")
    assert [d.time for d in forecast.daily] == ["2026-10-19", "2026-10-20"]
    assert forecast.daily[1].temperature_max == 17.4
    # Short or null columns become None rather than failing.
    assert forecast.daily[1].temperature_min is None
    assert forecast.daily[1].precipitation_sum is None

    params = session.get.call_args.kwargs["params"]
    assert params["current_weather"] == "true"
    assert params["timezone"] == "auto"
    assert params["daily"] == "temperature_2m_max,temperature_2m_min,precipitation_sum"
    assert "hourly" not in params
    assert session.get.call_args.kwargs["timeout"] == 2.5


def test_forecast_without_current_weather():
    client, _ = _client({"timezone": "UTC"})
    forecast = client.forecast(Coordinate(0.0, 0.0))
    assert forecast.current is None
    assert forecast.daily == []


def test_current_weather_skips_daily_fields():
    client, session = _client(FORECAST)
    current = client.current_weather(Coordinate(37.5665, 126.978))
    assert current.temperature == 14.2
    params = session.get.call_args.kwargs["params"]
    assert "daily" not in params
    assert "hourly" not in params


def test_current_weather_none_when_missing():
    client, _ = _client({"timezone": "UTC"})
    assert client.current_weather(Coordinate(0.0, 0.0)) is None


def test_forecast_http_error_is_upstream_error():
    client, _ = _client({"reason": "bad"}, status_code=400)
    with pytest.raises(UpstreamError) as excinfo:
        client.forecast(Coordinate(0.0, 0.0))
    assert excinfo.value.service == "open-meteo-forecast"
    assert excinfo.value.status_code == 400


def test_malformed_current_weather_is_upstream_error():
    client, _ = _client({"current_weather": {"temperature": "warm"}})
    with pytest.raises(UpstreamError):
        client.forecast(Coordinate(0.0, 0.0))
