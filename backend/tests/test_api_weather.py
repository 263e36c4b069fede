from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.dependencies import get_nearby_service
from api.routes import weather as weather_router
from domain.errors import ConfigurationError, InputValidationError, UpstreamError
from domain.models import (
    Coordinate,
    CurrentWeather,
    DailyForecast,
    EnrichedPlace,
    Forecast,
    Place,
    RankedPlace,
    WeatherBundle,
)

SEOUL = Coordinate(37.5665, 126.978)
BUSAN = Place(name="Busan", coordinate=Coordinate(35.1796, 129.0756), country="South Korea", timezone="Asia/Seoul")
INCHEON = Place(name="Incheon", coordinate=Coordinate(37.4563, 126.7052), country="South Korea")


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def client(service):
    app = FastAPI()
    app.include_router(weather_router.router, prefix="/api")
    app.dependency_overrides[get_nearby_service] = lambda: service
    return TestClient(app)


def test_search_returns_places(client, service):
    service.search_by_name.return_value = [BUSAN]
    resp = client.get("/api/search", params={"query": "Busan"})
    assert resp.status_code == 200
    assert resp.json() == {
        "results": [
            {
                "name": "Busan",
                "country": "South Korea",
                "latitude": 35.1796,
                "longitude": 129.0756,
                "timezone": "Asia/Seoul",
                "population": None,
            }
        ]
    }
    service.search_by_name.assert_called_once_with("Busan")


def test_search_missing_query_is_400(client, service):
    service.search_by_name.side_effect = InputValidationError('Missing query parameter "query"')
    resp = client.get("/api/search")
    assert resp.status_code == 400
    assert resp.json()["detail"] == 'Missing query parameter "query"'


def test_search_upstream_error_is_502_with_generic_message(client, service):
    service.search_by_name.side_effect = UpstreamError("open-meteo-geocoding", "secret internals", status_code=500)
    resp = client.get("/api/search", params={"query": "Busan"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to search locations"
    assert "secret" not in resp.text


def test_weather_bundle_payload_shape(client, service):
    service.weather_bundle.return_value = WeatherBundle(
        origin=SEOUL,
        forecast=Forecast(
            timezone="Asia/Seoul",
            current=CurrentWeather(temperature=14.2, windspeed=7.9, time="2026-10-19T14:00"),
            daily=[DailyForecast(time="2026-10-19", temperature_max=18.1, temperature_min=9.0, precipitation_sum=None)],
        ),
        neighbors=[
            EnrichedPlace(place=INCHEON, current=None, distance_km=27.3),
        ],
    )
    resp = client.get("/api/weather", params={"lat": "37.5665", "lon": "126.978"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["latitude"] == 37.5665
    assert data["timezone"] == "Asia/Seoul"
    assert data["current"] == {"temperature": 14.2, "windspeed": 7.9, "time": "2026-10-19T14:00"}
    assert data["daily"][0] == {
        "time": "2026-10-19",
        "temperatureMax": 18.1,
        "temperatureMin": 9.0,
        "precipitationSum": None,
    }
    neighbor = data["nearby"][0]
    assert neighbor["name"] == "Incheon"
    assert neighbor["distanceKm"] == 27.3
    # Present and null, never omitted.
    assert "current" in neighbor and neighbor["current"] is None
    assert data["place"] is None
    service.weather_bundle.assert_called_once_with("37.5665", "126.978")


def test_weather_invalid_coordinates_is_400(client, service):
    service.weather_bundle.side_effect = InputValidationError("Missing or invalid lat/lon parameters")
    resp = client.get("/api/weather", params={"lat": "abc"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Missing or invalid lat/lon parameters"


def test_weather_upstream_error_is_502(client, service):
    service.weather_bundle.side_effect = UpstreamError("open-meteo-forecast", "boom")
    resp = client.get("/api/weather", params={"lat": "1", "lon": "2"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to load weather data"


def test_country_cities_returns_ranked(client, service):
    service.country_cities.return_value = [RankedPlace(place=INCHEON, distance_km=27.3)]
    resp = client.get("/api/country-cities", params={"lat": "37.5665", "lon": "126.978"})
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert results[0]["name"] == "Incheon"
    assert results[0]["distanceKm"] == 27.3


@pytest.mark.parametrize(
    "error",
    [UpstreamError("google-places", "REQUEST_DENIED"), ConfigurationError("Missing GOOGLE_MAPS_API_KEY")],
)
def test_country_cities_failures_are_502(client, service, error):
    service.country_cities.side_effect = error
    resp = client.get("/api/country-cities", params={"lat": "37.5665", "lon": "126.978"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to load cities for this country"


def test_nearby_search_passes_all_params(client, service):
    service.nearby_search.return_value = [RankedPlace(place=BUSAN, distance_km=325.0)]
    resp = client.get(
        "/api/nearby-search",
        params={"lat": "37.5665", "lon": "126.978", "country": "South Korea", "query": "Busan"},
    )
    assert resp.status_code == 200
    assert resp.json()["results"][0]["distanceKm"] == 325.0
    service.nearby_search.assert_called_once_with("37.5665", "126.978", "South Korea", "Busan")


def test_nearby_search_missing_params_is_400(client, service):
    service.nearby_search.side_effect = InputValidationError("Missing lat, lon, country, or query parameters")
    resp = client.get("/api/nearby-search", params={"lat": "37.5665", "lon": "126.978"})
    assert resp.status_code == 400


def test_nearby_search_upstream_error_is_502(client, service):
    service.nearby_search.side_effect = UpstreamError("open-meteo-geocoding", "down")
    resp = client.get(
        "/api/nearby-search",
        params={"lat": "37.5665", "lon": "126.978", "country": "South Korea", "query": "Busan"},
    )
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to search nearby cities"
