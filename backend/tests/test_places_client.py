from unittest.mock import MagicMock

import pytest

from domain.errors import ConfigurationError, UpstreamError
from domain.models import Coordinate, PlaceKind, PlaceRef
from services.places_client import (
    GooglePlacesClient,
    country_from_components,
    kinds_from_google_types,
)


class DummyResponse:
    def __init__(self, json_data, status_code=200):
        self._json = json_data
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self.text = str(json_data)

    def json(self):
        return self._json


def _client(*payloads):
    session = MagicMock()
    session.get.side_effect = [DummyResponse(p) for p in payloads]
    return GooglePlacesClient(api_key="test-key", session=session), session


class TestCountryFromComponents:
    def test_prefers_long_name(self):
        components = [{"long_name": "Korea", "short_name": "KR", "types": ["country"]}]
        assert country_from_components(components) == "Korea"

    def test_falls_back_to_short_name(self):
        components = [{"short_name": "FR", "types": ["country"]}]
        assert country_from_components(components) == "FR"

    def test_unknown_without_country_component(self):
        components = [{"long_name": "Seoul", "types": ["locality"]}]
        assert country_from_components(components) == "Unknown"
        assert country_from_components([]) == "Unknown"


def test_kinds_from_google_types():
    kinds = kinds_from_google_types(["locality", "political", "administrative_area_level_2", "point_of_interest"])
    assert kinds == (
        PlaceKind.LOCALITY,
        PlaceKind.POLITICAL,
        PlaceKind.ADMINISTRATIVE_AREA,
        PlaceKind.OTHER,
    )


def test_nearby_search_sends_locality_filter_and_returns_refs():
    client, session = _client(
        {
            "status": "OK",
            "results": [
                {"place_id": "p1", "name": "Incheon"},
                {"place_id": "p2", "name": "Suwon"},
            ],
        }
    )
    refs = client.nearby_search(Coordinate(37.5665, 126.978), 50_000, PlaceKind.LOCALITY)
    assert refs == [PlaceRef("p1", "Incheon"), PlaceRef("p2", "Suwon")]

    url = session.get.call_args.args[0]
    params = session.get.call_args.kwargs["params"]
    assert url.endswith("/nearbysearch/json")
    assert params["type"] == "locality"
    assert params["radius"] == "50000"
    assert params["location"] == "37.5665,126.978"
    assert session.get.call_args.kwargs["timeout"] == client.timeout


def test_nearby_search_zero_results_is_empty():
    client, _ = _client({"status": "ZERO_RESULTS", "results": []})
    assert client.nearby_search(Coordinate(0.0, 0.0), 50_000, PlaceKind.LOCALITY) == []


def test_nearby_search_non_ok_status_raises():
    client, _ = _client({"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."})
    with pytest.raises(UpstreamError, match="API key is invalid"):
        client.nearby_search(Coordinate(0.0, 0.0), 50_000)


def test_missing_api_key_raises_before_any_request():
    session = MagicMock()
    client = GooglePlacesClient(api_key=None, session=session)
    with pytest.raises(ConfigurationError):
        client.nearby_search(Coordinate(0.0, 0.0), 50_000)
    session.get.assert_not_called()


def test_details_resolves_country_and_kinds():
    client, session = _client(
        {
            "status": "OK",
            "result": {
                "name": "Incheon",
                "geometry": {"location": {"lat": 37.4563, "lng": 126.7052}},
                "address_components": [
                    {"long_name": "Incheon", "short_name": "Incheon", "types": ["locality", "political"]},
                    {"long_name": "South Korea", "short_name": "KR", "types": ["country", "political"]},
                ],
                "types": ["locality", "political"],
            },
        }
    )
    place = client.details(PlaceRef("p1"))
    assert place.name == "Incheon"
    assert place.country == "South Korea"
    assert place.coordinate == Coordinate(37.4563, 126.7052)
    assert place.has_kind(PlaceKind.LOCALITY)
    assert place.place_id == "p1"
    params = session.get.call_args.kwargs["params"]
    assert params["fields"] == "address_component,geometry,name,types"


def test_details_rejects_malformed_payload():
    client, _ = _client({"status": "OK", "result": {"name": "No geometry"}})
    with pytest.raises(UpstreamError):
        client.details(PlaceRef("p1"))


def test_details_non_ok_status_raises():
    client, _ = _client({"status": "NOT_FOUND"})
    with pytest.raises(UpstreamError, match="NOT_FOUND"):
        client.details(PlaceRef("missing"))
