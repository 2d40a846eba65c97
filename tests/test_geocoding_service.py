# path: clean-air-api/tests/test_geocoding_service.py

"""
Tests for the geocoding client.

Tests cover:
- Place search: OpenWeatherMap first, Mapbox fallback, no provider
- Postcode lookup and cleaning
- Reverse geocoding failures
- Place name parsing helpers
"""

import asyncio

import httpx
import pytest

from app.config import Settings
from app.services.geocoding import (
    GeocodingError,
    GeocodingService,
    clean_postcode,
    extract_postcode,
    extract_region,
    mapbox_location,
)


OWM_LONDON = [{"name": "London", "lat": 51.5073, "lon": -0.1276, "country": "GB", "state": "England"}]

MAPBOX_FEATURE = {
    "text": "Westminster",
    "place_name": "Westminster, London, SW1A 2AA, United Kingdom",
    "center": [-0.1357, 51.4975],
}


def router(owm=None, mapbox=None, seen=None):
    """Routes OpenWeatherMap and Mapbox requests to canned bodies; None answers 404."""
    def handler(request):
        if seen is not None:
            seen.append(request)
        body = mapbox if request.url.host == "api.mapbox.com" else owm
        if body is None:
            return httpx.Response(404, json={"message": "not found"})
        return httpx.Response(200, json=body)
    return handler


class TestHelpers:

    def test_clean_postcode(self):
        assert clean_postcode("  sw1a   1aa ") == "SW1A 1AA"

    def test_extract_postcode(self):
        assert extract_postcode(MAPBOX_FEATURE["place_name"]) == "SW1A 2AA"
        assert extract_postcode("Manchester, England, United Kingdom") is None

    def test_extract_region(self):
        assert extract_region("Leeds, West Yorkshire, United Kingdom") == "West Yorkshire"
        assert extract_region("Leeds, United Kingdom") is None

    def test_mapbox_centre_is_lon_lat(self):
        location = mapbox_location(MAPBOX_FEATURE)
        assert (location.lat, location.lon) == (51.4975, -0.1357)
        assert location.name == "Westminster"


class TestGeocodingService:
    """Test suite for GeocodingService."""

    @pytest.fixture
    def settings(self):
        return Settings(openweather_api_key="owm-key", mapbox_access_token="mb-token", osrm_base_url=None)

    def test_search_openweathermap(self, settings, make_client):
        seen = []
        service = GeocodingService(make_client(router(owm=OWM_LONDON, seen=seen)), settings)
        result = asyncio.run(service.search_location("London"))

        assert result.source == "openweathermap"
        assert result.results[0].display_name == "London, England, GB"
        assert seen[0].url.path.endswith("/geo/1.0/direct")
        assert seen[0].url.params["q"] == "London,GB"

    def test_search_falls_back_to_mapbox(self, settings, make_client):
        client = make_client(router(owm=[], mapbox={"features": [MAPBOX_FEATURE]}))
        result = asyncio.run(GeocodingService(client, settings).search_location("Westminster"))
        assert result.source == "mapbox"
        assert result.results[0].postcode == "SW1A 2AA"

    def test_search_without_providers(self, bare_settings, offline_client):
        result = asyncio.run(GeocodingService(offline_client, bare_settings).search_location("London"))
        assert result.source == "none"
        assert result.results == []

    def test_postcode_from_openweathermap(self, settings, make_client):
        body = {"zip": "SW1A 1AA", "name": "London", "lat": 51.501, "lon": -0.1416, "country": "GB"}
        service = GeocodingService(make_client(router(owm=body)), settings)
        location = asyncio.run(service.get_coordinates_from_postcode(" sw1a  1aa"))
        assert location.postcode == "SW1A 1AA"
        assert (location.lat, location.lon) == (51.501, -0.1416)

    def test_postcode_from_mapbox(self, settings, make_client):
        service = GeocodingService(make_client(router(mapbox={"features": [MAPBOX_FEATURE]})), settings)
        location = asyncio.run(service.get_coordinates_from_postcode("sw1a 2aa"))
        assert location.postcode == "SW1A 2AA"
        assert location.lat == 51.4975

    def test_unknown_postcode(self, settings, make_client):
        service = GeocodingService(make_client(router(mapbox={"features": []})), settings)
        with pytest.raises(GeocodingError, match="ZZ9 9ZZ"):
            asyncio.run(service.get_coordinates_from_postcode("zz9 9zz"))

    def test_reverse_geocode(self, settings, make_client):
        service = GeocodingService(make_client(router(owm=OWM_LONDON)), settings)
        location = asyncio.run(service.reverse_geocode(51.5073, -0.1276))
        assert location.name == "London"

    def test_reverse_geocode_not_found(self, bare_settings, offline_client):
        with pytest.raises(GeocodingError):
            asyncio.run(GeocodingService(offline_client, bare_settings).reverse_geocode(51.5, -0.1))

    @pytest.mark.parametrize("payload", [["x"], "x", 7])
    def test_unexpected_mapbox_payload(self, settings, make_client, payload):
        """A Mapbox answer that is not an object reads as no match."""
        service = GeocodingService(make_client(router(owm=[], mapbox=payload)), settings)
        result = asyncio.run(service.search_location("Westminster"))
        assert result.source == "mapbox"
        assert result.results == []
        with pytest.raises(GeocodingError, match="SW1A 2AA"):
            asyncio.run(service.get_coordinates_from_postcode("sw1a 2aa"))
        with pytest.raises(GeocodingError, match="Location not found"):
            asyncio.run(service.reverse_geocode(51.5, -0.1))
