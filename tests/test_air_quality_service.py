# path: clean-air-api/tests/test_air_quality_service.py

"""
Tests for the OpenWeatherMap air quality client.

Tests cover:
- Payload formatting: descriptions, pollutant categories, timestamps
- Errors: missing key, HTTP failures, empty and malformed payloads
- Simulated history: spacing, ordering, bounds
- UK regions and pollution rankings
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from app.config import Settings
from app.services.air_quality import (
    UK_REGIONS,
    AirQualityError,
    AirQualityService,
    categorize_pollution_level,
    format_air_quality_report,
    generate_historical_data,
)


def owm_body(lat, lon, aqi=2, pm2_5=10.0, dt=1700000000):
    return {
        "coord": {"lon": lon, "lat": lat},
        "list": [{
            "dt": dt,
            "main": {"aqi": aqi},
            "components": {
                "co": 201.94, "no": 0.02, "no2": 12.5, "o3": 68.66,
                "so2": 0.64, "pm2_5": pm2_5, "pm10": 14.1, "nh3": 0.12,
            },
        }],
    }


@pytest.fixture
def settings():
    return Settings(openweather_api_key="owm-key", osrm_base_url=None)


class TestFormatting:

    def test_report(self):
        report = format_air_quality_report(owm_body(51.5, -0.1, aqi=2, pm2_5=10.0))
        item = report.latest()
        assert item.aqi == 2
        assert item.aqi_description == "Fair"
        assert item.timestamp == "2023-11-14T22:13:20Z"
        assert item.components.pm2_5 == 10.0
        assert item.pollutants["PM2.5"].category == "low"
        assert item.pollutants["NO₂"].category == "low"
        assert item.pollutants["O₃"].unit == "μg/m³"

    def test_malformed_payload(self):
        with pytest.raises(AirQualityError):
            format_air_quality_report({"list": [{"dt": 1}]})

    def test_out_of_range_index(self):
        with pytest.raises(AirQualityError):
            format_air_quality_report(owm_body(51.5, -0.1, aqi=9))

    @pytest.mark.parametrize("pollutant, value, expected", [
        ("pm2_5", 15, "low"), ("pm2_5", 15.1, "moderate"), ("pm2_5", 35, "moderate"),
        ("pm2_5", 35.1, "high"), ("aqi", 2, "low"), ("aqi", 3, "moderate"), ("aqi", 4, "high"),
        ("co", 1, "unknown"), ("no2", None, "unknown"),
    ])
    def test_categories(self, pollutant, value, expected):
        assert categorize_pollution_level(pollutant, value) == expected


class TestAirQualityService:
    """Test suite for AirQualityService."""

    def test_current(self, settings, make_client, rng):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=owm_body(51.5, -0.1))

        service = AirQualityService(make_client(handler), settings, rng)
        report = asyncio.run(service.get_current_air_quality(51.5, -0.1))
        assert report.coord.lat == 51.5
        assert seen[0].url.path.endswith("/air_pollution")
        assert seen[0].url.params["appid"] == "owm-key"

    def test_forecast_path(self, settings, make_client, rng):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=owm_body(51.5, -0.1))

        service = AirQualityService(make_client(handler), settings, rng)
        asyncio.run(service.get_air_quality_forecast(51.5, -0.1))
        assert seen[0].url.path.endswith("/air_pollution/forecast")

    def test_missing_key(self, bare_settings, offline_client, rng):
        service = AirQualityService(offline_client, bare_settings, rng)
        with pytest.raises(AirQualityError, match="OPENWEATHER_API_KEY"):
            asyncio.run(service.get_current_air_quality(51.5, -0.1))

    def test_http_failure(self, settings, offline_client, rng):
        service = AirQualityService(offline_client, settings, rng)
        with pytest.raises(AirQualityError, match="HTTP 503"):
            asyncio.run(service.get_current_air_quality(51.5, -0.1))

    @pytest.mark.parametrize("error", [httpx.ReadTimeout, httpx.ConnectError])
    def test_transport_failure(self, settings, make_client, rng, error):
        def handler(request):
            raise error("upstream unreachable", request=request)

        service = AirQualityService(make_client(handler), settings, rng)
        with pytest.raises(AirQualityError, match="request failed"):
            asyncio.run(service.get_current_air_quality(51.5, -0.1))

    def test_empty_list(self, settings, make_client, rng):
        client = make_client(lambda request: httpx.Response(200, json={"coord": None, "list": []}))
        service = AirQualityService(client, settings, rng)
        with pytest.raises(AirQualityError):
            asyncio.run(service.get_current_air_quality(51.5, -0.1))

    # ==================== History ====================

    def test_history_spacing_and_order(self, bare_settings, offline_client, rng):
        """Without a key the history is built from fallback conditions."""
        service = AirQualityService(offline_client, bare_settings, rng)
        end = datetime(2024, 1, 3, tzinfo=timezone.utc)
        start = end - timedelta(days=2)
        history = asyncio.run(service.get_historical_air_quality(51.5, -0.1, start, end))

        stamps = [p.timestamp for p in history.items]
        assert len(stamps) == 9
        assert stamps == sorted(stamps)
        assert stamps[-1] == int(end.timestamp())
        assert all(b - a == 6 * 3600 for a, b in zip(stamps, stamps[1:]))
        assert all(1 <= p.aqi <= 5 for p in history.items)

    def test_history_accepts_naive_datetimes(self, bare_settings, offline_client, rng):
        service = AirQualityService(offline_client, bare_settings, rng)
        history = asyncio.run(service.get_historical_air_quality(
            51.5, -0.1, datetime(2024, 1, 1), datetime(2024, 1, 1, 12)))
        assert len(history.items) == 3

    def test_history_rejects_reversed_range(self, bare_settings, offline_client, rng):
        service = AirQualityService(offline_client, bare_settings, rng)
        with pytest.raises(ValueError):
            asyncio.run(service.get_historical_air_quality(
                51.5, -0.1, datetime(2024, 2, 1), datetime(2024, 1, 1)))

    def test_history_is_reproducible(self):
        end = datetime(2024, 6, 1, tzinfo=timezone.utc)
        start = end - timedelta(days=1)
        base = {"pm2_5": 12.0}
        first = generate_historical_data(2, base, start, end, random.Random(5))
        second = generate_historical_data(2, base, start, end, random.Random(5))
        assert first == second

    # ==================== Regions and rankings ====================

    def test_regions_report_failures_per_city(self, settings, make_client, rng):
        def handler(request):
            lat = float(request.url.params["lat"])
            if lat == 51.5074:
                return httpx.Response(500)
            return httpx.Response(200, json=owm_body(lat, float(request.url.params["lon"])))

        service = AirQualityService(make_client(handler), settings, rng)
        regions = asyncio.run(service.get_uk_regions_air_quality())
        assert [r.name for r in regions] == [r.name for r in UK_REGIONS]
        london = regions[0]
        assert london.air_quality is None
        assert "500" in london.error
        assert all(r.air_quality is not None for r in regions[1:])

    def test_rankings_by_pm25(self, settings, make_client, rng):
        """PM2.5 equal to latitude: Cardiff is cleanest, Edinburgh dirtiest."""
        def handler(request):
            lat = float(request.url.params["lat"])
            return httpx.Response(200, json=owm_body(lat, float(request.url.params["lon"]), pm2_5=lat))

        service = AirQualityService(make_client(handler), settings, rng)
        rankings = asyncio.run(service.get_pollution_rankings("pm2_5"))
        assert rankings.pollutant == "pm2_5"
        assert len(rankings.all) == len(UK_REGIONS)
        assert rankings.best_air_quality[0].name == "Cardiff"
        assert rankings.areas_needing_attention[-1].name == "Edinburgh"
        assert len(rankings.high) == len(UK_REGIONS)
        assert rankings.low == [] and rankings.moderate == []

    def test_rankings_unknown_pollutant(self, settings, offline_client, rng):
        service = AirQualityService(offline_client, settings, rng)
        with pytest.raises(ValueError):
            asyncio.run(service.get_pollution_rankings("radon"))
