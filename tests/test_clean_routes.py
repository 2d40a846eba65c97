# path: clean-air-api/tests/test_clean_routes.py

"""
Tests for the clean-route orchestrator.

Tests cover:
- No routing provider configured: synthetic routes, default exposure
- Truncation and cleanest route selection
- Total failure reported as an unsuccessful result
- Air quality along an arbitrary coordinate list
"""

import asyncio

import httpx
import pytest

from app.config import Settings
from app.models.route_models import (
    Coordinate,
    HealthRisk,
    Provider,
    RouteCandidate,
    RouteOptions,
    Vehicle,
)
from app.services.air_quality import AirQualityService, format_air_quality_report
from app.services.clean_routes import CleanRouteService
from app.services.exposure import ExposureScorer
from app.services.route_providers import RouteAcquisition
from app.utils.geo import haversine_m


class BrokenAcquisition:
    async def acquire_routes(self, *args, **kwargs):
        raise RuntimeError("routing exploded")


class FixedAcquisition:
    def __init__(self, routes):
        self.routes = routes

    async def acquire_routes(self, *args, **kwargs):
        return self.routes


class PerLatitudeAirQuality:
    """PM2.5 reading looked up by latitude."""

    def __init__(self, readings):
        self.readings = readings

    async def get_current_air_quality(self, lat, lon):
        return format_air_quality_report({
            "list": [{"dt": 1700000000, "main": {"aqi": 2}, "components": {"pm2_5": self.readings[lat]}}],
        })


def straight(route_id, lat):
    return RouteCandidate(
        id=route_id,
        provider=Provider.COMMUNITY,
        points=[Coordinate(lat=lat, lon=-0.1), Coordinate(lat=lat, lon=-0.2)],
        distance_meters=1000,
        duration_seconds=120,
    )


class TestCleanRouteService:
    """Test suite for CleanRouteService."""

    @pytest.fixture
    def offline_service(self, bare_settings, offline_client, rng):
        air_quality = AirQualityService(offline_client, bare_settings, rng)
        return CleanRouteService(
            RouteAcquisition.from_settings(bare_settings, offline_client, rng),
            ExposureScorer(air_quality, rng, bare_settings.exposure_sample_target),
        )

    # ==================== Scenarios ====================

    def test_london_to_manchester_without_providers(self, offline_service, london, manchester):
        """Synthetic routes come back scored even with every service unavailable."""
        options = RouteOptions(vehicle=Vehicle.CAR, max_alternatives=3)
        result = asyncio.run(offline_service.calculate_clean_routes(london, manchester, options))

        assert result.success is True
        assert result.error is None
        assert len(result.routes) == 3
        assert result.total_routes == 3
        straight_m = haversine_m(london, manchester)
        for route in result.routes:
            assert route.provider == Provider.SYNTHETIC
            assert 0.75 * straight_m <= route.distance_meters <= 1.25 * straight_m
            assert route.health_risk == HealthRisk.MODERATE
            assert route.average_exposure == 75.0
            assert 0 <= route.health_score <= 100
        assert result.cleanest_route.id == result.routes[0].id

    def test_max_alternatives_truncates(self, offline_service, london, manchester):
        result = asyncio.run(offline_service.calculate_clean_routes(
            london, manchester, RouteOptions(max_alternatives=2)))
        assert len(result.routes) == 2
        assert result.total_routes == 2

    def test_default_options(self, offline_service, london, manchester):
        result = asyncio.run(offline_service.calculate_clean_routes(london, manchester))
        assert result.success is True
        assert len(result.routes) == 3

    def test_cleanest_route_first(self, rng):
        routes = [straight("dirty", 51.1), straight("clean", 51.2)]
        scorer = ExposureScorer(PerLatitudeAirQuality({51.1: 200.0, 51.2: 5.0}), rng)
        service = CleanRouteService(FixedAcquisition(routes), scorer)
        origin, destination = Coordinate(lat=51.1, lon=-0.1), Coordinate(lat=51.2, lon=-0.2)

        ranked = asyncio.run(service.calculate_clean_routes(origin, destination))
        assert [r.id for r in ranked.routes] == ["clean", "dirty"]
        assert ranked.cleanest_route.id == "clean"

        unranked = asyncio.run(service.calculate_clean_routes(
            origin, destination, RouteOptions(avoid_high_pollution=False)))
        assert [r.id for r in unranked.routes] == ["dirty", "clean"]
        assert unranked.cleanest_route.id == "clean"

    # ==================== Error scenarios ====================

    def test_malformed_router_answer_still_yields_routes(self, make_client, rng, london, manchester):
        """A garbled community router reply falls back to synthetic routes, not an error."""
        settings = Settings()
        client = make_client(lambda request: httpx.Response(200, json={"code": "Ok", "routes": ["garbage"]}))
        service = CleanRouteService(
            RouteAcquisition.from_settings(settings, client, rng),
            ExposureScorer(AirQualityService(client, settings, rng), rng),
        )
        result = asyncio.run(service.calculate_clean_routes(london, manchester))
        assert result.success is True
        assert len(result.routes) == 3
        assert all(r.provider == Provider.SYNTHETIC for r in result.routes)

    def test_total_failure_is_reported(self, offline_service, london, manchester):
        service = CleanRouteService(BrokenAcquisition(), offline_service.scorer)
        result = asyncio.run(service.calculate_clean_routes(london, manchester))
        assert result.success is False
        assert result.error == "routing exploded"
        assert result.routes == []
        assert result.cleanest_route is None

    def test_route_air_quality(self, rng):
        points = [Coordinate(lat=51.1, lon=-0.1), Coordinate(lat=51.2, lon=-0.1), Coordinate(lat=51.3, lon=-0.1)]
        scorer = ExposureScorer(PerLatitudeAirQuality({51.1: 5.0, 51.2: 40.0, 51.3: 200.0}), rng)
        service = CleanRouteService(FixedAcquisition([]), scorer)

        result = asyncio.run(service.route_air_quality(points, threshold=70))
        assert [s.aqi for s in result.samples] == [25.0, 75.0, 150.0]
        assert result.average_exposure == pytest.approx(250.0 / 3)
        assert result.max_exposure == 150.0
        assert result.high_exposure_segment_count == 2
        assert result.health_risk == HealthRisk.MODERATE
