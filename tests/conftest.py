# path: clean-air-api/tests/conftest.py

"""
Pytest configuration for clean-air-api tests.

Registers custom markers and provides shared fixtures: seeded randomness,
settings without credentials and httpx clients backed by MockTransport.
"""

import random

import httpx
import pytest

from app.config import Settings
from app.models.route_models import Coordinate


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "api: exercises the FastAPI application through TestClient"
    )


@pytest.fixture
def rng():
    """Seeded random source so jitter and fallback values are reproducible."""
    return random.Random(42)


@pytest.fixture
def bare_settings():
    """No credentials and no community router: every real provider is skipped."""
    return Settings(osrm_base_url=None)


@pytest.fixture
def make_client():
    """Factory for an AsyncClient whose requests are answered by `handler`."""
    def _make(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return _make


@pytest.fixture
def offline_client(make_client):
    """AsyncClient that fails every request with 503."""
    return make_client(lambda request: httpx.Response(503, json={"message": "offline"}))


@pytest.fixture
def london():
    return Coordinate(lat=51.5074, lon=-0.1278)


@pytest.fixture
def manchester():
    return Coordinate(lat=53.4808, lon=-2.2426)
