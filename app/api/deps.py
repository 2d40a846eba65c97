# path: clean-air-api/app/api/deps.py

from __future__ import annotations

from fastapi import Request

from app.config import Settings
from app.services.air_quality import AirQualityService
from app.services.clean_routes import CleanRouteService
from app.services.exposure import ExposureScorer
from app.services.geocoding import GeocodingService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_clean_route_service(request: Request) -> CleanRouteService:
    return request.app.state.clean_routes


def get_exposure_scorer(request: Request) -> ExposureScorer:
    return request.app.state.clean_routes.scorer


def get_air_quality_service(request: Request) -> AirQualityService:
    return request.app.state.air_quality


def get_geocoding_service(request: Request) -> GeocodingService:
    return request.app.state.geocoding
