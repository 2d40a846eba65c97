# path: clean-air-api/app/api/routes/routes.py

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.api.deps import get_clean_route_service, get_exposure_scorer, get_settings
from app.config import Settings
from app.models.route_models import (
    CleanRoutesRequest,
    CleanRoutesResponse,
    Coordinate,
    HealthZonesResponse,
    RealTimeConditionsRequest,
    RealTimeConditionsResponse,
    RouteAirQualityRequest,
    RouteAirQualityResponse,
)
from app.services.area_conditions import DEFAULT_ZONE_RADIUS_M, health_zones, real_time_conditions
from app.services.clean_routes import CleanRouteService
from app.services.exposure import ExposureScorer

router = APIRouter(prefix="/api/routing", tags=["routing"])


@router.post("/calculate-routes", response_model=CleanRoutesResponse)
async def calculate_routes(
    body: CleanRoutesRequest,
    service: CleanRouteService = Depends(get_clean_route_service),
):
    result = await service.calculate_clean_routes(body.origin, body.destination, body.options)
    if not result.success:
        return JSONResponse(status_code=500, content=result.model_dump(mode="json", by_alias=True))
    return result


@router.post("/route-air-quality", response_model=RouteAirQualityResponse)
async def route_air_quality(
    body: RouteAirQualityRequest,
    service: CleanRouteService = Depends(get_clean_route_service),
) -> RouteAirQualityResponse:
    return await service.route_air_quality(body.coordinates, body.pollution_threshold)


@router.get("/health-zones", response_model=HealthZonesResponse)
def get_health_zones(
    lat: float = Query(ge=-90, le=90),
    lon: float = Query(ge=-180, le=180),
    radius: float = Query(default=DEFAULT_ZONE_RADIUS_M, gt=0),
) -> HealthZonesResponse:
    return HealthZonesResponse(zones=health_zones(Coordinate(lat=lat, lon=lon), radius))


@router.post("/real-time-conditions", response_model=RealTimeConditionsResponse)
async def get_real_time_conditions(
    body: RealTimeConditionsRequest,
    scorer: ExposureScorer = Depends(get_exposure_scorer),
) -> RealTimeConditionsResponse:
    return RealTimeConditionsResponse(conditions=await real_time_conditions(scorer, body.bounds))


@router.get("/test")
def routing_status(settings: Settings = Depends(get_settings)) -> dict:
    return {
        "success": True,
        "message": "Routing API is working",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": settings.provider_status(),
    }
