# path: clean-air-api/app/api/routes/air_quality.py

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from app.api.deps import get_air_quality_service
from app.models.air_quality_models import (
    AirQualityReport,
    HistoricalReport,
    PollutionRankings,
    RegionAirQuality,
)
from app.services.air_quality import AirQualityError, AirQualityService

router = APIRouter(prefix="/api/air-quality", tags=["air-quality"])


@router.get("/current/{lat}/{lon}", response_model=AirQualityReport)
async def current(lat: float = Path(ge=-90, le=90), lon: float = Path(ge=-180, le=180),
                  service: AirQualityService = Depends(get_air_quality_service)):
    try:
        return await service.get_current_air_quality(lat, lon)
    except AirQualityError:
        raise HTTPException(status_code=500, detail="Failed to fetch air quality data")


@router.get("/forecast/{lat}/{lon}", response_model=AirQualityReport)
async def forecast(lat: float = Path(ge=-90, le=90), lon: float = Path(ge=-180, le=180),
                   service: AirQualityService = Depends(get_air_quality_service)):
    try:
        return await service.get_air_quality_forecast(lat, lon)
    except AirQualityError:
        raise HTTPException(status_code=500, detail="Failed to fetch air quality forecast")


@router.get("/history/{lat}/{lon}", response_model=HistoricalReport)
async def history(lat: float = Path(ge=-90, le=90), lon: float = Path(ge=-180, le=180),
                  start: Optional[datetime] = Query(default=None),
                  end: Optional[datetime] = Query(default=None),
                  service: AirQualityService = Depends(get_air_quality_service)):
    try:
        return await service.get_historical_air_quality(lat, lon, start, end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/regions", response_model=List[RegionAirQuality])
async def regions(service: AirQualityService = Depends(get_air_quality_service)):
    return await service.get_uk_regions_air_quality()


@router.get("/rankings", response_model=PollutionRankings)
async def rankings(pollutant: str = Query(default="aqi"),
                   service: AirQualityService = Depends(get_air_quality_service)):
    try:
        return await service.get_pollution_rankings(pollutant)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
