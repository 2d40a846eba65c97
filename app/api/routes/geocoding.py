# path: clean-air-api/app/api/routes/geocoding.py

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from app.api.deps import get_geocoding_service
from app.models.geocoding_models import Location, LocationSearchResult
from app.services.geocoding import GeocodingError, GeocodingService

router = APIRouter(prefix="/api/geocoding", tags=["geocoding"])


@router.get("/search", response_model=LocationSearchResult)
async def search(query: str = Query(default=""),
                 service: GeocodingService = Depends(get_geocoding_service)):
    if not query.strip():
        raise HTTPException(status_code=400, detail="Query parameter is required")
    return await service.search_location(query.strip())


@router.get("/postcode/{postcode}", response_model=Location)
async def postcode(postcode: str, service: GeocodingService = Depends(get_geocoding_service)):
    try:
        return await service.get_coordinates_from_postcode(postcode)
    except GeocodingError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/reverse/{lat}/{lon}", response_model=Location)
async def reverse(lat: float = Path(ge=-90, le=90), lon: float = Path(ge=-180, le=180),
                  service: GeocodingService = Depends(get_geocoding_service)):
    try:
        return await service.reverse_geocode(lat, lon)
    except GeocodingError:
        raise HTTPException(status_code=500, detail="Failed to reverse geocode coordinates")
