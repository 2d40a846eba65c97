# path: clean-air-api/app/models/geocoding_models.py

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from app.models.route_models import CamelModel


class Location(CamelModel):
    name: str
    country: str = "GB"
    state: Optional[str] = None
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    display_name: Optional[str] = None
    postcode: Optional[str] = None


class LocationSearchResult(CamelModel):
    results: List[Location] = Field(default_factory=list)
    source: str
