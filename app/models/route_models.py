# path: clean-air-api/app/models/route_models.py

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # snake_case in Python, camelCase on the wire; requests may use either.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Provider(str, Enum):
    PRIMARY = "graphhopper"
    SECONDARY = "openrouteservice"
    COMMUNITY = "osrm"
    SYNTHETIC = "synthetic"


class Archetype(str, Enum):
    DIRECT = "direct"
    SCENIC = "scenic"
    HIGHWAY = "highway"


class Vehicle(str, Enum):
    CAR = "car"
    BIKE = "bike"
    FOOT = "foot"


class HealthRisk(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"


class Coordinate(CamelModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class Instruction(CamelModel):
    text: str
    distance_offset_meters: float = 0.0


class RouteCandidate(CamelModel):
    id: str
    name: Optional[str] = None
    provider: Provider
    archetype: Optional[Archetype] = None
    points: List[Coordinate]
    distance_meters: float = Field(ge=0)
    duration_seconds: float = Field(ge=0)
    instructions: List[Instruction] = Field(default_factory=list)

    @field_validator("points")
    @classmethod
    def validate_points(cls, points: List[Coordinate]):
        if len(points) < 2:
            raise ValueError("Route path must contain at least 2 points")
        return points

    @model_validator(mode="after")
    def archetype_only_for_synthetic(self):
        if self.archetype is not None and self.provider != Provider.SYNTHETIC:
            raise ValueError("archetype is only set on synthetic routes")
        return self


class ExposureSample(CamelModel):
    point: Coordinate
    aqi: float = Field(ge=0)
    from_fallback: bool = False


class EnrichedRoute(RouteCandidate):
    average_exposure: float = Field(ge=0)
    max_exposure: float = Field(ge=0)
    high_exposure_segment_count: int = Field(ge=0)
    health_score: float = Field(ge=0, le=100)
    health_risk: HealthRisk
    samples: List[ExposureSample] = Field(default_factory=list)
    live_sample_count: int = Field(default=0, ge=0)
    pollution_threshold: float = 80.0
    recommendations: List[str] = Field(default_factory=list)


class RouteOptions(CamelModel):
    vehicle: Vehicle = Vehicle.CAR
    avoid_high_pollution: bool = True
    max_alternatives: int = Field(default=3, ge=1, le=10)
    pollution_threshold: float = Field(default=80.0, ge=0)
    merge_providers: bool = False


class CleanRoutesRequest(CamelModel):
    origin: Coordinate
    destination: Coordinate
    options: RouteOptions = Field(default_factory=RouteOptions)


class CleanRoutesResponse(CamelModel):
    success: bool
    routes: List[EnrichedRoute] = Field(default_factory=list)
    cleanest_route: Optional[EnrichedRoute] = None
    total_routes: int = Field(default=0, ge=0)
    error: Optional[str] = None


class RouteAirQualityRequest(CamelModel):
    coordinates: List[Coordinate]
    pollution_threshold: float = Field(default=80.0, ge=0)

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, coords: List[Coordinate]):
        if not coords:
            raise ValueError("Route coordinates array is required")
        return coords


class RouteAirQualityResponse(CamelModel):
    success: bool = True
    samples: List[ExposureSample]
    average_exposure: float
    max_exposure: float
    high_exposure_segment_count: int
    health_risk: HealthRisk
    pollution_threshold: float


class HealthZone(CamelModel):
    id: int
    type: str
    name: str
    location: Coordinate
    priority: str
    distance_meters: float = Field(ge=0)


class HealthZonesResponse(CamelModel):
    success: bool = True
    zones: List[HealthZone]


class BBoxWGS84(CamelModel):
    min_lat: float = Field(ge=-90.0, le=90.0)
    min_lon: float = Field(ge=-180.0, le=180.0)
    max_lat: float = Field(ge=-90.0, le=90.0)
    max_lon: float = Field(ge=-180.0, le=180.0)

    @model_validator(mode="after")
    def validate_order(self):
        if self.min_lat > self.max_lat or self.min_lon > self.max_lon:
            raise ValueError("bounds minimum must not exceed maximum")
        return self


class RealTimeConditionsRequest(CamelModel):
    bounds: BBoxWGS84


class RealTimeConditions(CamelModel):
    traffic: str
    average_aqi: float
    timestamp: str
    alerts: List[str] = Field(default_factory=list)


class RealTimeConditionsResponse(CamelModel):
    success: bool = True
    conditions: RealTimeConditions
