# path: clean-air-api/app/models/air_quality_models.py

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import Field

from app.models.route_models import CamelModel, Coordinate


class PollutantComponents(CamelModel):
    # OpenWeatherMap concentrations, all in μg/m³.
    co: Optional[float] = None
    no: Optional[float] = None
    no2: Optional[float] = None
    o3: Optional[float] = None
    so2: Optional[float] = None
    pm2_5: Optional[float] = Field(default=None, alias="pm2_5")
    pm10: Optional[float] = None
    nh3: Optional[float] = None


class PollutantInfo(CamelModel):
    value: Optional[float]
    unit: str = "μg/m³"
    description: str
    category: str


class AirQualityItem(CamelModel):
    dt: int
    timestamp: str
    aqi: int = Field(ge=1, le=5)
    aqi_description: str
    components: PollutantComponents
    pollutants: Dict[str, PollutantInfo] = Field(default_factory=dict)


class AirQualityReport(CamelModel):
    coord: Optional[Coordinate] = None
    items: List[AirQualityItem] = Field(default_factory=list, alias="list")

    def latest(self) -> Optional[AirQualityItem]:
        return self.items[0] if self.items else None


class HistoricalPoint(CamelModel):
    timestamp: int
    aqi: int = Field(ge=1, le=5)
    components: PollutantComponents


class HistoricalReport(CamelModel):
    coord: Coordinate
    items: List[HistoricalPoint] = Field(default_factory=list, alias="list")


class Region(CamelModel):
    name: str
    lat: float
    lon: float


class RegionAirQuality(Region):
    air_quality: Optional[AirQualityReport] = None
    error: Optional[str] = None


class PollutionRankings(CamelModel):
    pollutant: str
    low: List[RegionAirQuality] = Field(default_factory=list)
    moderate: List[RegionAirQuality] = Field(default_factory=list)
    high: List[RegionAirQuality] = Field(default_factory=list)
    best_air_quality: List[RegionAirQuality] = Field(default_factory=list)
    areas_needing_attention: List[RegionAirQuality] = Field(default_factory=list)
    all: List[RegionAirQuality] = Field(default_factory=list)
