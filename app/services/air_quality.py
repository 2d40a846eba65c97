# path: clean-air-api/app/services/air_quality.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import asyncio
import logging
import math
import random

import httpx

from app.config import Settings, is_configured
from app.models.air_quality_models import (
    AirQualityItem,
    AirQualityReport,
    HistoricalPoint,
    HistoricalReport,
    PollutantComponents,
    PollutantInfo,
    PollutionRankings,
    Region,
    RegionAirQuality,
)
from app.models.route_models import Coordinate

logger = logging.getLogger(__name__)


UK_REGIONS: List[Region] = [
    Region(name="London", lat=51.5074, lon=-0.1278),
    Region(name="Manchester", lat=53.4808, lon=-2.2426),
    Region(name="Birmingham", lat=52.4862, lon=-1.8904),
    Region(name="Leeds", lat=53.8008, lon=-1.5491),
    Region(name="Glasgow", lat=55.8642, lon=-4.2518),
    Region(name="Sheffield", lat=53.3811, lon=-1.4701),
    Region(name="Bradford", lat=53.7960, lon=-1.7594),
    Region(name="Liverpool", lat=53.4084, lon=-2.9916),
    Region(name="Edinburgh", lat=55.9533, lon=-3.1883),
    Region(name="Cardiff", lat=51.4816, lon=-3.1791),
    Region(name="Belfast", lat=54.5973, lon=-5.9301),
    Region(name="Newcastle", lat=54.9783, lon=-1.6178),
]

AQI_DESCRIPTIONS = {1: "Good", 2: "Fair", 3: "Moderate", 4: "Poor", 5: "Very Poor"}

# (low upper bound, moderate upper bound); anything above is high
POLLUTION_THRESHOLDS = {
    "aqi": (2, 3),
    "pm2_5": (15, 35),
    "pm10": (25, 50),
    "no2": (40, 80),
    "o3": (100, 160),
    "so2": (20, 80),
}

POLLUTANT_LABELS = [
    ("PM2.5", "pm2_5", "Fine Particulate Matter"),
    ("PM10", "pm10", "Coarse Particulate Matter"),
    ("NO₂", "no2", "Nitrogen Dioxide"),
    ("O₃", "o3", "Ozone"),
    ("SO₂", "so2", "Sulphur Dioxide"),
]

# Used to synthesize history when current conditions cannot be fetched.
FALLBACK_CONDITIONS = {
    "aqi": 3,
    "components": {
        "pm2_5": 15.5, "pm10": 25.2, "no2": 45.3, "o3": 85.1,
        "so2": 8.7, "co": 890.0, "nh3": 3.2,
    },
}

HISTORY_INTERVAL = timedelta(hours=6)
HISTORY_MAX_POINTS = 1500


class AirQualityError(Exception):
    """The air quality provider could not answer."""


def categorize_pollution_level(pollutant: str, value: Optional[float]) -> str:
    thresholds = POLLUTION_THRESHOLDS.get(pollutant)
    if thresholds is None or value is None:
        return "unknown"
    low, moderate = thresholds
    if value <= low:
        return "low"
    if value <= moderate:
        return "moderate"
    return "high"


def format_air_quality_item(item: Dict[str, Any]) -> AirQualityItem:
    components = PollutantComponents.model_validate(item.get("components") or {})
    aqi = int(item["main"]["aqi"])
    dt = int(item["dt"])
    pollutants = {}
    for label, key, description in POLLUTANT_LABELS:
        value = getattr(components, key)
        pollutants[label] = PollutantInfo(
            value=value,
            description=description,
            category=categorize_pollution_level(key, value),
        )
    return AirQualityItem(
        dt=dt,
        timestamp=datetime.fromtimestamp(dt, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
        aqi=aqi,
        aqi_description=AQI_DESCRIPTIONS.get(aqi, "Unknown"),
        components=components,
        pollutants=pollutants,
    )


def format_air_quality_report(data: Dict[str, Any]) -> AirQualityReport:
    try:
        coord = data.get("coord")
        return AirQualityReport(
            coord=Coordinate(**coord) if coord else None,
            items=[format_air_quality_item(item) for item in data.get("list") or []],
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise AirQualityError(f"Malformed air quality payload: {e}") from e


def pollutant_value(report: Optional[AirQualityReport], pollutant: str) -> float:
    latest = report.latest() if report else None
    if latest is None:
        return 0.0
    if pollutant == "aqi":
        return float(latest.aqi)
    return float(getattr(latest.components, pollutant, None) or 0.0)


def as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def generate_historical_data(base_aqi: int, base_components: Dict[str, float],
                             start: datetime, end: datetime,
                             rng: Optional[random.Random] = None) -> List[HistoricalPoint]:
    """
    Synthesizes a 6-hourly series walking back from `end` to `start`.

    Each point scales the base conditions by a seasonal factor (winter is
    dirtier), a rush-hour factor and a random factor in [0.7, 1.3].
    """
    rng = rng or random.Random()
    if end < start:
        return []

    points = []
    current = end
    while current >= start and len(points) < HISTORY_MAX_POINTS:
        seasonal = 0.8 + 0.4 * math.sin((current.month - 1 - 9) * math.pi / 6)
        hour = current.hour
        if 7 <= hour <= 9 or 17 <= hour <= 19:
            daily = 1.3
        elif hour >= 22 or hour <= 5:
            daily = 0.7
        else:
            daily = 1.0
        factor = seasonal * daily * (0.7 + rng.random() * 0.6)

        components = {
            key: max(0.0, round((base_components.get(key) or fallback) * factor, 2))
            for key, fallback in FALLBACK_CONDITIONS["components"].items()
        }
        points.append(HistoricalPoint(
            timestamp=int(current.timestamp()),
            aqi=max(1, min(5, round((base_aqi or 3) * factor))),
            components=PollutantComponents(**components),
        ))
        current -= HISTORY_INTERVAL

    points.reverse()
    return points


class AirQualityService:
    """OpenWeatherMap air pollution client with UK-specific summaries."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings, rng: Optional[random.Random] = None):
        self.client = client
        self.api_key = settings.openweather_api_key
        self.base_url = settings.openweather_base_url.rstrip("/")
        self.timeout = settings.request_timeout_s
        self.rng = rng or random.Random()

    async def _get(self, path: str, lat: float, lon: float) -> Dict[str, Any]:
        if not is_configured(self.api_key):
            raise AirQualityError("OPENWEATHER_API_KEY is not set")
        params = {"lat": lat, "lon": lon, "appid": self.api_key}
        try:
            response = await self.client.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise AirQualityError(f"OpenWeatherMap returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise AirQualityError(f"OpenWeatherMap request failed: {e}") from e
        except ValueError as e:
            raise AirQualityError("OpenWeatherMap returned invalid JSON") from e

    async def get_current_air_quality(self, lat: float, lon: float) -> AirQualityReport:
        report = format_air_quality_report(await self._get("/air_pollution", lat, lon))
        if report.latest() is None:
            raise AirQualityError(f"No air quality data for {lat},{lon}")
        return report

    async def get_air_quality_forecast(self, lat: float, lon: float) -> AirQualityReport:
        return format_air_quality_report(await self._get("/air_pollution/forecast", lat, lon))

    async def get_historical_air_quality(self, lat: float, lon: float,
                                         start: Optional[datetime] = None,
                                         end: Optional[datetime] = None) -> HistoricalReport:
        # Historical data is a paid OpenWeatherMap feature; simulate it from today's readings.
        end = as_utc(end) if end else datetime.now(timezone.utc)
        start = as_utc(start) if start else end - timedelta(days=365)
        if end < start:
            raise ValueError("end must not be before start")

        base_aqi = FALLBACK_CONDITIONS["aqi"]
        base_components = dict(FALLBACK_CONDITIONS["components"])
        try:
            latest = (await self.get_current_air_quality(lat, lon)).latest()
            base_aqi = latest.aqi
            base_components.update({k: v for k, v in latest.components.model_dump().items() if v is not None})
        except AirQualityError as e:
            logger.info("Using fallback conditions for history at %s,%s: %s", lat, lon, e)

        points = generate_historical_data(base_aqi, base_components, start, end, self.rng)
        logger.info("Generated %d historical points for %s,%s", len(points), lat, lon)
        return HistoricalReport(coord=Coordinate(lat=lat, lon=lon), items=points)

    async def _region_air_quality(self, region: Region) -> RegionAirQuality:
        try:
            report = await self.get_current_air_quality(region.lat, region.lon)
            return RegionAirQuality(**region.model_dump(), air_quality=report)
        except AirQualityError as e:
            logger.warning("Air quality for %s unavailable: %s", region.name, e)
            return RegionAirQuality(**region.model_dump(), error=str(e))

    async def get_uk_regions_air_quality(self) -> List[RegionAirQuality]:
        return list(await asyncio.gather(*(self._region_air_quality(r) for r in UK_REGIONS)))

    async def get_pollution_rankings(self, pollutant: str = "aqi") -> PollutionRankings:
        if pollutant not in POLLUTION_THRESHOLDS:
            raise ValueError(f"Unknown pollutant: {pollutant}")

        regions = [r for r in await self.get_uk_regions_air_quality() if r.air_quality is not None]
        regions.sort(key=lambda r: pollutant_value(r.air_quality, pollutant))

        rankings = PollutionRankings(
            pollutant=pollutant,
            best_air_quality=regions[:3],
            areas_needing_attention=regions[-3:],
            all=regions,
        )
        for region in regions:
            category = categorize_pollution_level(pollutant, pollutant_value(region.air_quality, pollutant))
            if category in ("low", "moderate", "high"):
                getattr(rankings, category).append(region)
        return rankings
