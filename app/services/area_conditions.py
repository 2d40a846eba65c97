# path: clean-air-api/app/services/area_conditions.py

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Tuple

from app.models.route_models import (
    BBoxWGS84,
    Coordinate,
    HealthZone,
    RealTimeConditions,
)
from app.services.exposure import ExposureScorer
from app.utils.geo import centre_of, haversine_m


DEFAULT_ZONE_RADIUS_M = 5000.0
DEFAULT_AREA_AQI = 65.0

# Sample sensitive sites as (type, name, lat offset, lon offset, priority).
SAMPLE_ZONES: List[Tuple[str, str, float, float, str]] = [
    ("school", "Local Primary School", 0.005, 0.005, "high"),
    ("hospital", "Community Hospital", -0.003, 0.008, "high"),
    ("elderly_care", "Retirement Home", 0.002, -0.006, "medium"),
]


def health_zones(center: Coordinate, radius_m: float = DEFAULT_ZONE_RADIUS_M) -> List[HealthZone]:
    zones = []
    for index, (kind, name, dlat, dlon, priority) in enumerate(SAMPLE_ZONES, start=1):
        location = Coordinate(lat=max(-90.0, min(90.0, center.lat + dlat)),
                              lon=max(-180.0, min(180.0, center.lon + dlon)))
        distance = haversine_m(center, location)
        if distance <= radius_m:
            zones.append(HealthZone(id=index, type=kind, name=name, location=location,
                                    priority=priority, distance_meters=round(distance, 1)))
    return zones


async def real_time_conditions(scorer: ExposureScorer, bounds: BBoxWGS84) -> RealTimeConditions:
    centre = centre_of(bounds.model_dump())
    samples = await scorer.sample_exposure([centre])
    live = [s.aqi for s in samples if not s.from_fallback]
    average = sum(live) / len(live) if live else DEFAULT_AREA_AQI

    alerts = []
    if average > 100:
        alerts.append("High pollution in this area")
    return RealTimeConditions(
        traffic="moderate",
        average_aqi=average,
        timestamp=datetime.now(timezone.utc).isoformat(),
        alerts=alerts,
    )
