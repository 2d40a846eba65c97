# path: clean-air-api/app/services/exposure.py

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, Tuple
import asyncio
import logging
import random

from app.models.air_quality_models import AirQualityReport, PollutantComponents
from app.models.route_models import (
    Coordinate,
    EnrichedRoute,
    ExposureSample,
    HealthRisk,
    RouteCandidate,
)

logger = logging.getLogger(__name__)


DEFAULT_SAMPLE_TARGET = 5
DEFAULT_POLLUTION_THRESHOLD = 80.0

# Applied to a route when no sample could be measured.
DEFAULT_EXPOSURE = 75.0

FALLBACK_AQI_RANGE = (50.0, 100.0)

# PM2.5 upper bound (μg/m³) -> index value
PM25_BREAKPOINTS: List[Tuple[float, float]] = [
    (12.0, 25.0),
    (35.0, 50.0),
    (55.0, 75.0),
    (150.0, 100.0),
    (250.0, 150.0),
]
PM25_CEILING_INDEX = 200.0

# Health score weights: exposure, distance, duration, high-exposure samples
EXPOSURE_WEIGHT = 0.6
DISTANCE_WEIGHT = 0.2
DURATION_WEIGHT = 0.1
HOTSPOT_WEIGHT = 0.1

EXPOSURE_SCALE = 100.0
DISTANCE_SCALE_M = 10000.0
DURATION_SCALE_S = 3600.0
HOTSPOT_SCALE = 3.0


class AirQualitySource(Protocol):
    async def get_current_air_quality(self, lat: float, lon: float) -> AirQualityReport: ...


def sample_route_points(points: Sequence[Coordinate], target: int = DEFAULT_SAMPLE_TARGET) -> List[Coordinate]:
    """Picks at most `target` points at a fixed stride from the start of the path."""
    if target < 1:
        raise ValueError("target must be >= 1")
    if len(points) <= target:
        return list(points)
    stride = len(points) // target
    return list(points[::stride][:target])


def fallback_aqi(rng: random.Random) -> float:
    low, high = FALLBACK_AQI_RANGE
    return low + rng.random() * (high - low)


def aqi_from_components(components: Optional[PollutantComponents], rng: random.Random) -> float:
    pm25 = components.pm2_5 if components is not None else None
    if pm25 is None:
        return fallback_aqi(rng)
    for upper, index in PM25_BREAKPOINTS:
        if pm25 <= upper:
            return index
    return PM25_CEILING_INDEX


def health_risk(average_exposure: float) -> HealthRisk:
    if average_exposure <= 50:
        return HealthRisk.LOW
    if average_exposure <= 100:
        return HealthRisk.MODERATE
    if average_exposure <= 150:
        return HealthRisk.HIGH
    return HealthRisk.VERY_HIGH


def health_score(average_exposure: float, distance_m: float, duration_s: float, high_count: int) -> float:
    """Composite 0-100 score, lower is better."""
    exposure = min(average_exposure / EXPOSURE_SCALE, 1.0)
    distance = min(distance_m / DISTANCE_SCALE_M, 1.0)
    duration = min(duration_s / DURATION_SCALE_S, 1.0)
    hotspots = min(high_count / HOTSPOT_SCALE, 1.0)
    total = (exposure * EXPOSURE_WEIGHT
             + distance * DISTANCE_WEIGHT
             + duration * DURATION_WEIGHT
             + hotspots * HOTSPOT_WEIGHT)
    return float(round(total * 100))


def travel_recommendations(distance_m: float, average_exposure: float, max_exposure: float) -> List[str]:
    recommendations = []
    if average_exposure > 80:
        recommendations.append("Consider postponing non-essential travel")
        recommendations.append("Use air filtration if available in vehicle")
    if max_exposure > 100:
        recommendations.append("Avoid areas with highest pollution levels")
    if distance_m > 5000:
        recommendations.append("Consider breaking journey into segments")
    if not recommendations:
        recommendations.append("Air quality is good for travel")
    return recommendations


def summarize_exposure(samples: Sequence[ExposureSample], threshold: float) -> Tuple[float, float, int]:
    """
    Returns (average, maximum, count above threshold).

    Fallback values count like measured ones, but when nothing was measured
    the default moderate exposure is used instead.
    """
    if all(s.from_fallback for s in samples):
        return DEFAULT_EXPOSURE, DEFAULT_EXPOSURE, 0
    values = [s.aqi for s in samples]
    return sum(values) / len(values), max(values), sum(1 for v in values if v > threshold)


class ExposureScorer:
    """
    Annotates routes with pollution exposure and a health score.

    Exposure is best-effort: a sample point that cannot be measured gets a
    random moderate value, and a route with no measurable point at all gets
    the default moderate annotation. Enrichment never fails a route.
    """

    def __init__(self, air_quality: AirQualitySource, rng: Optional[random.Random] = None,
                 sample_target: int = DEFAULT_SAMPLE_TARGET):
        self.air_quality = air_quality
        self.rng = rng or random.Random()
        self.sample_target = sample_target

    async def _measure(self, point: Coordinate) -> float:
        report = await self.air_quality.get_current_air_quality(point.lat, point.lon)
        latest = report.latest()
        return aqi_from_components(latest.components if latest else None, self.rng)

    async def sample_exposure(self, points: Sequence[Coordinate]) -> List[ExposureSample]:
        """Measures every sampled point concurrently; failed points are marked as fallbacks."""
        sampled = sample_route_points(points, self.sample_target)
        results = await asyncio.gather(*(self._measure(p) for p in sampled), return_exceptions=True)

        samples = []
        for point, result in zip(sampled, results):
            if isinstance(result, Exception):
                logger.debug("Exposure query failed at %s,%s: %s", point.lat, point.lon, result)
                samples.append(ExposureSample(point=point, aqi=fallback_aqi(self.rng), from_fallback=True))
            else:
                samples.append(ExposureSample(point=point, aqi=result))
        return samples

    def annotate(self, route: RouteCandidate, samples: List[ExposureSample], threshold: float) -> EnrichedRoute:
        average, maximum, high_count = summarize_exposure(samples, threshold)
        live = [s for s in samples if not s.from_fallback]

        return EnrichedRoute(
            **route.model_dump(),
            average_exposure=average,
            max_exposure=maximum,
            high_exposure_segment_count=high_count,
            health_score=health_score(average, route.distance_meters, route.duration_seconds, high_count),
            health_risk=health_risk(average),
            samples=samples,
            live_sample_count=len(live),
            pollution_threshold=threshold,
            recommendations=travel_recommendations(route.distance_meters, average, maximum),
        )

    def default_annotation(self, route: RouteCandidate, threshold: float) -> EnrichedRoute:
        return self.annotate(route, [], threshold)

    async def enrich_route(self, route: RouteCandidate,
                           threshold: float = DEFAULT_POLLUTION_THRESHOLD) -> EnrichedRoute:
        try:
            samples = await self.sample_exposure(route.points)
            return self.annotate(route, samples, threshold)
        except Exception:
            logger.warning("Failed to enrich route %s, using default exposure", route.id, exc_info=True)
            return self.default_annotation(route, threshold)

    async def enrich_routes(self, routes: Sequence[RouteCandidate],
                            threshold: float = DEFAULT_POLLUTION_THRESHOLD) -> List[EnrichedRoute]:
        return list(await asyncio.gather(*(self.enrich_route(r, threshold) for r in routes)))
