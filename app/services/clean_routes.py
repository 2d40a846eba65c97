# path: clean-air-api/app/services/clean_routes.py

from __future__ import annotations

from typing import List, Optional
import logging

from app.models.route_models import (
    CleanRoutesResponse,
    Coordinate,
    RouteAirQualityResponse,
    RouteOptions,
)
from app.services.exposure import ExposureScorer, health_risk, summarize_exposure
from app.services.ranking import rank_routes
from app.services.route_providers import RouteAcquisition

logger = logging.getLogger(__name__)


class CleanRouteService:
    """
    Finds routes between two points and ranks them by pollution exposure.

    Routes come from the first routing provider that answers (synthetic
    routes when none does), every route is scored for exposure, and the
    cleanest few are returned.
    """

    def __init__(self, acquisition: RouteAcquisition, scorer: ExposureScorer):
        self.acquisition = acquisition
        self.scorer = scorer

    async def calculate_clean_routes(self, origin: Coordinate, destination: Coordinate,
                                     options: Optional[RouteOptions] = None) -> CleanRoutesResponse:
        options = options or RouteOptions()
        try:
            candidates = await self.acquisition.acquire_routes(
                origin,
                destination,
                vehicle=options.vehicle,
                alternatives=options.max_alternatives,
                merge=options.merge_providers,
            )
            if not candidates:
                raise RuntimeError("No routes could be generated")

            logger.info("Scoring %d route(s) from %s to %s", len(candidates),
                        (origin.lat, origin.lon), (destination.lat, destination.lon))
            enriched = await self.scorer.enrich_routes(candidates, options.pollution_threshold)
            ranked = rank_routes(enriched, options.max_alternatives, by_score=options.avoid_high_pollution)
        except Exception as e:
            logger.error("Route calculation failed", exc_info=True)
            return CleanRoutesResponse(success=False, error=str(e) or "Failed to calculate routes")

        return CleanRoutesResponse(
            success=True,
            routes=ranked.routes,
            cleanest_route=ranked.cleanest_route,
            total_routes=ranked.total_routes,
        )

    async def route_air_quality(self, points: List[Coordinate],
                                threshold: float = 80.0) -> RouteAirQualityResponse:
        samples = await self.scorer.sample_exposure(points)
        average, maximum, high_count = summarize_exposure(samples, threshold)
        return RouteAirQualityResponse(
            samples=samples,
            average_exposure=average,
            max_exposure=maximum,
            high_exposure_segment_count=high_count,
            health_risk=health_risk(average),
            pollution_threshold=threshold,
        )
