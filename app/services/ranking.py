# path: clean-air-api/app/services/ranking.py

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from app.models.route_models import EnrichedRoute


DEFAULT_MAX_ALTERNATIVES = 3


@dataclass
class RankedRoutes:
    routes: List[EnrichedRoute]
    cleanest_route: Optional[EnrichedRoute]
    total_routes: int


def rank_routes(routes: Sequence[EnrichedRoute], max_alternatives: int = DEFAULT_MAX_ALTERNATIVES,
                by_score: bool = True) -> RankedRoutes:
    """
    Orders routes by health score (ascending, stable) and keeps the best few.

    With by_score=False the provider order is kept and only the cleanest
    route is picked out.
    """
    if max_alternatives < 1:
        raise ValueError("max_alternatives must be >= 1")

    # sorted() is stable, so equal scores keep provider order
    ordered = sorted(routes, key=lambda r: r.health_score) if by_score else list(routes)
    kept = ordered[:max_alternatives]
    cleanest = min(kept, key=lambda r: r.health_score) if kept else None
    return RankedRoutes(routes=kept, cleanest_route=cleanest, total_routes=len(kept))
