# path: clean-air-api/app/services/route_normalizer.py

from __future__ import annotations

from typing import Iterable, List, Literal, Sequence

from app.models.route_models import Coordinate, Instruction


CoordinateOrder = Literal["lonlat", "latlon"]


def to_coordinates(positions: Iterable[Sequence[float]], order: CoordinateOrder = "lonlat") -> List[Coordinate]:
    """
    Converts wire positions into Coordinates.

    GeoJSON (GraphHopper, OpenRouteService, OSRM) sends [lon, lat] and may
    append elevation as a third value, which is dropped.
    """
    out = []
    for pos in positions:
        if len(pos) < 2:
            raise ValueError(f"Position needs at least 2 values: {pos!r}")
        first, second = float(pos[0]), float(pos[1])
        lat, lon = (second, first) if order == "lonlat" else (first, second)
        if not (-180.0 <= lon <= 180.0):
            raise ValueError(f"lon out of range [-180,180]: {lon}")
        if not (-90.0 <= lat <= 90.0):
            raise ValueError(f"lat out of range [-90,90]: {lat}")
        out.append(Coordinate(lat=lat, lon=lon))
    return out


def dedupe_consecutive(points: List[Coordinate]) -> List[Coordinate]:
    if not points:
        return []
    deduped = [points[0]]
    for p in points[1:]:
        if (p.lat, p.lon) != (deduped[-1].lat, deduped[-1].lon):
            deduped.append(p)
    return deduped


def normalize_path(positions: Iterable[Sequence[float]], order: CoordinateOrder = "lonlat") -> List[Coordinate]:
    points = dedupe_consecutive(to_coordinates(positions, order))
    if len(points) < 2:
        raise ValueError("Route collapses to <2 unique points after de-dupe")
    return points


def instructions_from_steps(steps: Iterable[tuple[str, float]]) -> List[Instruction]:
    """
    Builds instructions from (text, step_distance_m) pairs.

    Providers report the length of each step; offsets are the distance
    travelled before the step starts.
    """
    out = []
    offset = 0.0
    for text, step_distance in steps:
        out.append(Instruction(text=text or "Continue", distance_offset_meters=round(offset, 1)))
        offset += max(0.0, float(step_distance or 0.0))
    return out
