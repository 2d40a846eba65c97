# path: clean-air-api/app/utils/geo.py

from __future__ import annotations

from typing import Dict, Iterable, List
import math

from app.models.route_models import Coordinate


EARTH_RADIUS_M = 6371000.0

COMPASS_POINTS = ["north", "northeast", "east", "southeast", "south", "southwest", "west", "northwest"]


def bbox_wgs84(points: Iterable[Coordinate]) -> Dict[str, float]:
    points = list(points)
    lons = [p.lon for p in points]
    lats = [p.lat for p in points]
    return {
        "min_lat": min(lats),
        "min_lon": min(lons),
        "max_lat": max(lats),
        "max_lon": max(lons),
    }


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlmb = math.radians(b.lon - a.lon)

    s = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(s))


def bearing_rad(a: Coordinate, b: Coordinate) -> float:
    # Initial bearing (forward azimuth), radians clockwise from north, (-pi, pi]
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dlmb = math.radians(b.lon - a.lon)

    y = math.sin(dlmb) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlmb)
    return math.atan2(y, x)


def bearing_deg_true(a: Coordinate, b: Coordinate) -> float:
    return (math.degrees(bearing_rad(a, b)) + 360.0) % 360.0


def interpolate(a: Coordinate, b: Coordinate, t: float) -> Coordinate:
    # Straight line in lat/lon space, not a geodesic.
    return Coordinate(
        lat=a.lat + (b.lat - a.lat) * t,
        lon=a.lon + (b.lon - a.lon) * t,
    )


def compass_direction(bearing: float) -> str:
    degrees = (math.degrees(bearing) + 360.0) % 360.0
    return COMPASS_POINTS[int(round(degrees / 45.0)) % 8]


def polyline_length_m(points: List[Coordinate]) -> float:
    total = 0.0
    for i in range(1, len(points)):
        total += haversine_m(points[i - 1], points[i])
    return total


def centre_of(bbox: Dict[str, float]) -> Coordinate:
    return Coordinate(
        lat=(bbox["min_lat"] + bbox["max_lat"]) / 2,
        lon=(bbox["min_lon"] + bbox["max_lon"]) / 2,
    )
