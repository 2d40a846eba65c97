# path: clean-air-api/app/services/synthetic_routes.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
import math
import random

from app.models.route_models import Archetype, Coordinate, Instruction, Provider, RouteCandidate, Vehicle
from app.utils.geo import bearing_rad, compass_direction, haversine_m, interpolate


SEGMENTS = 25
JITTER_DEG = 0.0001

# Nominal door-to-door speeds in km/h
VEHICLE_SPEED_KMH: Dict[Vehicle, float] = {
    Vehicle.CAR: 40.0,
    Vehicle.BIKE: 15.0,
    Vehicle.FOOT: 5.0,
}


@dataclass(frozen=True)
class ArchetypeProfile:
    name: str
    distance_multiplier: float
    duration_multiplier: float
    deviation: Callable[[float], float]
    # (text, fraction of total distance)
    waypoints: tuple


ARCHETYPES: Dict[Archetype, ArchetypeProfile] = {
    Archetype.DIRECT: ArchetypeProfile(
        name="Optimal Route",
        distance_multiplier=1.0,
        duration_multiplier=1.0,
        deviation=lambda p: 0.001 * math.sin(p * math.pi * 2),
        waypoints=(("Continue on main road", 0.2), ("Follow direct route", 0.6)),
    ),
    Archetype.SCENIC: ArchetypeProfile(
        name="Scenic Route",
        distance_multiplier=1.2,
        duration_multiplier=1.15,
        deviation=lambda p: 0.003 * math.sin(p * math.pi * 4) + 0.002 * math.cos(p * math.pi * 3),
        waypoints=(
            ("Take scenic route through countryside", 0.15),
            ("Continue on minor roads", 0.45),
            ("Follow winding roads", 0.75),
        ),
    ),
    Archetype.HIGHWAY: ArchetypeProfile(
        name="Highway Route",
        distance_multiplier=0.95,
        duration_multiplier=0.85,
        deviation=lambda p: 0.0005 * math.sin(p * math.pi),
        waypoints=(
            ("Enter highway/motorway", 0.1),
            ("Continue on highway for main journey", 0.5),
            ("Exit highway near destination", 0.9),
        ),
    ),
}


def estimate_duration_s(distance_m: float, vehicle: Vehicle) -> float:
    speed_kmh = VEHICLE_SPEED_KMH.get(vehicle, VEHICLE_SPEED_KMH[Vehicle.CAR])
    return (distance_m / 1000.0) / speed_kmh * 3600.0


class SyntheticRouteGenerator:
    """
    Builds road-like polylines between two points without a routing service.

    Paths are straight-line interpolations bent sideways by an
    archetype-specific wave and roughened with random jitter, so two calls
    with an unseeded generator never return the same polyline.
    """

    def __init__(self, rng: Optional[random.Random] = None, segments: int = SEGMENTS):
        if segments < 8:
            raise ValueError("segments must be >= 8")
        self.rng = rng or random.Random()
        self.segments = segments

    def generate_path(self, origin: Coordinate, destination: Coordinate, archetype: Archetype) -> List[Coordinate]:
        profile = ARCHETYPES[archetype]
        # Unit offset perpendicular to the straight-line heading, in (north, east) degrees.
        perp = bearing_rad(origin, destination) + math.pi / 2
        north, east = math.cos(perp), math.sin(perp)

        points = [origin]
        for i in range(1, self.segments):
            progress = i / self.segments
            base = interpolate(origin, destination, progress)
            deviation = profile.deviation(progress)
            lat = base.lat + deviation * north + (self.rng.random() - 0.5) * JITTER_DEG
            lon = base.lon + deviation * east + (self.rng.random() - 0.5) * JITTER_DEG
            points.append(Coordinate(lat=max(-90.0, min(90.0, lat)), lon=max(-180.0, min(180.0, lon))))
        points.append(destination)
        return points

    def generate_instructions(self, origin: Coordinate, destination: Coordinate,
                              archetype: Archetype, distance_m: float) -> List[Instruction]:
        direction = compass_direction(bearing_rad(origin, destination))
        out = [Instruction(text=f"Head {direction} from origin", distance_offset_meters=0.0)]
        for text, fraction in ARCHETYPES[archetype].waypoints:
            out.append(Instruction(text=text, distance_offset_meters=round(distance_m * fraction)))
        out.append(Instruction(text="Arrive at destination", distance_offset_meters=distance_m))
        return out

    def generate_route(self, origin: Coordinate, destination: Coordinate,
                       vehicle: Vehicle = Vehicle.CAR,
                       archetype: Archetype = Archetype.DIRECT) -> RouteCandidate:
        profile = ARCHETYPES[archetype]
        straight_m = haversine_m(origin, destination)
        distance = float(round(straight_m * profile.distance_multiplier))
        duration = float(round(estimate_duration_s(straight_m, vehicle) * profile.duration_multiplier))

        return RouteCandidate(
            id=f"synthetic_{archetype.value}",
            name=profile.name,
            provider=Provider.SYNTHETIC,
            archetype=archetype,
            points=self.generate_path(origin, destination, archetype),
            distance_meters=distance,
            duration_seconds=duration,
            instructions=self.generate_instructions(origin, destination, archetype, distance),
        )

    def generate_routes(self, origin: Coordinate, destination: Coordinate,
                        vehicle: Vehicle = Vehicle.CAR) -> List[RouteCandidate]:
        return [self.generate_route(origin, destination, vehicle, archetype) for archetype in ARCHETYPES]
