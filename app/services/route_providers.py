# path: clean-air-api/app/services/route_providers.py

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging
import random

import httpx

from app.config import Settings, is_configured
from app.models.route_models import Coordinate, Provider, RouteCandidate, Vehicle
from app.services.route_normalizer import instructions_from_steps, normalize_path
from app.services.synthetic_routes import SyntheticRouteGenerator

logger = logging.getLogger(__name__)


class RouteProviderError(Exception):
    """A routing back-end could not produce routes."""


class RouteProvider(ABC):
    """
    One routing back-end.

    Every provider turns (origin, destination, vehicle, alternatives) into
    RouteCandidates with {lat, lon} points, metres and seconds, whatever its
    own wire format looks like.
    """

    provider: Provider
    profiles: Mapping[Vehicle, str]

    @property
    def name(self) -> str:
        return self.provider.value

    @abstractmethod
    def is_configured(self) -> bool:
        """False when the provider lacks a credential or endpoint; it is then skipped."""

    @abstractmethod
    async def acquire_routes(self, origin: Coordinate, destination: Coordinate,
                             vehicle: Vehicle, alternatives: int) -> List[RouteCandidate]:
        """Returns at least one route or raises RouteProviderError."""

    def profile_for(self, vehicle: Vehicle) -> str:
        return self.profiles.get(vehicle, self.profiles[Vehicle.CAR])


class HttpRouteProvider(RouteProvider):
    def __init__(self, client: httpx.AsyncClient, base_url: Optional[str], timeout: float = 10.0):
        self.client = client
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout

    async def _request_json(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = await self.client.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise RouteProviderError(f"{self.name} returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise RouteProviderError(f"{self.name} request failed: {e}") from e
        except ValueError as e:
            raise RouteProviderError(f"{self.name} returned invalid JSON") from e

    def _build(self, index: int, positions: Sequence, distance: Any, duration: Any,
               steps: List[tuple]) -> RouteCandidate:
        try:
            return RouteCandidate(
                id=f"{self.name}_{index}",
                provider=self.provider,
                points=normalize_path(positions, order="lonlat"),
                distance_meters=float(distance),
                duration_seconds=float(duration),
                instructions=instructions_from_steps(steps),
            )
        except (TypeError, ValueError) as e:
            raise RouteProviderError(f"{self.name} route {index} is malformed: {e}") from e


class GraphHopperProvider(HttpRouteProvider):
    provider = Provider.PRIMARY
    profiles = {Vehicle.CAR: "car", Vehicle.BIKE: "bike", Vehicle.FOOT: "foot"}

    def __init__(self, client: httpx.AsyncClient, api_key: Optional[str],
                 base_url: str = "https://graphhopper.com/api/1", timeout: float = 10.0):
        super().__init__(client, base_url, timeout)
        self.api_key = api_key

    def is_configured(self) -> bool:
        return is_configured(self.api_key) and bool(self.base_url)

    async def acquire_routes(self, origin, destination, vehicle, alternatives):
        params = [
            ("point", f"{origin.lat},{origin.lon}"),
            ("point", f"{destination.lat},{destination.lon}"),
            ("profile", self.profile_for(vehicle)),
            ("locale", "en"),
            ("calc_points", "true"),
            ("points_encoded", "false"),
            ("instructions", "true"),
            ("key", self.api_key),
        ]
        if alternatives > 1:
            params += [("algorithm", "alternative_route"), ("alternative_route.max_paths", str(alternatives))]

        data = await self._request_json("GET", f"{self.base_url}/route", params=params)
        paths = data.get("paths") if isinstance(data, dict) else None
        if not paths:
            raise RouteProviderError("No routes found from GraphHopper")

        routes = []
        for index, path in enumerate(paths):
            try:
                positions = path["points"]["coordinates"]
                steps = [(i.get("text"), i.get("distance")) for i in path.get("instructions") or []]
                # GraphHopper reports time in milliseconds
                duration = float(path["time"]) / 1000.0
                routes.append(self._build(index, positions, path["distance"], duration, steps))
            except (KeyError, TypeError, AttributeError) as e:
                raise RouteProviderError(f"GraphHopper path {index} is malformed: {e}") from e
        return routes


class OpenRouteServiceProvider(HttpRouteProvider):
    provider = Provider.SECONDARY
    profiles = {Vehicle.CAR: "driving-car", Vehicle.BIKE: "cycling-regular", Vehicle.FOOT: "foot-walking"}

    def __init__(self, client: httpx.AsyncClient, api_key: Optional[str],
                 base_url: str = "https://api.openrouteservice.org/v2", timeout: float = 10.0):
        super().__init__(client, base_url, timeout)
        self.api_key = api_key

    def is_configured(self) -> bool:
        return is_configured(self.api_key) and bool(self.base_url)

    async def acquire_routes(self, origin, destination, vehicle, alternatives):
        body: Dict[str, Any] = {
            "coordinates": [[origin.lon, origin.lat], [destination.lon, destination.lat]],
            "instructions": True,
        }
        if alternatives > 1:
            body["alternative_routes"] = {
                "target_count": alternatives,
                "weight_factor": 1.4,
                "share_factor": 0.6,
            }
        headers = {"Authorization": self.api_key, "Content-Type": "application/json"}
        url = f"{self.base_url}/directions/{self.profile_for(vehicle)}/geojson"

        data = await self._request_json("POST", url, json=body, headers=headers)
        features = data.get("features") if isinstance(data, dict) else None
        if not features:
            raise RouteProviderError("No routes found from OpenRouteService")

        routes = []
        for index, feature in enumerate(features):
            try:
                props = feature.get("properties") or {}
                segments = props.get("segments") or []
                summary = props.get("summary") or {}
                distance = summary.get("distance", sum(s.get("distance", 0) for s in segments))
                duration = summary.get("duration", sum(s.get("duration", 0) for s in segments))
                steps = [
                    (step.get("instruction"), step.get("distance"))
                    for segment in segments
                    for step in segment.get("steps") or []
                ]
                routes.append(self._build(index, feature["geometry"]["coordinates"], distance, duration, steps))
            except (KeyError, TypeError, AttributeError) as e:
                raise RouteProviderError(f"OpenRouteService feature {index} is malformed: {e}") from e
        return routes


def describe_osrm_step(step: Dict[str, Any]) -> str:
    maneuver = step.get("maneuver") or {}
    if maneuver.get("instruction"):
        return maneuver["instruction"]
    kind = maneuver.get("type", "continue")
    modifier = maneuver.get("modifier")
    road = step.get("name")
    if kind == "depart":
        text = "Depart"
    elif kind == "arrive":
        return "Arrive at destination"
    else:
        text = " ".join(w for w in (kind.replace("_", " "), modifier) if w).capitalize()
    return f"{text} onto {road}" if road else text


class OSRMProvider(HttpRouteProvider):
    provider = Provider.COMMUNITY
    profiles = {Vehicle.CAR: "driving", Vehicle.BIKE: "cycling", Vehicle.FOOT: "walking"}

    def is_configured(self) -> bool:
        return bool(self.base_url)

    def format_coordinates(self, coords: List[Coordinate]) -> str:
        return ";".join(f"{c.lon},{c.lat}" for c in coords)

    async def acquire_routes(self, origin, destination, vehicle, alternatives):
        url = (f"{self.base_url}/route/v1/{self.profile_for(vehicle)}/"
               f"{self.format_coordinates([origin, destination])}")
        params = {
            "overview": "full",
            "geometries": "geojson",
            "alternatives": "true" if alternatives > 1 else "false",
            "steps": "true",
        }

        data = await self._request_json("GET", url, params=params)
        if not isinstance(data, dict) or data.get("code") != "Ok":
            message = data.get("message", "Unknown error") if isinstance(data, dict) else "Unknown error"
            raise RouteProviderError(f"OSRM error: {message}")
        if not data.get("routes"):
            raise RouteProviderError("No routes found from OSRM")

        routes = []
        for index, route in enumerate(data["routes"]):
            try:
                legs = route.get("legs") or []
                steps = [
                    (describe_osrm_step(step), step.get("distance"))
                    for leg in legs
                    for step in leg.get("steps") or []
                ]
                routes.append(self._build(index, route["geometry"]["coordinates"],
                                          route["distance"], route["duration"], steps))
            except (KeyError, TypeError, AttributeError) as e:
                raise RouteProviderError(f"OSRM route {index} is malformed: {e}") from e
        return routes


class SyntheticProvider(RouteProvider):
    provider = Provider.SYNTHETIC
    profiles = {Vehicle.CAR: "car", Vehicle.BIKE: "bike", Vehicle.FOOT: "foot"}

    def __init__(self, generator: Optional[SyntheticRouteGenerator] = None):
        self.generator = generator or SyntheticRouteGenerator()

    def is_configured(self) -> bool:
        return True

    async def acquire_routes(self, origin, destination, vehicle, alternatives):
        return self.generator.generate_routes(origin, destination, vehicle)


class RouteAcquisition:
    """
    Tries providers in priority order until one returns routes.

    The last provider is the fallback: it only runs when every real provider
    was skipped, failed or came back empty.
    """

    def __init__(self, providers: List[RouteProvider], fallback: RouteProvider):
        self.providers = providers
        self.fallback = fallback

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient,
                      rng: Optional[random.Random] = None) -> "RouteAcquisition":
        timeout = settings.request_timeout_s
        return cls(
            providers=[
                GraphHopperProvider(client, settings.graphhopper_api_key, settings.graphhopper_base_url, timeout),
                OpenRouteServiceProvider(client, settings.openrouteservice_api_key,
                                         settings.openrouteservice_base_url, timeout),
                OSRMProvider(client, settings.osrm_base_url, timeout),
            ],
            fallback=SyntheticProvider(SyntheticRouteGenerator(rng)),
        )

    async def acquire_routes(self, origin: Coordinate, destination: Coordinate,
                             vehicle: Vehicle = Vehicle.CAR, alternatives: int = 3,
                             merge: bool = False) -> List[RouteCandidate]:
        routes: List[RouteCandidate] = []
        for provider in self.providers:
            if not provider.is_configured():
                logger.debug("Skipping %s: not configured", provider.name)
                continue
            try:
                found = await provider.acquire_routes(origin, destination, vehicle, alternatives)
            except RouteProviderError as e:
                logger.warning("%s routing failed: %s", provider.name, e)
                continue
            if not found:
                logger.warning("%s returned no routes", provider.name)
                continue
            logger.info("%s returned %d route(s)", provider.name, len(found))
            routes.extend(found)
            if not merge:
                break

        if routes:
            return routes

        logger.info("No routing provider answered, generating %s routes", self.fallback.name)
        return await self.fallback.acquire_routes(origin, destination, vehicle, alternatives)
