# path: clean-air-api/app/services/geocoding.py

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote
import logging
import re

import httpx

from app.config import Settings, is_configured
from app.models.geocoding_models import Location, LocationSearchResult

logger = logging.getLogger(__name__)


UK_POSTCODE_RE = re.compile(r"[A-Z]{1,2}\d[A-Z\d]?\s?\d[A-Z]{2}", re.IGNORECASE)


class GeocodingError(Exception):
    """No geocoding provider could resolve the request."""


def clean_postcode(postcode: str) -> str:
    return re.sub(r"\s+", " ", postcode).strip().upper()


def extract_region(place_name: str) -> Optional[str]:
    parts = place_name.split(",")
    if len(parts) >= 3:
        return parts[-2].strip()
    return None


def extract_postcode(place_name: str) -> Optional[str]:
    match = UK_POSTCODE_RE.search(place_name)
    return match.group(0) if match else None


def owm_location(raw: Dict[str, Any]) -> Location:
    state = raw.get("state")
    state_str = f", {state}" if state else ""
    return Location(
        name=raw["name"],
        country=raw.get("country", "GB"),
        state=state,
        lat=raw["lat"],
        lon=raw["lon"],
        display_name=f"{raw['name']}{state_str}, {raw.get('country', 'GB')}",
    )


def mapbox_location(feature: Dict[str, Any]) -> Location:
    # Mapbox centres are [lon, lat]
    lon, lat = feature["center"][:2]
    place_name = feature.get("place_name", feature.get("text", ""))
    return Location(
        name=feature.get("text", place_name),
        state=extract_region(place_name),
        lat=lat,
        lon=lon,
        display_name=place_name,
        postcode=extract_postcode(place_name),
    )


class GeocodingService:
    """Place name and postcode lookup, OpenWeatherMap first and Mapbox as fallback."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings):
        self.client = client
        self.api_key = settings.openweather_api_key
        self.mapbox_token = settings.mapbox_access_token
        self.owm_geo_url = settings.openweather_geo_url.rstrip("/")
        self.mapbox_url = settings.mapbox_geocoding_url.rstrip("/")
        self.timeout = settings.request_timeout_s

    @property
    def has_mapbox(self) -> bool:
        return is_configured(self.mapbox_token)

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        response = await self.client.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def _owm(self, path: str, params: Dict[str, Any]) -> Any:
        if not is_configured(self.api_key):
            raise GeocodingError("OPENWEATHER_API_KEY is not set")
        return await self._get_json(f"{self.owm_geo_url}{path}", {**params, "appid": self.api_key})

    async def _mapbox(self, query: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        url = f"{self.mapbox_url}/{quote(query, safe=',')}.json"
        data = await self._get_json(url, {**params, "access_token": self.mapbox_token})
        if not isinstance(data, dict):
            raise ValueError("Mapbox returned an unexpected payload")
        return data.get("features") or []

    async def search_with_openweathermap(self, query: str) -> List[Location]:
        try:
            data = await self._owm("/direct", {"q": f"{query},GB", "limit": 5})
            return [owm_location(item) for item in data or []]
        except (GeocodingError, httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.warning("OpenWeatherMap geocoding failed for %r: %s", query, e)
            return []

    async def search_with_mapbox(self, query: str) -> List[Location]:
        try:
            features = await self._mapbox(query, {
                "country": "GB",
                "limit": 5,
                "types": "place,locality,neighborhood,address",
            })
            return [mapbox_location(f) for f in features]
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.warning("Mapbox geocoding failed for %r: %s", query, e)
            return []

    async def search_location(self, query: str) -> LocationSearchResult:
        results = await self.search_with_openweathermap(query)
        if results:
            return LocationSearchResult(results=results, source="openweathermap")
        if self.has_mapbox:
            return LocationSearchResult(results=await self.search_with_mapbox(query), source="mapbox")
        return LocationSearchResult(results=[], source="none")

    async def get_coordinates_from_postcode(self, postcode: str) -> Location:
        cleaned = clean_postcode(postcode)
        try:
            data = await self._owm("/zip", {"zip": f"{cleaned},GB"})
            return Location(
                name=data["name"],
                country=data.get("country", "GB"),
                lat=data["lat"],
                lon=data["lon"],
                postcode=cleaned,
            )
        except (GeocodingError, httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.info("OpenWeatherMap postcode lookup failed for %s: %s", cleaned, e)

        if self.has_mapbox:
            try:
                features = await self._mapbox(cleaned, {"country": "GB", "types": "postcode"})
                if features:
                    location = mapbox_location(features[0])
                    location.postcode = cleaned
                    return location
            except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
                logger.warning("Mapbox postcode lookup failed for %s: %s", cleaned, e)

        raise GeocodingError(f"Invalid or not found postcode: {cleaned}")

    async def reverse_geocode(self, lat: float, lon: float) -> Location:
        try:
            data = await self._owm("/reverse", {"lat": lat, "lon": lon, "limit": 1})
            if data:
                return owm_location(data[0])
        except (GeocodingError, httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.info("OpenWeatherMap reverse geocoding failed for %s,%s: %s", lat, lon, e)

        if self.has_mapbox:
            try:
                features = await self._mapbox(f"{lon},{lat}", {"types": "place,locality,neighborhood"})
                if features:
                    location = mapbox_location(features[0])
                    return location.model_copy(update={"lat": lat, "lon": lon})
            except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
                logger.warning("Mapbox reverse geocoding failed for %s,%s: %s", lat, lon, e)

        raise GeocodingError("Location not found")
