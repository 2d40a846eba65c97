# path: clean-air-api/app/config.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple
import os

from dotenv import load_dotenv


PLACEHOLDER_PREFIX = "your_"

DEFAULT_OSRM_BASE_URL = "https://router.project-osrm.org"


def is_configured(credential: Optional[str]) -> bool:
    """Unset, blank and template values like 'your_graphhopper_api_key_here' do not count."""
    if not credential or not credential.strip():
        return False
    return not credential.strip().lower().startswith(PLACEHOLDER_PREFIX)


@dataclass(frozen=True)
class Settings:
    openweather_api_key: Optional[str] = None
    mapbox_access_token: Optional[str] = None
    graphhopper_api_key: Optional[str] = None
    openrouteservice_api_key: Optional[str] = None
    # None or "" disables the community router.
    osrm_base_url: Optional[str] = DEFAULT_OSRM_BASE_URL

    openweather_base_url: str = "http://api.openweathermap.org/data/2.5"
    openweather_geo_url: str = "http://api.openweathermap.org/geo/1.0"
    mapbox_geocoding_url: str = "https://api.mapbox.com/geocoding/v5/mapbox.places"
    graphhopper_base_url: str = "https://graphhopper.com/api/1"
    openrouteservice_base_url: str = "https://api.openrouteservice.org/v2"

    request_timeout_s: float = 10.0
    exposure_sample_target: int = 5
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        osrm = os.getenv("OSRM_BASE_URL")
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            openweather_api_key=os.getenv("OPENWEATHER_API_KEY"),
            mapbox_access_token=os.getenv("MAPBOX_ACCESS_TOKEN"),
            graphhopper_api_key=os.getenv("GRAPHHOPPER_API_KEY"),
            openrouteservice_api_key=os.getenv("OPENROUTESERVICE_API_KEY"),
            osrm_base_url=DEFAULT_OSRM_BASE_URL if osrm is None else osrm,
            request_timeout_s=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10")),
            exposure_sample_target=int(os.getenv("EXPOSURE_SAMPLE_TARGET", "5")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        )

    def provider_status(self) -> dict:
        def status(value: Optional[str]) -> str:
            return "configured" if is_configured(value) else "not configured"

        return {
            "graphhopper": status(self.graphhopper_api_key),
            "openrouteservice": status(self.openrouteservice_api_key),
            "osrm": "configured" if self.osrm_base_url else "not configured",
            "openweathermap": status(self.openweather_api_key),
            "mapbox": status(self.mapbox_access_token),
        }
