# path: clean-air-api/app/main.py

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional
import logging
import random

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes.air_quality import router as air_quality_router
from app.api.routes.geocoding import router as geocoding_router
from app.api.routes.routes import router as routes_router
from app.config import Settings
from app.services.air_quality import AirQualityService
from app.services.clean_routes import CleanRouteService
from app.services.exposure import ExposureScorer
from app.services.geocoding import GeocodingService
from app.services.route_providers import RouteAcquisition

logger = logging.getLogger(__name__)


def build_services(app: FastAPI, settings: Settings, client: httpx.AsyncClient,
                   rng: Optional[random.Random] = None) -> None:
    rng = rng or random.Random()
    air_quality = AirQualityService(client, settings, rng)
    app.state.settings = settings
    app.state.air_quality = air_quality
    app.state.geocoding = GeocodingService(client, settings)
    app.state.clean_routes = CleanRouteService(
        RouteAcquisition.from_settings(settings, client, rng),
        ExposureScorer(air_quality, rng, settings.exposure_sample_target),
    )


def create_app(settings: Optional[Settings] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None,
               rng: Optional[random.Random] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(timeout=settings.request_timeout_s, transport=transport) as client:
            build_services(app, settings, client, rng)
            logger.info("Providers: %s", settings.provider_status())
            yield

    app = FastAPI(title="clean-air-api", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ())[1:])
        message = first.get("msg", "Invalid request")
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": f"{field}: {message}" if field else message},
        )

    @app.get("/health")
    def health() -> dict:
        return {"status": "OK"}

    app.include_router(routes_router)
    app.include_router(air_quality_router)
    app.include_router(geocoding_router)
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:create_app", factory=True, host="0.0.0.0", port=5000)
