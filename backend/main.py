import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import get_settings
from core.database import (
    dispose_database,
    get_database_manager,
    get_write_database_manager,
    init_database,
)
from core.errors import HydrationError
from core.logging import setup_logging
from hydration.service import HydrationService
from hydration.single_flight import SingleFlight
from providers.http import build_http_client
from providers.police_uk import PoliceUkCrimeFetcher
from providers.postcodes_io import PostcodesIoResolver
from routes.api_v1 import api_router, api_v1_router
from routes.handlers import error_response


settings = get_settings()
setup_logging(settings)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

# CORS: read-only public endpoints; conditional GET headers must be visible to the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["ETag", "X-Data-Version", "X-Data-Stale", "Last-Modified", "Retry-After"],
    allow_credentials=False,
)

app.include_router(api_router)
app.include_router(api_v1_router)


@app.exception_handler(HydrationError)
async def hydration_error_handler(request: Request, exc: HydrationError) -> JSONResponse:
    """Typed failures raised outside the handlers (e.g. in dependencies)."""
    result = error_response(exc)
    return JSONResponse(content=result.body, status_code=result.status_code, headers=result.headers)


@app.on_event("startup")
async def on_startup() -> None:
    """Application startup hook."""
    if not settings.database_url:
        logger.error("DATABASE_URL is not configured; read endpoints will fail with 500")
        app.state.http_client = build_http_client(settings)
        app.state.hydration_service = None
        return
    await init_database(settings.database_url, settings.database_write_url)
    if settings.database_url.startswith("sqlite"):
        await get_database_manager().create_schema()

    app.state.http_client = build_http_client(settings)
    write_manager = get_write_database_manager()
    if write_manager is not None:
        app.state.hydration_service = HydrationService(
            write_manager,
            PostcodesIoResolver(app.state.http_client, settings.geocoder_base_url),
            PoliceUkCrimeFetcher(app.state.http_client, settings.crime_feed_base_url),
            ttl_seconds=settings.layer_cache_ttl_seconds,
            single_flight=SingleFlight() if settings.single_flight else None,
        )
    else:
        app.state.hydration_service = None
        logger.warning("No write database URL configured; on-demand hydration is disabled")
    logger.info("Application startup complete (hydration_enabled=%s)", settings.hydration_enabled)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    """Application shutdown hook."""
    client = getattr(app.state, "http_client", None)
    if client is not None:
        await client.aclose()
    await dispose_database()
    logger.info("Application shutdown complete")


@app.get("/health")
async def health() -> dict:
    """Simple health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")), log_level="info")
