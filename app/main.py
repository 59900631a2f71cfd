"""
Catalog Rotation Service - Main FastAPI Application
Time-windowed product rotations served from a cached upstream catalog
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

from app import api_client
from app.cache import get_response_cache
from app.errors import register_error_handlers
from app.rotation import RotationResponse, get_featured_rotation, get_hero_rotation
from config.settings import settings

logger = logging.getLogger("main")

# Version tracking
APP_VERSION = "v1.0.0"
APP_NAME = "Catalog Rotation"

@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Evict stale records left over from a previous run."""
    removed = get_response_cache().cleanup()
    logger.info(f"Startup cache cleanup removed {removed} entries")
    yield


app = FastAPI(
    title=APP_NAME,
    description="Deterministic, time-windowed product rotations",
    version=APP_VERSION,
    lifespan=lifespan,
)

register_error_handlers(app)


def _respond(rotation: RotationResponse) -> JSONResponse:
    return JSONResponse(
        content=rotation.body,
        status_code=rotation.status_code,
        headers=rotation.headers,
    )


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "source": "catalog-api", "cache": settings.cache_backend}


@app.get("/version")
def version_info():
    """Version information endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "full": f"{APP_NAME} {APP_VERSION}"
    }


@app.get("/cache/stats")
def cache_stats():
    """Get cache statistics."""
    return api_client.get_cache_stats()


@app.post("/cache/cleanup")
def cache_cleanup(keep_newest: Optional[int] = Query(None, ge=0, description="Entries to keep")):
    """Evict expired entries and trim the cache to its capacity."""
    removed = get_response_cache().cleanup(keep_newest=keep_newest)
    return {"removed": removed, "stats": api_client.get_cache_stats()}


# =============================================================================
# ROTATION API
# =============================================================================

@app.get("/rotation/featured")
def featured_rotation(
    limit: Optional[str] = Query(None, description="Number of products, clamped to the allowed range"),
):
    """
    Featured products for the current hour.

    Every request inside the same hour gets the same selection. If the
    catalog is unreachable the response is a 500 with an empty list and
    short-lived cache headers.
    """
    return _respond(get_featured_rotation().rotate(limit))


@app.get("/rotation/hero")
def hero_rotation(
    limit: Optional[str] = Query(None, description="Number of products, clamped to the allowed range"),
):
    """
    Hero banner products and promo cards for the current minute.

    Catalog failures still answer 200 with static promo cards.
    """
    return _respond(get_hero_rotation().rotate(limit))
