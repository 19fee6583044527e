"""
PlaceHub Backend: Health Check Route
=====================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Checks the database and the image host and returns an aggregate status.

Status levels:
    - healthy:   database and image host reachable (HTTP 200)
    - degraded:  image host unreachable; reads still work (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from placehub import __version__
from placehub.database import engine
from placehub.dependencies import get_storage
from placehub.schemas.place import HealthResponse
from placehub.services.storage_base import ObjectStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(storage: ObjectStorage = Depends(get_storage)):
    """
    Probe the database (SELECT 1) and the image host (ping).

    Both probes are cheap and side-effect free.
    """
    db_status = "connected"
    storage_status = "available"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not await storage.health_check():
        storage_status = "unavailable"
        if overall != "unhealthy":
            overall = "degraded"

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=503 if overall == "unhealthy" else 200,
        content=body.model_dump(),
    )
