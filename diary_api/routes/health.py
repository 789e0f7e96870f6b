"""
Diary API — Health Check Route
================================

What:  GET /health for container and load balancer probes.
How:   Runs SELECT 1 on the request session and checks that the image root is
       a writable directory.

Status levels:
    - healthy:   database connected and image root writable
    - degraded:  database connected, image root unavailable
    - unhealthy: database disconnected
"""

import logging
import os
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from diary_api import __version__
from diary_api.database import get_db_session
from diary_api.dependencies import get_image_service
from diary_api.schemas.diary import HealthResponse
from diary_api.services.image_service import ImageService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    db: AsyncSession = Depends(get_db_session),
    image_service: ImageService = Depends(get_image_service),
) -> HealthResponse:
    db_status = "connected"
    storage_status = "writable"
    overall = "healthy"

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        await db.rollback()
        logger.warning("Health check: database unreachable: %s", str(e))

    root = image_service.image_root
    if not (root.is_dir() and os.access(root, os.W_OK)):
        storage_status = "unavailable"
        if overall != "unhealthy":
            overall = "degraded"
        logger.warning("Health check: image root not writable: %s", root)

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        image_storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
