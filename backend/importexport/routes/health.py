"""
Import-Export Backend — Health Check and Banner Routes
=======================================================

What:  GET /health for load balancer / Docker probes, GET / banner.
How:   Health runs SELECT 1 through the application's Database.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable or not connected (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response

from importexport import __version__
from importexport.database import Database
from importexport.dependencies import get_database
from importexport.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", summary="Service banner")
async def root() -> dict:
    return {"message": "Import-Export Server is running successfully!"}


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(
    response: Response,
    database: Database = Depends(get_database),
) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        await database.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
