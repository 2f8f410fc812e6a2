"""
Prescription API — Health Check Route
======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the database and reports the result.
Who:   Called by container health checks, load balancers, and monitoring.

Status levels:
    - healthy:   database reachable
    - unhealthy: database unreachable (the API cannot serve any request)
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from prescription_api import __version__
from prescription_api.database import engine
from prescription_api.schemas.prescription import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Module load time, for uptime reporting
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
