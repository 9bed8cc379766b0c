"""
FinSight Backend — Status & Health Check Routes
=================================================

What:  GET / (liveness) and GET /health (dependency-aware health check).
Why:   Load balancers and Docker need a cheap "is the process up" probe (/)
       and monitoring needs to know whether the database and the completion
       provider are reachable (/health).

Status levels for /health:
    - healthy:   database and LLM provider reachable
    - degraded:  LLM provider unreachable (auth still works)
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text

from app import __version__
from app.database import engine
from app.dependencies import get_llm_service
from app.schemas.common import HealthResponse, StatusResponse
from app.services.llm_base import LLMService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_model=StatusResponse, summary="Liveness probe")
async def root() -> StatusResponse:
    return StatusResponse(status="running")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Reports database connectivity and completion provider reachability.",
)
async def health_check(llm: LLMService = Depends(get_llm_service)) -> HealthResponse:
    db_status = "connected"
    llm_status = "available"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not await llm.health_check():
        llm_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        llm=llm_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
