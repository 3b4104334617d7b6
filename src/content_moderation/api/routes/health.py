"""
Health check endpoint for monitoring.

Reports the fallback stages the running engine can use. A deployment without
any network provider still answers every request, so it is reported as
``degraded`` rather than unhealthy.
"""

import time

from fastapi import APIRouter, Depends

from ...models.api_models import HealthResponse
from ...moderation.engine import ModerationEngine
from ...version import API_VERSION
from .moderation import get_engine, is_degraded

router = APIRouter()

_start_time = time.monotonic()


@router.get("/health", response_model=HealthResponse)
async def health_check(engine: ModerationEngine = Depends(get_engine)) -> HealthResponse:
    degraded = is_degraded(engine)
    return HealthResponse(
        status="degraded" if degraded else "healthy",
        version=API_VERSION,
        uptime_seconds=time.monotonic() - _start_time,
        stages=engine.enabled_stages,
        degraded=degraded,
    )
