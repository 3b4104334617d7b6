"""
Version information endpoint.
"""

from fastapi import APIRouter, Depends

from ...models.api_models import VersionResponse
from ...moderation.engine import ModerationEngine
from ...version import API_VERSION, get_current_engine_version
from .moderation import get_engine

router = APIRouter()


@router.get("/version", response_model=VersionResponse)
async def get_version(engine: ModerationEngine = Depends(get_engine)) -> VersionResponse:
    """
    Get current API and engine version information.

    Returns:
        Version information for audit and debugging
    """
    return VersionResponse(
        api_version=API_VERSION,
        engine_version=get_current_engine_version(enabled_stages=engine.enabled_stages),
    )
