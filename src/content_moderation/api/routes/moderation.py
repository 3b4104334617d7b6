"""
Moderation API routes.

Provides REST endpoints for text moderation:
- POST /api/v1/moderate - Moderate a single piece of content
- GET /api/v1/moderation/stages - Fallback stages active in this deployment
"""

import threading

from fastapi import APIRouter, HTTPException, Request, Response, Depends, status
import structlog

from ...config import settings
from ...models.api_models import ModerateRequest, ModerateResponse, StagesResponse
from ...moderation.engine import ModerationEngine, build_engine
from ...moderation.schemas import ModerationRequest, ModerationSource


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["moderation"])

# Response headers read by the request-logging middleware
SOURCE_HEADER = "X-Moderation-Source"
FLAGGED_HEADER = "X-Moderation-Flagged"
CATEGORY_HEADER = "X-Moderation-Category"

_engine_lock = threading.Lock()


def get_engine(request: Request) -> ModerationEngine:
    """Engine built in the app lifespan; built once, lazily, when the lifespan did not run."""
    engine = getattr(request.app.state, "engine", None)
    if engine is not None:
        return engine

    with _engine_lock:
        engine = getattr(request.app.state, "engine", None)
        if engine is None:
            logger.warning("moderation_engine_built_lazily")
            engine = build_engine()
            request.app.state.engine = engine
    return engine


def is_degraded(engine: ModerationEngine) -> bool:
    """True when only the local keyword filter can answer."""
    return engine.enabled_stages == [ModerationSource.LOCAL.value]


# ============================================================================
# ENDPOINTS
# ============================================================================

# Sync handler: provider calls block, so FastAPI runs this in its threadpool
@router.post("/moderate", response_model=ModerateResponse, status_code=status.HTTP_200_OK)
def moderate_endpoint(
    request: ModerateRequest,
    response: Response,
    engine: ModerationEngine = Depends(get_engine)
) -> ModerateResponse:
    """
    Moderate a piece of user-submitted text.

    Provider outages never fail the request: the engine falls back to the
    next stage and ultimately to the local keyword filter.

    Args:
        request: Content and optional caller context

    Returns:
        ModerationResult with flagged, category, severity and source

    Raises:
        HTTPException: 422 when content exceeds the configured length limit
    """
    if len(request.content) > settings.max_content_length:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Content exceeds {settings.max_content_length} characters"
        )

    logger.info(
        "moderation_request_received",
        content_length=len(request.content),
        has_context=request.context is not None
    )

    result = engine.classify(
        ModerationRequest(content=request.content, context=request.context)
    )

    response.headers[SOURCE_HEADER] = result.source.value
    response.headers[FLAGGED_HEADER] = "true" if result.flagged else "false"
    response.headers[CATEGORY_HEADER] = result.category.value

    return ModerateResponse(success=True, result=result)


@router.get("/moderation/stages", response_model=StagesResponse)
async def stages_endpoint(engine: ModerationEngine = Depends(get_engine)) -> StagesResponse:
    """
    List the fallback stages of the running engine.

    ``degraded`` is true when only the local keyword filter is available.
    """
    return StagesResponse(stages=engine.enabled_stages, degraded=is_degraded(engine))
