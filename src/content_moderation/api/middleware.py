"""
FastAPI middleware for moderation request logging and error handling.

Request and response bodies are never logged: they carry user content. The
verdict summary is taken from the headers set by the moderation route.
"""

import time
from typing import Any, Callable, Dict
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
import structlog

from ..models.api_models import ModerateResponse
from .routes.moderation import CATEGORY_HEADER, FLAGGED_HEADER, SOURCE_HEADER

logger = structlog.get_logger(__name__)

RESPONSE_TIME_HEADER = "X-Response-Time-Ms"


def _verdict_fields(response: Response) -> Dict[str, Any]:
    source = response.headers.get(SOURCE_HEADER)
    if source is None:
        return {}
    return {
        "moderation_source": source,
        "flagged": response.headers.get(FLAGGED_HEADER) == "true",
        "category": response.headers.get(CATEGORY_HEADER),
    }


def setup_logging_middleware(app: FastAPI) -> None:
    """
    Setup request logging middleware.

    Every request gets one completion event with status and duration. Moderation
    requests also carry the verdict summary, including the stage that answered.
    """

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Callable) -> Response:
        start_time = time.monotonic()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "http_request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                error=str(e),
                exc_info=True,
            )
            raise

        duration_ms = round((time.monotonic() - start_time) * 1000, 2)
        verdict = _verdict_fields(response)

        logger.info(
            "http_request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            **verdict,
        )

        response.headers[RESPONSE_TIME_HEADER] = str(duration_ms)
        return response


def setup_error_handling_middleware(app: FastAPI) -> None:
    """
    Setup global error handling middleware.

    The engine itself never raises; anything reaching this handler is a bug in
    the API layer and is answered with a ModerateResponse-shaped 500.
    """

    @app.middleware("http")
    async def handle_errors(request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                "unhandled_api_exception",
                method=request.method,
                path=request.url.path,
                error=str(e),
                exc_info=True,
            )
            body = ModerateResponse(
                success=False,
                error=str(e) if app.debug else "Internal server error",
            )
            return JSONResponse(status_code=500, content=body.model_dump(mode="json"))
