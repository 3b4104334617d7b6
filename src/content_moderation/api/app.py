"""
FastAPI application for the content moderation service.

Exposes the moderation engine to upload/content-submission services over HTTP.
One engine is shared by all requests; provider clients are opened at startup
and closed at shutdown.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from ..version import API_VERSION, get_current_engine_version
from ..config import settings
from ..logging_config import setup_logging
from ..moderation.engine import ModerationEngine, build_engine
from .routes import health, version, moderation
from .middleware import (
    setup_logging_middleware,
    setup_error_handling_middleware,
)

setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the engine from settings unless one was injected, and close it
    on shutdown only if it was built here.
    """
    engine: Optional[ModerationEngine] = getattr(app.state, "engine", None)
    owns_engine = engine is None
    if owns_engine:
        engine = build_engine()
        app.state.engine = engine

    logger.info(
        "moderation_api_started",
        version=API_VERSION,
        engine_version=get_current_engine_version(engine.enabled_stages).to_repr(),
        injected_engine=not owns_engine,
    )
    yield

    if owns_engine:
        engine.close()
        app.state.engine = None
    logger.info("moderation_api_stopped")


def create_app(engine: Optional[ModerationEngine] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        engine: Pre-built engine to serve (default: built from settings at startup)

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Content Moderation Engine",
        description="Text moderation with provider fallback: OpenAI moderation, Perspective, local keyword filter",
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.engine = engine

    # Upload services call this from other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=[
            moderation.SOURCE_HEADER,
            moderation.FLAGGED_HEADER,
            moderation.CATEGORY_HEADER,
        ],
    )

    # Last added runs outermost: request logging wraps the error handler
    setup_error_handling_middleware(app)
    setup_logging_middleware(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(version.router, prefix="/api/v1", tags=["Version"])
    app.include_router(moderation.router, tags=["Moderation"])

    return app


app = create_app()


def main() -> None:
    """Run the API server with uvicorn (development entry point)."""
    import uvicorn

    uvicorn.run(
        "content_moderation.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
