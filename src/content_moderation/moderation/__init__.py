"""
Moderation package: the content-classification decision engine.

Takes user-submitted text and returns a moderation verdict by consulting a chain
of classification providers with deterministic fallback.

Main components:
- schemas: Pydantic models for requests, verdicts and results
- errors: Provider error taxonomy and explicit stage outcomes
- category_mapper: Native provider vocabularies -> internal categories/thresholds
- providers: Provider adapters (OpenAI moderation, Perspective)
- local_filter: Keyword filter used as the last, infallible stage
- engine: Fallback-chain orchestration
"""

from content_moderation.moderation.schemas import (
    # Enums
    Category,
    ModerationSource,

    # Models
    ModerationRequest,
    ModerationResult,
    ProviderVerdict,
)
from content_moderation.moderation.errors import (
    ProviderError,
    ProviderUnavailable,
    ProviderResponseInvalid,
    StageOutcome,
)
from content_moderation.moderation.local_filter import LocalFilter, local_filter
from content_moderation.moderation.engine import (
    EngineConfig,
    StageConfig,
    ModerationEngine,
    build_engine,
    moderate_content,
)

__all__ = [
    # Enums
    "Category",
    "ModerationSource",

    # Models
    "ModerationRequest",
    "ModerationResult",
    "ProviderVerdict",

    # Errors
    "ProviderError",
    "ProviderUnavailable",
    "ProviderResponseInvalid",
    "StageOutcome",

    # Engine
    "LocalFilter",
    "local_filter",
    "EngineConfig",
    "StageConfig",
    "ModerationEngine",
    "build_engine",
    "moderate_content",
]
