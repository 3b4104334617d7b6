# Data models for the content moderation service

from .engine_version import EngineVersion
from .api_models import (
    HealthResponse,
    ModerateRequest,
    ModerateResponse,
    StagesResponse,
    VersionResponse,
)

__all__ = [
    "EngineVersion",
    "HealthResponse",
    "ModerateRequest",
    "ModerateResponse",
    "StagesResponse",
    "VersionResponse",
]
