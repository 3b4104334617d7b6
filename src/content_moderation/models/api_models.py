"""
API request and response models for FastAPI endpoints.

This module defines the Pydantic models used for API request/response validation.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..moderation.schemas import ModerationResult
from .engine_version import EngineVersion


class ModerateRequest(BaseModel):
    """Request model for the moderation endpoint."""

    content: str = Field(description="User-submitted text to moderate")
    context: Optional[Dict[str, Any]] = Field(
        default=None, description="Opaque caller context, not used for decisions"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "content": "check this out discord.gg/abc123",
                "context": {"submission": "artwork-description"},
            }
        }
    }


class ModerateResponse(BaseModel):
    """Response model for the moderation endpoint."""

    success: bool = Field(description="Whether moderation completed")
    result: Optional[ModerationResult] = Field(None, description="Moderation verdict")
    error: Optional[str] = Field(None, description="Error message if failed")


class StagesResponse(BaseModel):
    """Fallback stages active in this deployment."""

    stages: List[str] = Field(description="Stages in fallback order")
    degraded: bool = Field(description="True when no network provider is configured")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="healthy, or degraded when only the local filter runs", examples=["healthy"])
    version: str = Field(description="API version", examples=["1.0.0"])
    uptime_seconds: float = Field(description="Service uptime")
    stages: List[str] = Field(description="Fallback stages in order", examples=[["PRIMARY", "SECONDARY", "LOCAL"]])
    degraded: bool = Field(description="True when no network provider is configured")


class VersionResponse(BaseModel):
    """Version information response."""

    api_version: str = Field(description="API version")
    engine_version: EngineVersion = Field(description="Current engine version")
