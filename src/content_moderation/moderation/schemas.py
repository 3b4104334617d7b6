"""
Moderation schemas for the content-classification decision engine.

Defines Pydantic models for:
- Internal moderation categories
- Stage tags (which stage produced a verdict)
- Moderation requests and results
- The intermediate verdict shape shared by all provider adapters
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator


# ============================================================================
# ENUMS
# ============================================================================

class Category(str, Enum):
    """Internal moderation category. Exactly one is selected per verdict."""
    HATE_SPEECH = "HATE_SPEECH"
    HARASSMENT = "HARASSMENT"
    SELF_HARM = "SELF_HARM"
    NSFW = "NSFW"
    VIOLENCE = "VIOLENCE"
    SPAM = "SPAM"
    OTHER = "OTHER"


class ModerationSource(str, Enum):
    """Stage of the fallback chain that produced a verdict."""
    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"
    LOCAL = "LOCAL"


# ============================================================================
# REQUEST
# ============================================================================

class ModerationRequest(BaseModel):
    """
    Text submitted for moderation.

    Empty content is valid and yields an unflagged verdict.
    """
    content: str = Field(..., description="User-submitted text")
    context: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Opaque caller context (never used for decisions)"
    )


# ============================================================================
# VERDICTS
# ============================================================================

def _zero_severity_when_unflagged(severity: float, info: ValidationInfo) -> float:
    # ``flagged`` is declared before ``severity``, so info.data holds its coerced value
    if not info.data.get("flagged", False):
        return 0.0
    return severity


class ProviderVerdict(BaseModel):
    """
    Normalized output of a single provider adapter.

    Every adapter reduces its provider's native response to this shape using the
    category mapper; the orchestrator tags it with the stage that produced it.
    """
    flagged: bool
    category: Category = Category.OTHER
    severity: float = Field(default=0.0, ge=0.0, le=1.0)
    provider: str
    raw: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator("severity")
    @classmethod
    def normalize_unflagged(cls, severity: float, info: ValidationInfo) -> float:
        return _zero_severity_when_unflagged(severity, info)

    @classmethod
    def not_flagged(cls, provider: str, raw: Optional[Dict[str, Any]] = None) -> "ProviderVerdict":
        return cls(flagged=False, category=Category.OTHER, provider=provider, raw=raw or {})

    def to_result(self, source: "ModerationSource") -> "ModerationResult":
        """Tag this verdict with the stage that produced it."""
        return ModerationResult(
            flagged=self.flagged,
            category=self.category,
            severity=self.severity,
            source=source,
            raw={"provider": self.provider, **self.raw},
        )


class ModerationResult(BaseModel):
    """
    Final moderation verdict returned to callers.

    Callers block or quarantine when ``flagged`` is true and persist
    ``category``/``severity``/``raw`` for human review. ``raw`` is diagnostic
    only and must not drive control flow.
    """
    flagged: bool
    category: Category
    severity: float = Field(..., ge=0.0, le=1.0, description="0.0 whenever not flagged")
    source: ModerationSource
    raw: Dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "flagged": True,
                "category": "HATE_SPEECH",
                "severity": 0.8,
                "source": "LOCAL",
                "raw": {"fallback": True, "matched": "racist"},
            }
        },
    }

    @field_validator("severity")
    @classmethod
    def normalize_unflagged(cls, severity: float, info: ValidationInfo) -> float:
        return _zero_severity_when_unflagged(severity, info)
