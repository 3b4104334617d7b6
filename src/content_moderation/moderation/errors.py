"""
Provider error taxonomy and explicit stage outcomes.

Adapters never let exceptions escape to the orchestrator: each call returns a
``StageOutcome`` holding either a verdict or the ``ProviderError`` that ended
the stage. Both error kinds are treated identically by the fallback chain.
"""

from dataclasses import dataclass
from typing import Optional

from content_moderation.moderation.schemas import ProviderVerdict


class ProviderError(Exception):
    """Base class for failures of an external classification provider."""

    kind = "provider_error"

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ProviderUnavailable(ProviderError):
    """Network failure, timeout, or non-success HTTP status."""

    kind = "unavailable"


class ProviderResponseInvalid(ProviderError):
    """Response body could not be parsed or lacks expected fields."""

    kind = "response_invalid"


@dataclass(frozen=True)
class StageOutcome:
    """Result of one provider stage: exactly one of ``verdict``/``error`` is set."""

    verdict: Optional[ProviderVerdict] = None
    error: Optional[ProviderError] = None
    latency_ms: int = 0

    def __post_init__(self):
        if (self.verdict is None) == (self.error is None):
            raise ValueError("StageOutcome requires exactly one of verdict or error")

    @property
    def ok(self) -> bool:
        return self.verdict is not None

    @classmethod
    def success(cls, verdict: ProviderVerdict, latency_ms: int = 0) -> "StageOutcome":
        return cls(verdict=verdict, latency_ms=latency_ms)

    @classmethod
    def failure(cls, error: ProviderError, latency_ms: int = 0) -> "StageOutcome":
        return cls(error=error, latency_ms=latency_ms)
