"""
Moderation engine orchestrating the provider fallback chain.

Coordinates:
1. Primary provider (OpenAI moderation)
2. Secondary provider (Perspective), only if the primary failed or is not configured
3. Local keyword filter, only if no network stage produced a verdict

First success wins. ``classify`` never raises: provider failures become a fall
through to the next stage, and the local filter cannot fail.

This is the main entry point for content moderation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from content_moderation.config import Settings, settings as default_settings
from content_moderation.moderation.errors import ProviderResponseInvalid, StageOutcome
from content_moderation.moderation.local_filter import LocalFilter
from content_moderation.moderation.providers import (
    DEFAULT_TIMEOUT_SECONDS,
    ModerationProvider,
    OpenAIModerationProvider,
    PerspectiveProvider,
    create_provider,
)
from content_moderation.moderation.schemas import (
    ModerationRequest,
    ModerationResult,
    ModerationSource,
)


logger = structlog.get_logger(__name__)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True)
class StageConfig:
    """Construction parameters for one network stage."""
    provider: str
    enabled: bool = True
    api_key: str = field(default="", repr=False)
    base_url: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    model: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """A stage runs only when enabled and given a credential."""
        return self.enabled and bool(self.api_key)


@dataclass(frozen=True)
class EngineConfig:
    """Explicit configuration of the fallback chain."""
    primary: StageConfig
    secondary: StageConfig

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "EngineConfig":
        config = config or default_settings
        return cls(
            primary=StageConfig(
                provider=OpenAIModerationProvider.name,
                enabled=config.primary_enabled,
                api_key=config.primary_api_key,
                base_url=config.primary_api_base_url,
                timeout_seconds=config.primary_timeout_seconds,
                model=config.primary_model,
            ),
            secondary=StageConfig(
                provider=PerspectiveProvider.name,
                enabled=config.secondary_enabled,
                api_key=config.secondary_api_key,
                base_url=config.secondary_api_base_url,
                timeout_seconds=config.secondary_timeout_seconds,
            ),
        )

    @classmethod
    def local_only(cls) -> "EngineConfig":
        return cls(
            primary=StageConfig(provider=OpenAIModerationProvider.name, enabled=False),
            secondary=StageConfig(provider=PerspectiveProvider.name, enabled=False),
        )


# ============================================================================
# MODERATION ENGINE
# ============================================================================

class ModerationEngine:
    """
    Classification orchestrator.

    Holds injected provider adapters; ``None`` means the stage is not configured
    and is skipped. No state is carried between calls.
    """

    def __init__(
        self,
        primary: Optional[ModerationProvider] = None,
        secondary: Optional[ModerationProvider] = None,
        local_filter: Optional[LocalFilter] = None
    ):
        self.primary = primary
        self.secondary = secondary
        self.local_filter = local_filter or LocalFilter()

    @property
    def enabled_stages(self) -> List[str]:
        stages = []
        if self.primary is not None:
            stages.append(ModerationSource.PRIMARY.value)
        if self.secondary is not None:
            stages.append(ModerationSource.SECONDARY.value)
        stages.append(ModerationSource.LOCAL.value)
        return stages

    def classify(self, request: ModerationRequest) -> ModerationResult:
        """
        Moderate content through the fallback chain.

        Args:
            request: ModerationRequest with content and optional context

        Returns:
            ModerationResult tagged with the stage that produced it
        """
        content = request.content
        log = logger.bind(
            content_length=len(content),
            context_keys=sorted(request.context) if request.context else None
        )

        outcome = self._run_stage(self.primary, ModerationSource.PRIMARY, content, log)
        if outcome is not None:
            if outcome.ok:
                return self._finish(outcome, ModerationSource.PRIMARY, log)
            log.warning(
                "primary_provider_failed",
                provider=outcome.error.provider,
                error_kind=outcome.error.kind,
                error=outcome.error.message,
                latency_ms=outcome.latency_ms
            )

        outcome = self._run_stage(self.secondary, ModerationSource.SECONDARY, content, log)
        if outcome is not None:
            if outcome.ok:
                return self._finish(outcome, ModerationSource.SECONDARY, log)
            log.error(
                "secondary_provider_failed",
                provider=outcome.error.provider,
                error_kind=outcome.error.kind,
                error=outcome.error.message,
                latency_ms=outcome.latency_ms
            )

        result = self.local_filter.filter(content)

        if self.primary is not None or self.secondary is not None:
            log.error(
                "moderation_degraded_to_local_filter",
                flagged=result.flagged,
                category=result.category.value
            )
        else:
            log.info(
                "moderation_completed",
                source=result.source.value,
                flagged=result.flagged,
                category=result.category.value
            )

        return result

    def moderate(self, content: str, context: Optional[Dict[str, Any]] = None) -> ModerationResult:
        """Convenience wrapper around ``classify`` for raw strings."""
        return self.classify(ModerationRequest(content=content, context=context))

    def _run_stage(
        self,
        provider: Optional[ModerationProvider],
        source: ModerationSource,
        content: str,
        log
    ) -> Optional[StageOutcome]:
        if provider is None:
            log.debug("stage_skipped", stage=source.value)
            return None

        try:
            return provider.moderate(content)
        except Exception as e:
            # Adapter bug rather than a provider error; still must not escape
            log.error(
                "provider_adapter_crashed",
                stage=source.value,
                provider=getattr(provider, "name", type(provider).__name__),
                error=str(e),
                exc_info=True
            )
            return _crashed_outcome(provider, e)

    @staticmethod
    def _finish(outcome: StageOutcome, source: ModerationSource, log) -> ModerationResult:
        result = outcome.verdict.to_result(source)
        log.info(
            "moderation_completed",
            source=source.value,
            flagged=result.flagged,
            category=result.category.value,
            severity=result.severity,
            latency_ms=outcome.latency_ms
        )
        return result

    def close(self) -> None:
        for provider in (self.primary, self.secondary):
            if provider is not None:
                provider.close()

    def __enter__(self) -> "ModerationEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _crashed_outcome(provider: ModerationProvider, error: Exception) -> StageOutcome:
    name = getattr(provider, "name", type(provider).__name__)
    return StageOutcome.failure(
        ProviderResponseInvalid(name, f"adapter error: {type(error).__name__}: {error}")
    )


# ============================================================================
# CONSTRUCTION
# ============================================================================

def _build_stage(stage: StageConfig, source: ModerationSource) -> Optional[ModerationProvider]:
    if not stage.is_active:
        logger.info(
            "moderation_stage_disabled",
            stage=source.value,
            provider=stage.provider,
            reason="disabled" if not stage.enabled else "missing_api_key"
        )
        return None

    return create_provider(
        provider=stage.provider,
        api_key=stage.api_key,
        base_url=stage.base_url,
        timeout_seconds=stage.timeout_seconds,
        model=stage.model
    )


def build_engine(config: Optional[EngineConfig] = None) -> ModerationEngine:
    """
    Build a ModerationEngine with adapters for every active stage.

    Args:
        config: Explicit engine configuration (defaults to environment settings)

    Returns:
        Configured ModerationEngine
    """
    config = config or EngineConfig.from_settings()

    engine = ModerationEngine(
        primary=_build_stage(config.primary, ModerationSource.PRIMARY),
        secondary=_build_stage(config.secondary, ModerationSource.SECONDARY),
    )

    logger.info("moderation_engine_built", stages=engine.enabled_stages)
    return engine


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def moderate_content(
    content: str,
    context: Optional[Dict[str, Any]] = None,
    engine: Optional[ModerationEngine] = None
) -> ModerationResult:
    """
    Moderate a piece of user-submitted text.

    Builds a one-off engine from settings unless one is supplied.

    Args:
        content: Text to moderate
        context: Optional caller context
        engine: Optional pre-built engine (reused across calls)

    Returns:
        ModerationResult

    Example:
        >>> result = moderate_content("a peaceful landscape painting")
        >>> result.flagged
        False
    """
    if engine is not None:
        return engine.moderate(content, context=context)

    with build_engine() as one_off:
        return one_off.moderate(content, context=context)
