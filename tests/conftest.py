"""
Global pytest fixtures and configuration for test suite.

This module provides reusable fixtures for:
- HTTP clients for the FastAPI app
- Mock settings/configuration
- Stub provider adapters that deterministically succeed or fail
- Provider adapters wired to httpx mock transports
"""

from typing import AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio
import structlog
from httpx import ASGITransport, AsyncClient

from content_moderation.api.app import app
from content_moderation.config import Settings
from content_moderation.moderation.errors import ProviderUnavailable
from content_moderation.moderation.providers import (
    OpenAIModerationProvider,
    PerspectiveProvider,
)
from content_moderation.moderation.schemas import Category, ProviderVerdict
from tests.fixtures.providers import StubProvider

# Loggers must not cache their configuration so structlog.testing.capture_logs works
structlog.configure(cache_logger_on_first_use=False)


# ============================================================================
# STUB PROVIDERS
# ============================================================================

@pytest.fixture
def failing_primary() -> StubProvider:
    return StubProvider("openai", error=ProviderUnavailable("openai", "HTTP 500"))


@pytest.fixture
def failing_secondary() -> StubProvider:
    return StubProvider(
        "perspective", error=ProviderUnavailable("perspective", "timed out after 1.0s")
    )


@pytest.fixture
def clean_primary() -> StubProvider:
    return StubProvider("openai", verdict=ProviderVerdict.not_flagged("openai"))


@pytest.fixture
def flagging_secondary() -> StubProvider:
    return StubProvider(
        "perspective",
        verdict=ProviderVerdict(
            flagged=True,
            category=Category.HARASSMENT,
            severity=0.86,
            provider="perspective",
            raw={"attribute": "INSULT"},
        ),
    )


# ============================================================================
# HTTP-LEVEL PROVIDERS
# ============================================================================

@pytest.fixture
def openai_provider_factory() -> Callable[[Callable], OpenAIModerationProvider]:
    """Build the OpenAI adapter on top of an httpx mock transport."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        timeout_seconds: float = 2.0
    ) -> OpenAIModerationProvider:
        return OpenAIModerationProvider(
            api_key="sk-test",
            base_url="https://moderation.test/v1",
            timeout_seconds=timeout_seconds,
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )

    return factory


@pytest.fixture
def perspective_provider_factory() -> Callable[[Callable], PerspectiveProvider]:
    """Build the Perspective adapter on top of an httpx mock transport."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        timeout_seconds: float = 2.0
    ) -> PerspectiveProvider:
        return PerspectiveProvider(
            api_key="perspective-test-key",
            base_url="https://perspective.test/v1alpha1",
            timeout_seconds=timeout_seconds,
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )

    return factory


# ============================================================================
# APP / SETTINGS
# ============================================================================

@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """
    Create async HTTP client for testing FastAPI endpoints.

    Yields:
        AsyncClient instance
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def mock_settings() -> Settings:
    """
    Create mock settings for testing with safe defaults.

    Returns:
        Settings instance with no provider credentials
    """
    return Settings(
        primary_api_key="",
        secondary_api_key="",
        log_level="INFO",
        log_json=False,  # Easier to read in tests
    )
