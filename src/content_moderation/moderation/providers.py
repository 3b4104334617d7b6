"""
Classification provider adapters for the moderation fallback chain.

Provides a uniform interface over external text-classification services:
- OpenAI moderation endpoint (primary): per-category flag bit + score
- Perspective comment analyzer (secondary): per-attribute score, thresholded here

Key features:
- Response normalization into ProviderVerdict via the category mapper
- Failures mapped to ProviderUnavailable / ProviderResponseInvalid
- One deadline per stage covering connect, upload and the full response body,
  no retries within a stage
- StageOutcome return values instead of exceptions at the adapter boundary
"""

import json
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Mapping, Optional

import httpx
import structlog
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    OpenAI,
    OpenAIError,
)
from pydantic import ValidationError

from content_moderation.moderation.category_mapper import (
    OPENAI_CATEGORY_MAP,
    PERSPECTIVE_ATTRIBUTE_MAP,
    AttributeMapping,
    PerspectiveAttribute,
    map_openai_category,
)
from content_moderation.moderation.errors import (
    ProviderError,
    ProviderResponseInvalid,
    ProviderUnavailable,
    StageOutcome,
)
from content_moderation.moderation.schemas import Category, ProviderVerdict


logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0

_PARSE_ERRORS = (AttributeError, IndexError, KeyError, TypeError, ValueError, ValidationError)


# ============================================================================
# STAGE DEADLINE
# ============================================================================

class StageDeadline:
    """
    Wall-clock budget for one provider call.

    httpx applies its timeout to each connect/read/write separately, so a provider
    trickling bytes could hold a stage open indefinitely. The deadline is checked
    between body chunks and bounds the stage as a whole.
    """

    def __init__(self, provider: str, seconds: float):
        self.provider = provider
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    def check(self) -> None:
        if time.monotonic() >= self.expires_at:
            raise ProviderUnavailable(self.provider, f"timed out after {self.seconds}s")

    def read_body(self, chunks: Iterable[bytes]) -> bytes:
        """Collect a streamed response body, giving up once the deadline passes."""
        body = bytearray()
        for chunk in chunks:
            self.check()
            body.extend(chunk)
        self.check()
        return bytes(body)


# ============================================================================
# ABSTRACT BASE CLASS
# ============================================================================

class ModerationProvider(ABC):
    """
    Abstract base class for classification provider adapters.

    Subclasses implement ``_moderate`` and raise ProviderError on failure;
    ``moderate`` turns that into a StageOutcome so nothing escapes the adapter.
    """

    name = "provider"

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds
        self.logger = logger.bind(provider=self.name)

    @abstractmethod
    def _moderate(self, content: str) -> ProviderVerdict:
        """
        Call the provider and normalize its response.

        Raises:
            ProviderUnavailable: Network failure, timeout, non-success status
            ProviderResponseInvalid: Unparseable or incomplete response
        """

    def moderate(self, content: str) -> StageOutcome:
        """
        Classify content with this provider.

        Args:
            content: Text to classify

        Returns:
            StageOutcome holding either the verdict or the provider error
        """
        start_time = time.time()

        try:
            self._check_encodable(content)
            verdict = self._moderate(content)
        except ProviderError as e:
            latency_ms = int((time.time() - start_time) * 1000)
            self.logger.debug(
                "provider_call_failed",
                error_kind=e.kind,
                error=e.message,
                latency_ms=latency_ms
            )
            return StageOutcome.failure(e, latency_ms=latency_ms)

        latency_ms = int((time.time() - start_time) * 1000)
        self.logger.debug(
            "provider_call_completed",
            flagged=verdict.flagged,
            category=verdict.category.value,
            latency_ms=latency_ms
        )
        return StageOutcome.success(verdict, latency_ms=latency_ms)

    def _check_encodable(self, content: str) -> None:
        # Request bodies are UTF-8 JSON; lone surrogates cannot be sent
        try:
            content.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ProviderResponseInvalid(
                self.name, f"content not encodable as UTF-8 at position {e.start}"
            ) from e

    def close(self) -> None:
        """Release network resources held by the adapter."""


# ============================================================================
# NORMALIZATION
# ============================================================================

def normalize_openai_result(payload: Dict[str, Any], provider: str = "openai") -> ProviderVerdict:
    """
    Reduce one OpenAI moderation result to a verdict.

    The highest-scoring flagged category wins. Known categories are scanned in
    OpenAICategory declaration order so equal scores resolve deterministically;
    categories missing from the table come after, in response order, as OTHER.

    Args:
        payload: ``results[0]`` of the moderation response, keyed by API names
        provider: Provider name recorded on the verdict

    Returns:
        ProviderVerdict

    Raises:
        KeyError, TypeError, ValueError: On malformed payloads
    """
    flagged = payload["flagged"]
    if not isinstance(flagged, bool):
        raise TypeError(f"'flagged' must be a boolean, got {type(flagged).__name__}")

    if not flagged:
        return ProviderVerdict.not_flagged(provider, raw={"result": payload})

    categories = payload["categories"]
    scores = payload["category_scores"]

    known = [member.value for member in OPENAI_CATEGORY_MAP]
    unknown = [name for name in categories if name not in known]

    best_name: Optional[str] = None
    best_score = 0.0

    for name in known + unknown:
        if not categories.get(name):
            continue
        score = float(scores[name])
        if best_name is None or score > best_score:
            best_name = name
            best_score = score

    if best_name is None:
        # Flagged overall without any flagged category
        return ProviderVerdict(
            flagged=True,
            category=Category.OTHER,
            severity=0.0,
            provider=provider,
            raw={"result": payload},
        )

    return ProviderVerdict(
        flagged=True,
        category=map_openai_category(best_name),
        severity=best_score,
        provider=provider,
        raw={"native_category": best_name, "result": payload},
    )


def normalize_perspective_response(
    data: Dict[str, Any],
    table: Mapping[PerspectiveAttribute, AttributeMapping] = PERSPECTIVE_ATTRIBUTE_MAP,
    provider: str = "perspective"
) -> ProviderVerdict:
    """
    Apply per-attribute thresholds to a Perspective analyze response.

    An attribute qualifies when its summary score is strictly above its own
    threshold; the highest qualifying score wins (first in table order on ties).
    Attributes the provider did not score are skipped.

    Args:
        data: Decoded JSON response body
        table: Attribute -> (category, threshold)
        provider: Provider name recorded on the verdict

    Returns:
        ProviderVerdict

    Raises:
        KeyError, TypeError, ValueError: On malformed responses
    """
    if not isinstance(data, dict):
        raise TypeError("response body is not a JSON object")

    attribute_scores = data.get("attributeScores")
    if not isinstance(attribute_scores, dict):
        raise KeyError("attributeScores")

    best_attribute: Optional[PerspectiveAttribute] = None
    best_score = 0.0

    for attribute, mapping in table.items():
        entry = attribute_scores.get(attribute.value)
        if entry is None:
            continue

        value = entry["summaryScore"]["value"]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"{attribute.value} score is not a number: {value!r}")

        score = float(value)
        if not 0.0 <= score <= 1.0:
            raise ValueError(f"{attribute.value} score out of range: {score}")

        if score > mapping.threshold and (best_attribute is None or score > best_score):
            best_attribute = attribute
            best_score = score

    if best_attribute is None:
        return ProviderVerdict.not_flagged(provider, raw={"response": data})

    return ProviderVerdict(
        flagged=True,
        category=table[best_attribute].category,
        severity=best_score,
        provider=provider,
        raw={"attribute": best_attribute.value, "response": data},
    )


# ============================================================================
# OPENAI MODERATION (PRIMARY)
# ============================================================================

class OpenAIModerationProvider(ModerationProvider):
    """
    Primary adapter over the OpenAI moderation endpoint.

    The provider supplies its own per-category flag bit, so no thresholds are
    applied client-side. Works with any OpenAI-compatible base URL.
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "omni-moderation-latest",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None
    ):
        super().__init__(timeout_seconds=timeout_seconds)
        self.model = model
        self.base_url = base_url

        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
            http_client=http_client
        )

    def _moderate(self, content: str) -> ProviderVerdict:
        deadline = StageDeadline(self.name, self.timeout_seconds)

        try:
            with self.client.moderations.with_streaming_response.create(
                model=self.model,
                input=content,
                timeout=deadline.remaining()
            ) as response:
                body = deadline.read_body(response.iter_bytes())
        except APITimeoutError as e:
            raise ProviderUnavailable(
                self.name, f"timed out after {self.timeout_seconds}s"
            ) from e
        except APIConnectionError as e:
            raise ProviderUnavailable(self.name, f"connection failed: {e}") from e
        except APIStatusError as e:
            raise ProviderUnavailable(self.name, f"HTTP {e.status_code}") from e
        except OpenAIError as e:
            raise ProviderResponseInvalid(self.name, str(e)) from e
        # Raised by httpx while the body streams, outside the SDK's error mapping
        except httpx.TimeoutException as e:
            raise ProviderUnavailable(
                self.name, f"timed out after {self.timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailable(
                self.name, f"{type(e).__name__}: connection failed"
            ) from e

        try:
            data = json.loads(body)
        except ValueError as e:
            raise ProviderResponseInvalid(self.name, f"undecodable response: {e}") from e

        try:
            results = data["results"]
            if not results:
                raise ValueError("response has no results")
            return normalize_openai_result(results[0], provider=self.name)
        except _PARSE_ERRORS as e:
            raise ProviderResponseInvalid(self.name, f"malformed response: {e}") from e

    def close(self) -> None:
        self.client.close()


# ============================================================================
# PERSPECTIVE (SECONDARY)
# ============================================================================

class PerspectiveProvider(ModerationProvider):
    """
    Secondary adapter over the Perspective comment analyzer.

    Requests every attribute in the threshold table and applies the
    attribute-specific thresholds locally.
    """

    name = "perspective"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://commentanalyzer.googleapis.com/v1alpha1",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
        attribute_table: Mapping[PerspectiveAttribute, AttributeMapping] = PERSPECTIVE_ATTRIBUTE_MAP
    ):
        super().__init__(timeout_seconds=timeout_seconds)
        self.api_key = api_key
        self.analyze_url = f"{base_url.rstrip('/')}/comments:analyze"
        self.attribute_table = attribute_table
        self.client = http_client or httpx.Client(timeout=timeout_seconds)

    def build_request_body(self, content: str) -> Dict[str, Any]:
        return {
            "comment": {"text": content},
            "requestedAttributes": {
                attribute.value: {} for attribute in self.attribute_table
            },
            "doNotStore": True,
        }

    def _moderate(self, content: str) -> ProviderVerdict:
        deadline = StageDeadline(self.name, self.timeout_seconds)

        try:
            with self.client.stream(
                "POST",
                self.analyze_url,
                params={"key": self.api_key},
                json=self.build_request_body(content),
                timeout=deadline.remaining()
            ) as response:
                response.raise_for_status()
                body = deadline.read_body(response.iter_bytes())
        except httpx.TimeoutException as e:
            raise ProviderUnavailable(
                self.name, f"timed out after {self.timeout_seconds}s"
            ) from e
        except httpx.HTTPStatusError as e:
            # Message would carry the request URL, which includes the API key
            raise ProviderUnavailable(self.name, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ProviderUnavailable(
                self.name, f"{type(e).__name__}: connection failed"
            ) from e

        try:
            data = json.loads(body)
        except ValueError as e:
            raise ProviderResponseInvalid(self.name, f"undecodable response: {e}") from e

        try:
            return normalize_perspective_response(
                data, table=self.attribute_table, provider=self.name
            )
        except _PARSE_ERRORS as e:
            raise ProviderResponseInvalid(self.name, f"malformed response: {e}") from e

    def close(self) -> None:
        self.client.close()


# ============================================================================
# PROVIDER FACTORY
# ============================================================================

def create_provider(
    provider: str,
    api_key: str,
    base_url: Optional[str] = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    model: Optional[str] = None,
    http_client: Optional[httpx.Client] = None
) -> ModerationProvider:
    """
    Factory function to create a provider adapter by name.

    Args:
        provider: Provider name ("openai", "perspective")
        api_key: Provider credential
        base_url: Optional endpoint override
        timeout_seconds: Per-call timeout for this stage
        model: Model name (openai only)
        http_client: Optional pre-configured httpx client

    Returns:
        Configured ModerationProvider

    Raises:
        ValueError: If the provider is unknown or the key is missing
    """
    if not api_key:
        raise ValueError(f"{provider} API key required")

    logger.info(
        "creating_moderation_provider",
        provider=provider,
        timeout_seconds=timeout_seconds
    )

    if provider == OpenAIModerationProvider.name:
        kwargs: Dict[str, Any] = {}
        if base_url:
            kwargs["base_url"] = base_url
        if model:
            kwargs["model"] = model
        return OpenAIModerationProvider(
            api_key=api_key,
            timeout_seconds=timeout_seconds,
            http_client=http_client,
            **kwargs
        )

    elif provider == PerspectiveProvider.name:
        kwargs = {"base_url": base_url} if base_url else {}
        return PerspectiveProvider(
            api_key=api_key,
            timeout_seconds=timeout_seconds,
            http_client=http_client,
            **kwargs
        )

    else:
        raise ValueError(
            f"Unknown moderation provider: {provider}. "
            f"Supported: openai, perspective"
        )
