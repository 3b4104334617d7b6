"""
Provider doubles for testing.

- StubProvider: adapter double with a fixed verdict or fixed error
- Mock transport handlers for faking provider HTTP endpoints
"""

import json
import time
from typing import Callable, Iterator, List, Optional

import httpx

from content_moderation.moderation.providers import ModerationProvider
from content_moderation.moderation.schemas import ProviderVerdict


class StubProvider(ModerationProvider):
    """Provider double returning a fixed verdict or raising a fixed error."""

    def __init__(
        self,
        name: str,
        verdict: Optional[ProviderVerdict] = None,
        error: Optional[Exception] = None
    ):
        self.name = name
        super().__init__(timeout_seconds=1.0)
        self.verdict = verdict
        self.error = error
        self.calls: List[str] = []
        self.closed = False

    def _moderate(self, content: str) -> ProviderVerdict:
        self.calls.append(content)
        if self.error is not None:
            raise self.error
        return self.verdict

    def close(self) -> None:
        self.closed = True


def json_handler(
    status_code: int,
    body,
    seen: Optional[list] = None
) -> Callable[[httpx.Request], httpx.Response]:
    """Mock transport handler answering every request with the same JSON body."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body)

    return handler


def text_handler(status_code: int, text: str) -> Callable[[httpx.Request], httpx.Response]:
    """Mock transport handler answering with a non-JSON body."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text=text, headers={"content-type": "text/html"})

    return handler


def raising_handler(exc_type: type) -> Callable[[httpx.Request], httpx.Response]:
    """Mock transport handler raising an httpx transport error."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type("simulated failure", request=request)

    return handler


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content.decode("utf-8"))


class TricklingStream(httpx.SyncByteStream):
    """Response body that sends one byte at a time with a pause before each."""

    def __init__(self, body: bytes, delay_seconds: float):
        self.body = body
        self.delay_seconds = delay_seconds

    def __iter__(self) -> Iterator[bytes]:
        for index in range(len(self.body)):
            time.sleep(self.delay_seconds)
            yield self.body[index:index + 1]


def trickling_handler(body, delay_seconds: float) -> Callable[[httpx.Request], httpx.Response]:
    """Mock transport handler whose JSON body arrives slowly, byte by byte."""
    encoded = json.dumps(body).encode("utf-8")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"content-type": "application/json"},
            stream=TricklingStream(encoded, delay_seconds),
        )

    return handler
