"""Shared fixtures for unit tests.

``UpstreamStub`` plays the Gemini API behind ``httpx.MockTransport``: each
model gets a scripted queue of responses (or transport exceptions) and every
request is recorded for later assertions.
"""

from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import Callable

import httpx
import pytest

from gemini_relay.core.config import Settings
from gemini_relay.retry_transport import RetryTransport

PRIMARY = "gemini-3-flash-preview"
FALLBACK = "gemini-2.0-flash"

GEMINI_OK = {
    "candidates": [{"content": {"role": "model", "parts": [{"text": "Hello!"}]}, "finishReason": "STOP"}],
    "modelVersion": "gemini-3-flash-preview",
}
RATE_LIMITED = {"error": {"code": 429, "message": "Resource has been exhausted", "status": "RESOURCE_EXHAUSTED"}}
UNAVAILABLE = {"error": {"code": 503, "message": "The model is overloaded", "status": "UNAVAILABLE"}}
BAD_REQUEST = {"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}}


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class UpstreamStub:
    """Scripted upstream keyed by model name.

    Script entries are ``(status, body)`` tuples or exceptions to raise.
    A dict body is sent as JSON; ``str``/``bytes`` bodies are sent verbatim.
    """

    def __init__(self, script: dict[str, list]) -> None:
        self._script = {model: list(entries) for model, entries in script.items()}
        self.requests: dict[str, list[httpx.Request]] = defaultdict(list)

    @staticmethod
    def model_of(request: httpx.Request) -> str:
        return request.url.path.rsplit("/", 1)[-1].split(":", 1)[0]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        model = self.model_of(request)
        self.requests[model].append(request)
        queue = self._script.get(model)
        if not queue:
            raise AssertionError(f"Unexpected call to {model}")
        entry = queue.pop(0)
        if isinstance(entry, Exception):
            raise entry
        status, body = entry
        if isinstance(body, (str, bytes)):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    def calls(self, model: str) -> int:
        return len(self.requests[model])

    @property
    def total_calls(self) -> int:
        return sum(len(reqs) for reqs in self.requests.values())

    def body_of(self, model: str, index: int = 0) -> dict:
        return json.loads(self.requests[model][index].content)


@pytest.fixture
def settings() -> Settings:
    return Settings(GEMINI_API_KEY="test-key")


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_transport(settings: Settings, sleeper: SleepRecorder) -> Callable[..., tuple[RetryTransport, UpstreamStub]]:
    """Factory: ``make_transport(script, settings=None)`` → (transport, stub)."""

    def _make(script: dict[str, list], settings_override: Settings | None = None):
        stub = UpstreamStub(script)
        client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
        transport = RetryTransport(settings_override or settings, client=client, sleep=sleeper)
        return transport, stub

    return _make
