import json
from typing import Callable, List

import httpx
import pytest

from travel_ai.clients.generative import GenerativeClient
from travel_ai.errors import ConfigFetchFailedError


def gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class FakeConfigProvider:
    """Hands out a fixed key, or raises the configured error."""

    def __init__(self, credential: str = "test-key", error: Exception | None = None):
        self.credential = credential
        self.error = error
        self.calls = 0

    async def fetch_credential(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.credential


class RecordingGemini:
    """MockTransport handler that records request bodies and answers with canned responses."""

    def __init__(self, answer: str = "**The Ritz** is nearby", status_code: int = 200):
        self.answer = answer
        self.status_code = status_code
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, text='{"error": "quota exceeded"}')
        return httpx.Response(200, json=gemini_body(self.answer))

    def prompt_of(self, index: int = -1) -> str:
        body = json.loads(self.requests[index].content)
        return body["contents"][0]["parts"][0]["text"]


@pytest.fixture
def gemini() -> RecordingGemini:
    return RecordingGemini()


@pytest.fixture
def make_client() -> Callable[..., GenerativeClient]:
    def _make(handler, credential: str | None = "test-key", model: str = "gemini-1.5-flash") -> GenerativeClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return GenerativeClient(http_client, model=model, credential=credential)

    return _make


@pytest.fixture
def failing_config() -> FakeConfigProvider:
    return FakeConfigProvider(error=ConfigFetchFailedError("Fetch failed (returned status is not right)."))
