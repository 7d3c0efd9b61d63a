"""Shared fixtures: scripted Gemini clients, mock HTTP transports, settings."""

from types import SimpleNamespace
from typing import Any, Callable

import httpx
import pytest

from wingman.config import Settings


def gemini_response(text: str | None) -> SimpleNamespace:
    """Build an object shaped like a google-genai GenerateContentResponse."""
    part = SimpleNamespace(text=text)
    content = SimpleNamespace(parts=[part])
    return SimpleNamespace(candidates=[SimpleNamespace(content=content)])


class ScriptedGemini:
    """Client factory whose clients play back a shared script.

    Each script entry is either an exception (raised) or a string (returned
    as a response). Every call records the API key that made it.
    """

    def __init__(self, *outcomes: Any):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []
        self.built_keys: list[str] = []

    def __call__(self, api_key: str, timeout_seconds: float = 60.0) -> "ScriptedGemini._Client":
        self.built_keys.append(api_key)
        return ScriptedGemini._Client(self, api_key)

    class _Client:
        def __init__(self, owner: "ScriptedGemini", api_key: str):
            self.owner = owner
            self.api_key = api_key

        async def generate(self, model, parts):
            self.owner.calls.append({"key": self.api_key, "model": model, "parts": parts})
            if not self.owner.outcomes:
                raise AssertionError("No scripted outcome left")
            outcome = self.owner.outcomes.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return gemini_response(outcome)


class SleepRecorder:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def mock_transport(routes: dict[str, Callable[[httpx.Request], httpx.Response]]) -> httpx.MockTransport:
    """MockTransport dispatching on ``"METHOD /path"``; unknown routes 404."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        route = routes.get(f"{request.method} {request.url.path}")
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        return route(request)

    transport = httpx.MockTransport(handler)
    transport.requests = requests  # type: ignore[attr-defined]
    return transport


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the real environment and .env file."""
    values: dict[str, Any] = {
        "gemini_api_key": None,
        "gemini_fallback_api_key": None,
        "openrouter_api_key": None,
        "use_ollama": False,
        "use_openrouter": False,
        "ollama_model": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
