"""API tests against an app wired with a scripted Gemini client.

Run with: pytest backend/tests/test_api.py -v
"""

import json

import pytest
from conftest import ScriptedGemini, make_settings
from fastapi import FastAPI
from fastapi.testclient import TestClient

from wingman.api import assistant, health, providers
from wingman.llm import ProviderRouter
from wingman.services.assistant import AssistantService
from wingman.services.processing import ProcessingService
from wingman.utils.errors import RateLimitError


def build_app(router=None, startup_error=None) -> FastAPI:
    app = FastAPI()
    app.include_router(health.router)
    app.include_router(providers.router, prefix="/llm")
    app.include_router(assistant.router, prefix="/assistant")
    app.state.router = router
    app.state.startup_error = startup_error
    if router is not None:
        app.state.assistant = AssistantService(router)
        app.state.processing = ProcessingService(app.state.assistant)
    return app


@pytest.fixture
def gemini():
    return ScriptedGemini()


@pytest.fixture
def client(gemini):
    router = ProviderRouter.from_settings(
        make_settings(gemini_api_key="g-key"), gemini_client_factory=gemini
    )
    return TestClient(build_app(router))


# ============================================
# Health and Provider Routes
# ============================================


class TestHealth:
    def test_healthy(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["provider"] == "gemini"

    def test_degraded_without_provider(self):
        client = TestClient(build_app(startup_error="No provider"))
        body = client.get("/health").json()
        assert body["status"] == "degraded"
        assert body["provider"] is None


class TestProviderRoutes:
    """Test /llm endpoints."""

    def test_current(self, client):
        response = client.get("/llm/current")
        assert response.json() == {
            "provider": "gemini",
            "model": "gemini-2.5-flash",
            "using_fallback": False,
        }

    def test_switch_rejected_in_body(self, client):
        response = client.post("/llm/switch", json={"provider": "openrouter"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert "OpenRouter API key" in body["error"]
        assert client.get("/llm/current").json()["provider"] == "gemini"

    def test_switch_success(self, client):
        response = client.post(
            "/llm/switch",
            json={"provider": "openrouter", "api_key": "or-key", "model": "openai/gpt-4o"},
        )

        assert response.json() == {"success": True}
        current = client.get("/llm/current").json()
        assert current["provider"] == "openrouter"
        assert current["model"] == "openai/gpt-4o"

    def test_switch_malformed_ollama_url_in_body(self, client):
        response = client.post("/llm/switch", json={"provider": "ollama", "url": "http://[::1"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert "Ollama URL" in body["error"]
        assert client.get("/llm/current").json()["provider"] == "gemini"

    def test_switch_unknown_provider(self, client):
        response = client.post("/llm/switch", json={"provider": "claude"})
        assert response.status_code == 422

    def test_connection(self, client, gemini):
        gemini.outcomes.append("Hello!")
        assert client.post("/llm/test").json() == {"success": True}

    def test_connection_failure(self, client, gemini):
        gemini.outcomes.append(Exception("API key not valid"))
        body = client.post("/llm/test").json()
        assert body == {"success": False, "error": "API key not valid"}

    def test_models_empty_without_ollama(self, client):
        assert client.get("/llm/models").json() == {"models": []}


# ============================================
# Assistant Routes
# ============================================


class TestAssistantRoutes:
    """Test /assistant endpoints and error mapping."""

    def test_chat(self, client, gemini):
        gemini.outcomes.append("Hi there")
        response = client.post("/assistant/chat", json={"message": "Hello"})
        assert response.status_code == 200
        assert response.json() == {"text": "Hi there"}

    def test_image(self, client, gemini, tmp_path):
        path = tmp_path / "shot.png"
        path.write_bytes(b"\x89PNG")
        gemini.outcomes.append("A code editor")

        response = client.post("/assistant/image", json={"path": str(path)})

        assert response.status_code == 200
        assert response.json()["text"] == "A code editor"

    def test_image_not_found(self, client, tmp_path):
        response = client.post("/assistant/image", json={"path": str(tmp_path / "none.png")})
        assert response.status_code == 404

    def test_audio_requires_source(self, client):
        response = client.post("/assistant/audio", json={"data": "abc"})
        assert response.status_code == 422

    def test_interpret_blank_transcript(self, client):
        response = client.post("/assistant/interpret", json={"transcript": "   "})
        assert response.status_code == 400

    def test_solution(self, client, gemini):
        gemini.outcomes.append(json.dumps({"solution": {"code": "pass"}}))
        response = client.post(
            "/assistant/solution", json={"problem_info": {"problem_statement": "x"}}
        )
        assert response.json() == {"solution": {"code": "pass"}}

    def test_malformed_solution_is_bad_gateway(self, client, gemini):
        gemini.outcomes.append("no json here")
        response = client.post(
            "/assistant/solution", json={"problem_info": {"problem_statement": "x"}}
        )
        assert response.status_code == 502

    def test_rate_limit_maps_to_429(self, client, gemini):
        gemini.outcomes.append(RateLimitError("429 quota exhausted"))
        response = client.post("/assistant/chat", json={"message": "Hello"})
        assert response.status_code == 429

    def test_voice(self, client, gemini):
        interpretation = {"problem_statement": "Greet", "suggested_responses": []}
        gemini.outcomes.extend(["hello", json.dumps(interpretation), "Hi!"])

        response = client.post("/assistant/voice", json={"data": "SUQz"})

        assert response.status_code == 200
        body = response.json()
        assert body["answer"] == "Hi!"
        assert body["problem_info"]["validation_type"] == "voice"

    def test_unconfigured_returns_503(self):
        client = TestClient(build_app(startup_error="Either provide a Gemini API key"))
        response = client.post("/assistant/chat", json={"message": "Hello"})
        assert response.status_code == 503
        assert "Gemini API key" in response.json()["detail"]
