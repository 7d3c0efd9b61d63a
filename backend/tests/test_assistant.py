"""Tests for the assistant operations (prompts, parsing, provider choice)."""

import base64
import json

import httpx
import pytest
from conftest import ScriptedGemini, make_settings, mock_transport

from wingman.llm import ProviderRouter
from wingman.services.assistant import AssistantService, load_prompt
from wingman.utils.errors import EmptyResponseError, MalformedStructuredOutputError

OPENROUTER_CHAT = "POST /api/v1/chat/completions"

INTERPRETATION = {
    "problem_statement": "Reverse a linked list",
    "context": "Singly linked list",
    "expected_outcome": "Python function",
    "key_requirements": ["O(n) time", "O(1) space"],
    "clarifications_needed": [],
    "suggested_responses": ["Iterate with three pointers"],
    "reasoning": "The user asked for a reversal",
}


def gemini_assistant(*outcomes, **settings) -> tuple[AssistantService, ScriptedGemini]:
    gemini = ScriptedGemini(*outcomes)
    settings.setdefault("gemini_api_key", "g-key")
    router = ProviderRouter.from_settings(make_settings(**settings), gemini_client_factory=gemini)
    return AssistantService(router), gemini


def openrouter_assistant(text: str, **settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"choices": [{"message": {"role": "assistant", "content": text}}]}
        )

    transport = mock_transport({OPENROUTER_CHAT: handler})
    router = ProviderRouter.from_settings(
        make_settings(openrouter_api_key="or-key", **settings),
        gemini_client_factory=ScriptedGemini(),
        http_transport=transport,
    )
    return AssistantService(router), transport


def sent_prompt(transport) -> str:
    return json.loads(transport.requests[-1].content)["messages"][0]["content"]


@pytest.fixture
def screenshot(tmp_path):
    path = tmp_path / "capture.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake")
    return str(path)


# ============================================
# Prompt Tests
# ============================================


class TestPrompts:
    """Test prompt template loading."""

    def test_load_system_prompt(self):
        assert load_prompt("system")

    def test_missing_prompt(self):
        with pytest.raises(FileNotFoundError):
            load_prompt("does_not_exist")


# ============================================
# Screenshot Tests
# ============================================


class TestScreenshots:
    """Test screenshot analysis and problem extraction."""

    @pytest.mark.asyncio
    async def test_analyze_image_with_gemini(self, screenshot):
        assistant, gemini = gemini_assistant("Option B is correct")

        result = await assistant.analyze_image_file(screenshot, "Which option?")

        assert result.text == "Option B is correct"
        parts = gemini.calls[0]["parts"]
        assert parts[0].text.endswith('The user specifically asked: "Which option?"')
        assert parts[1].mime_type == "image/png"
        assert parts[1].data.startswith(b"\x89PNG")

    @pytest.mark.asyncio
    async def test_analyze_image_on_text_only_provider(self, screenshot):
        assistant, transport = openrouter_assistant("Describe the error text you see.")

        result = await assistant.analyze_image_file(screenshot, "Why does it fail?")

        assert result.text == "Describe the error text you see."
        prompt = sent_prompt(transport)
        assert "Why does it fail?" in prompt
        assert assistant.system_prompt in prompt

    @pytest.mark.asyncio
    async def test_missing_screenshot(self, tmp_path):
        assistant, gemini = gemini_assistant()

        with pytest.raises(FileNotFoundError):
            await assistant.analyze_image_file(str(tmp_path / "gone.png"))

        assert gemini.calls == []

    @pytest.mark.asyncio
    async def test_extract_problem(self, screenshot):
        problem = {"problem_statement": "Two sum", "input_format": {}, "output_format": {}}
        assistant, gemini = gemini_assistant(f"```json\n{json.dumps(problem)}\n```")

        result = await assistant.extract_problem_from_images([screenshot, screenshot])

        assert result == problem
        assert len(gemini.calls[0]["parts"]) == 3


# ============================================
# Solution Tests
# ============================================


class TestSolutions:
    """Test structured solution generation."""

    @pytest.mark.asyncio
    async def test_generate_solution(self):
        answer = {"solution": {"code": "def f(): pass", "thoughts": ["simple"]}}
        assistant, gemini = gemini_assistant(json.dumps(answer))

        result = await assistant.generate_solution({"problem_statement": "Do nothing"})

        assert result == answer
        assert '"problem_statement": "Do nothing"' in gemini.calls[0]["parts"][0].text

    @pytest.mark.asyncio
    async def test_malformed_solution(self):
        assistant, _ = gemini_assistant("Here's how I'd approach it...")

        with pytest.raises(MalformedStructuredOutputError) as exc_info:
            await assistant.generate_solution({"problem_statement": "x"})

        assert exc_info.value.raw_text == "Here's how I'd approach it..."

    @pytest.mark.asyncio
    async def test_debug_solution(self, screenshot):
        fixed = {"solution": {"code": "fixed", "debug_analysis": "off by one"}}
        assistant, gemini = gemini_assistant(json.dumps(fixed))

        result = await assistant.debug_solution_with_images(
            {"problem_statement": "x"}, "broken()", [screenshot]
        )

        assert result == fixed
        assert "broken()" in gemini.calls[0]["parts"][0].text


# ============================================
# Audio and Voice Tests
# ============================================


class TestVoice:
    """Test audio analysis, interpretation and voice answers."""

    @pytest.mark.asyncio
    async def test_audio_base64(self):
        assistant, gemini = gemini_assistant("Transcript: hello")
        encoded = base64.b64encode(b"ID3audio").decode("ascii")

        result = await assistant.analyze_audio_base64(encoded, "audio/mpeg")

        assert result.text == "Transcript: hello"
        audio = gemini.calls[0]["parts"][1]
        assert audio.data == b"ID3audio"
        assert audio.mime_type == "audio/mpeg"

    @pytest.mark.asyncio
    async def test_audio_file_mime_from_extension(self, tmp_path):
        path = tmp_path / "clip.wav"
        path.write_bytes(b"RIFF")
        assistant, gemini = gemini_assistant("ok")

        await assistant.analyze_audio_file(str(path))

        assert gemini.calls[0]["parts"][1].mime_type == "audio/wav"

    @pytest.mark.asyncio
    async def test_voice_prefers_gemini_when_gateway_active(self):
        gemini = ScriptedGemini(json.dumps(INTERPRETATION))
        transport = mock_transport({})
        router = ProviderRouter.from_settings(
            make_settings(
                use_openrouter=True, openrouter_api_key="or-key", gemini_api_key="g-key"
            ),
            gemini_client_factory=gemini,
            http_transport=transport,
        )
        assistant = AssistantService(router)

        result = await assistant.interpret_voice_transcript("reverse a linked list")

        assert result == INTERPRETATION
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_voice_without_gemini_uses_active_provider(self):
        assistant, transport = openrouter_assistant(json.dumps(INTERPRETATION))

        result = await assistant.interpret_voice_transcript("reverse a linked list")

        assert result["problem_statement"] == "Reverse a linked list"
        assert "reverse a linked list" in sent_prompt(transport)

    @pytest.mark.asyncio
    async def test_blank_transcript(self):
        assistant, gemini = gemini_assistant()

        with pytest.raises(ValueError, match="Empty voice transcript"):
            await assistant.interpret_voice_transcript("   ")

        assert gemini.calls == []

    @pytest.mark.asyncio
    async def test_voice_answer_includes_interpretation(self):
        assistant, gemini = gemini_assistant("  Use three pointers.  ")

        answer = await assistant.generate_voice_response("reverse it", INTERPRETATION)

        assert answer == "Use three pointers."
        prompt = gemini.calls[0]["parts"][0].text
        assert "Key requirements: O(n) time; O(1) space" in prompt
        assert "Expected outcome: Python function" in prompt

    @pytest.mark.asyncio
    async def test_voice_answer_empty(self):
        assistant, _ = gemini_assistant("   ")

        with pytest.raises(EmptyResponseError):
            await assistant.generate_voice_response("reverse it")


class TestChat:
    """Test free-form chat."""

    @pytest.mark.asyncio
    async def test_chat(self):
        assistant, _ = gemini_assistant("Hello there")
        assert await assistant.chat("Hi") == "Hello there"

    @pytest.mark.asyncio
    async def test_blank_reply_allowed(self):
        assistant, _ = gemini_assistant("")
        assert await assistant.chat("Hi") == ""
