"""Assistant operations built on the provider router.

This module is the facade the API and the processing pipeline call. It owns
the prompt templates and turns router results into the shapes the UI expects
(free text, or parsed JSON for structured answers).
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from wingman.llm import ContentPart, ProviderRouter, ResponseResult
from wingman.llm.normalize import parse_structured, require_text
from wingman.services.files import guess_mime_type, read_binary

logger = logging.getLogger(__name__)

# Prompts directory
PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


def load_prompt(name: str) -> str:
    """
    Load a prompt template from the prompts directory.

    Args:
        name: Prompt file name (without .txt extension)

    Returns:
        Prompt template string

    Raises:
        FileNotFoundError: If prompt file doesn't exist
    """
    prompt_file = PROMPTS_DIR / f"{name}.txt"
    if not prompt_file.exists():
        raise FileNotFoundError(f"Prompt not found: {prompt_file}")
    logger.debug(f"[LLM] Loaded prompt: {name}")
    return prompt_file.read_text(encoding="utf-8").strip()


def _question_line(question: Optional[str]) -> str:
    if question and question.strip():
        return f' The user specifically asked: "{question.strip()}"'
    return ""


def _voice_details(interpretation: Optional[dict[str, Any]]) -> str:
    """Format the interpretation fields that steer the voice answer."""
    if not interpretation:
        return ""
    details = ""
    if interpretation.get("expected_outcome"):
        details += f"\nExpected outcome: {interpretation['expected_outcome']}"
    requirements = interpretation.get("key_requirements")
    if isinstance(requirements, list) and requirements:
        details += f"\nKey requirements: {'; '.join(str(r) for r in requirements)}"
    if interpretation.get("reasoning"):
        details += f"\nReasoning provided: {interpretation['reasoning']}"
    return details


class AssistantService:
    """Screenshot, audio, voice and chat operations."""

    def __init__(self, router: ProviderRouter):
        """Initialize the service.

        Args:
            router: Provider router used for every model call
        """
        self.router = router
        self.system_prompt = load_prompt("system")

    async def _image_parts(self, paths: list[str]) -> list[ContentPart]:
        parts = []
        for path in paths:
            data = await read_binary(path)
            parts.append(ContentPart.from_bytes(data, guess_mime_type(path)))
        return parts

    # ------------------------------------------------------------------
    # Screenshots
    # ------------------------------------------------------------------

    async def analyze_image_file(self, path: str, question: Optional[str] = None) -> ResponseResult:
        """Answer whatever the screenshot shows (code, MCQ, theory ...)."""
        prompt = load_prompt("image_analysis").format(question_line=_question_line(question))
        guidance = load_prompt("image_guidance").format(
            system_prompt=self.system_prompt,
            question_line=_question_line(question),
        )
        parts = [ContentPart.from_text(prompt), *await self._image_parts([path])]

        logger.info(f"[LLM] Analyzing image | provider={self.router.current_provider().value}")
        return await self.router.analyze_binary(parts, guidance=guidance)

    async def extract_problem_from_images(self, paths: list[str]) -> dict[str, Any]:
        """Extract a structured problem description from screenshots."""
        prompt = load_prompt("problem_extraction").format(system_prompt=self.system_prompt)
        guidance = load_prompt("problem_extraction_guidance").format(
            system_prompt=self.system_prompt,
            image_count=len(paths),
        )
        parts = [ContentPart.from_text(prompt), *await self._image_parts(paths)]

        result = await self.router.analyze_binary(parts, guidance=guidance)
        return parse_structured(result.text)

    async def generate_solution(self, problem_info: dict[str, Any]) -> dict[str, Any]:
        """Generate a ``{"solution": {...}}`` answer for a problem."""
        prompt = load_prompt("solution").format(
            system_prompt=self.system_prompt,
            problem_json=json.dumps(problem_info, indent=2),
        )
        logger.info("[LLM] Calling LLM for solution...")
        result = await self.router.generate_text(prompt)
        parsed = parse_structured(result.text)
        logger.info(f"[LLM] Solution generated | keys={sorted(parsed)}")
        return parsed

    async def debug_solution_with_images(
        self,
        problem_info: dict[str, Any],
        current_code: str,
        paths: list[str],
    ) -> dict[str, Any]:
        """Improve a solution using debug/error screenshots."""
        problem_json = json.dumps(problem_info, indent=2)
        prompt = load_prompt("debug").format(
            system_prompt=self.system_prompt,
            problem_json=problem_json,
            current_code=current_code,
        )
        guidance = load_prompt("debug_guidance").format(
            system_prompt=self.system_prompt,
            problem_json=problem_json,
            current_code=current_code,
            image_count=len(paths),
        )
        parts = [ContentPart.from_text(prompt), *await self._image_parts(paths)]

        result = await self.router.analyze_binary(parts, guidance=guidance)
        return parse_structured(result.text)

    # ------------------------------------------------------------------
    # Audio and voice
    # ------------------------------------------------------------------

    async def _analyze_audio(self, part: ContentPart) -> ResponseResult:
        prompt = load_prompt("audio_analysis").format(system_prompt=self.system_prompt)
        return await self.router.analyze_with_cloud([ContentPart.from_text(prompt), part])

    async def analyze_audio_file(self, path: str) -> ResponseResult:
        """Describe an audio recording on disk."""
        data = await read_binary(path)
        return await self._analyze_audio(ContentPart.from_bytes(data, guess_mime_type(path)))

    async def analyze_audio_base64(self, data: str, mime_type: str) -> ResponseResult:
        """Describe inline base64 audio sent by the UI shell."""
        return await self._analyze_audio(ContentPart.from_base64(data, mime_type))

    async def interpret_voice_transcript(self, transcript: str) -> dict[str, Any]:
        """Turn a transcript into the fixed interpretation JSON.

        Raises:
            ValueError: If the transcript is blank
            MalformedStructuredOutputError: If the model did not return JSON
        """
        trimmed = (transcript or "").strip()
        if not trimmed:
            raise ValueError("Empty voice transcript provided")

        prompt = load_prompt("voice_interpretation").format(
            system_prompt=self.system_prompt,
            transcript=trimmed,
        )
        result = await self.router.generate_cloud_text(prompt)
        return parse_structured(result.text)

    async def generate_voice_response(
        self,
        transcript: str,
        interpretation: Optional[dict[str, Any]] = None,
    ) -> str:
        """Answer a voice request, seeded with its interpretation.

        Raises:
            EmptyResponseError: If the model returned no text
        """
        prompt = load_prompt("voice_answer").format(
            transcript=(transcript or "").strip(),
            details=_voice_details(interpretation),
        )
        result = await self.router.generate_cloud_text(prompt)
        return require_text(result.text, "Voice response generation")

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def chat(self, message: str) -> str:
        """Free-form chat; a blank reply is returned as-is."""
        result = await self.router.generate_text(message)
        return result.text
