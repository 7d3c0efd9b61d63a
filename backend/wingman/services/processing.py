"""Multi-step processing flows (screenshot, voice, debug).

Each flow is a chain of router calls where every stage feeds the next. A
failing stage aborts the whole flow; nothing is cached, so the next attempt
starts again from the first stage.
"""

import asyncio
import base64
import logging
from typing import Any, Awaitable, Optional, TypeVar

from wingman.models.schemas import (
    InputFormat,
    OutputFormat,
    ProblemInfo,
    SolutionPayload,
    VoiceProcessingResult,
    VoiceSolution,
)
from wingman.services.assistant import AssistantService
from wingman.services.files import guess_mime_type, is_audio_path, read_binary

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_voice_problem_info(transcript: str, interpretation: dict[str, Any]) -> ProblemInfo:
    """Map a voice interpretation onto the problem shape the UI renders."""
    requirements = interpretation.get("key_requirements") or []
    return ProblemInfo(
        problem_statement=interpretation.get("problem_statement") or transcript,
        input_format=InputFormat(
            description=interpretation.get("context") or "Derived from voice input",
            parameters=[
                {"name": f"requirement_{i + 1}", "description": requirement}
                for i, requirement in enumerate(requirements)
            ],
        ),
        output_format=OutputFormat(
            description=interpretation.get("expected_outcome")
            or "Deliver the outcome requested in the spoken input.",
            subtype="voice",
        ),
        validation_type="voice",
        meta={
            "transcript": transcript,
            "key_requirements": requirements,
            "clarifications_needed": interpretation.get("clarifications_needed") or [],
            "reasoning": interpretation.get("reasoning") or "",
            "suggested_responses": interpretation.get("suggested_responses") or [],
        },
    )


class ProcessingService:
    """Coordinates the assistant's multi-step flows for one session."""

    def __init__(self, assistant: AssistantService):
        self.assistant = assistant
        self.problem_info: Optional[ProblemInfo] = None
        self.has_debugged = False
        self._current_task: Optional[asyncio.Task] = None

    async def _run(self, coro: Awaitable[T]) -> T:
        """Run a flow as the current cancellable task."""
        task = asyncio.ensure_future(coro)
        self._current_task = task
        try:
            return await task
        finally:
            if self._current_task is task:
                self._current_task = None

    def cancel_ongoing_requests(self) -> None:
        """Abandon the in-flight flow (a newer user action supersedes it)."""
        task = self._current_task
        if task is not None and not task.done():
            logger.info("[Processing] Cancelling in-flight request")
            task.cancel()
        self._current_task = None
        self.has_debugged = False

    # ------------------------------------------------------------------
    # Voice
    # ------------------------------------------------------------------

    async def process_voice_recording(self, data: str, mime_type: str) -> VoiceProcessingResult:
        """Transcribe, interpret and answer a base64 voice recording."""
        return await self._run(self._voice_pipeline(data, mime_type))

    async def _voice_pipeline(self, data: str, mime_type: str) -> VoiceProcessingResult:
        try:
            transcript_result = await self.assistant.analyze_audio_base64(data, mime_type)
            transcript = transcript_result.text
            interpretation = await self.assistant.interpret_voice_transcript(transcript)
            answer = await self.assistant.generate_voice_response(transcript, interpretation)
        except Exception as e:
            logger.error(f"[Processing] Voice processing error: {e}")
            raise

        problem_info = build_voice_problem_info(transcript, interpretation)
        solution = SolutionPayload(
            solution=VoiceSolution(
                code=answer,
                thoughts=[str(s) for s in interpretation.get("suggested_responses") or []],
            )
        )
        self.problem_info = problem_info
        logger.info("[Processing] Voice request answered")

        return VoiceProcessingResult(
            transcript=transcript,
            interpretation=interpretation,
            problem_info=problem_info,
            solution=solution,
            answer=answer,
        )

    # ------------------------------------------------------------------
    # Screenshots
    # ------------------------------------------------------------------

    async def process_screenshot(
        self, path: str, question: Optional[str] = None
    ) -> ProblemInfo | VoiceProcessingResult:
        """Process the latest capture: audio goes to the voice pipeline."""
        if is_audio_path(path):
            audio = await read_binary(path)
            return await self.process_voice_recording(
                base64.b64encode(audio).decode("ascii"), guess_mime_type(path)
            )
        return await self._run(self._screenshot_flow(path, question))

    async def _screenshot_flow(self, path: str, question: Optional[str]) -> ProblemInfo:
        try:
            result = await self.assistant.analyze_image_file(path, question)
        except Exception as e:
            logger.error(f"[Processing] Image processing error: {e}")
            raise

        problem_info = ProblemInfo(
            problem_statement=result.text,
            input_format=InputFormat(description="Generated from screenshot"),
            output_format=OutputFormat(description="Generated from screenshot"),
            question=question or "",
        )
        self.problem_info = problem_info
        return problem_info

    # ------------------------------------------------------------------
    # Debug
    # ------------------------------------------------------------------

    async def process_debug(self, paths: list[str]) -> dict[str, Any]:
        """Regenerate the current solution, then debug it with screenshots.

        Raises:
            ValueError: If there is no problem yet or no debug screenshots
        """
        if not paths:
            raise ValueError("No extra screenshots to process")
        if self.problem_info is None:
            raise ValueError("No problem info available")
        return await self._run(self._debug_flow(self.problem_info, paths))

    async def _debug_flow(self, problem_info: ProblemInfo, paths: list[str]) -> dict[str, Any]:
        problem = problem_info.model_dump()
        current = await self.assistant.generate_solution(problem)
        current_code = str((current.get("solution") or {}).get("code", ""))

        result = await self.assistant.debug_solution_with_images(problem, current_code, paths)
        self.has_debugged = True
        return result
