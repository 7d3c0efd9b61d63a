"""Assistant routes: screenshot/audio analysis, voice, solutions, chat."""

import logging

from fastapi import APIRouter

from wingman.api.deps import Assistant, Processing
from wingman.models.schemas import (
    AnalysisResponse,
    AnalyzeAudioRequest,
    AnalyzeImageRequest,
    ChatRequest,
    ChatResponse,
    InterpretRequest,
    SolutionRequest,
    VoiceProcessingResult,
    VoiceRequest,
)
from wingman.utils.errors import to_http_error

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/image", response_model=AnalysisResponse)
async def analyze_image(request: AnalyzeImageRequest, assistant: Assistant):
    """Analyze a screenshot, optionally focused on a user question."""
    try:
        result = await assistant.analyze_image_file(request.path, request.question)
    except Exception as e:
        logger.error(f"[API] Image analysis failed: {e}")
        raise to_http_error(e)
    return AnalysisResponse(**result.to_dict())


@router.post("/audio", response_model=AnalysisResponse)
async def analyze_audio(request: AnalyzeAudioRequest, assistant: Assistant):
    """Analyze audio from a file path or inline base64 data."""
    try:
        if request.path:
            result = await assistant.analyze_audio_file(request.path)
        else:
            result = await assistant.analyze_audio_base64(request.data, request.mime_type)
    except Exception as e:
        logger.error(f"[API] Audio analysis failed: {e}")
        raise to_http_error(e)
    return AnalysisResponse(**result.to_dict())


@router.post("/voice", response_model=VoiceProcessingResult)
async def process_voice(request: VoiceRequest, processing: Processing):
    """Run the full voice pipeline (transcribe, interpret, answer)."""
    try:
        return await processing.process_voice_recording(request.data, request.mime_type)
    except Exception as e:
        raise to_http_error(e)


@router.post("/interpret")
async def interpret_transcript(request: InterpretRequest, assistant: Assistant):
    """Interpret a voice transcript into the fixed JSON schema."""
    try:
        return await assistant.interpret_voice_transcript(request.transcript)
    except Exception as e:
        logger.error(f"[API] Interpretation failed: {e}")
        raise to_http_error(e)


@router.post("/solution")
async def generate_solution(request: SolutionRequest, assistant: Assistant):
    """Generate a solution for a structured problem."""
    try:
        return await assistant.generate_solution(request.problem_info)
    except Exception as e:
        logger.error(f"[API] Solution generation failed: {e}")
        raise to_http_error(e)


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, assistant: Assistant):
    """Free-form chat with the active provider."""
    try:
        text = await assistant.chat(request.message)
    except Exception as e:
        logger.error(f"[API] Chat failed: {e}")
        raise to_http_error(e)
    return ChatResponse(text=text)
