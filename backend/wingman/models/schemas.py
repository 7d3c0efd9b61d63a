"""Pydantic schemas for request/response validation."""

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


# ============================================
# Provider Schemas
# ============================================


class SwitchProviderRequest(BaseModel):
    """Request to switch the active LLM provider."""

    provider: Literal["gemini", "openrouter", "ollama"]
    api_key: str | None = None
    model: str | None = None
    url: str | None = None


class StatusResponse(BaseModel):
    """Success flag with an optional error message."""

    success: bool
    error: str | None = None


class CurrentProviderResponse(BaseModel):
    """Active provider information."""

    provider: str
    model: str
    using_fallback: bool = False


class ModelListResponse(BaseModel):
    """Installed local models."""

    models: list[str]


# ============================================
# Analysis Schemas
# ============================================


class AnalyzeImageRequest(BaseModel):
    """Analyze a screenshot on disk."""

    path: str = Field(min_length=1)
    question: str | None = None


class AnalyzeAudioRequest(BaseModel):
    """Analyze audio from a file path or inline base64 data."""

    path: str | None = None
    data: str | None = None
    mime_type: str | None = None

    @model_validator(mode="after")
    def path_or_data(self) -> "AnalyzeAudioRequest":
        if self.path:
            return self
        if self.data and self.mime_type:
            return self
        raise ValueError("Provide either path, or data together with mime_type")


class AnalysisResponse(BaseModel):
    """Free-text analysis result."""

    text: str
    timestamp: int | None = None


class ChatRequest(BaseModel):
    """Free-text chat message."""

    message: str = Field(min_length=1)


class ChatResponse(BaseModel):
    """Chat reply."""

    text: str


class InterpretRequest(BaseModel):
    """Voice transcript to interpret."""

    transcript: str = Field(min_length=1)


class VoiceRequest(BaseModel):
    """Inline voice recording."""

    data: str = Field(min_length=1)
    mime_type: str = "audio/mpeg"


class SolutionRequest(BaseModel):
    """Structured problem to solve."""

    problem_info: dict[str, Any]


# ============================================
# Processing Schemas
# ============================================


class InputFormat(BaseModel):
    """How the problem input is described."""

    description: str
    parameters: list[dict[str, Any]] = Field(default_factory=list)


class OutputFormat(BaseModel):
    """What the answer should look like."""

    description: str
    type: str = "string"
    subtype: str = "text"


class Complexity(BaseModel):
    """Time/space complexity placeholders."""

    time: str = "N/A"
    space: str = "N/A"


class ProblemInfo(BaseModel):
    """Problem extracted from a screenshot or voice request."""

    problem_statement: str
    input_format: InputFormat
    output_format: OutputFormat
    complexity: Complexity = Field(default_factory=Complexity)
    test_cases: list[Any] = Field(default_factory=list)
    validation_type: Literal["manual", "voice"] = "manual"
    difficulty: str = "custom"
    question: str = ""
    meta: dict[str, Any] | None = None


class VoiceSolution(BaseModel):
    """Answer generated for a voice request."""

    code: str
    thoughts: list[str] = Field(default_factory=list)
    time_complexity: str = "N/A"
    space_complexity: str = "N/A"


class SolutionPayload(BaseModel):
    """Wrapper matching the solution event shape."""

    solution: VoiceSolution


class VoiceProcessingResult(BaseModel):
    """Everything produced by one voice pipeline run."""

    transcript: str
    interpretation: dict[str, Any]
    problem_info: ProblemInfo
    solution: SolutionPayload
    answer: str
