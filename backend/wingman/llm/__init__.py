"""LLM subsystem for provider-agnostic model access.

This module provides a single interface over three backends with:
- Runtime provider selection and switching (Gemini, OpenRouter, Ollama)
- Exponential backoff on overloaded Gemini responses
- One-time fallback API key on Gemini quota errors
- Response normalization for structured (JSON) output

Example usage:
    from wingman.llm import create_router_from_settings

    router = await create_router_from_settings()

    result = await router.generate_text("Explain big-O notation briefly.")
    print(result.text)

    status = await router.test_connection()
"""

from .config import (
    CredentialState,
    GeminiConfig,
    OllamaConfig,
    OpenRouterConfig,
    ProviderConfig,
    ProviderKind,
)
from .normalize import clean_structured_text, parse_structured, require_text
from .retry import (
    ErrorKind,
    FailoverController,
    RetryConfig,
    classify_error,
)
from .router import ProviderRouter, RouterState, create_router_from_settings
from .types import ConnectionStatus, ContentPart, RequestEnvelope, ResponseResult

__all__ = [
    # Config
    "ProviderKind",
    "ProviderConfig",
    "GeminiConfig",
    "OpenRouterConfig",
    "OllamaConfig",
    "CredentialState",
    # Types
    "ContentPart",
    "RequestEnvelope",
    "ResponseResult",
    "ConnectionStatus",
    # Router
    "ProviderRouter",
    "RouterState",
    "create_router_from_settings",
    # Retry
    "ErrorKind",
    "FailoverController",
    "RetryConfig",
    "classify_error",
    # Normalization
    "clean_structured_text",
    "parse_structured",
    "require_text",
]
