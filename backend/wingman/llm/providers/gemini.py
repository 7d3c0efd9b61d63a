"""Gemini client built on the google-genai SDK.

The client itself never retries; retries and key failover are handled by
``wingman.llm.retry.FailoverController``.
"""

import logging
from typing import Any

from google import genai
from google.genai import types

from ..types import ContentPart

logger = logging.getLogger(__name__)


def to_gemini_parts(parts: list[ContentPart]) -> list[types.Part]:
    """Convert request parts to SDK parts (text or inline bytes)."""
    converted = []
    for part in parts:
        if part.is_text:
            converted.append(types.Part.from_text(text=part.text or ""))
        else:
            converted.append(
                types.Part.from_bytes(data=part.data, mime_type=part.mime_type)
            )
    return converted


class GeminiClient:
    """Thin async wrapper around ``genai.Client`` for one API key."""

    def __init__(self, api_key: str, timeout_seconds: float = 60.0):
        """Initialize the client.

        Args:
            api_key: Google API key
            timeout_seconds: Per-request timeout (0 = SDK default)
        """
        # Gemini SDK timeouts are in milliseconds
        timeout_ms = int(timeout_seconds * 1000) if timeout_seconds > 0 else None
        self._client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=timeout_ms),
        )

    async def generate(self, model: str, parts: list[ContentPart]) -> Any:
        """Send one user turn and return the raw SDK response."""
        contents = [types.Content(role="user", parts=to_gemini_parts(parts))]
        return await self._client.aio.models.generate_content(
            model=model,
            contents=contents,
        )


def create_gemini_client(api_key: str, timeout_seconds: float = 60.0) -> GeminiClient:
    """Default factory used by the failover controller."""
    return GeminiClient(api_key, timeout_seconds=timeout_seconds)
