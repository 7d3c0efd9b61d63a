"""Response normalization.

Each provider wraps its text in a differently-shaped envelope. These helpers
pull out the first text part and prepare structured (JSON) answers for parsing.
"""

import json
import logging
import re
from typing import Any

from wingman.utils.errors import EmptyResponseError, MalformedStructuredOutputError

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```(?:json)?[ \t]*(?:\r?\n|$)", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"(?:^|\r?\n)```$")


def extract_gemini_text(response: Any) -> str:
    """Return the first text part of a Gemini ``GenerateContentResponse``.

    Walks ``candidates[0].content.parts`` and returns the first part with a
    ``text`` value. Returns an empty string when nothing usable is present.
    """
    try:
        candidates = response.candidates or []
        if not candidates:
            return ""
        parts = candidates[0].content.parts or []
    except (AttributeError, TypeError):
        return ""
    for part in parts:
        text = getattr(part, "text", None)
        if text:
            return text
    return ""


def extract_openrouter_text(payload: dict) -> str:
    """Return ``choices[0].message.content`` from a chat completion payload."""
    choices = payload.get("choices") or []
    if not choices:
        return ""
    message = choices[0].get("message") or {}
    content = message.get("content")
    return content if isinstance(content, str) else ""


def extract_ollama_text(payload: dict) -> str:
    """Return the ``response`` field of an Ollama ``/api/generate`` payload."""
    text = payload.get("response")
    return text if isinstance(text, str) else ""


def require_text(text: str, what: str = "Provider") -> str:
    """Return stripped text, raising if it is blank."""
    stripped = (text or "").strip()
    if not stripped:
        raise EmptyResponseError(f"{what} returned empty output")
    return stripped


def clean_structured_text(text: str) -> str:
    """Strip one leading and one trailing code fence plus surrounding whitespace.

    Fences in the middle of the text are left alone.
    """
    cleaned = (text or "").strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_structured(text: str) -> dict:
    """Parse a structured (JSON object) answer.

    Raises:
        MalformedStructuredOutputError: blank text, invalid JSON, or a
            top-level value that is not an object. Never retried.
    """
    cleaned = clean_structured_text(text)
    if not cleaned:
        raise MalformedStructuredOutputError(
            "Structured response was empty", raw_text=text or ""
        )
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"[Normalize] Invalid JSON from provider: {e}")
        raise MalformedStructuredOutputError(
            f"Structured response is not valid JSON: {e}", raw_text=text
        ) from e
    if not isinstance(parsed, dict):
        raise MalformedStructuredOutputError(
            f"Structured response must be a JSON object, got {type(parsed).__name__}",
            raw_text=text,
        )
    return parsed
