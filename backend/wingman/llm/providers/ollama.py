"""Ollama client for a locally hosted inference server.

Uses the plain HTTP API: ``/api/generate`` for completions and ``/api/tags``
for the installed model list. No credential is needed.
"""

import logging
from typing import Any, Optional

import httpx

from ..config import OllamaConfig
from .http import build_timeout, request_json

logger = logging.getLogger(__name__)


class OllamaClient:
    """Async client bound to one Ollama endpoint and model."""

    def __init__(
        self,
        config: OllamaConfig,
        timeout_seconds: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def _hint(self) -> str:
        return f"Make sure Ollama is running on {self.config.base_url}"

    def _build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": 0.7, "top_p": 0.9},
        }

    async def generate(self, prompt: str) -> dict:
        """Run a non-streaming generation and return the raw payload."""
        logger.debug(f"[Ollama] POST api/generate | model={self.config.model}")
        return await request_json(
            "POST",
            f"{self.config.base_url}/api/generate",
            provider="ollama",
            label="Ollama",
            unreachable_hint=self._hint,
            timeout_seconds=self.timeout_seconds,
            transport=self._transport,
            json_body=self._build_payload(prompt),
        )

    async def list_models(self) -> list[str]:
        """Return installed model names from ``/api/tags``."""
        payload = await request_json(
            "GET",
            f"{self.config.base_url}/api/tags",
            provider="ollama",
            label="Ollama",
            unreachable_hint=self._hint,
            timeout_seconds=self.timeout_seconds,
            transport=self._transport,
        )
        models = payload.get("models") or []
        return [m["name"] for m in models if isinstance(m, dict) and m.get("name")]

    async def is_available(self) -> bool:
        """Cheap reachability check against ``/api/tags``."""
        try:
            async with httpx.AsyncClient(
                timeout=build_timeout(min(self.timeout_seconds, 5.0)),
                transport=self._transport,
            ) as client:
                response = await client.get(f"{self.config.base_url}/api/tags")
            return response.is_success
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"[Ollama] Not reachable at {self.config.base_url}: {e}")
            return False
