"""OpenRouter chat-completions client (text only)."""

import logging
from typing import Any, Optional

import httpx

from ..config import OpenRouterConfig
from .http import request_json

logger = logging.getLogger(__name__)

# Attribution headers recommended by OpenRouter
APP_REFERER = "https://github.com/wingman-assistant/wingman"
APP_TITLE = "Wingman"


class OpenRouterClient:
    """Calls ``{base_url}/chat/completions`` with a single user message."""

    def __init__(
        self,
        config: OpenRouterConfig,
        timeout_seconds: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": APP_REFERER,
            "X-Title": APP_TITLE,
        }

    def _build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0.7,
            "max_tokens": 4096,
        }

    async def chat(self, prompt: str) -> dict:
        """Send a prompt and return the raw completion payload."""
        logger.debug(f"[OpenRouter] POST chat/completions | model={self.config.model}")
        return await request_json(
            "POST",
            f"{self.config.base_url}/chat/completions",
            provider="openrouter",
            label="OpenRouter",
            unreachable_hint="Check your network connection and API key.",
            timeout_seconds=self.timeout_seconds,
            transport=self._transport,
            headers=self._build_headers(),
            json_body=self._build_payload(prompt),
        )
