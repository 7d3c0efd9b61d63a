"""Provider kinds and per-provider configuration.

Each provider kind carries its own config payload, so a router state can never
describe an impossible combination (e.g. "Ollama and OpenRouter at once").
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

import httpx

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_OPENROUTER_MODEL = "google/gemini-2.5-flash"
DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "gemma:latest"


class ProviderKind(Enum):
    """Supported LLM providers."""

    GEMINI = "gemini"  # Cloud multimodal model
    OPENROUTER = "openrouter"  # Remote gateway, text only
    OLLAMA = "ollama"  # Locally hosted inference server

    @property
    def supports_binary(self) -> bool:
        """Whether the provider accepts inline image/audio parts."""
        return self is ProviderKind.GEMINI


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class GeminiConfig:
    """Configuration for the Gemini cloud model."""

    api_key: Optional[str] = None
    model: str = DEFAULT_GEMINI_MODEL

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.GEMINI

    def missing(self) -> Optional[str]:
        """Name of the missing required setting, if any."""
        return None if _clean(self.api_key) else "Gemini API key is required"


@dataclass(frozen=True)
class OpenRouterConfig:
    """Configuration for the OpenRouter gateway."""

    api_key: Optional[str] = None
    model: str = DEFAULT_OPENROUTER_MODEL
    base_url: str = DEFAULT_OPENROUTER_BASE_URL

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.OPENROUTER

    def missing(self) -> Optional[str]:
        return None if _clean(self.api_key) else "OpenRouter API key is required"


@dataclass(frozen=True)
class OllamaConfig:
    """Configuration for a local Ollama server (no credential needed)."""

    base_url: str = DEFAULT_OLLAMA_URL
    model: str = DEFAULT_OLLAMA_MODEL

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.OLLAMA

    def missing(self) -> Optional[str]:
        base_url = _clean(self.base_url)
        if not base_url:
            return "Ollama URL is required"
        try:
            url = httpx.URL(base_url)
        except httpx.InvalidURL as e:
            return f"Ollama URL is not valid: {base_url} ({e})"
        if url.scheme not in ("http", "https") or not url.host:
            return f"Ollama URL must be an http(s) address with a host: {base_url}"
        return None


ProviderConfig = Union[GeminiConfig, OpenRouterConfig, OllamaConfig]


@dataclass(frozen=True)
class CredentialState:
    """Gemini credentials with one-way fallback tracking.

    Once ``using_fallback`` is set it stays set; only an explicit switch with a
    new primary key produces a fresh state.
    """

    primary: Optional[str] = None
    fallback: Optional[str] = None
    using_fallback: bool = False

    @property
    def active_key(self) -> Optional[str]:
        if self.using_fallback:
            return self.fallback
        return self.primary

    @property
    def can_fail_over(self) -> bool:
        return bool(self.fallback) and not self.using_fallback

    def engage_fallback(self) -> "CredentialState":
        return replace(self, using_fallback=True)


def normalize_config(config: ProviderConfig) -> ProviderConfig:
    """Strip whitespace from credentials/endpoints, keeping model defaults."""
    if isinstance(config, OllamaConfig):
        return replace(
            config,
            base_url=(_clean(config.base_url) or "").rstrip("/"),
            model=_clean(config.model) or DEFAULT_OLLAMA_MODEL,
        )
    if isinstance(config, OpenRouterConfig):
        return replace(
            config,
            api_key=_clean(config.api_key),
            model=_clean(config.model) or DEFAULT_OPENROUTER_MODEL,
            base_url=(_clean(config.base_url) or DEFAULT_OPENROUTER_BASE_URL).rstrip("/"),
        )
    return replace(
        config,
        api_key=_clean(config.api_key),
        model=_clean(config.model) or DEFAULT_GEMINI_MODEL,
    )
