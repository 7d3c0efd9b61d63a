"""Provider routing.

The router holds the active provider selection and per-provider configuration
and translates provider-agnostic operations (generate text, analyze binary
input, switch, test) into calls on the matching client. Gemini calls always go
through the ``FailoverController``.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Optional

import httpx

from wingman.utils.errors import ConfigurationError, ProviderError

from .config import (
    CredentialState,
    GeminiConfig,
    OllamaConfig,
    OpenRouterConfig,
    ProviderConfig,
    ProviderKind,
    normalize_config,
)
from .normalize import extract_gemini_text, extract_ollama_text, extract_openrouter_text
from .providers.gemini import create_gemini_client
from .providers.ollama import OllamaClient
from .providers.openrouter import OpenRouterClient
from .retry import FailoverController, RetryConfig
from .types import ConnectionStatus, ContentPart, RequestEnvelope, ResponseResult, now_ms

logger = logging.getLogger(__name__)

NO_PROVIDER_MESSAGE = (
    "Either provide a Gemini API key (GEMINI_API_KEY), enable Ollama mode "
    "(USE_OLLAMA=true), or provide an OpenRouter API key (OPENROUTER_API_KEY)"
)


@dataclass(frozen=True)
class RouterState:
    """Snapshot of the provider selection; replaced whole on every switch."""

    kind: ProviderKind
    gemini: GeminiConfig = GeminiConfig()
    openrouter: OpenRouterConfig = OpenRouterConfig()
    ollama: OllamaConfig = OllamaConfig()

    @property
    def active_config(self) -> ProviderConfig:
        if self.kind is ProviderKind.OPENROUTER:
            return self.openrouter
        if self.kind is ProviderKind.OLLAMA:
            return self.ollama
        return self.gemini

    def with_config(self, config: ProviderConfig) -> "RouterState":
        """Return a new state with ``config`` installed and made active."""
        field = config.kind.value
        return replace(self, kind=config.kind, **{field: config})


def _text_of(parts: RequestEnvelope) -> str:
    return "\n\n".join(p.text for p in parts if p.is_text and p.text)


def degraded_prompt(parts: RequestEnvelope, question: Optional[str] = None) -> str:
    """Text-only stand-in for a binary analysis request."""
    binaries = [p for p in parts if not p.is_text]
    kinds = sorted({p.describe() for p in binaries}) or ["file"]
    described = " and ".join(f"{k}(s)" for k in kinds)
    lines = []
    instructions = _text_of(parts)
    if instructions:
        lines.append(instructions)
    lines.append(
        f"I have {len(binaries)} {described} that I need help analyzing. "
        "Since you cannot see or hear them directly, please provide guidance on "
        "what information would be most helpful to extract from them, and "
        "suggest a general approach for analyzing them."
    )
    if question:
        lines.append(f'The user specifically asked: "{question}"')
    return "\n\n".join(lines)


class ProviderRouter:
    """Single entry point for all LLM operations."""

    def __init__(
        self,
        state: RouterState,
        *,
        fallback_api_key: Optional[str] = None,
        using_fallback: bool = False,
        retry_config: Optional[RetryConfig] = None,
        timeout_seconds: float = 60.0,
        gemini_client_factory: Callable[..., Any] = create_gemini_client,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the router.

        Args:
            state: Initial provider selection and configs
            fallback_api_key: Gemini key used after a quota failure
            using_fallback: Whether the Gemini key in ``state`` already is the fallback
            retry_config: Backoff settings for Gemini calls
            timeout_seconds: Per-attempt timeout for every provider
            gemini_client_factory: Builds a Gemini client for an API key
            http_transport: Optional httpx transport (tests)
            sleep: Awaitable used for backoff waits

        Raises:
            ConfigurationError: If the active provider lacks its credential/endpoint
        """
        state = replace(
            state,
            gemini=normalize_config(state.gemini),
            openrouter=normalize_config(state.openrouter),
            ollama=normalize_config(state.ollama),
        )
        missing = state.active_config.missing()
        if missing:
            raise ConfigurationError(missing)

        self._state = state
        self._timeout_seconds = timeout_seconds
        self._transport = http_transport
        self._lock = asyncio.Lock()
        self._controller = FailoverController(
            CredentialState(
                primary=state.gemini.api_key,
                fallback=(fallback_api_key or "").strip() or None,
                using_fallback=using_fallback,
            ),
            config=retry_config,
            client_factory=gemini_client_factory,
            timeout_seconds=timeout_seconds,
            sleep=sleep,
        )
        logger.info(
            f"[Router] Using {state.kind.value} with model: {state.active_config.model}"
        )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_settings(cls, settings: Any, api_key: Optional[str] = None, **kwargs: Any) -> "ProviderRouter":
        """Build a router from application settings (no network access).

        Precedence: Ollama mode, then OpenRouter mode, then a Gemini key
        (``api_key`` beats the environment), then an OpenRouter key, then the
        built-in fallback key. An OpenRouter key alone never outranks a Gemini
        key; set ``USE_OPENROUTER`` to prefer the gateway.
        """
        gemini_key = (api_key or "").strip() or (settings.gemini_api_key or "").strip()
        fallback_key = (settings.gemini_fallback_api_key or "").strip() or None
        openrouter_key = (settings.openrouter_api_key or "").strip()
        using_fallback = False

        if settings.use_ollama:
            kind = ProviderKind.OLLAMA
        elif settings.use_openrouter:
            kind = ProviderKind.OPENROUTER
        elif gemini_key:
            kind = ProviderKind.GEMINI
        elif openrouter_key:
            kind = ProviderKind.OPENROUTER
        elif fallback_key:
            logger.info("[Router] No Gemini API key found, using default fallback key")
            kind = ProviderKind.GEMINI
            gemini_key = fallback_key
            using_fallback = True
        else:
            raise ConfigurationError(NO_PROVIDER_MESSAGE)

        state = RouterState(
            kind=kind,
            gemini=GeminiConfig(api_key=gemini_key or None, model=settings.gemini_model),
            openrouter=OpenRouterConfig(
                api_key=openrouter_key or None,
                model=settings.openrouter_model,
                base_url=settings.openrouter_base_url,
            ),
            ollama=OllamaConfig(
                base_url=settings.ollama_url,
                model=settings.ollama_model or OllamaConfig().model,
            ),
        )
        kwargs.setdefault(
            "retry_config",
            RetryConfig(
                max_attempts=settings.llm_max_attempts,
                initial_delay=settings.llm_initial_delay,
                backoff_factor=settings.llm_backoff_factor,
                max_delay=settings.llm_max_delay,
            ),
        )
        kwargs.setdefault("timeout_seconds", settings.llm_timeout_seconds)
        return cls(
            state,
            fallback_api_key=fallback_key,
            using_fallback=using_fallback,
            **kwargs,
        )

    async def initialize(self) -> None:
        """Run activation work that needs the network (Ollama model probe)."""
        async with self._lock:
            state = self._state
            if state.kind is ProviderKind.OLLAMA:
                ollama = await self._resolve_local_model(state.ollama)
                self._state = replace(state, ollama=ollama)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def state(self) -> RouterState:
        return self._state

    @property
    def using_fallback_credential(self) -> bool:
        return self._controller.using_fallback

    @property
    def has_cloud_credential(self) -> bool:
        """Whether Gemini can be used (even when another provider is active)."""
        return bool(self._controller.credentials.active_key)

    def current_provider(self) -> ProviderKind:
        return self._state.kind

    def current_model(self) -> str:
        return self._state.active_config.model

    # ------------------------------------------------------------------
    # Provider calls
    # ------------------------------------------------------------------

    def _ollama_client(self, config: OllamaConfig) -> OllamaClient:
        return OllamaClient(config, timeout_seconds=self._timeout_seconds, transport=self._transport)

    def _openrouter_client(self, config: OpenRouterConfig) -> OpenRouterClient:
        return OpenRouterClient(config, timeout_seconds=self._timeout_seconds, transport=self._transport)

    async def _call_gemini(self, model: str, parts: RequestEnvelope) -> str:
        response = await self._controller.execute(
            lambda client: client.generate(model, parts)
        )
        return extract_gemini_text(response)

    async def _generate(self, state: RouterState, parts: RequestEnvelope) -> str:
        """Dispatch a request to the provider selected in ``state``."""
        if state.kind is ProviderKind.GEMINI:
            return await self._call_gemini(state.gemini.model, parts)
        prompt = _text_of(parts)
        if state.kind is ProviderKind.OPENROUTER:
            payload = await self._openrouter_client(state.openrouter).chat(prompt)
            return extract_openrouter_text(payload)
        payload = await self._ollama_client(state.ollama).generate(prompt)
        return extract_ollama_text(payload)

    async def generate_text(self, prompt: str) -> ResponseResult:
        """Generate text from a prompt with the active provider."""
        state = self._state
        text = await self._generate(state, [ContentPart.from_text(prompt)])
        return ResponseResult(text=text, timestamp=now_ms())

    async def analyze_binary(
        self,
        parts: RequestEnvelope,
        question: Optional[str] = None,
        guidance: Optional[str] = None,
    ) -> ResponseResult:
        """Analyze image/audio parts with the active provider.

        Providers without binary support get a text-only guidance prompt
        (``guidance`` if given, otherwise a generic one) instead of failing.
        """
        state = self._state
        if state.kind.supports_binary:
            request = list(parts)
            if question:
                request.append(ContentPart.from_text(f'The user specifically asked: "{question}"'))
            text = await self._generate(state, request)
            return ResponseResult(text=text, timestamp=now_ms())
        return await self._degraded_analysis(state, parts, question, guidance)

    async def _degraded_analysis(
        self,
        state: RouterState,
        parts: RequestEnvelope,
        question: Optional[str],
        guidance: Optional[str],
    ) -> ResponseResult:
        logger.info(
            f"[Router] {state.kind.value} cannot analyze binary input, sending guidance prompt"
        )
        prompt = guidance or degraded_prompt(parts, question)
        text = await self._generate(state, [ContentPart.from_text(prompt)])
        if not text.strip():
            text = (
                f"The {state.kind.value} provider cannot analyze this input directly. "
                "Switch to Gemini for image and audio analysis."
            )
        return ResponseResult(text=text, timestamp=now_ms())

    async def generate_cloud_text(self, prompt: str) -> ResponseResult:
        """Generate text with Gemini when a Gemini key exists, else the active provider."""
        if not self.has_cloud_credential:
            return await self.generate_text(prompt)
        text = await self._call_gemini(self._state.gemini.model, [ContentPart.from_text(prompt)])
        return ResponseResult(text=text, timestamp=now_ms())

    async def analyze_with_cloud(
        self, parts: RequestEnvelope, guidance: Optional[str] = None
    ) -> ResponseResult:
        """Analyze binary input with Gemini when possible, else degrade."""
        if not self.has_cloud_credential:
            return await self.analyze_binary(parts, guidance=guidance)
        text = await self._call_gemini(self._state.gemini.model, parts)
        return ResponseResult(text=text, timestamp=now_ms())

    # ------------------------------------------------------------------
    # Local models
    # ------------------------------------------------------------------

    async def _resolve_local_model(self, config: OllamaConfig) -> OllamaConfig:
        """Substitute the first installed model when the configured one is missing.

        Probe failures are not fatal: the configured model is kept and later
        calls fail with a connection error.
        """
        try:
            models = await self._ollama_client(config).list_models()
        except ProviderError as e:
            logger.warning(f"[Ollama] Failed to list models at {config.base_url}: {e}")
            return config
        if not models:
            logger.warning("[Ollama] No Ollama models found")
            return config
        if config.model not in models:
            logger.info(
                f"[Ollama] Model {config.model} not installed, "
                f"auto-selected first available model: {models[0]}"
            )
            return replace(config, model=models[0])
        return config

    async def list_local_models(self) -> list[str]:
        """Installed Ollama models; empty when Ollama is not active or unreachable."""
        state = self._state
        if state.kind is not ProviderKind.OLLAMA:
            return []
        try:
            return await self._ollama_client(state.ollama).list_models()
        except ProviderError as e:
            logger.error(f"[Ollama] Error fetching models: {e}")
            return []

    # ------------------------------------------------------------------
    # Switching and testing
    # ------------------------------------------------------------------

    async def switch_provider(self, kind: ProviderKind, config: ProviderConfig) -> None:
        """Activate ``kind`` with ``config``.

        Blank credentials fall back to the key already known for that
        provider. The new state is published in one assignment, so callers
        never observe a half-applied switch.

        Raises:
            ConfigurationError: Missing credential/endpoint, or a config that
                does not belong to ``kind``. State is left unchanged.
        """
        if config.kind is not kind:
            raise ConfigurationError(
                f"Config for {config.kind.value} cannot activate {kind.value}"
            )
        async with self._lock:
            current = self._state
            config = normalize_config(config)
            new_key: Optional[str] = None

            if isinstance(config, GeminiConfig):
                new_key = config.api_key
                if not new_key:
                    config = replace(config, api_key=self._controller.credentials.active_key)
            elif isinstance(config, OpenRouterConfig) and not config.api_key:
                config = replace(config, api_key=current.openrouter.api_key)

            missing = config.missing()
            if missing:
                raise ConfigurationError(missing)

            if isinstance(config, OllamaConfig):
                config = await self._resolve_local_model(config)

            # No awaits below: state and credentials change together
            if new_key and new_key != self._controller.credentials.active_key:
                self._controller.reset(
                    CredentialState(primary=new_key, fallback=self._controller.credentials.fallback)
                )
            self._state = current.with_config(config)

        logger.info(f"[Router] Switched to {kind.value}: {config.model}")

    async def test_connection(self) -> ConnectionStatus:
        """One minimal round trip against the active provider.

        Never raises and never changes provider state (no failover, no backoff).
        """
        state = self._state
        try:
            if state.kind is ProviderKind.OPENROUTER:
                await self._openrouter_client(state.openrouter).chat("Hello")
                return ConnectionStatus(success=True)

            if state.kind is ProviderKind.OLLAMA:
                client = self._ollama_client(state.ollama)
                if not await client.is_available():
                    return ConnectionStatus(
                        success=False, error=f"Ollama not available at {state.ollama.base_url}"
                    )
                await client.generate("Hello")
                return ConnectionStatus(success=True)

            if not self.has_cloud_credential:
                return ConnectionStatus(success=False, error="No Gemini model configured")
            response = await self._controller.probe(
                lambda client: client.generate(state.gemini.model, [ContentPart.from_text("Hello")])
            )
            if extract_gemini_text(response).strip():
                return ConnectionStatus(success=True)
            return ConnectionStatus(success=False, error="Empty response from Gemini")
        except Exception as e:
            logger.warning(f"[Router] Connection test failed for {state.kind.value}: {e}")
            return ConnectionStatus(success=False, error=str(e) or type(e).__name__)


async def create_router_from_settings(settings: Any = None, **kwargs: Any) -> ProviderRouter:
    """Create and initialize a ProviderRouter from application settings."""
    if settings is None:
        # Import here to avoid circular imports
        from wingman.config import get_settings

        settings = get_settings()

    router = ProviderRouter.from_settings(settings, **kwargs)
    await router.initialize()
    return router
