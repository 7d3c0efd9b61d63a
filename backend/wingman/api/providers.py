"""Provider selection routes (switch, test, list models)."""

import logging

from fastapi import APIRouter

from wingman.api.deps import Router
from wingman.llm import GeminiConfig, OllamaConfig, OpenRouterConfig, ProviderKind
from wingman.models.schemas import (
    CurrentProviderResponse,
    ModelListResponse,
    StatusResponse,
    SwitchProviderRequest,
)
from wingman.utils.errors import ConfigurationError

router = APIRouter()
logger = logging.getLogger(__name__)


def _build_config(request: SwitchProviderRequest):
    kind = ProviderKind(request.provider)
    if kind is ProviderKind.OLLAMA:
        defaults = OllamaConfig()
        return kind, OllamaConfig(
            base_url=request.url or defaults.base_url,
            model=request.model or defaults.model,
        )
    if kind is ProviderKind.OPENROUTER:
        defaults = OpenRouterConfig()
        return kind, OpenRouterConfig(
            api_key=request.api_key,
            model=request.model or defaults.model,
            base_url=request.url or defaults.base_url,
        )
    return kind, GeminiConfig(
        api_key=request.api_key,
        model=request.model or GeminiConfig().model,
    )


@router.get("/current", response_model=CurrentProviderResponse)
async def current_provider(provider_router: Router):
    """Return the active provider and model."""
    return CurrentProviderResponse(
        provider=provider_router.current_provider().value,
        model=provider_router.current_model(),
        using_fallback=provider_router.using_fallback_credential,
    )


@router.post("/switch", response_model=StatusResponse, response_model_exclude_none=True)
async def switch_provider(request: SwitchProviderRequest, provider_router: Router):
    """Switch provider; failures are reported in the body, not as HTTP errors."""
    kind, config = _build_config(request)
    try:
        await provider_router.switch_provider(kind, config)
    except ConfigurationError as e:
        logger.warning(f"[API] Provider switch rejected: {e}")
        return StatusResponse(success=False, error=str(e))
    return StatusResponse(success=True)


@router.post("/test", response_model=StatusResponse, response_model_exclude_none=True)
async def test_connection(provider_router: Router):
    """Round-trip test against the active provider."""
    status = await provider_router.test_connection()
    return StatusResponse(success=status.success, error=status.error)


@router.get("/models", response_model=ModelListResponse)
async def list_models(provider_router: Router):
    """Installed Ollama models (empty unless Ollama is active)."""
    return ModelListResponse(models=await provider_router.list_local_models())
