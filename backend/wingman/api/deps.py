"""Dependency injection for API routes."""

from typing import Annotated

from fastapi import Depends, Request

from wingman.llm import ProviderRouter
from wingman.services.assistant import AssistantService
from wingman.services.processing import ProcessingService
from wingman.utils.errors import service_unavailable


def get_router(request: Request) -> ProviderRouter:
    """Return the process-wide provider router created at startup."""
    router = getattr(request.app.state, "router", None)
    if router is None:
        error = getattr(request.app.state, "startup_error", None)
        raise service_unavailable(error or "No LLM provider configured")
    return router


def get_assistant(request: Request) -> AssistantService:
    get_router(request)
    return request.app.state.assistant


def get_processing(request: Request) -> ProcessingService:
    get_router(request)
    return request.app.state.processing


# Type aliases for dependency injection
Router = Annotated[ProviderRouter, Depends(get_router)]
Assistant = Annotated[AssistantService, Depends(get_assistant)]
Processing = Annotated[ProcessingService, Depends(get_processing)]
