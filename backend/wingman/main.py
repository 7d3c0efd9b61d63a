"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wingman.config import get_settings
from wingman.llm import create_router_from_settings
from wingman.services.assistant import AssistantService
from wingman.services.processing import ProcessingService
from wingman.utils.errors import ConfigurationError
from wingman.utils.logging import setup_logging

# Configure logging with file output
settings = get_settings()
setup_logging(level=settings.log_level, log_dir=settings.log_dir)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    logger.info(f"Starting application in {settings.environment} mode")
    app.state.router = None
    app.state.startup_error = None
    try:
        provider_router = await create_router_from_settings(settings)
    except ConfigurationError as e:
        # Keep serving /health so the shell can show the configuration problem
        logger.error(f"No LLM provider configured: {e}")
        app.state.startup_error = str(e)
    else:
        assistant = AssistantService(provider_router)
        app.state.router = provider_router
        app.state.assistant = assistant
        app.state.processing = ProcessingService(assistant)
    yield
    # Shutdown
    logger.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title="Wingman Assistant API",
    description="Local API used by the desktop shell for screenshot, audio and chat assistance",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Import and include routers
from wingman.api import assistant, health, providers  # noqa: E402

app.include_router(health.router, tags=["Health"])
app.include_router(providers.router, prefix="/llm", tags=["Providers"])
app.include_router(assistant.router, prefix="/assistant", tags=["Assistant"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Wingman Assistant API",
        "version": "1.0.0",
        "docs": "/docs" if not settings.is_production else None,
    }
