"""Health check endpoint."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint for the desktop shell."""
    provider_router = getattr(request.app.state, "router", None)
    return {
        "status": "healthy" if provider_router else "degraded",
        "version": "1.0.0",
        "provider": provider_router.current_provider().value if provider_router else None,
    }
