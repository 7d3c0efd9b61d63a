"""Provider transports: one client per backend kind."""

from .gemini import GeminiClient, create_gemini_client
from .ollama import OllamaClient
from .openrouter import OpenRouterClient

__all__ = [
    "GeminiClient",
    "create_gemini_client",
    "OllamaClient",
    "OpenRouterClient",
]
