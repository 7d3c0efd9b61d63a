"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = "development"
    log_level: str = "INFO"
    log_dir: str | None = None

    # Gemini (cloud multimodal model)
    gemini_api_key: str | None = None
    gemini_fallback_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"

    # Ollama (local inference)
    use_ollama: bool = False
    ollama_url: str = "http://localhost:11434"
    ollama_model: str | None = None

    # OpenRouter (gateway)
    use_openrouter: bool = False
    openrouter_api_key: str | None = None
    openrouter_model: str = "google/gemini-2.5-flash"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"

    # Retry / timeouts
    llm_max_attempts: int = 3
    llm_initial_delay: float = 1.0
    llm_backoff_factor: float = 2.0
    llm_max_delay: float = 30.0
    llm_timeout_seconds: float = 60.0

    # CORS (the desktop shell talks to the local API)
    cors_origins: str = "http://localhost:5173"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
