"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database (local SQLite file by default)
    database_url: str = "sqlite+aiosqlite:///./jobos.db"

    # OpenRouter chat completions
    openrouter_api_url: str = "https://openrouter.ai/api/v1/chat/completions"
    openrouter_model: str = "openai/gpt-4o-mini"
    openrouter_api_key: str | None = None
    openrouter_referer: str = "https://jobos.local"
    openrouter_title: str = "Personal Job OS"
    llm_timeout_seconds: float = 120.0

    # Tracker rules
    ghosted_after_days: int = 14

    # Application
    app_name: str = "Job OS API"
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    frontend_cors_origin: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def openrouter_models_url(self) -> str:
        """Model listing endpoint next to the chat completions endpoint.

        Used by the health check since it needs no API key.
        """
        base = self.openrouter_api_url.rsplit("/chat/completions", 1)[0]
        return f"{base}/models"


# Global settings instance
settings = Settings()
