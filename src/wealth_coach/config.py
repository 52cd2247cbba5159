"""Application configuration loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables
    )

    # Gemini API (checked when an LLM call is made, not at import)
    google_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
    gemini_model: str = "gemini-2.5-flash"

    # Completion budgets
    temperature: float = 0.5
    max_tokens: int = 500
    insight_temperature: float = 0.7
    insight_max_tokens: int = 100
    history_window: int = 6

    # Response cache
    cache_ttl_seconds: int = 24 * 60 * 60
    cache_max_entries: int = 1000

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False


settings = Settings()
