"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database (assignment update sink)
    database_url: str = "sqlite+aiosqlite:///./synapse.db"

    # Content generation (any OpenAI-compatible endpoint)
    openai_api_key: str = ""
    openai_base_url: Optional[str] = None
    ai_model: str = "gpt-4o-mini"
    ai_language: str = "en"  # en, id
    generation_timeout_seconds: float = 60.0

    # Debate scoring
    finalize_hint_threshold: float = 75.0
    perfected_threshold: float = 85.0
    opening_weight: float = 50.0

    # Academic freeze detection
    freeze_window_hours: int = 48
    countdown_tick_seconds: float = 1.0

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Synapse Mastery Core"
    version: str = "0.1.0"

    @property
    def ai_configured(self) -> bool:
        """True when a real (non-placeholder) generation key is present."""
        key = (self.openai_api_key or "").strip()
        return bool(
            key
            and not key.startswith("sk-your-")
            and key != "sk-your-openai-api-key"
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
