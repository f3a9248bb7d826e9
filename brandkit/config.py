"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (in-memory repositories when unset)
    database_url: str | None = None

    # Language model
    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-4o-mini"

    # Token budgets and sampling per phase
    analysis_max_tokens: int = 2000
    analysis_temperature: float = 0.7
    parse_max_tokens: int = 1500
    parse_temperature: float = 0.1
    document_max_tokens: int = 2500

    # Live sync
    sync_polling_interval_sec: float = 3.0
    sync_reconnect_delay_sec: float = 1.0
    sync_max_reconnect_attempts: int = 5
    sync_enable_polling: bool = True

    # Fallback display name when a subject has none
    default_subject_name: str = "Unknown Brand"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
