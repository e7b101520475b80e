"""
Configuration management for the protocol matching service.
"""
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

# .env sits at the repository root (src/utils -> src -> root)
_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Protocol store (PostgreSQL)
    protocol_database_url: Optional[str] = None

    # Protocol store (PostgREST / Supabase)
    protocol_api_url: Optional[str] = None
    protocol_api_key: Optional[str] = None

    # Matching engine
    protocol_cache_ttl_seconds: float = 300.0
    repository_timeout_seconds: float = 10.0
    max_concurrent_evaluations: int = 8

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Loaded lazily by get_settings
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide Settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Re-read settings from the environment and .env."""
    global _settings
    _settings = Settings()
    return _settings
