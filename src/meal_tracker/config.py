"""Application configuration."""

import os
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    api_token: str
    default_timezone: str = "UTC"
    insights_max_days: int = 365
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def resolve_timezone(raw: str | None, default: str) -> str:
    """Return ``raw`` when it names a known timezone, else ``default``."""
    if raw is None:
        return default
    cleaned = raw.strip()
    if not cleaned:
        return default
    try:
        ZoneInfo(cleaned)
    except (ValueError, KeyError):
        return default
    return cleaned
