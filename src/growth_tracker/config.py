"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

REMOTE_BACKENDS = {"rest", "supabase", "none"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    log_level: str = "INFO"
    storage_path: str = ".growth_tracker/state.json"
    timezone: str = "UTC"
    default_daily_goal: int = 2000
    history_retention_days: int = 30
    remote_backend: str = "rest"
    calorie_api_base_url: str | None = None
    calorie_api_timeout_seconds: float = 10.0
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-mini"
    assistant_temperature: float = 0.7
    assistant_max_output_tokens: int = 1000
    assistant_strict_topics: bool = False
    assistant_topic_memory: int = 5
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def resolve_remote_backend(settings: Settings) -> str:
    """Return the remote backend that the settings can actually support."""
    backend = settings.remote_backend.strip().lower()
    if backend not in REMOTE_BACKENDS:
        return "none"
    if backend == "rest" and not settings.calorie_api_base_url:
        return "none"
    if backend == "supabase" and not (
        settings.supabase_url and settings.supabase_service_key
    ):
        return "none"
    return backend
