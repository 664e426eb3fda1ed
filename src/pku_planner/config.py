"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    telegram_bot_token: str | None = None
    caregiver_chat_ids: str | None = None
    default_price_per_gram: float = 0.05
    variety_lookback_days: int = 7
    min_days_between_repeats: int = 2
    selections_per_slot: int = 3
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_chat_ids(raw: str | None) -> set[int]:
    """Parse caregiver Telegram chat IDs from env."""
    if raw is None:
        return set()
    ids: set[int] = set()
    for chunk in raw.split(","):
        value = chunk.strip()
        if not value:
            continue
        if value.lstrip("-").isdigit():
            ids.add(int(value))
    return ids
