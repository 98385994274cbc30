"""Application configuration."""

import os

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    telegram_bot_token: str
    supabase_url: str
    supabase_service_key: str
    admin_token: str
    ledger_api_key: str
    ledger_base_url: str = "https://midasbuy-api.com/api/v1/pubg"
    ledger_timeout_seconds: float = 15.0
    owner_telegram_id: int | None = None
    subscription_days: int = 30
    subscription_contact: str = "@YOUR_USERNAME"
    display_timezone: str = "Asia/Riyadh"
    operation_log_window: int = 500
    operation_log_page_size: int = 10
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @field_validator("ledger_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")
