"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    vapid_private_key: str | None = None
    vapid_public_key: str | None = None
    vapid_subject: str | None = None
    notification_sweep_seconds: float = 60
    push_timeout_seconds: float = 10
    push_ttl_seconds: int = 60 * 60
    display_timezone: str = "UTC"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def push_configured(self) -> bool:
        """Return true when every VAPID credential is present."""
        return all(
            value and value.strip()
            for value in (
                self.vapid_private_key,
                self.vapid_public_key,
                self.vapid_subject,
            )
        )
