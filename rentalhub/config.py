from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment configuration for the RentalHub project."""

    # ==========================================================================
    # Django Core
    # ==========================================================================
    secret_key: str = "django-insecure-rentalhub-dev-key"
    debug: bool = False
    allowed_hosts: str = "localhost,127.0.0.1"

    @property
    def allowed_hosts_list(self) -> List[str]:
        """Parse comma-separated hosts into list."""
        return [h.strip() for h in self.allowed_hosts.split(",") if h.strip()]

    # ==========================================================================
    # Database
    # ==========================================================================
    db_engine: str = "django.db.backends.sqlite3"
    db_name: str = "db.sqlite3"
    db_user: str = ""
    db_password: str = ""
    db_host: str = ""
    db_port: str = ""
    db_lock_timeout_seconds: int = 5

    # ==========================================================================
    # Logging
    # ==========================================================================
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    # ==========================================================================
    # Bookings
    # ==========================================================================
    default_currency: str = "KES"
    cancellation_window_hours: float = 1.0
    payment_webhook_secret: str = ""

    @field_validator("cancellation_window_hours")
    @classmethod
    def validate_window(cls, v: float) -> float:
        if v < 0:
            raise ValueError("CANCELLATION_WINDOW_HOURS cannot be negative")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
