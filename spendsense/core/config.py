from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEZONE = "Australia/Sydney"
STUB_TOKENS = {"stub", "debug"}


def _normalize_optional(value: Any) -> str:
    """Treat None and whitespace-only env values as an empty string."""
    if value is None:
        return ""
    return str(value).strip()


class Settings(BaseSettings):
    """Application settings."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./spendsense.db"

    # Application
    ENV: str = "development"
    APP_NAME: str = "SpendSense"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Insight engine
    INSIGHTS_TIMEZONE: str = DEFAULT_TIMEZONE
    ALERT_RETENTION_DAYS: int = Field(default=14, ge=1)

    # Scheduled jobs (local time in INSIGHTS_TIMEZONE)
    SCHEDULER_ENABLED: bool = False
    BUDGET_CHECK_DAY: int = Field(default=1, ge=1, le=28)
    BUDGET_CHECK_HOUR: int = Field(default=9, ge=0, le=23)
    RETENTION_SWEEP_HOUR: int = Field(default=2, ge=0, le=23)

    # Push notifications (Firebase Cloud Messaging HTTP v1)
    FCM_PROJECT_ID: str = ""
    FCM_ACCESS_TOKEN: str = "stub"
    PUSH_TIMEOUT_SECONDS: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("FCM_PROJECT_ID", "FCM_ACCESS_TOKEN", mode="before")
    @classmethod
    def strip_credentials(cls, value: Any) -> str:
        return _normalize_optional(value)

    @property
    def push_stubbed(self) -> bool:
        """Return True when push delivery should only be logged."""
        return self.FCM_ACCESS_TOKEN.lower() in STUB_TOKENS


def _validate_production() -> None:
    """Fail fast when running production with development defaults."""
    if settings.ENV.lower() != "production":
        return

    if settings.DATABASE_URL.startswith("sqlite"):
        raise ValueError("Use PostgreSQL in production; sqlite is only for local/dev.")

    if not settings.push_stubbed and not settings.FCM_PROJECT_ID:
        raise ValueError("FCM_PROJECT_ID must be configured when push delivery is enabled.")


settings = Settings()


_validate_production()
