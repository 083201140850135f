"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from apscheduler.triggers.cron import CronTrigger
from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from billpay.config.constants import (
    DEFAULT_API_HOST,
    DEFAULT_API_PORT,
    DEFAULT_DATABASE_URL,
    DEFAULT_PAYMENT_CHECK_CRON,
    DEFAULT_PROVIDER_BASE_URL,
    DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_MS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = DEFAULT_DATABASE_URL
    database_echo: bool = False

    # Scheduling
    payment_check_cron: str = Field(
        default=DEFAULT_PAYMENT_CHECK_CRON,
        description="Crontab expression for the recurring due-payment pass",
    )
    timezone: str = Field(
        default="UTC",
        description="Timezone for cron ticks and for the 'today' window",
    )

    # Retry policy
    retry_attempts: int = Field(
        default=DEFAULT_RETRY_ATTEMPTS,
        ge=1,
        description="Settlement attempts per payment before FAILED",
    )
    retry_delay_ms: int = Field(
        default=DEFAULT_RETRY_DELAY_MS,
        ge=0,
        description="Fixed delay between settlement attempts (ms)",
    )

    # Settlement provider (credentials are opaque to the core)
    settlement_provider: Literal["http", "dry_run"] = "http"
    provider_base_url: str = DEFAULT_PROVIDER_BASE_URL
    provider_username: str = ""
    provider_password: str = ""
    provider_cert_path: str | None = None
    provider_cert_password: str | None = None
    provider_timeout_seconds: float = Field(
        default=DEFAULT_PROVIDER_TIMEOUT_SECONDS, gt=0
    )

    # Startup behaviour
    recover_stale_processing: bool = Field(
        default=True,
        description="Move records left in PROCESSING by a crash to FAILED on start",
    )
    seed_sample_data: bool = False

    # Operator HTTP API
    api_host: str = DEFAULT_API_HOST
    api_port: int = Field(
        default=DEFAULT_API_PORT, ge=0, le=65535, description="0 binds any free port"
    )

    # Application
    log_level: str = "INFO"
    log_file: str | None = "logs/billpay.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("payment_check_cron")
    @classmethod
    def validate_cron(cls, v: str) -> str:
        """Validate crontab expression."""
        try:
            CronTrigger.from_crontab(v)
        except ValueError as e:
            raise ValueError(f"Invalid cron expression '{v}': {e}") from e
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate IANA timezone name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{v}'") from e
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Loguru level names are upper case."""
        return v.upper()

    @model_validator(mode="after")
    def warn_missing_credentials(self) -> "Settings":
        """Warn when the HTTP provider has no credentials."""
        if self.settlement_provider == "http" and not self.provider_username:
            logger.warning(
                "PROVIDER_USERNAME is empty; connecting to the settlement "
                "provider will fail. Set it in .env or use "
                "SETTLEMENT_PROVIDER=dry_run."
            )
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        """Configured timezone as a tzinfo object."""
        return ZoneInfo(self.timezone)

    @property
    def retry_delay_seconds(self) -> float:
        """Retry delay converted to seconds."""
        return self.retry_delay_ms / 1000


settings = Settings()
