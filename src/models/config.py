"""Application configuration model using pydantic-settings."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Pipeline(StrEnum):
    """The independent watcher pipelines."""

    SOCIALS = "socials"
    MARKET_CAP = "market_cap"
    LAUNCHES = "launches"
    FREED = "freed"


class Config(BaseSettings):
    """Application configuration loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    token_api_url: str
    token_site_url: str = "https://ape.store/base"
    explorer_url: str = "https://basescan.org/address"

    discord_webhook_url: str | None = None
    socials_webhook_url: str | None = None
    market_cap_webhook_url: str | None = None
    launches_webhook_url: str | None = None
    freed_webhook_url: str | None = None

    proxy_url: str | None = None
    verify_tls: bool = True
    request_timeout: int = 30

    database_path: str = "data/tokens.db"
    log_level: str = "INFO"
    max_retry_attempts: int = 3

    socials_max_pages: int = 10
    market_cap_thresholds: list[int] = [60_000, 50_000, 30_000]
    persist_threshold_ledger: bool = False
    freed_recent_window_minutes: int = 60

    socials_min_interval: float = 10.0
    socials_max_interval: float = 20.0
    market_cap_min_interval: float = 15.0
    market_cap_max_interval: float = 45.0
    launches_min_interval: float = 20.0
    launches_max_interval: float = 30.0
    freed_min_interval: float = 10.0
    freed_max_interval: float = 20.0

    @field_validator("token_api_url")
    @classmethod
    def validate_token_api_url(cls, value: str) -> str:
        """Listing API URL must be an http(s) URL."""
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            msg = "token_api_url must be an http(s) URL"
            raise ValueError(msg)
        return value.rstrip("?")

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, value: str) -> str:
        """Ensure parent directory exists, creating it if necessary."""
        parent = Path(value).parent
        parent.mkdir(parents=True, exist_ok=True)
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Log level must be a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            msg = f"log_level must be one of {', '.join(sorted(valid_levels))}"
            raise ValueError(msg)
        return upper_value

    @field_validator("max_retry_attempts")
    @classmethod
    def validate_max_retry_attempts(cls, value: int) -> int:
        """Max retry attempts must be between 1 and 10."""
        if value < 1 or value > 10:
            msg = "max_retry_attempts must be between 1 and 10"
            raise ValueError(msg)
        return value

    @field_validator("request_timeout", "socials_max_pages", "freed_recent_window_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            msg = "value must be greater than 0"
            raise ValueError(msg)
        return value

    @field_validator("market_cap_thresholds")
    @classmethod
    def validate_market_cap_thresholds(cls, value: list[int]) -> list[int]:
        """Thresholds must be positive; stored unique and highest first."""
        if not value:
            msg = "market_cap_thresholds must not be empty"
            raise ValueError(msg)
        if any(threshold <= 0 for threshold in value):
            msg = "market_cap_thresholds must all be greater than 0"
            raise ValueError(msg)
        return sorted(set(value), reverse=True)

    @model_validator(mode="after")
    def validate_intervals(self) -> Config:
        """Each pipeline needs 0 < min_interval <= max_interval."""
        for pipeline in Pipeline:
            low, high = self.interval_for(pipeline)
            if low <= 0 or high < low:
                msg = f"{pipeline}_min_interval must be > 0 and <= {pipeline}_max_interval"
                raise ValueError(msg)
        return self

    def interval_for(self, pipeline: Pipeline) -> tuple[float, float]:
        """Return the (min, max) polling interval in seconds for a pipeline."""
        return (
            getattr(self, f"{pipeline}_min_interval"),
            getattr(self, f"{pipeline}_max_interval"),
        )

    def webhook_for(self, pipeline: Pipeline) -> str:
        """Return the webhook a pipeline posts to, falling back to discord_webhook_url.

        Raises ValueError when neither is configured.
        """
        url = getattr(self, f"{pipeline}_webhook_url") or self.discord_webhook_url
        if not url or not url.strip():
            msg = f"No webhook configured for {pipeline}: set {pipeline.upper()}_WEBHOOK_URL"
            raise ValueError(msg)
        return url.strip()
