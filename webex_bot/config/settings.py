"""
Configuration settings for the Webex Meeting Bot.
Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dateutil import tz


class WebexSettings(BaseSettings):
    """Webex REST API configuration."""
    model_config = SettingsConfigDict(env_prefix="WEBEX_")

    access_token: str = Field(
        default="",
        description="Bot access token (Bearer)"
    )
    base_url: str = Field(
        default="https://webexapis.com/v1",
        description="Webex API base URL"
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for identity, post and metadata calls"
    )
    fetch_timeout_seconds: float = Field(
        default=8.0,
        description="Timeout for the message fetch call"
    )
    domain_token: str = Field(
        default="webex",
        description="Token a URL must contain to count as a meeting link"
    )


class PollingSettings(BaseSettings):
    """Message polling configuration."""
    model_config = SettingsConfigDict(env_prefix="POLLING_")

    interval_seconds: float = Field(
        default=5.0,
        description="How often to fetch recent messages (in seconds)"
    )
    page_size: int = Field(
        default=20,
        description="Maximum messages fetched per poll"
    )
    room_id: Optional[str] = Field(
        default=None,
        description="Restrict polling to a single room"
    )
    rate_limit_penalty_seconds: float = Field(
        default=60.0,
        description="Pause after a rate-limit response before polling again"
    )
    dedup_ceiling: int = Field(
        default=200,
        description="Compact the processed-message ledger above this size"
    )
    dedup_floor: int = Field(
        default=100,
        description="Ledger size after compaction"
    )
    error_suppression_seconds: float = Field(
        default=300.0,
        description="Suppress repeated permission errors within this window"
    )
    heartbeat_interval_seconds: float = Field(
        default=60.0,
        description="How often to log a heartbeat status line"
    )


class SessionSettings(BaseSettings):
    """Meeting session configuration."""
    model_config = SettingsConfigDict(env_prefix="SESSION_")

    transcript_interval_seconds: float = Field(
        default=10.0,
        description="Cadence of transcript entries while a session is active"
    )
    join_timeout_seconds: float = Field(
        default=30.0,
        description="Maximum time a join attempt may take"
    )
    summary_max_entries: int = Field(
        default=5,
        description="Transcript entries listed in the end-of-session summary"
    )
    max_session_minutes: int = Field(
        default=120,
        description="End sessions automatically after this many minutes (0 disables)"
    )
    log_tail_size: int = Field(
        default=100,
        description="Log records kept in memory for the status endpoint"
    )


class ApiSettings(BaseSettings):
    """HTTP status server configuration."""
    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=3000, description="Bind port")


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )

    # Nested settings
    webex: WebexSettings = Field(default_factory=WebexSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)

    # Application settings
    version: str = Field(default="1.0.0", description="Reported service version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    log_to_file: bool = Field(default=False, description="Also write logs under logs/")
    timezone: str = Field(default="auto", description="Timezone (or 'auto')")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @property
    def tz_info(self):
        """Get timezone info (auto-detected if 'auto')."""
        if self.timezone.lower() == "auto":
            return tz.tzlocal()
        return tz.gettz(self.timezone) or tz.UTC


# Global settings instance
settings = Settings()
