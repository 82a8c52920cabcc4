"""
Configuration management for the SIEM dashboard triage client.

Uses Pydantic Settings for environment variable validation and type safety.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendConfig(BaseSettings):
    """SIEM backend connection configuration."""

    url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the SIEM backend"
    )
    logs_path: str = Field(
        default="/logs",
        description="Path of the logs endpoint"
    )
    alerts_path: str = Field(
        default="/alerts",
        description="Path of the alerts endpoint"
    )
    health_path: str = Field(
        default="/health",
        description="Path of the backend health endpoint"
    )

    model_config = SettingsConfigDict(env_prefix="SIEM_BACKEND_")


class PollingConfig(BaseSettings):
    """Polling coordinator configuration."""

    interval_seconds: float = Field(
        default=2.0,
        gt=0.0,
        description="Delay between refresh ticks (seconds)"
    )
    request_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Per-request timeout (seconds); defaults to one polling interval"
    )
    supersede_inflight: bool = Field(
        default=False,
        description="Cancel a stream's pending fetch when the next tick starts a new one"
    )

    model_config = SettingsConfigDict(env_prefix="SIEM_POLL_")

    @property
    def effective_timeout(self) -> float:
        """Request timeout actually applied to each fetch."""
        if self.request_timeout_seconds is None:
            return self.interval_seconds
        return self.request_timeout_seconds


class DisplayConfig(BaseSettings):
    """Display caps applied by the triage views."""

    high_alert_cap: int = Field(
        default=5,
        ge=0,
        description="Maximum HIGH alerts rendered"
    )
    medium_alert_cap: int = Field(
        default=3,
        ge=0,
        description="Maximum MEDIUM alerts rendered"
    )
    log_row_cap: int = Field(
        default=50,
        ge=0,
        description="Maximum log rows rendered after filtering"
    )

    model_config = SettingsConfigDict(env_prefix="SIEM_DISPLAY_")


class AppConfig(BaseSettings):
    """Main application configuration."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # Nested configurations
    backend: BackendConfig = Field(default_factory=BackendConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)

    # Prefixed so nested section names never collide with e.g. $DISPLAY
    model_config = SettingsConfigDict(
        env_prefix="SIEM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v


# Global config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the global configuration instance.

    Lazily loads configuration on first access.

    Returns:
        AppConfig: The global configuration instance
    """
    global _config
    if _config is None:
        _config = AppConfig(
            backend=BackendConfig(),
            polling=PollingConfig(),
            display=DisplayConfig(),
        )
    return _config


def reload_config() -> AppConfig:
    """
    Reload configuration from environment variables.

    Useful for testing or when environment changes.

    Returns:
        AppConfig: The reloaded configuration instance
    """
    global _config
    _config = None
    return get_config()
