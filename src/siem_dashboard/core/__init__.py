"""
Core module for the SIEM dashboard triage client.

Contains configuration shared across all modules.
"""

from siem_dashboard.core.config import (
    AppConfig,
    BackendConfig,
    DisplayConfig,
    PollingConfig,
    get_config,
    reload_config,
)

__all__ = [
    "AppConfig",
    "BackendConfig",
    "DisplayConfig",
    "PollingConfig",
    "get_config",
    "reload_config",
]
