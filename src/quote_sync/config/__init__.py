"""Configuration package for quote_sync."""

from .state import (
    ConfigLoader,
    ConfigState,
    LoggingConfig,
    ProviderConfig,
    SyncConfig,
    get_config,
)

__all__ = [
    "ConfigLoader",
    "ConfigState",
    "LoggingConfig",
    "ProviderConfig",
    "SyncConfig",
    "get_config",
]
