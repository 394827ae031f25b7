"""
Unified configuration state for quote-sync.

Single source of truth for application configuration, combining YAML files
with environment overrides, type validation and sensible defaults.
"""

import logging
import os
from datetime import time
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)


# =============================================================================
# PYDANTIC MODELS - Type-Safe Configuration
# =============================================================================


class SyncConfig(BaseModel):
    """Sync engine configuration: market hours, lookback, concurrency."""

    market_open: time = Field(default=time(9, 30))
    market_close: time = Field(default=time(15, 59))
    timezone: str = Field(default="America/New_York")
    default_lookback_months: int = Field(default=1, ge=1, le=24)
    max_concurrency: int = Field(default=8, ge=1, le=256)

    @model_validator(mode="after")
    def validate_market_hours(self) -> "SyncConfig":
        if self.market_open >= self.market_close:
            raise ValueError("market_open must be earlier than market_close")
        return self

    model_config = ConfigDict(extra="allow")


class ProviderConfig(BaseModel):
    """Market-data provider (IEX Cloud style REST API) configuration."""

    name: str = Field(default="iex_cloud")
    base_url: str = Field(default="https://cloud.iexapis.com/stable")
    token: str | None = Field(default=None)
    timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=1, le=10)

    model_config = ConfigDict(extra="allow")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=True)

    model_config = ConfigDict(extra="allow")


class ConfigState(BaseModel):
    """
    Root configuration state - single source of truth for all app config.
    """

    sync: SyncConfig = Field(default_factory=SyncConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    env: str = Field(default="dev")
    config_dir: str = Field(default="./config")

    model_config = ConfigDict(extra="allow")


# =============================================================================
# CONFIG LOADER - Clean, Validated Loading
# =============================================================================


class ConfigLoader:
    """
    Load and validate configuration from YAML files.

    Merges:
      1. Global defaults (hardcoded)
      2. YAML files from config_dir
      3. Environment-specific YAML (env/<env>.yaml)
      4. Environment variable overrides
    """

    CONFIG_FILES = ("sync.yaml", "provider.yaml", "logging.yaml")

    def __init__(self, config_dir: str = "./config"):
        self.config_dir = Path(config_dir)
        self._yaml_cache: dict[Path, Any] = {}
        self.env = os.getenv("QUOTE_SYNC_ENV", "dev")

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load YAML file with caching."""
        if path in self._yaml_cache:
            return self._yaml_cache[path]

        if not path.exists():
            logger.debug(f"Config file not found (using defaults): {path}")
            return {}

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        self._yaml_cache[path] = data
        logger.debug(f"Loaded config: {path}")
        return data

    def _apply_env_overrides(self, config: dict[str, Any]) -> dict[str, Any]:
        """Apply environment variable overrides to config."""
        if token := os.getenv("QUOTE_SYNC_PROVIDER_TOKEN"):
            config.setdefault("provider", {})["token"] = token

        if base_url := os.getenv("QUOTE_SYNC_PROVIDER_URL"):
            config.setdefault("provider", {})["base_url"] = base_url

        if log_level := os.getenv("LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level

        return config

    def _merge_dicts(self, base: dict, override: dict) -> dict:
        """Deep merge override into base dict."""
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def load(self) -> ConfigState:
        """
        Load complete configuration state.

        Returns:
            ConfigState: Validated configuration object

        Raises:
            ValidationError: If configuration is invalid
        """
        logger.info(f"Loading configuration from {self.config_dir} (env: {self.env})")

        config: dict[str, Any] = {}

        # Top-level files hold one section each, keyed by the file stem
        for config_file in self.CONFIG_FILES:
            file_config = self._load_yaml(self.config_dir / config_file)
            if file_config:
                section = config_file.removesuffix(".yaml")
                config = self._merge_dicts(config, {section: file_config})

        env_config = self._load_yaml(self.config_dir / "env" / f"{self.env}.yaml")
        config = self._merge_dicts(config, env_config)

        config = self._apply_env_overrides(config)

        try:
            state = ConfigState(env=self.env, config_dir=str(self.config_dir), **config)
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

        logger.info(
            f"Configuration loaded: market hours "
            f"{state.sync.market_open}-{state.sync.market_close} {state.sync.timezone}, "
            f"provider={state.provider.name}, max_concurrency={state.sync.max_concurrency}"
        )
        return state


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================


def get_config(config_dir: str | None = None) -> ConfigState:
    """
    Load and return the configuration state.

    Args:
        config_dir: Override config directory. Defaults to $QUOTE_SYNC_CONFIG_DIR or ./config

    Returns:
        ConfigState: Validated configuration object
    """
    if config_dir is None:
        config_dir = os.getenv("QUOTE_SYNC_CONFIG_DIR", "./config")
        if not Path(config_dir).exists():
            logger.warning(f"Config directory not found at {config_dir}, using defaults")

    loader = ConfigLoader(config_dir=config_dir)
    return loader.load()


__all__ = [
    "ConfigLoader",
    "ConfigState",
    "LoggingConfig",
    "ProviderConfig",
    "SyncConfig",
    "get_config",
]
