"""Application configuration helpers."""

from __future__ import annotations

from .calendar import CalendarConfig, calendar_resilience
from .env import CONFIG_PATH_ENV, get_env, require_env_var
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .onebot import OneBotBackendConfig, OneBotConfig
from .schedule import (
    AppConfig,
    load_app_config,
    parse_app_config,
    resolve_config_path,
)
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_holiday_cache_path,
    get_storage_config,
)

__all__ = [
    "CONFIG_PATH_ENV",
    "AppConfig",
    "CacheConfig",
    "CalendarConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "OneBotBackendConfig",
    "OneBotConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "calendar_resilience",
    "configure_logging",
    "get_database_config",
    "get_env",
    "get_holiday_cache_path",
    "get_storage_config",
    "load_app_config",
    "parse_app_config",
    "require_env_var",
    "resolve_config_path",
]
