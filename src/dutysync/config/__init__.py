"""Application configuration helpers."""

from __future__ import annotations

from .backstage import BackstageConfig, get_backstage_config
from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .pagerduty import (
    DEFAULT_ACCOUNT_ID,
    AccountConfig,
    OAuthConfig,
    PagerDutyConfig,
    get_pagerduty_config,
    load_pagerduty_config_file,
    parse_pagerduty_config,
)
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_ACCOUNT_ID",
    "AccountConfig",
    "BackstageConfig",
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "OAuthConfig",
    "PagerDutyConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_backstage_config",
    "get_database_config",
    "get_pagerduty_config",
    "get_storage_config",
    "load_pagerduty_config_file",
    "optional_env_var",
    "parse_pagerduty_config",
    "require_env_vars",
]
