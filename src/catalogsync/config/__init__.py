"""Application configuration helpers."""

from __future__ import annotations

from catalogsync.common.logging import configure_logging

from .env import env_float, env_int, optional_env, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .feed import FeedConfig, get_feed_config
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .notifier import NotifierConfig, SmtpSettings, get_notifier_config
from .shopify import ShopifyConfig, get_shopify_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "FeedConfig",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "NotifierConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "ShopifyConfig",
    "SmtpSettings",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "env_float",
    "env_int",
    "get_database_config",
    "get_feed_config",
    "get_notifier_config",
    "get_shopify_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env",
    "require_env_vars",
]
