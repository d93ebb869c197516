"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_float, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .remote import RemoteConfig, default_resilience_config, get_remote_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import DEFAULT_STORAGE_KEY, SyncConfig, get_sync_config

__all__ = [
    "DEFAULT_STORAGE_KEY",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RateLimit",
    "RemoteConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "default_resilience_config",
    "get_database_config",
    "get_remote_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env_float",
    "require_env_var",
    "require_env_vars",
]
