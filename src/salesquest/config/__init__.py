"""Application configuration helpers."""

from __future__ import annotations

from .database import DatabaseConfig, default_data_dir, get_database_config
from .env import optional_env, optional_env_int
from .errors import ConfigurationError
from .logging import configure_logging, get_log_level
from .reconciliation import ReconciliationConfig, get_reconciliation_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "ReconciliationConfig",
    "configure_logging",
    "default_data_dir",
    "get_database_config",
    "get_log_level",
    "get_reconciliation_config",
    "optional_env",
    "optional_env_int",
]
