"""
Runtime Configuration Module

Provides configuration loading and management for the ledger.
"""

from .runtime import (
    APIConfig,
    LedgerConfig,
    RuntimeConfig,
    StorageConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "APIConfig",
    "LedgerConfig",
    "RuntimeConfig",
    "StorageConfig",
    "get_default_config",
    "set_default_config",
]
