"""
Runtime Configuration

Central configuration for the ledger, its persistence and its outer
surfaces (HTTP API, CLI).
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from core.crypto.hashing import DEFAULT_HASH_ALGORITHM, get_hash_function

load_dotenv()


ENV_PREFIX = "PTT_"


def _env_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class LedgerConfig:
    """Configuration for code authorization."""
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM
    track_leaf_hashes: bool = True

    def __post_init__(self):
        # Fail early on a typo rather than at the first transfer
        get_hash_function(self.hash_algorithm)
        self.hash_algorithm = self.hash_algorithm.lower()


@dataclass
class StorageConfig:
    """Where the CLI and API keep ledger state between runs."""
    state_path: Optional[str] = None


@dataclass
class APIConfig:
    """Configuration for the HTTP API."""
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - PTT_HASH_ALGORITHM: keccak256 or sha256
        - PTT_TRACK_LEAF_HASHES: Reject previously processed leaves (true/false)
        - PTT_STATE_PATH: JSON state file
        - PTT_API_HOST / PTT_API_PORT: HTTP bind address
        - PTT_LOG_LEVEL: Log level
        """
        overrides: dict[str, Any] = {}

        if os.getenv(f"{ENV_PREFIX}HASH_ALGORITHM"):
            overrides.setdefault("ledger", {})["hash_algorithm"] = os.getenv(f"{ENV_PREFIX}HASH_ALGORITHM")
        if os.getenv(f"{ENV_PREFIX}TRACK_LEAF_HASHES"):
            overrides.setdefault("ledger", {})["track_leaf_hashes"] = _env_bool(
                os.getenv(f"{ENV_PREFIX}TRACK_LEAF_HASHES", "true")
            )

        if os.getenv(f"{ENV_PREFIX}STATE_PATH"):
            overrides.setdefault("storage", {})["state_path"] = os.getenv(f"{ENV_PREFIX}STATE_PATH")

        if os.getenv(f"{ENV_PREFIX}API_HOST"):
            overrides.setdefault("api", {})["host"] = os.getenv(f"{ENV_PREFIX}API_HOST")
        if os.getenv(f"{ENV_PREFIX}API_PORT"):
            overrides.setdefault("api", {})["port"] = int(os.getenv(f"{ENV_PREFIX}API_PORT", "8000"))

        if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            overrides["log_level"] = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """Load configuration purely from environment variables."""
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        ledger_data = data.get("ledger", {}) or {}
        storage_data = data.get("storage", {}) or {}
        api_data = data.get("api", {}) or {}

        return cls(
            ledger=LedgerConfig(**ledger_data),
            storage=StorageConfig(**storage_data),
            api=APIConfig(**api_data),
            log_level=data.get("log_level", "INFO"),
            extra=data.get("extra", {}) or {},
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)
        for section in ("ledger", "storage", "api"):
            for key, value in overrides.get(section, {}).items():
                setattr(getattr(new_config, section), key, value)
        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        # Re-validate the hash algorithm after overlaying
        new_config.ledger.__post_init__()
        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "ledger": {
                "hash_algorithm": self.ledger.hash_algorithm,
                "track_leaf_hashes": self.ledger.track_leaf_hashes,
            },
            "storage": {
                "state_path": self.storage.state_path,
            },
            "api": {
                "host": self.api.host,
                "port": self.api.port,
            },
            "log_level": self.log_level,
            "extra": self.extra,
        }


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: Optional[RuntimeConfig]) -> None:
    """Set (or with None, reset) the default runtime configuration."""
    global _default_config
    _default_config = config
