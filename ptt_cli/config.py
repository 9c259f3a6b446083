"""
CLI Configuration

Loads the shared RuntimeConfig for CLI use. Supports YAML configuration
files and environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from core.config.runtime import ENV_PREFIX, RuntimeConfig


DEFAULT_CONFIG_PATHS = (
    Path("ptt.yaml"),
    Path(".ptt.yaml"),
    Path.home() / ".config" / "ptt" / "config.yaml",
)


@dataclass
class CLIConfig:
    """Main CLI configuration."""

    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)

    # Logging
    log_file: str | None = None

    @property
    def log_level(self) -> str:
        return self.runtime.log_level

    @property
    def state_path(self) -> str | None:
        return self.runtime.storage.state_path


def load_config(config_path: Path | None = None) -> CLIConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings. Without an explicit path
    the first existing default location is used.

    Raises:
        FileNotFoundError: If ``config_path`` is given but does not exist
    """
    runtime = RuntimeConfig()
    if config_path is not None:
        runtime = RuntimeConfig.from_yaml(config_path)
    else:
        for default_path in DEFAULT_CONFIG_PATHS:
            if default_path.exists():
                runtime = RuntimeConfig.from_yaml(default_path)
                break

    return CLIConfig(
        runtime=runtime.with_env_overrides(),
        log_file=os.getenv(f"{ENV_PREFIX}LOG_FILE"),
    )


def get_default_config_template() -> str:
    """Get a template configuration file."""
    return """\
# PTT ledger configuration
ledger:
  hash_algorithm: keccak256   # keccak256 | sha256
  track_leaf_hashes: true     # also reject any previously processed code leaf

storage:
  state_path: ledger.json

api:
  host: 127.0.0.1
  port: 8000

log_level: INFO
"""
