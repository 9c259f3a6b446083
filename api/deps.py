"""
API Dependencies

Dependency injection for the API: one ledger service per application and
the calling account taken from the ``X-Account`` header.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from fastapi import Header, Request

from core.config.runtime import RuntimeConfig, get_default_config
from orchestrator.artifacts import load_or_create, save_state
from orchestrator.ledger import TokenLedger

from api.errors import InvalidRequestError

logger = logging.getLogger(__name__)

CONFIG_SEARCH_PATHS = (
    Path("ptt.yaml"),
    Path(".ptt.yaml"),
)


def load_runtime_config() -> RuntimeConfig:
    """Load RuntimeConfig from a config file, then overlay environment variables.

    Search order for the config file:
      1. ./ptt.yaml
      2. ./.ptt.yaml

    Environment variables ALWAYS override config file values.
    """
    for path in CONFIG_SEARCH_PATHS:
        if path.exists():
            logger.info("Loaded config from %s", path)
            return RuntimeConfig.from_yaml(path).with_env_overrides()
    return get_default_config()


class LedgerService:
    """
    A ledger plus (optionally) the file it is persisted to.

    Mutating routes run inside ``mutation()`` so the state file is rewritten
    only after the ledger operation committed.
    """

    def __init__(self, ledger: TokenLedger, state_path: Optional[str] = None) -> None:
        self.ledger = ledger
        self.state_path = state_path
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: RuntimeConfig) -> "LedgerService":
        state_path = config.storage.state_path
        ledger = load_or_create(state_path, config=config.ledger)
        if state_path:
            logger.info("Ledger state file: %s (%d token(s))", state_path, ledger.total_supply())
        return cls(ledger, state_path)

    @contextmanager
    def mutation(self) -> Iterator[TokenLedger]:
        with self._lock:
            yield self.ledger
            self.persist()

    def persist(self) -> None:
        if self.state_path:
            save_state(self.ledger, self.state_path)


def get_ledger_service(request: Request) -> LedgerService:
    """The application's ledger service (installed by create_app)."""
    return request.app.state.ledger_service


def get_caller(x_account: Optional[str] = Header(default=None)) -> str:
    """Calling account, from the X-Account header."""
    if x_account is None or not x_account.strip():
        raise InvalidRequestError("Missing X-Account header", details={"header": "X-Account"})
    return x_account.strip()
