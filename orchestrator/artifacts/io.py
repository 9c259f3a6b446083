"""
Ledger State IO
File: io.py

Purpose: Save and load a ledger (state snapshot, in-memory balances and the
published record stream) to/from a single JSON file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.config.runtime import LedgerConfig
from core.events import LedgerRecord
from core.schemas.canonical import dumps_canonical
from core.schemas.errors import LedgerException, StateCorruptException
from core.schemas.ledger import LedgerSnapshot
from core.schemas.versioning import UnsupportedSchemaVersionError, assert_supported_schema_version

from orchestrator.ledger import TokenLedger
from orchestrator.payments import InMemoryPaymentGateway

logger = logging.getLogger(__name__)


class LedgerStateFile(BaseModel):
    """On-disk layout of a persisted ledger."""

    model_config = ConfigDict(extra="forbid")

    ledger: LedgerSnapshot
    balances: dict[str, int] = Field(default_factory=dict)
    records: list[LedgerRecord] = Field(default_factory=list)


def dump_state(ledger: TokenLedger) -> str:
    """Serialize a ledger to canonical JSON."""
    balances: dict[str, int] = {}
    if isinstance(ledger.payments, InMemoryPaymentGateway):
        balances = ledger.payments.balances()
    state_file = LedgerStateFile(
        ledger=ledger.snapshot(),
        balances=balances,
        records=ledger.records(),
    )
    return dumps_canonical(state_file)


def save_state(ledger: TokenLedger, path: str | Path) -> Path:
    """
    Write a ledger to ``path``.

    The file is written next to its destination and moved into place, so a
    crash never leaves a half-written state file behind.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = dump_state(ledger)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.debug("Saved ledger state to %s", path)
    return path


def parse_state(data: dict[str, Any], path: str = "<memory>") -> LedgerStateFile:
    """
    Validate raw state-file data.

    Raises:
        StateCorruptException: If the data is not a supported state file
    """
    if not isinstance(data, dict):
        raise StateCorruptException("State file must hold a JSON object", path=path)
    ledger_data = data.get("ledger") or {}
    if not isinstance(ledger_data, dict):
        raise StateCorruptException("State file 'ledger' must be an object", path=path)
    version = ledger_data.get("schema_version")
    try:
        assert_supported_schema_version(version)
    except UnsupportedSchemaVersionError as e:
        raise StateCorruptException(str(e), path=path, details={"schema_version": version}) from e
    try:
        return LedgerStateFile.model_validate(data)
    except ValidationError as e:
        raise StateCorruptException(
            f"Invalid state file: {e.error_count()} validation error(s)",
            path=path,
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e


def load_state(
    path: str | Path,
    config: Optional[LedgerConfig] = None,
) -> TokenLedger:
    """
    Load a ledger saved with ``save_state``.

    The ledger gets a fresh InMemoryPaymentGateway holding the saved
    balances.

    Raises:
        StateCorruptException: If the file is unreadable or invalid
        InvalidInputException: If ``config`` asks for a different hash algorithm
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise
    except (OSError, json.JSONDecodeError) as e:
        raise StateCorruptException(f"Cannot read state file: {e}", path=str(path)) from e

    state_file = parse_state(data, str(path))
    payments = InMemoryPaymentGateway(state_file.balances)
    try:
        ledger = TokenLedger.from_snapshot(state_file.ledger, payments=payments, config=config)
    except LedgerException:
        raise
    except ValueError as e:
        raise StateCorruptException(f"Inconsistent state file: {e}", path=str(path)) from e
    ledger.journal.restore(state_file.records)

    logger.debug(
        "Loaded ledger state from %s (%d token(s), %d record(s))",
        path, ledger.total_supply(), len(state_file.records),
    )
    return ledger


def load_or_create(
    path: Optional[str | Path],
    config: Optional[LedgerConfig] = None,
) -> TokenLedger:
    """Load ``path`` if it exists, otherwise start an empty ledger."""
    if path is not None and Path(path).exists():
        return load_state(path, config=config)
    return TokenLedger(payments=InMemoryPaymentGateway(), config=config)
