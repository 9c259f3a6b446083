"""
Ledger State Artifacts

Provides functionality for saving and loading ledger state files.
"""

from orchestrator.artifacts.io import (
    LedgerStateFile,
    dump_state,
    load_or_create,
    load_state,
    parse_state,
    save_state,
)

__all__ = [
    "LedgerStateFile",
    "dump_state",
    "load_or_create",
    "load_state",
    "parse_state",
    "save_state",
]
