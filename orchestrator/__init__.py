"""
Ledger Orchestration (In-Process Runtime)

Composes the code authority, the escrow ledger and the payment gateway into
one transactional token ledger.

Public API:
- TokenLedger: Ownership registry and transfer orchestrator
- OwnershipView: Read-only ownership protocol the ledger satisfies
- CodeAuthority: Per-token committed roots and code counters
- EscrowLedger: Offer bookkeeping and escrow payouts
- PaymentGateway / InMemoryPaymentGateway: Value movement
- LedgerState / atomic: Transactional state container
- save_state / load_state: JSON persistence
"""

from orchestrator.code_authority import (
    MAX_CODE_VALUE,
    CodeAuthority,
    is_well_formed,
    numeric_value,
    parse_path,
    parse_root,
)
from orchestrator.escrow import EscrowLedger
from orchestrator.ledger import OwnershipView, TokenLedger
from orchestrator.payments import InMemoryPaymentGateway, PaymentEntry, PaymentGateway
from orchestrator.state import LedgerState, TokenRecord, Transactional, atomic
from orchestrator.artifacts import (
    LedgerStateFile,
    dump_state,
    load_or_create,
    load_state,
    save_state,
)


__all__ = [
    # Ledger
    "TokenLedger",
    "OwnershipView",
    # Code authorization
    "CodeAuthority",
    "MAX_CODE_VALUE",
    "numeric_value",
    "is_well_formed",
    "parse_path",
    "parse_root",
    # Escrow & payments
    "EscrowLedger",
    "PaymentGateway",
    "InMemoryPaymentGateway",
    "PaymentEntry",
    # State
    "LedgerState",
    "TokenRecord",
    "Transactional",
    "atomic",
    # Persistence
    "LedgerStateFile",
    "dump_state",
    "load_or_create",
    "load_state",
    "save_state",
]
