"""
Schemas
File: ledger.py

Purpose: Pydantic views of ledger state: per-token read models returned by
the API/CLI, and the snapshot format used to persist a ledger to JSON.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .versioning import SCHEMA_VERSION, SchemaVersion

# The null account: source of genesis ownership records
ZERO_ACCOUNT = "0x0000000000000000000000000000000000000000"


class EscrowStatus(str, Enum):
    """Escrow sub-state of a token, derived from its offers."""

    IDLE = "idle"
    OFFERED = "offered"
    ACCEPTED = "accepted"


class OfferOutcome(str, Enum):
    """Terminal states of a single offer instance."""

    REVERTED = "reverted"
    REFUNDED = "refunded"
    COMPLETED = "completed"


def _check_hex32(value: str) -> str:
    if not value.startswith("0x") or len(value) != 66:
        raise ValueError("expected a 0x-prefixed 32-byte hex string")
    bytes.fromhex(value[2:])
    return value.lower()


class TokenInfo(BaseModel):
    """Read model of one token."""

    model_config = ConfigDict(extra="forbid")

    token_id: int = Field(..., ge=1)
    owner: str
    root: str = Field(..., description="Committed Merkle root (0x-prefixed)")
    last_processed: int = Field(default=0, ge=0)
    accepted_counterparty: str | None = None
    escrow_status: EscrowStatus = EscrowStatus.IDLE

    @field_validator("root")
    @classmethod
    def _root_is_hex32(cls, v: str) -> str:
        return _check_hex32(v)


# =============================================================================
# Persisted snapshot
# =============================================================================

class TokenState(BaseModel):
    """Persisted state of one token."""

    model_config = ConfigDict(extra="forbid")

    token_id: int = Field(..., ge=1)
    owner: str = Field(..., min_length=1)
    root: str
    last_processed: int = Field(default=0, ge=0)
    processed_leaves: list[str] = Field(default_factory=list)
    accepted_counterparty: str | None = None

    @field_validator("root")
    @classmethod
    def _root_is_hex32(cls, v: str) -> str:
        return _check_hex32(v)

    @field_validator("processed_leaves")
    @classmethod
    def _leaves_are_hex32(cls, v: list[str]) -> list[str]:
        return sorted(_check_hex32(leaf) for leaf in v)


class OfferState(BaseModel):
    """Persisted pending offer."""

    model_config = ConfigDict(extra="forbid")

    transferee: str = Field(..., min_length=1)
    token_id: int = Field(..., ge=1)
    amount: int = Field(..., gt=0)


class LedgerSnapshot(BaseModel):
    """
    Full persisted ledger state.

    Offers with a zero amount are not persisted; they are indistinguishable
    from absent offers.
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: SchemaVersion = SCHEMA_VERSION
    hash_algorithm: str = "keccak256"
    next_token_id: int = Field(default=1, ge=1)
    escrow_balance: int = Field(default=0, ge=0)
    tokens: list[TokenState] = Field(default_factory=list)
    offers: list[OfferState] = Field(default_factory=list)
