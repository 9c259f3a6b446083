"""
Ledger Record Models

Structured records emitted by ledger operations for external observers.

Key Design Principles:
1. record_hash commits to the record content only (kind, parties, token,
   amount), never to the publish sequence
2. Records are immutable once built
3. Ownership records follow the (from, to, token_id) shape of a generic
   non-fungible ownership-change event, so ownership trackers can consume
   them without knowing about escrow
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from core.crypto.hashing import hash_canonical, to_hex
from core.schemas.ledger import OfferOutcome


OfferRecordKind = Literal[
    "OfferInitialized",
    "OfferReverted",
    "OfferAccepted",
    "OfferRefunded",
    "OfferSettled",
]


class _Record(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    token_id: int = Field(..., ge=1, description="Token the record is about")
    sequence: Optional[int] = Field(
        default=None,
        description="Position in the published record stream (assigned on publish)",
    )

    def record_hash(self) -> str:
        """Hash of the committed content (0x-prefixed)."""
        return to_hex(hash_canonical(self.model_dump(exclude={"sequence"})))


class OwnershipRecord(_Record):
    """
    Ownership change of a token.

    Genesis records (mint) have the null account as ``from_account``.
    """

    kind: Literal["Transfer"] = "Transfer"
    from_account: str = Field(..., description="Previous owner")
    to_account: str = Field(..., description="New owner")


class OfferRecord(_Record):
    """
    Escrow activity between a token's owner and a prospective transferee.

    ``amount`` is the value that moved (or, for OfferAccepted, the value
    that became eligible for settlement).
    """

    kind: OfferRecordKind
    owner: str = Field(..., description="Token owner at the time of the operation")
    transferee: str = Field(..., description="Offering / accepted account")
    amount: int = Field(default=0, ge=0)
    outcome: Optional[OfferOutcome] = Field(
        default=None,
        description="Terminal state reached by the offer, if any",
    )


LedgerRecord = Annotated[Union[OwnershipRecord, OfferRecord], Field(discriminator="kind")]
