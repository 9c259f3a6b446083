"""
Core Events Module

Structured records of ownership changes and escrow activity, and the
journal that publishes them when ledger operations commit.
"""

from .models import (
    LedgerRecord,
    OfferRecord,
    OfferRecordKind,
    OwnershipRecord,
)
from .recorder import RecordJournal

__all__ = [
    "LedgerRecord",
    "OfferRecord",
    "OfferRecordKind",
    "OwnershipRecord",
    "RecordJournal",
]
