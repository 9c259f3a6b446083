"""
Test fixtures package for ledger tests.

This package provides factory functions for creating test objects:
- common.py: Code batches, payment gateways and ledgers

Usage:
    from fixtures import make_minted_ledger

    def test_something():
        ledger, batch, token_id = make_minted_ledger()
"""

from .common import (
    BUYER,
    DEFAULT_CODES,
    DEFAULT_PRICE,
    OTHER,
    SELLER,
    make_accepted_ledger,
    make_bank,
    make_code_batch,
    make_ledger,
    make_minted_ledger,
)

__all__ = [
    # Accounts & constants
    "SELLER",
    "BUYER",
    "OTHER",
    "DEFAULT_CODES",
    "DEFAULT_PRICE",
    # Factories
    "make_code_batch",
    "make_bank",
    "make_ledger",
    "make_minted_ledger",
    "make_accepted_ledger",
]
