"""
Common test fixtures shared by all modules.

Provides factory functions for core ledger building blocks:
- Code batches (device codes + Merkle commitment)
- Funded in-memory payment gateways
- Ledgers with a minted token, optionally with an accepted offer
"""

from typing import Optional, Sequence

from core.config.runtime import LedgerConfig
from core.merkle import CodeBatch, MerkleProver
from orchestrator.ledger import TokenLedger
from orchestrator.payments import InMemoryPaymentGateway


SELLER = "0xA"
BUYER = "0xB"
OTHER = "0xC"

DEFAULT_CODES = ("1", "2", "3")
DEFAULT_PRICE = 21_000


# =============================================================================
# Code batches
# =============================================================================

def make_code_batch(
    codes: Sequence[str] = DEFAULT_CODES,
    hash_algorithm: str = "keccak256",
) -> CodeBatch:
    """Commit to a batch of device codes."""
    return MerkleProver.for_algorithm(hash_algorithm).commit(list(codes))


# =============================================================================
# Payments
# =============================================================================

def make_bank(
    balances: Optional[dict[str, int]] = None,
) -> InMemoryPaymentGateway:
    """In-memory gateway; the buyer and a third account hold 50,000 by default."""
    if balances is None:
        balances = {BUYER: 50_000, OTHER: 50_000}
    return InMemoryPaymentGateway(balances)


# =============================================================================
# Ledgers
# =============================================================================

def make_ledger(
    bank: Optional[InMemoryPaymentGateway] = None,
    hash_algorithm: str = "keccak256",
    track_leaf_hashes: bool = True,
) -> TokenLedger:
    return TokenLedger(
        payments=bank if bank is not None else make_bank(),
        config=LedgerConfig(hash_algorithm=hash_algorithm, track_leaf_hashes=track_leaf_hashes),
    )


def make_minted_ledger(
    codes: Sequence[str] = DEFAULT_CODES,
    owner: str = SELLER,
    bank: Optional[InMemoryPaymentGateway] = None,
) -> tuple[TokenLedger, CodeBatch, int]:
    """
    Ledger with one token minted by ``owner``.

    Returns:
        (ledger, batch, token_id)
    """
    batch = make_code_batch(codes)
    ledger = make_ledger(bank)
    token_id = ledger.mint(owner, batch.root)
    return ledger, batch, token_id


def make_accepted_ledger(
    amount: int = DEFAULT_PRICE,
    buyer: str = BUYER,
) -> tuple[TokenLedger, CodeBatch, int]:
    """
    Ledger whose token has an escrowed offer from ``buyer`` accepted by the seller.

    Returns:
        (ledger, batch, token_id)
    """
    ledger, batch, token_id = make_minted_ledger()
    ledger.initialize_offer(buyer, token_id, buyer, amount)
    ledger.accept_offer(SELLER, SELLER, buyer, token_id)
    return ledger, batch, token_id
