"""
Ledger State

Holds every mutable map the ledger owns and makes each public operation
all-or-nothing.

Provides:
- TokenRecord: Per-token arena entry (owner, root, code counter, accepted counterparty)
- LedgerState: Token arena + offers map + escrow balance
- atomic: Context manager running a block as one transaction over several
  participants (state, record journal, payment gateway)

Transactions nest. Each participant keeps a stack of frames: ``begin()``
saves what is needed to undo, ``commit()`` drops the saved frame and
``rollback()`` restores it. A nested frame that commits is still undone if
an enclosing frame rolls back.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Iterator, Optional, Protocol

from core.crypto.hashing import from_hex, to_hex
from core.schemas.errors import TokenNotFoundException
from core.schemas.ledger import LedgerSnapshot, OfferState, TokenState

logger = logging.getLogger(__name__)


@dataclass
class TokenRecord:
    """
    One token in the arena.

    Invariants:
    - root never changes after mint
    - last_processed only increases
    """
    token_id: int
    owner: str
    root: bytes
    last_processed: int = 0
    processed_leaves: set[bytes] = field(default_factory=set)
    accepted_counterparty: Optional[str] = None


OfferKey = tuple[str, int]


class Transactional(Protocol):
    """Anything that can take part in an atomic ledger operation."""

    def begin(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass
class _Frame:
    """
    Undo log of one transaction.

    Holds the pre-transaction value of every token and offer the
    transaction touched (None when the entry did not exist yet).
    """
    next_token_id: int
    escrow_balance: int
    tokens: dict[int, Optional[TokenRecord]] = field(default_factory=dict)
    offers: dict[OfferKey, Optional[int]] = field(default_factory=dict)


def _clone(record: TokenRecord) -> TokenRecord:
    return replace(record, processed_leaves=set(record.processed_leaves))


class LedgerState:
    """
    Exclusive owner of the ledger's mutable maps.

    Only orchestrator components write here; everything else reads through
    the ledger's query methods.

    Inside a transaction, the first ``token()`` lookup of a record swaps in
    a private copy and keeps the original for rollback, so an operation
    costs time in proportion to the tokens it touches, not to the arena.
    Offers are written through ``set_offer`` / ``pop_offer`` for the same
    reason.
    """

    def __init__(self) -> None:
        self.tokens: dict[int, TokenRecord] = {}
        self.offers: dict[OfferKey, int] = {}
        self.next_token_id: int = 1
        self.escrow_balance: int = 0
        self._frames: list[_Frame] = []

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def token(self, token_id: int) -> TokenRecord:
        """
        Raises:
            TokenNotFoundException: If the token was never minted
        """
        record = self.tokens.get(token_id)
        if record is None:
            raise TokenNotFoundException(token_id)
        if self._frames and token_id not in self._frames[-1].tokens:
            self._frames[-1].tokens[token_id] = record
            record = _clone(record)
            self.tokens[token_id] = record
        return record

    def has_token(self, token_id: int) -> bool:
        return token_id in self.tokens

    def offer_amount(self, account: str, token_id: int) -> int:
        return self.offers.get((account, token_id), 0)

    def pending_offers(self, token_id: int) -> dict[str, int]:
        """Non-zero offers on a token, keyed by offering account."""
        return {
            account: amount
            for (account, tid), amount in self.offers.items()
            if tid == token_id and amount > 0
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_token(self, record: TokenRecord) -> None:
        if self._frames and record.token_id not in self._frames[-1].tokens:
            self._frames[-1].tokens[record.token_id] = self.tokens.get(record.token_id)
        self.tokens[record.token_id] = record

    def _save_offer(self, key: OfferKey) -> None:
        if self._frames and key not in self._frames[-1].offers:
            self._frames[-1].offers[key] = self.offers.get(key)

    def set_offer(self, account: str, token_id: int, amount: int) -> None:
        key = (account, token_id)
        self._save_offer(key)
        if amount:
            self.offers[key] = amount
        else:
            self.offers.pop(key, None)

    def pop_offer(self, account: str, token_id: int) -> int:
        """Remove an offer and return its amount (0 if there was none)."""
        key = (account, token_id)
        self._save_offer(key)
        return self.offers.pop(key, 0)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @property
    def depth(self) -> int:
        return len(self._frames)

    def begin(self) -> None:
        self._frames.append(_Frame(
            next_token_id=self.next_token_id,
            escrow_balance=self.escrow_balance,
        ))

    def commit(self) -> None:
        if not self._frames:
            raise RuntimeError("commit() without an open frame")
        frame = self._frames.pop()
        if self._frames:
            # The enclosing frame must still be able to undo this one.
            outer = self._frames[-1]
            for token_id, record in frame.tokens.items():
                outer.tokens.setdefault(token_id, record)
            for key, amount in frame.offers.items():
                outer.offers.setdefault(key, amount)

    def rollback(self) -> None:
        if not self._frames:
            raise RuntimeError("rollback() without an open frame")
        frame = self._frames.pop()
        for token_id, record in frame.tokens.items():
            if record is None:
                self.tokens.pop(token_id, None)
            else:
                self.tokens[token_id] = record
        for key, amount in frame.offers.items():
            if amount is None:
                self.offers.pop(key, None)
            else:
                self.offers[key] = amount
        self.next_token_id = frame.next_token_id
        self.escrow_balance = frame.escrow_balance

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_snapshot(self, hash_algorithm: str) -> LedgerSnapshot:
        """Export committed state as a LedgerSnapshot."""
        if self._frames:
            raise RuntimeError("Cannot snapshot while a transaction is open")
        return LedgerSnapshot(
            hash_algorithm=hash_algorithm,
            next_token_id=self.next_token_id,
            escrow_balance=self.escrow_balance,
            tokens=[
                TokenState(
                    token_id=t.token_id,
                    owner=t.owner,
                    root=to_hex(t.root),
                    last_processed=t.last_processed,
                    processed_leaves=sorted(to_hex(leaf) for leaf in t.processed_leaves),
                    accepted_counterparty=t.accepted_counterparty,
                )
                for t in sorted(self.tokens.values(), key=lambda t: t.token_id)
            ],
            offers=[
                OfferState(transferee=account, token_id=token_id, amount=amount)
                for (account, token_id), amount in sorted(self.offers.items())
                if amount > 0
            ],
        )

    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot) -> "LedgerState":
        state = cls()
        state.next_token_id = snapshot.next_token_id
        state.escrow_balance = snapshot.escrow_balance
        for t in snapshot.tokens:
            state.tokens[t.token_id] = TokenRecord(
                token_id=t.token_id,
                owner=t.owner,
                root=from_hex(t.root),
                last_processed=t.last_processed,
                processed_leaves={from_hex(leaf) for leaf in t.processed_leaves},
                accepted_counterparty=t.accepted_counterparty,
            )
        for o in snapshot.offers:
            state.offers[(o.transferee, o.token_id)] = o.amount
        return state


@contextmanager
def atomic(*participants: Transactional) -> Iterator[None]:
    """
    Run a block as one transaction over all participants.

    On any exception every participant rolls back (in reverse order) and the
    exception propagates unchanged.
    """
    started: list[Transactional] = []
    try:
        for participant in participants:
            participant.begin()
            started.append(participant)
        yield
    except BaseException:
        for participant in reversed(started):
            participant.rollback()
        raise
    else:
        for participant in started:
            participant.commit()
