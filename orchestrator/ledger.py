"""
Token Ledger

Ownership registry and transfer orchestrator: the public face of the
system. Every mutating method is one atomic operation over ledger state,
the record journal and (when it supports transactions) the payment gateway.

Provides:
- OwnershipView: Read-only ownership query capability
- TokenLedger: mint / offer / accept / refund / revert / transfer

Example:
    >>> from core.merkle import build_code_tree
    >>> batch = build_code_tree(["1", "2", "3"])
    >>> bank = InMemoryPaymentGateway({"0xB": 50_000})
    >>> ledger = TokenLedger(payments=bank)
    >>> token_id = ledger.mint("0xA", batch.root)
    >>> ledger.initialize_offer("0xB", token_id, "0xB", 21_000)
    21000
    >>> ledger.accept_offer("0xA", "0xA", "0xB", token_id)
    >>> settled = ledger.transfer("0xB", "0xA", "0xB", token_id, "1", batch.proof_for("1"))
    >>> ledger.owner_of(token_id), bank.balance_of("0xA")
    ('0xB', 21000)
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Protocol, Sequence, runtime_checkable

from core.config.runtime import LedgerConfig
from core.events import OwnershipRecord, RecordJournal
from core.schemas.errors import InvalidInputException, LedgerException, UnauthorizedCallerException
from core.schemas.ledger import ZERO_ACCOUNT, EscrowStatus, LedgerSnapshot, TokenInfo

from orchestrator.code_authority import CodeAuthority, parse_root
from orchestrator.escrow import EscrowLedger
from orchestrator.payments import InMemoryPaymentGateway, PaymentGateway
from orchestrator.state import LedgerState, TokenRecord, Transactional, atomic

logger = logging.getLogger(__name__)


@runtime_checkable
class OwnershipView(Protocol):
    """
    Read-only ownership queries, as exposed by generic non-fungible
    ownership interfaces. Observers that only track ownership depend on
    this and on the ``Transfer`` record stream, never on escrow internals.
    """

    def owner_of(self, token_id: int) -> str: ...

    def balance_of(self, account: str) -> int: ...


def _require_account(value: Any, field_path: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputException(f"{field_path} must be a non-empty account id", field_path=field_path)
    return value


class TokenLedger:
    """
    Physical-token ledger.

    Public operations are serialized by a re-entrant lock: a payment
    recipient may call back into the ledger during a payout, and that call
    runs as a nested transaction of the operation that paid it.
    """

    def __init__(
        self,
        payments: Optional[PaymentGateway] = None,
        config: Optional[LedgerConfig] = None,
        state: Optional[LedgerState] = None,
        journal: Optional[RecordJournal] = None,
    ) -> None:
        self.config = config or LedgerConfig()
        self.payments: PaymentGateway = payments if payments is not None else InMemoryPaymentGateway()
        self.state = state or LedgerState()
        self.journal = journal or RecordJournal()
        self.authority = CodeAuthority(
            self.state,
            hash_algorithm=self.config.hash_algorithm,
            track_leaf_hashes=self.config.track_leaf_hashes,
        )
        self.escrow = EscrowLedger(self.state, self.payments, self.journal)
        self._lock = threading.RLock()

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        payments: Optional[PaymentGateway] = None,
        config: Optional[LedgerConfig] = None,
    ) -> "TokenLedger":
        """Rebuild a ledger from persisted state."""
        config = config or LedgerConfig(hash_algorithm=snapshot.hash_algorithm)
        if config.hash_algorithm != snapshot.hash_algorithm:
            raise InvalidInputException(
                f"Snapshot was committed with {snapshot.hash_algorithm}, "
                f"configuration asks for {config.hash_algorithm}",
                field_path="hash_algorithm",
            )
        return cls(payments=payments, config=config, state=LedgerState.from_snapshot(snapshot))

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return self.state.to_snapshot(self.config.hash_algorithm)

    # ------------------------------------------------------------------
    # Atomic operation wrapper
    # ------------------------------------------------------------------

    def _participants(self) -> list[Transactional]:
        participants: list[Any] = [self.state, self.journal]
        if all(hasattr(self.payments, m) for m in ("begin", "commit", "rollback")):
            participants.append(self.payments)
        return participants

    @contextmanager
    def _operation(self, name: str, **context: Any) -> Iterator[None]:
        with self._lock:
            try:
                with atomic(*self._participants()):
                    yield
            except LedgerException as e:
                logger.warning("%s aborted [%s]: %s %s", name, e.code, e.message, context)
                raise

    # ------------------------------------------------------------------
    # Minting
    # ------------------------------------------------------------------

    def mint(self, caller: str, root: Any) -> int:
        """
        Create a token owned by ``caller`` with a committed code root.

        Returns:
            The new token id (assigned sequentially from 1)
        """
        with self._operation("mint", caller=caller):
            _require_account(caller, "caller")
            if caller == ZERO_ACCOUNT:
                raise InvalidInputException("The null account cannot own tokens", field_path="caller")
            root_bytes = parse_root(root)

            token_id = self.state.next_token_id
            self.state.next_token_id += 1
            self.state.add_token(TokenRecord(token_id=token_id, owner=caller, root=b""))
            self.authority.register(token_id, root_bytes)

            self.journal.emit(OwnershipRecord(
                token_id=token_id,
                from_account=ZERO_ACCOUNT,
                to_account=caller,
            ))
        logger.info("Minted token %d for %s", token_id, caller)
        return token_id

    # ------------------------------------------------------------------
    # Escrow operations
    # ------------------------------------------------------------------

    def initialize_offer(self, caller: str, token_id: int, transferee: str, amount: int) -> int:
        with self._operation("initialize_offer", caller=caller, token_id=token_id):
            _require_account(caller, "caller")
            _require_account(transferee, "transferee")
            return self.escrow.initialize_offer(caller, token_id, transferee, amount)

    def revert_offer(self, caller: str, token_id: int) -> int:
        with self._operation("revert_offer", caller=caller, token_id=token_id):
            _require_account(caller, "caller")
            return self.escrow.revert_offer(caller, token_id)

    def accept_offer(self, caller: str, from_account: str, to_account: str, token_id: int) -> None:
        with self._operation("accept_offer", caller=caller, token_id=token_id):
            _require_account(caller, "caller")
            _require_account(to_account, "to")
            self.escrow.accept_offer(caller, from_account, to_account, token_id)

    def refund_offer(self, caller: str, transferee: str, token_id: int) -> int:
        with self._operation("refund_offer", caller=caller, token_id=token_id):
            _require_account(caller, "caller")
            return self.escrow.refund_offer(caller, transferee, token_id)

    # ------------------------------------------------------------------
    # Transfer
    # ------------------------------------------------------------------

    def transfer(
        self,
        caller: str,
        from_account: str,
        to_account: str,
        token_id: int,
        code: str,
        path: Sequence[Any],
    ) -> Optional[int]:
        """
        Move a token to ``to_account`` on presentation of the device's next code.

        Anyone holding a valid code and proof may submit it; the code is the
        authorization. If ``to_account`` is the accepted counterparty its
        escrowed offer is paid to ``from_account``; otherwise the transfer is
        unpaid.

        Returns:
            The settled amount, or None for an unpaid transfer
        """
        with self._operation("transfer", caller=caller, token_id=token_id):
            _require_account(to_account, "to")
            if to_account == ZERO_ACCOUNT:
                raise InvalidInputException("Cannot transfer to the null account", field_path="to")
            token = self.state.token(token_id)
            if from_account != token.owner:
                raise UnauthorizedCallerException(
                    f"{from_account} is not the owner of token {token_id}",
                    caller=caller,
                    token_id=token_id,
                    details={"from": from_account},
                )

            value = self.authority.advance(token_id, code, path)
            token.owner = to_account
            settled = self.escrow.settle(token_id, from_account, to_account)

            self.journal.emit(OwnershipRecord(
                token_id=token_id,
                from_account=from_account,
                to_account=to_account,
            ))
        logger.info(
            "Token %d transferred %s -> %s with code value %d (settled=%s)",
            token_id, from_account, to_account, value, settled,
        )
        return settled

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_authorized(self, token_id: int, code: Any, path: Sequence[Any]) -> bool:
        with self._lock:
            return self.authority.is_authorized(token_id, code, path)

    def owner_of(self, token_id: int) -> str:
        with self._lock:
            return self.state.token(token_id).owner

    def balance_of(self, account: str) -> int:
        with self._lock:
            return sum(1 for t in self.state.tokens.values() if t.owner == account)

    def total_supply(self) -> int:
        with self._lock:
            return len(self.state.tokens)

    def root_of(self, token_id: int) -> bytes:
        with self._lock:
            return self.authority.root_of(token_id)

    def last_processed_of(self, token_id: int) -> int:
        with self._lock:
            return self.authority.last_processed_of(token_id)

    def accepted_counterparty_of(self, token_id: int) -> Optional[str]:
        with self._lock:
            return self.escrow.accepted_counterparty_of(token_id)

    def offer_amount_of(self, account: str, token_id: int) -> int:
        with self._lock:
            return self.escrow.offer_amount_of(account, token_id)

    def escrow_status(self, token_id: int) -> EscrowStatus:
        with self._lock:
            return self.escrow.escrow_status(token_id)

    def escrow_balance(self) -> int:
        with self._lock:
            return self.state.escrow_balance

    def token_info(self, token_id: int) -> TokenInfo:
        with self._lock:
            token = self.state.token(token_id)
            return TokenInfo(
                token_id=token.token_id,
                owner=token.owner,
                root="0x" + token.root.hex(),
                last_processed=token.last_processed,
                accepted_counterparty=token.accepted_counterparty,
                escrow_status=self.escrow.escrow_status(token_id),
            )

    def token_ids(self) -> list[int]:
        with self._lock:
            return sorted(self.state.tokens)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Observe published records; returns an unsubscribe function."""
        return self.journal.subscribe(callback)

    def records(self, kind: Optional[str] = None, token_id: Optional[int] = None) -> list[Any]:
        with self._lock:
            return self.journal.records(kind=kind, token_id=token_id)
