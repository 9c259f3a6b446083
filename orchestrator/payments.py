"""
Payments

Native-currency movements between accounts and the ledger's escrow.

Provides:
- PaymentGateway: Protocol the ledger depends on
- InMemoryPaymentGateway: Balance-keeping gateway with recipient hooks,
  usable as a transaction participant

A gateway call either completes or raises SettlementFailureException having
moved nothing. The ledger decides ordering: bookkeeping first, outbound
payment last.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Protocol, runtime_checkable

from core.schemas.errors import InvalidInputException, SettlementFailureException

logger = logging.getLogger(__name__)


@runtime_checkable
class PaymentGateway(Protocol):
    """Moves value between external accounts and the ledger."""

    def collect(self, payer: str, amount: int) -> None:
        """Take ``amount`` from ``payer`` into the ledger (attached payment)."""
        ...

    def pay(self, recipient: str, amount: int) -> None:
        """Send ``amount`` from the ledger to ``recipient``."""
        ...


ReceiveHook = Callable[[str, int], None]


@dataclass(frozen=True)
class PaymentEntry:
    """One completed movement."""
    direction: Literal["in", "out"]
    account: str
    amount: int


class InMemoryPaymentGateway:
    """
    Gateway backed by an in-process balance table.

    Recipient hooks model accounts that run code when they receive value:
    a hook may call back into the ledger (re-entrancy) or raise to reject
    the payment. A rejected payment is undone and surfaces as
    SettlementFailureException.

    The gateway takes part in ledger transactions (begin/commit/rollback),
    so value moved inside an aborted operation is restored as well.
    """

    def __init__(self, balances: Optional[dict[str, int]] = None) -> None:
        self._balances: dict[str, int] = dict(balances or {})
        self._hooks: dict[str, ReceiveHook] = {}
        self.history: list[PaymentEntry] = []
        self._frames: list[tuple[dict[str, int], int]] = []

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def deposit(self, account: str, amount: int) -> None:
        """Credit an account from outside the ledger (funding)."""
        if amount < 0:
            raise InvalidInputException("Deposit amount must be non-negative", field_path="amount")
        self._balances[account] = self.balance_of(account) + amount

    def on_receive(self, account: str, hook: Optional[ReceiveHook]) -> None:
        """Install (or with None, remove) a hook run when ``account`` is paid."""
        if hook is None:
            self._hooks.pop(account, None)
        else:
            self._hooks[account] = hook

    def total_supply(self) -> int:
        return sum(self._balances.values())

    def balances(self) -> dict[str, int]:
        """Copy of the non-zero balance table."""
        return {account: amount for account, amount in self._balances.items() if amount}

    # ------------------------------------------------------------------
    # PaymentGateway
    # ------------------------------------------------------------------

    def collect(self, payer: str, amount: int) -> None:
        balance = self.balance_of(payer)
        if balance < amount:
            raise SettlementFailureException(
                f"Insufficient funds: {payer} holds {balance}, needs {amount}",
                account=payer,
                amount=amount,
            )
        self._balances[payer] = balance - amount
        self.history.append(PaymentEntry("in", payer, amount))
        logger.debug("Collected %d from %s", amount, payer)

    def pay(self, recipient: str, amount: int) -> None:
        self.begin()
        try:
            self._balances[recipient] = self.balance_of(recipient) + amount
            self.history.append(PaymentEntry("out", recipient, amount))
            hook = self._hooks.get(recipient)
            if hook is not None:
                hook(recipient, amount)
        except Exception as e:
            self.rollback()
            raise SettlementFailureException(
                f"Payment of {amount} to {recipient} was rejected: {e}",
                account=recipient,
                amount=amount,
                details={"cause": type(e).__name__},
            ) from e
        except BaseException:
            # Interrupts propagate as they are, without leaving this frame open.
            self.rollback()
            raise
        self.commit()
        logger.debug("Paid %d to %s", amount, recipient)

    # ------------------------------------------------------------------
    # Transaction participant
    # ------------------------------------------------------------------

    def begin(self) -> None:
        self._frames.append((dict(self._balances), len(self.history)))

    def commit(self) -> None:
        if not self._frames:
            raise RuntimeError("commit() without an open frame")
        self._frames.pop()

    def rollback(self) -> None:
        if not self._frames:
            raise RuntimeError("rollback() without an open frame")
        balances, history_len = self._frames.pop()
        self._balances = balances
        del self.history[history_len:]
