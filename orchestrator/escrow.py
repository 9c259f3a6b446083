"""
Escrow Ledger

Holds prospective buyers' payments per (transferee, token) until the
token's owner either settles them through a proven transfer or backs out.

Per-token escrow states:

    IDLE --initialize_offer--> OFFERED --revert_offer--> (reverted)
                                  |
                             accept_offer
                                  v
                              ACCEPTED --refund_offer--> (refunded)
                                  |
                          transfer settles --> (completed)

At most one counterparty is accepted per token. While one is accepted, no
new offer may be created and no pending offer may be reverted.

Every method here runs inside a ledger transaction opened by the caller.
Bookkeeping is always finished before the outbound payment is attempted,
so a re-entrant recipient only ever sees committed escrow state.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.events import OfferRecord, RecordJournal
from core.schemas.errors import (
    ConflictingOfferException,
    InvalidInputException,
    StalePermissionException,
    UnauthorizedCallerException,
)
from core.schemas.ledger import EscrowStatus, OfferOutcome

from orchestrator.payments import PaymentGateway
from orchestrator.state import LedgerState

logger = logging.getLogger(__name__)


class EscrowLedger:
    """Offer bookkeeping and escrow funds movement."""

    def __init__(
        self,
        state: LedgerState,
        payments: PaymentGateway,
        journal: RecordJournal,
    ) -> None:
        self._state = state
        self._payments = payments
        self._journal = journal

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def accepted_counterparty_of(self, token_id: int) -> Optional[str]:
        return self._state.token(token_id).accepted_counterparty

    def offer_amount_of(self, account: str, token_id: int) -> int:
        self._state.token(token_id)
        return self._state.offer_amount(account, token_id)

    def escrow_status(self, token_id: int) -> EscrowStatus:
        if self._state.token(token_id).accepted_counterparty is not None:
            return EscrowStatus.ACCEPTED
        if self._state.pending_offers(token_id):
            return EscrowStatus.OFFERED
        return EscrowStatus.IDLE

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_owner(self, caller: str, token_id: int, action: str) -> str:
        owner = self._state.token(token_id).owner
        if caller != owner:
            raise UnauthorizedCallerException(
                f"Only the owner of token {token_id} may {action}",
                caller=caller,
                token_id=token_id,
            )
        return owner

    def _release(self, account: str, token_id: int) -> int:
        """Zero an offer and remove its value from the escrow balance."""
        amount = self._state.pop_offer(account, token_id)
        self._state.escrow_balance -= amount
        return amount

    def _payout(self, recipient: str, amount: int) -> None:
        if amount > 0:
            self._payments.pay(recipient, amount)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def initialize_offer(self, caller: str, token_id: int, transferee: str, amount: int) -> int:
        """
        Escrow ``amount`` for ``transferee`` on a token.

        The payment is collected from ``caller``; only ``transferee`` may
        later revert it. Repeated offers accumulate.

        Returns:
            The transferee's total pending amount on the token
        """
        token = self._state.token(token_id)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise InvalidInputException("Offer amount must be a non-negative integer", field_path="amount")
        if token.accepted_counterparty is not None:
            raise ConflictingOfferException(
                f"Token {token_id} already has an accepted counterparty",
                token_id=token_id,
                accepted=token.accepted_counterparty,
            )

        if amount > 0:
            self._payments.collect(caller, amount)

        pending = self._state.offer_amount(transferee, token_id) + amount
        self._state.set_offer(transferee, token_id, pending)
        self._state.escrow_balance += amount

        self._journal.emit(OfferRecord(
            kind="OfferInitialized",
            token_id=token_id,
            owner=token.owner,
            transferee=transferee,
            amount=amount,
        ))
        logger.info("Offer of %d on token %d for %s", amount, token_id, transferee)
        return pending

    def revert_offer(self, caller: str, token_id: int) -> int:
        """
        Withdraw the caller's pending offer before any acceptance.

        Returns:
            The amount returned to the caller
        """
        token = self._state.token(token_id)
        if token.accepted_counterparty is not None:
            raise StalePermissionException(
                f"Offers on token {token_id} can no longer be reverted: a counterparty was accepted",
                token_id=token_id,
            )
        if self._state.offer_amount(caller, token_id) == 0:
            raise StalePermissionException(
                f"{caller} has no pending offer on token {token_id}",
                token_id=token_id,
            )

        amount = self._release(caller, token_id)
        self._journal.emit(OfferRecord(
            kind="OfferReverted",
            token_id=token_id,
            owner=token.owner,
            transferee=caller,
            amount=amount,
            outcome=OfferOutcome.REVERTED,
        ))
        self._payout(caller, amount)
        logger.info("Offer of %d on token %d reverted by %s", amount, token_id, caller)
        return amount

    def accept_offer(self, caller: str, from_account: str, to_account: str, token_id: int) -> None:
        """
        Lock in ``to_account`` as the only counterparty eligible for settlement.

        Moves no funds; forecloses revert_offer for every offer on the token.
        """
        owner = self._require_owner(caller, token_id, "accept offers")
        if from_account != owner:
            raise UnauthorizedCallerException(
                f"{from_account} is not the owner of token {token_id}",
                caller=caller,
                token_id=token_id,
                details={"from": from_account},
            )
        token = self._state.token(token_id)
        if token.accepted_counterparty is not None:
            raise ConflictingOfferException(
                f"Token {token_id} already has an accepted counterparty",
                token_id=token_id,
                accepted=token.accepted_counterparty,
            )

        token.accepted_counterparty = to_account
        self._journal.emit(OfferRecord(
            kind="OfferAccepted",
            token_id=token_id,
            owner=owner,
            transferee=to_account,
            amount=self._state.offer_amount(to_account, token_id),
        ))
        logger.info("Owner of token %d accepted %s", token_id, to_account)

    def refund_offer(self, caller: str, transferee: str, token_id: int) -> int:
        """
        Back out of an accepted offer: clear acceptance and return the funds.

        Returns:
            The amount returned to ``transferee``
        """
        owner = self._require_owner(caller, token_id, "refund offers")
        token = self._state.token(token_id)
        if token.accepted_counterparty is None or token.accepted_counterparty != transferee:
            raise StalePermissionException(
                f"{transferee} is not the accepted counterparty of token {token_id}",
                token_id=token_id,
                details={"accepted_counterparty": token.accepted_counterparty},
            )

        token.accepted_counterparty = None
        amount = self._release(transferee, token_id)
        self._journal.emit(OfferRecord(
            kind="OfferRefunded",
            token_id=token_id,
            owner=owner,
            transferee=transferee,
            amount=amount,
            outcome=OfferOutcome.REFUNDED,
        ))
        self._payout(transferee, amount)
        logger.info("Offer of %d on token %d refunded to %s", amount, token_id, transferee)
        return amount

    def settle(self, token_id: int, seller: str, buyer: str) -> Optional[int]:
        """
        Pay the accepted offer to the seller once the buyer owns the token.

        Called by the transfer orchestrator after ownership moved. Does
        nothing when ``buyer`` is not the accepted counterparty.

        Returns:
            The amount paid, or None when no settlement applied
        """
        token = self._state.token(token_id)
        if token.accepted_counterparty is None or token.accepted_counterparty != buyer:
            return None

        token.accepted_counterparty = None
        amount = self._release(buyer, token_id)
        self._journal.emit(OfferRecord(
            kind="OfferSettled",
            token_id=token_id,
            owner=seller,
            transferee=buyer,
            amount=amount,
            outcome=OfferOutcome.COMPLETED,
        ))
        self._payout(seller, amount)
        logger.info("Settled %d to %s for token %d", amount, seller, token_id)
        return amount
