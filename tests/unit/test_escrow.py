"""
Escrow Unit Tests
Tests for orchestrator/escrow.py (through the TokenLedger facade)

1. initialize_offer collects funds and accumulates per transferee
2. revert_offer returns funds before acceptance only
3. accept_offer is owner-only and exclusive
4. refund_offer backs out of an acceptance
5. Mutual exclusion between the four transitions
"""

import pytest

from core.schemas.errors import (
    ConflictingOfferException,
    InvalidInputException,
    SettlementFailureException,
    StalePermissionException,
    TokenNotFoundException,
    UnauthorizedCallerException,
)
from core.schemas.ledger import EscrowStatus, OfferOutcome

from fixtures import BUYER, DEFAULT_PRICE, OTHER, SELLER, make_accepted_ledger, make_minted_ledger


class TestInitializeOffer:

    def test_collects_and_records(self, minted, bank):
        ledger, _, token_id = minted
        pending = ledger.initialize_offer(BUYER, token_id, BUYER, DEFAULT_PRICE)

        assert pending == DEFAULT_PRICE
        assert ledger.offer_amount_of(BUYER, token_id) == DEFAULT_PRICE
        assert ledger.escrow_balance() == DEFAULT_PRICE
        assert bank.balance_of(BUYER) == 50_000 - DEFAULT_PRICE
        assert ledger.escrow_status(token_id) == EscrowStatus.OFFERED

        record = ledger.records(kind="OfferInitialized")[0]
        assert record.owner == SELLER
        assert record.transferee == BUYER
        assert record.amount == DEFAULT_PRICE

    def test_offers_accumulate(self, minted):
        ledger, _, token_id = minted
        ledger.initialize_offer(BUYER, token_id, BUYER, 1_000)
        assert ledger.initialize_offer(BUYER, token_id, BUYER, 2_500) == 3_500
        assert ledger.escrow_balance() == 3_500

    def test_funded_by_third_party(self, minted, bank):
        ledger, _, token_id = minted
        ledger.initialize_offer(OTHER, token_id, BUYER, 5_000)
        assert ledger.offer_amount_of(BUYER, token_id) == 5_000
        assert ledger.offer_amount_of(OTHER, token_id) == 0
        assert bank.balance_of(OTHER) == 45_000
        assert bank.balance_of(BUYER) == 50_000

    def test_zero_amount_moves_nothing(self, minted, bank):
        ledger, _, token_id = minted
        assert ledger.initialize_offer(BUYER, token_id, BUYER, 0) == 0
        assert bank.balance_of(BUYER) == 50_000
        assert ledger.escrow_status(token_id) == EscrowStatus.IDLE

    @pytest.mark.parametrize("amount", [-1, True, 1.5, "100"])
    def test_bad_amount(self, minted, amount):
        ledger, _, token_id = minted
        with pytest.raises(InvalidInputException):
            ledger.initialize_offer(BUYER, token_id, BUYER, amount)

    def test_empty_transferee(self, minted):
        ledger, _, token_id = minted
        with pytest.raises(InvalidInputException):
            ledger.initialize_offer(BUYER, token_id, "", 10)

    def test_insufficient_funds_changes_nothing(self, minted, bank):
        ledger, _, token_id = minted
        records_before = len(ledger.records())
        with pytest.raises(SettlementFailureException):
            ledger.initialize_offer(BUYER, token_id, BUYER, 50_001)
        assert bank.balance_of(BUYER) == 50_000
        assert ledger.offer_amount_of(BUYER, token_id) == 0
        assert ledger.escrow_balance() == 0
        assert len(ledger.records()) == records_before

    def test_unknown_token(self, ledger):
        with pytest.raises(TokenNotFoundException):
            ledger.initialize_offer(BUYER, 42, BUYER, 10)

    def test_rejected_while_accepted(self):
        ledger, _, token_id = make_accepted_ledger()
        with pytest.raises(ConflictingOfferException) as exc_info:
            ledger.initialize_offer(OTHER, token_id, OTHER, 10)
        assert exc_info.value.details["accepted_counterparty"] == BUYER


class TestRevertOffer:

    def test_returns_funds(self, minted, bank):
        ledger, _, token_id = minted
        ledger.initialize_offer(BUYER, token_id, BUYER, DEFAULT_PRICE)

        assert ledger.revert_offer(BUYER, token_id) == DEFAULT_PRICE
        assert bank.balance_of(BUYER) == 50_000
        assert ledger.offer_amount_of(BUYER, token_id) == 0
        assert ledger.escrow_balance() == 0
        assert ledger.escrow_status(token_id) == EscrowStatus.IDLE
        assert ledger.records(kind="OfferReverted")[0].outcome == OfferOutcome.REVERTED

    def test_reoffer_after_revert(self, minted):
        ledger, _, token_id = minted
        ledger.initialize_offer(BUYER, token_id, BUYER, 100)
        ledger.revert_offer(BUYER, token_id)
        assert ledger.initialize_offer(BUYER, token_id, BUYER, 200) == 200

    def test_third_party_funds_return_to_transferee(self, minted, bank):
        ledger, _, token_id = minted
        ledger.initialize_offer(OTHER, token_id, BUYER, 5_000)
        ledger.revert_offer(BUYER, token_id)
        assert bank.balance_of(BUYER) == 55_000
        with pytest.raises(StalePermissionException):
            ledger.revert_offer(OTHER, token_id)

    def test_nothing_pending(self, minted):
        ledger, _, token_id = minted
        with pytest.raises(StalePermissionException, match="no pending offer"):
            ledger.revert_offer(BUYER, token_id)

    def test_rejected_after_accept(self):
        ledger, _, token_id = make_accepted_ledger()
        with pytest.raises(StalePermissionException):
            ledger.revert_offer(BUYER, token_id)

    def test_other_offers_frozen_while_accepted(self, minted):
        ledger, _, token_id = minted
        ledger.initialize_offer(OTHER, token_id, OTHER, 300)
        ledger.initialize_offer(BUYER, token_id, BUYER, 700)
        ledger.accept_offer(SELLER, SELLER, BUYER, token_id)
        with pytest.raises(StalePermissionException):
            ledger.revert_offer(OTHER, token_id)


class TestAcceptOffer:

    def test_sets_counterparty(self, minted):
        ledger, _, token_id = minted
        ledger.initialize_offer(BUYER, token_id, BUYER, DEFAULT_PRICE)
        ledger.accept_offer(SELLER, SELLER, BUYER, token_id)

        assert ledger.accepted_counterparty_of(token_id) == BUYER
        assert ledger.escrow_status(token_id) == EscrowStatus.ACCEPTED
        record = ledger.records(kind="OfferAccepted")[0]
        assert record.amount == DEFAULT_PRICE

    def test_moves_no_funds(self, minted, bank):
        ledger, _, token_id = minted
        ledger.initialize_offer(BUYER, token_id, BUYER, DEFAULT_PRICE)
        total = bank.total_supply()
        ledger.accept_offer(SELLER, SELLER, BUYER, token_id)
        assert bank.total_supply() == total
        assert ledger.escrow_balance() == DEFAULT_PRICE

    def test_gift_without_offer(self, minted):
        ledger, _, token_id = minted
        ledger.accept_offer(SELLER, SELLER, OTHER, token_id)
        assert ledger.accepted_counterparty_of(token_id) == OTHER

    def test_non_owner_caller(self, minted):
        ledger, _, token_id = minted
        with pytest.raises(UnauthorizedCallerException):
            ledger.accept_offer(BUYER, SELLER, BUYER, token_id)

    def test_from_not_owner(self, minted):
        ledger, _, token_id = minted
        with pytest.raises(UnauthorizedCallerException) as exc_info:
            ledger.accept_offer(SELLER, OTHER, BUYER, token_id)
        assert exc_info.value.details["from"] == OTHER

    def test_second_accept_conflicts(self):
        ledger, _, token_id = make_accepted_ledger()
        with pytest.raises(ConflictingOfferException):
            ledger.accept_offer(SELLER, SELLER, OTHER, token_id)
        assert ledger.accepted_counterparty_of(token_id) == BUYER


class TestRefundOffer:

    def test_returns_funds_and_clears(self):
        ledger, _, token_id = make_accepted_ledger()
        bank = ledger.payments

        assert ledger.refund_offer(SELLER, BUYER, token_id) == DEFAULT_PRICE
        assert bank.balance_of(BUYER) == 50_000
        assert ledger.accepted_counterparty_of(token_id) is None
        assert ledger.offer_amount_of(BUYER, token_id) == 0
        assert ledger.escrow_status(token_id) == EscrowStatus.IDLE
        assert ledger.records(kind="OfferRefunded")[0].outcome == OfferOutcome.REFUNDED

    def test_offers_reopen_after_refund(self):
        ledger, _, token_id = make_accepted_ledger()
        ledger.refund_offer(SELLER, BUYER, token_id)
        assert ledger.initialize_offer(OTHER, token_id, OTHER, 10) == 10

    def test_non_owner(self):
        ledger, _, token_id = make_accepted_ledger()
        with pytest.raises(UnauthorizedCallerException):
            ledger.refund_offer(BUYER, BUYER, token_id)

    def test_wrong_transferee(self):
        ledger, _, token_id = make_accepted_ledger()
        with pytest.raises(StalePermissionException):
            ledger.refund_offer(SELLER, OTHER, token_id)
        assert ledger.accepted_counterparty_of(token_id) == BUYER

    def test_without_acceptance(self, minted):
        ledger, _, token_id = minted
        ledger.initialize_offer(BUYER, token_id, BUYER, 10)
        with pytest.raises(StalePermissionException):
            ledger.refund_offer(SELLER, BUYER, token_id)

    def test_refund_of_gift_pays_nothing(self, minted, bank):
        ledger, _, token_id = minted
        ledger.accept_offer(SELLER, SELLER, OTHER, token_id)
        assert ledger.refund_offer(SELLER, OTHER, token_id) == 0
        assert bank.balance_of(OTHER) == 50_000
