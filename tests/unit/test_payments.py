"""
Tests for orchestrator/payments.py
"""

import pytest

from core.schemas.errors import InvalidInputException, SettlementFailureException
from orchestrator.payments import InMemoryPaymentGateway, PaymentEntry, PaymentGateway


def test_is_a_gateway():
    assert isinstance(InMemoryPaymentGateway(), PaymentGateway)


def test_collect_and_pay():
    bank = InMemoryPaymentGateway({"0xB": 100})
    bank.collect("0xB", 40)
    bank.pay("0xA", 40)
    assert bank.balance_of("0xB") == 60
    assert bank.balance_of("0xA") == 40
    assert bank.history == [PaymentEntry("in", "0xB", 40), PaymentEntry("out", "0xA", 40)]


def test_collect_insufficient():
    bank = InMemoryPaymentGateway({"0xB": 10})
    with pytest.raises(SettlementFailureException) as exc_info:
        bank.collect("0xB", 11)
    assert exc_info.value.details["account"] == "0xB"
    assert bank.balance_of("0xB") == 10
    assert bank.history == []


def test_deposit():
    bank = InMemoryPaymentGateway()
    bank.deposit("0xA", 5)
    bank.deposit("0xA", 5)
    assert bank.balance_of("0xA") == 10
    with pytest.raises(InvalidInputException):
        bank.deposit("0xA", -1)


def test_rejecting_hook_undoes_payment():
    bank = InMemoryPaymentGateway()

    def reject(account, amount):
        raise ValueError("refused")

    bank.on_receive("0xA", reject)
    with pytest.raises(SettlementFailureException) as exc_info:
        bank.pay("0xA", 7)
    assert exc_info.value.details["cause"] == "ValueError"
    assert bank.balance_of("0xA") == 0
    assert bank.history == []


def test_hook_sees_credited_balance():
    bank = InMemoryPaymentGateway()
    seen = []
    bank.on_receive("0xA", lambda account, amount: seen.append(bank.balance_of(account)))
    bank.pay("0xA", 3)
    bank.on_receive("0xA", None)
    bank.pay("0xA", 3)
    assert seen == [3]


def test_transaction_frames():
    bank = InMemoryPaymentGateway({"0xB": 100})
    bank.begin()
    bank.collect("0xB", 30)
    bank.begin()
    bank.pay("0xA", 30)
    bank.commit()
    bank.rollback()
    assert bank.balance_of("0xB") == 100
    assert bank.balance_of("0xA") == 0
    assert bank.history == []


def test_unbalanced_frames():
    with pytest.raises(RuntimeError):
        InMemoryPaymentGateway().commit()
    with pytest.raises(RuntimeError):
        InMemoryPaymentGateway().rollback()


def test_balances_skip_zero():
    bank = InMemoryPaymentGateway({"0xA": 0, "0xB": 4})
    assert bank.balances() == {"0xB": 4}
    assert bank.total_supply() == 4


def test_interrupting_hook_undoes_payment_and_propagates():
    bank = InMemoryPaymentGateway()

    def interrupt(account, amount):
        raise KeyboardInterrupt

    bank.on_receive("0xA", interrupt)
    bank.begin()
    with pytest.raises(KeyboardInterrupt):
        bank.pay("0xA", 7)
    assert bank.balance_of("0xA") == 0
    assert bank.history == []
    # Only the caller's frame is left open
    bank.rollback()
    with pytest.raises(RuntimeError):
        bank.rollback()
