"""Tests for the balance ledger primitives."""
import pytest

from staking_backend import ledger
from staking_backend.db import unit_of_work
from staking_backend.errors import InsufficientBalanceError, NotFoundError, ValidationError
from staking_backend.models import Transaction


def test_credit_adds_to_balance_and_totals(db, make_user, ledger_of):
    user = make_user()

    with unit_of_work(db):
        ledger.credit(db, user.user_id, 25.5, total_deposited=25.5)

    led = ledger_of(user.user_id)
    assert led.balance == pytest.approx(25.5)
    assert led.total_deposited == pytest.approx(25.5)


def test_debit_refuses_to_overdraw(db, make_user, ledger_of):
    user = make_user(balance=10)

    with pytest.raises(InsufficientBalanceError):
        with unit_of_work(db):
            ledger.debit(db, user.user_id, 10.01)

    assert ledger_of(user.user_id).balance == pytest.approx(10)


def test_debit_down_to_zero_is_allowed(db, make_user, ledger_of):
    user = make_user(balance=10)

    with unit_of_work(db):
        ledger.debit(db, user.user_id, 10)

    assert ledger_of(user.user_id).balance == pytest.approx(0)


def test_unknown_user(db, initialized):
    with pytest.raises(NotFoundError):
        ledger.credit(db, "99999", 5)
    with pytest.raises(NotFoundError):
        ledger.debit(db, "99999", 5)
    db.rollback()


@pytest.mark.parametrize("amount", [0, -1, "abc", None, "NaN", "Infinity", "-inf", float("nan"), float("inf")])
def test_invalid_amounts(db, make_user, amount):
    user = make_user(balance=10)
    with pytest.raises(ValidationError):
        ledger.credit(db, user.user_id, amount)


@pytest.mark.parametrize("amount", ["NaN", "Infinity", float("nan"), float("inf")])
def test_non_finite_amounts_never_reach_the_balance(db, make_user, ledger_of, amount):
    user = make_user(balance=10)

    with pytest.raises(ValidationError, match="finite"):
        with unit_of_work(db):
            ledger.credit(db, user.user_id, amount)
    with pytest.raises(ValidationError, match="finite"):
        with unit_of_work(db):
            ledger.debit(db, user.user_id, amount)

    assert ledger_of(user.user_id).balance == pytest.approx(10)


def test_record_transaction_is_listed_newest_first(db, make_user):
    user = make_user()

    with unit_of_work(db):
        first = ledger.record_transaction(db, user.user_id, "deposit", 5, "first")
    with unit_of_work(db):
        second = ledger.record_transaction(db, user.user_id, "reward", 1, "second")

    ids = [tx.id for tx in ledger.list_transactions(db, user.user_id) if tx.type != "admin_credit"]
    assert ids == [second.id, first.id]
    assert first.id.startswith("tx_")


def test_record_transaction_rejects_unknown_type(db, make_user):
    user = make_user()
    with pytest.raises(ValidationError):
        ledger.record_transaction(db, user.user_id, "bonus", 5)
    assert db.query(Transaction).filter_by(type="bonus").count() == 0
