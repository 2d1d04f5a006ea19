# staking_backend/ledger.py
"""
Balance Ledger primitives.

None of these commit: callers group them with the paired status change
and transaction-log append inside one ``unit_of_work``.
"""
import logging
import math
import uuid
from typing import List

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from .errors import InsufficientBalanceError, NotFoundError, ValidationError
from .models import Ledger, Transaction, utcnow

logger = logging.getLogger(__name__)

TX_TYPES = {"deposit", "withdrawal", "stake", "unstake", "reward", "admin_credit"}


def generate_id(prefix: str = "id") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


def check_amount(amount: float) -> float:
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        raise ValidationError("Amount must be a number")
    if not math.isfinite(amount):
        raise ValidationError("Amount must be a finite number")
    if amount <= 0:
        raise ValidationError("Amount must be > 0")
    return amount


def get_ledger(db: Session, user_id: str) -> Ledger:
    led = db.get(Ledger, user_id)
    if not led:
        raise NotFoundError("User not found")
    return led


def _expire_cached(db: Session, user_id: str) -> None:
    # bulk UPDATEs bypass the identity map
    led = db.identity_map.get(Session.identity_key(Ledger, user_id))
    if led is not None:
        db.expire(led)


def credit(db: Session, user_id: str, amount: float, **totals: float) -> None:
    """
    Add ``amount`` to the available balance.

    Extra keyword arguments are column increments applied in the same
    UPDATE, e.g. ``total_deposited=amount``.
    """
    amount = check_amount(amount)
    values = {"balance": Ledger.balance + amount}
    for col, inc in totals.items():
        values[col] = getattr(Ledger, col) + inc
    res = db.execute(
        update(Ledger)
        .where(Ledger.user_id == user_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        raise NotFoundError("User not found")
    _expire_cached(db, user_id)


def debit(db: Session, user_id: str, amount: float, **totals: float) -> None:
    """
    Subtract ``amount`` from the available balance.

    Single conditional UPDATE: succeeds only if the resulting balance is
    >= 0, so a concurrent debit cannot overdraw the account.
    """
    amount = check_amount(amount)
    values = {"balance": Ledger.balance - amount}
    for col, inc in totals.items():
        values[col] = getattr(Ledger, col) + inc
    res = db.execute(
        update(Ledger)
        .where(Ledger.user_id == user_id, Ledger.balance >= amount)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        get_ledger(db, user_id)  # 404 if the ledger is missing
        logger.warning("Debit of %s refused for %s: insufficient balance", amount, user_id)
        raise InsufficientBalanceError()
    _expire_cached(db, user_id)


def record_transaction(
    db: Session,
    user_id: str,
    type: str,
    amount: float,
    description: str = "",
    status: str = "completed",
) -> Transaction:
    if type not in TX_TYPES:
        raise ValidationError(f"Invalid transaction type '{type}'")
    tx = Transaction(
        id=generate_id("tx"),
        user_id=user_id,
        type=type,
        amount=float(amount),
        status=status,
        date=utcnow(),
        description=description,
    )
    db.add(tx)
    return tx


def list_transactions(db: Session, user_id: str) -> List[Transaction]:
    stmt = (
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.date.desc())
    )
    return db.execute(stmt).scalars().all()
