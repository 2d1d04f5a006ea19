# staking_backend/request_queue.py
"""
Pending deposit / withdrawal / staking requests.

Requests are created ``pending`` by their owner and moved exactly once to
``approved`` or ``rejected`` by an admin (see ``admin.py``).
"""
import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from . import staking
from .db import unit_of_work
from .errors import InsufficientBalanceError, NotFoundError, ValidationError
from .ledger import check_amount, generate_id, get_ledger
from .models import DepositRequest, Stake, StakingRequest, User, WithdrawalRequest, utcnow

logger = logging.getLogger(__name__)

USER_TYPES = {"Introducer", "Merchant", "Buyer"}
TERMINAL_STATUSES = {"approved", "rejected"}

_KINDS = {
    "deposit": DepositRequest,
    "withdrawal": WithdrawalRequest,
    "staking": StakingRequest,
}


def _model(kind: str):
    try:
        return _KINDS[kind]
    except KeyError:
        raise ValidationError(f"Unknown request kind '{kind}'")


def create_deposit_request(
    db: Session,
    user: User,
    amount: float,
    txid: str,
    email: Optional[str] = None,
    user_type: str = "Buyer",
) -> DepositRequest:
    amount = check_amount(amount)
    txid = (txid or "").strip()
    if not txid:
        raise ValidationError("Transaction ID is required")
    if user_type not in USER_TYPES:
        raise ValidationError(f"Invalid userType '{user_type}'. Allowed: Introducer, Merchant, Buyer.")

    req = DepositRequest(
        id=generate_id("deposit"),
        user_id=user.user_id,
        user_email=user.email,
        amount=amount,
        txid=txid,
        email=(email or user.email).strip(),
        user_type=user_type,
        status="pending",
        timestamp=utcnow(),
    )
    with unit_of_work(db):
        db.add(req)
    logger.info("Deposit request %s for %s: %s", req.id, user.user_id, amount)
    return req


def create_withdrawal_request(
    db: Session,
    user: User,
    amount: float,
    destination_address: str,
) -> WithdrawalRequest:
    amount = check_amount(amount)
    destination_address = (destination_address or "").strip()
    if not destination_address:
        raise ValidationError("Destination address is required")

    with unit_of_work(db):
        if get_ledger(db, user.user_id).balance < amount:
            raise InsufficientBalanceError()
        req = WithdrawalRequest(
            id=generate_id("withdrawal"),
            user_id=user.user_id,
            user_email=user.email,
            amount=amount,
            fee=staking.withdrawal_fee(amount),
            net_amount=staking.net_withdrawal(amount),
            destination_address=destination_address,
            status="pending",
            timestamp=utcnow(),
        )
        db.add(req)
    logger.info("Withdrawal request %s for %s: %s", req.id, user.user_id, amount)
    return req


def create_staking_request(
    db: Session,
    user: User,
    type: str,
    amount: Optional[float] = None,
    pool_type: Optional[str] = None,
    stake_id: Optional[str] = None,
) -> StakingRequest:
    with unit_of_work(db):
        if type == "stake":
            amount = check_amount(amount)
            staking.pool_duration_days(pool_type or "")  # validates the pool
            if get_ledger(db, user.user_id).balance < amount:
                raise InsufficientBalanceError()
            stake_id = None
        elif type == "unstake":
            stake = db.get(Stake, stake_id) if stake_id else None
            if not stake or stake.user_id != user.user_id:
                raise NotFoundError("Stake not found")
            if stake.status != "active":
                raise ValidationError("Stake is not active")
            amount = stake.amount
            pool_type = stake.pool_type
        else:
            raise ValidationError("Invalid staking request type. Allowed: stake, unstake.")

        req = StakingRequest(
            id=generate_id("staking"),
            user_id=user.user_id,
            user_email=user.email,
            type=type,
            amount=amount,
            pool_type=pool_type,
            stake_id=stake_id,
            status="pending",
            timestamp=utcnow(),
        )
        db.add(req)
    logger.info("Staking request %s (%s) for %s: %s", req.id, type, user.user_id, amount)
    return req


def list_requests(db: Session, kind: str, user_id: Optional[str] = None, status: Optional[str] = None) -> List:
    model = _model(kind)
    stmt = select(model)
    if user_id:
        stmt = stmt.where(model.user_id == user_id)
    if status:
        stmt = stmt.where(model.status == status)
    return db.execute(stmt.order_by(model.timestamp.desc())).scalars().all()


def get_request(db: Session, kind: str, request_id: str):
    req = db.get(_model(kind), request_id)
    if not req:
        raise NotFoundError(f"{kind.capitalize()} request not found")
    return req


def transition(db: Session, kind: str, request_id: str, status: str):
    """
    Move a pending request to a terminal status.

    Conditional UPDATE on ``status = 'pending'``: of two concurrent admins
    processing the same request, only one wins. Does not commit.
    """
    if status not in TERMINAL_STATUSES:
        raise ValidationError(f"Invalid status '{status}'. Allowed: approved, rejected.")
    model = _model(kind)
    req = get_request(db, kind, request_id)
    res = db.execute(
        update(model)
        .where(model.id == request_id, model.status == "pending")
        .values(status=status, processed_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        raise ValidationError(f"{kind.capitalize()} request already processed")
    db.refresh(req)
    return req
