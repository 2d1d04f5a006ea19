# staking_backend/admin.py
"""
Admin Console: approve/reject queued requests and apply their ledger
effects, manual credits, reward distribution and the token price.

Every public function here is one database transaction.
"""
import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from . import request_queue, settings, staking
from .db import unit_of_work
from .errors import NotFoundError, ValidationError
from .ledger import check_amount, credit, debit, generate_id, get_ledger, record_transaction
from .models import (
    DepositRequest,
    Ledger,
    Stake,
    StakingRequest,
    User,
    WithdrawalRequest,
    utcnow,
)

logger = logging.getLogger(__name__)

# payout is promised within 24h of approval
WITHDRAWAL_PROCESSING_TIME = timedelta(days=1)


# ─────────────────────────────────────────────────────────────────────────────
# Deposits
# ─────────────────────────────────────────────────────────────────────────────

def approve_deposit(db: Session, request_id: str) -> DepositRequest:
    with unit_of_work(db):
        req = request_queue.transition(db, "deposit", request_id, "approved")
        credit(db, req.user_id, req.amount, total_deposited=req.amount)
        record_transaction(
            db, req.user_id, "deposit", req.amount,
            description=f"Deposit approved - TXID: {req.txid}",
        )
    logger.info("Deposit %s approved: +%s to %s", req.id, req.amount, req.user_id)
    return req


def reject_deposit(db: Session, request_id: str) -> DepositRequest:
    with unit_of_work(db):
        req = request_queue.transition(db, "deposit", request_id, "rejected")
    logger.info("Deposit %s rejected", req.id)
    return req


# ─────────────────────────────────────────────────────────────────────────────
# Withdrawals
# ─────────────────────────────────────────────────────────────────────────────

def approve_withdrawal(db: Session, request_id: str) -> WithdrawalRequest:
    with unit_of_work(db):
        req = request_queue.transition(db, "withdrawal", request_id, "approved")
        fee = staking.withdrawal_fee(req.amount)
        net = staking.net_withdrawal(req.amount)
        # full amount leaves the balance, only the net counts as withdrawn
        debit(db, req.user_id, req.amount, total_withdrawn=net)
        req.fee = fee
        req.net_amount = net
        req.processed_date = req.processed_at + WITHDRAWAL_PROCESSING_TIME
        record_transaction(
            db, req.user_id, "withdrawal", req.amount,
            description=(
                f"Withdrawal approved - Fee: {fee:.2f} OR - Net: {net:.2f} OR"
                f" - To {req.destination_address}"
            ),
        )
    logger.info("Withdrawal %s approved: -%s from %s (net %s)", req.id, req.amount, req.user_id, net)
    return req


def reject_withdrawal(db: Session, request_id: str) -> WithdrawalRequest:
    with unit_of_work(db):
        req = request_queue.transition(db, "withdrawal", request_id, "rejected")
    logger.info("Withdrawal %s rejected", req.id)
    return req


# ─────────────────────────────────────────────────────────────────────────────
# Staking
# ─────────────────────────────────────────────────────────────────────────────

def _open_stake(db: Session, req: StakingRequest) -> Stake:
    debit(db, req.user_id, req.amount, staked_balance=req.amount)
    start = utcnow()
    stake = Stake(
        id=generate_id("stake"),
        user_id=req.user_id,
        pool_type=req.pool_type,
        amount=req.amount,
        start_date=start,
        end_date=staking.stake_end_date(start, req.pool_type),
        daily_reward_rate=staking.daily_reward_rate(req.pool_type),
        accumulated_rewards=0.0,
        status="active",
        rewards_distributed=0,
    )
    db.add(stake)
    record_transaction(
        db, req.user_id, "stake", req.amount,
        description=f"Staked in {req.pool_type} pool",
    )
    return stake


def _close_stake(db: Session, req: StakingRequest) -> Stake:
    stake = db.get(Stake, req.stake_id) if req.stake_id else None
    if not stake or stake.user_id != req.user_id:
        raise NotFoundError("Stake not found")
    res = db.execute(
        update(Stake)
        .where(Stake.id == stake.id, Stake.status == "active")
        .values(status="completed")
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        raise ValidationError("Stake already completed")
    db.expire(stake)

    rewards = stake.accumulated_rewards or 0.0
    credit(
        db, req.user_id, stake.amount + rewards,
        staked_balance=-stake.amount,
        total_rewards=rewards,
    )
    record_transaction(
        db, req.user_id, "unstake", stake.amount,
        description=f"Unstaked from {stake.pool_type} pool",
    )
    if rewards > 0:
        record_transaction(
            db, req.user_id, "reward", rewards,
            description=f"Rewards from {stake.pool_type} stake",
        )
    return stake


def approve_staking(db: Session, request_id: str) -> StakingRequest:
    with unit_of_work(db):
        req = request_queue.transition(db, "staking", request_id, "approved")
        if req.type == "stake":
            stake = _open_stake(db, req)
            req.stake_id = stake.id
        else:
            _close_stake(db, req)
    logger.info("Staking request %s (%s) approved for %s", req.id, req.type, req.user_id)
    return req


def reject_staking(db: Session, request_id: str) -> StakingRequest:
    with unit_of_work(db):
        req = request_queue.transition(db, "staking", request_id, "rejected")
    logger.info("Staking request %s (%s) rejected", req.id, req.type)
    return req


_HANDLERS = {
    ("deposit", "approved"): approve_deposit,
    ("deposit", "rejected"): reject_deposit,
    ("withdrawal", "approved"): approve_withdrawal,
    ("withdrawal", "rejected"): reject_withdrawal,
    ("staking", "approved"): approve_staking,
    ("staking", "rejected"): reject_staking,
}


def process_request(db: Session, kind: str, request_id: str, status: str):
    handler = _HANDLERS.get((kind, status))
    if handler is None:
        raise ValidationError(f"Invalid status '{status}'. Allowed: approved, rejected.")
    return handler(db, request_id)


# ─────────────────────────────────────────────────────────────────────────────
# Credits & rewards
# ─────────────────────────────────────────────────────────────────────────────

def admin_credit(db: Session, user_id: str, amount: float) -> Ledger:
    amount = check_amount(amount)
    with unit_of_work(db):
        credit(db, user_id, amount)
        record_transaction(db, user_id, "admin_credit", amount, description="Admin manual credit")
    logger.info("Admin credit of %s to %s", amount, user_id)
    return get_ledger(db, user_id)


def _skip_reason(stake: Stake, today: date, force: bool) -> Optional[str]:
    """Why ``stake`` gets no reward now, or ``None`` if it is eligible."""
    if stake.status != "active":
        return "Invalid staking position"
    if stake.rewards_distributed >= staking.pool_duration_days(stake.pool_type):
        return "Stake has received all of its rewards"
    if not force and stake.last_distributed_on == today:
        return "Rewards already distributed today for this stake"
    return None


def _distribute(stake: Stake, today: date) -> float:
    reward = staking.distribute_reward(stake)
    stake.last_distributed_on = today
    return reward


def _add_todays_reward(led: Ledger, amount: float, now) -> None:
    # todaysReward sums every distribution of the current UTC day
    last = led.last_reward_update
    if last is not None and staking.as_utc(last).date() == now.date():
        led.todays_reward = (led.todays_reward or 0.0) + amount
    else:
        led.todays_reward = amount
    led.last_reward_update = now


def _locked_stakes(db: Session, *criteria) -> List[Stake]:
    stmt = select(Stake).where(*criteria).with_for_update()
    return db.execute(stmt).scalars().all()


def distribute_user_rewards(db: Session, user_id: str, force: bool = False) -> dict:
    """
    Credit one day of rewards to every active stake of ``user_id``.

    A stake already credited today (UTC) is skipped unless ``force`` is set.
    """
    now = utcnow()
    today = now.date()
    with unit_of_work(db):
        led = get_ledger(db, user_id)
        total, updated = 0.0, 0
        for stake in _locked_stakes(db, Stake.user_id == user_id, Stake.status == "active"):
            reason = _skip_reason(stake, today, force)
            if reason is not None:
                logger.debug("Skipping stake %s: %s", stake.id, reason)
                continue
            total += _distribute(stake, today)
            updated += 1
        if updated:
            _add_todays_reward(led, total, now)
    if updated:
        logger.info("Distributed %s to %d stake(s) of %s", total, updated, user_id)
    else:
        logger.info("No stakes of %s eligible for rewards", user_id)
    return {"userId": user_id, "totalReward": total, "stakesUpdated": updated}


def distribute_stake_reward(db: Session, stake_id: str, force: bool = False) -> Stake:
    now = utcnow()
    today = now.date()
    with unit_of_work(db):
        stakes = _locked_stakes(db, Stake.id == stake_id)
        if not stakes:
            raise NotFoundError("Stake not found")
        stake = stakes[0]
        reason = _skip_reason(stake, today, force)
        if reason is not None:
            raise ValidationError(reason)
        reward = _distribute(stake, today)
        _add_todays_reward(get_ledger(db, stake.user_id), reward, now)
    logger.info("Distributed %s to stake %s", reward, stake_id)
    return stake


# ─────────────────────────────────────────────────────────────────────────────
# Token price & stats
# ─────────────────────────────────────────────────────────────────────────────

def update_token_price(db: Session, price: float, updated_by: str) -> dict:
    with unit_of_work(db):
        record = settings.set_token_price(db, price, updated_by)
    return record


def system_stats(db: Session) -> dict:
    def scalar(stmt):
        return db.execute(stmt).scalar() or 0

    def pending(model):
        return scalar(select(func.count()).select_from(model).where(model.status == "pending"))

    return {
        "totalUsers": scalar(select(func.count()).select_from(User).where(User.role == "user")),
        "totalBalance": float(scalar(select(func.sum(Ledger.balance)))),
        "totalDeposits": float(scalar(select(func.sum(Ledger.total_deposited)))),
        "totalWithdrawals": float(scalar(select(func.sum(Ledger.total_withdrawn)))),
        "totalStaked": float(scalar(select(func.sum(Ledger.staked_balance)))),
        "totalRewardsDistributed": float(scalar(select(func.sum(Stake.accumulated_rewards)))),
        "activeStakes": scalar(select(func.count()).select_from(Stake).where(Stake.status == "active")),
        "pendingDeposits": pending(DepositRequest),
        "pendingWithdrawals": pending(WithdrawalRequest),
        "pendingStaking": pending(StakingRequest),
        "currentTokenPrice": settings.get_token_price(db)["price"],
    }
