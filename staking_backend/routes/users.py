# staking_backend/routes/users.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .. import accounts, staking
from ..auth import ensure_self_or_admin, get_current_user, require_admin
from ..db import get_db
from ..ledger import get_ledger, list_transactions
from ..models import Ledger, Stake, User
from ..schemas import StakeOut, TransactionOut, UserDataOut

router = APIRouter(prefix="/users", tags=["users"])

# ---------- Helpers ----------

def stake_out(stake: Stake) -> StakeOut:
    out = StakeOut.model_validate(stake)
    out.progress = staking.stake_progress(stake)
    out.time_progress = staking.time_progress(stake.start_date, stake.end_date)
    out.days_remaining = staking.days_remaining(stake.end_date) if stake.status == "active" else 0
    return out


def user_data_out(user: User, led: Ledger) -> UserDataOut:
    return UserDataOut(
        user_id=user.user_id,
        email=user.email,
        role=user.role,
        balance=led.balance,
        staked_balance=led.staked_balance,
        total_rewards=led.total_rewards,
        total_deposited=led.total_deposited,
        total_withdrawn=led.total_withdrawn,
        todays_reward=led.todays_reward,
        last_reward_update=led.last_reward_update,
        created_at=user.created_at,
        stakes=[stake_out(s) for s in led.stakes],
    )

# ---------- Routes ----------

@router.get("", response_model=List[UserDataOut])
def list_users(
    q: Optional[str] = Query(None, description="Search by email or user id"),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    """
    Admin: every non-admin account with its ledger.
    Always returns 200 with [] when no rows match.
    """
    stmt = select(User, Ledger).join(Ledger, Ledger.user_id == User.user_id).where(User.role != "admin")
    if q:
        like = f"%{q.strip().lower()}%"
        stmt = stmt.where(or_(User.email.ilike(like), User.user_id.like(like)))
    rows = db.execute(stmt.order_by(User.user_id)).all()
    return [user_data_out(u, led) for u, led in rows]


@router.get("/{user_id}", response_model=UserDataOut)
def get_user_data(
    user_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    target = accounts.get_user(db, user_id)
    return user_data_out(target, get_ledger(db, user_id))


@router.get("/{user_id}/transactions", response_model=List[TransactionOut])
def get_transactions(
    user_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    accounts.get_user(db, user_id)
    return list_transactions(db, user_id)
