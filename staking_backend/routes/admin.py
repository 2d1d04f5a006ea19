# staking_backend/routes/admin.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import admin, settings
from ..auth import require_admin
from ..db import get_db
from ..models import User
from ..schemas import (
    CreditIn,
    RewardDistributionOut,
    StatsOut,
    TokenPriceIn,
    TokenPriceOut,
)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/credit")
def credit_user(
    payload: CreditIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    """Manual balance credit, outside the request queue."""
    led = admin.admin_credit(db, payload.user_id, payload.amount)
    return {"success": True, "userId": led.user_id, "balance": led.balance}


@router.post("/users/{user_id}/rewards", response_model=RewardDistributionOut)
def distribute_rewards(
    user_id: str,
    force: bool = Query(False, description="Ignore the once-per-day window"),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    return admin.distribute_user_rewards(db, user_id, force=force)


@router.get("/stats", response_model=StatsOut)
def stats(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    return admin.system_stats(db)


@router.get("/token-price", response_model=TokenPriceOut)
def get_token_price(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    return settings.get_token_price(db)


@router.put("/token-price", response_model=TokenPriceOut)
def update_token_price(
    payload: TokenPriceIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    return admin.update_token_price(db, payload.price, user.email)
