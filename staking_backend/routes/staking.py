# staking_backend/routes/staking.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status as http_status
from sqlalchemy.orm import Session

from .. import admin, request_queue
from ..auth import get_current_user, list_scope, require_admin
from ..db import get_db
from ..models import User
from ..schemas import StakeOut, StakingCreate, StakingRequestOut, StatusUpdate
from .users import stake_out

router = APIRouter(prefix="/staking", tags=["staking"])


@router.get("", response_model=List[StakingRequestOut])
def list_staking_requests(
    user_id: Optional[str] = Query(None, alias="userId"),
    is_admin: bool = Query(False, alias="isAdmin"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    scope = list_scope(user, user_id, is_admin)
    return request_queue.list_requests(db, "staking", user_id=scope)


@router.post("", response_model=StakingRequestOut, status_code=http_status.HTTP_201_CREATED)
def create_staking_request(
    payload: StakingCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    ``type=stake`` needs ``amount`` and ``poolType``;
    ``type=unstake`` needs the ``stakeId`` of an active stake.
    """
    return request_queue.create_staking_request(
        db, user, payload.type, payload.amount, payload.pool_type, payload.stake_id
    )


@router.put("/{request_id}", response_model=StakingRequestOut)
def update_staking_request(
    request_id: str,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    return admin.process_request(db, "staking", request_id, payload.status)


@router.delete("/stakes/{stake_id}/rewards", response_model=StakeOut)
def distribute_stake_reward(
    stake_id: str,
    force: bool = Query(False),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    """Admin: credit one day of rewards to a single active stake."""
    return stake_out(admin.distribute_stake_reward(db, stake_id, force=force))
