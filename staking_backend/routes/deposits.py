# staking_backend/routes/deposits.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status as http_status
from sqlalchemy.orm import Session

from .. import admin, request_queue
from ..auth import get_current_user, list_scope, require_admin
from ..db import get_db
from ..models import User
from ..schemas import DepositCreate, DepositOut, StatusUpdate

router = APIRouter(prefix="/deposits", tags=["deposits"])


@router.get("", response_model=List[DepositOut])
def list_deposits(
    user_id: Optional[str] = Query(None, alias="userId"),
    is_admin: bool = Query(False, alias="isAdmin"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    scope = list_scope(user, user_id, is_admin)
    return request_queue.list_requests(db, "deposit", user_id=scope)


@router.post("", response_model=DepositOut, status_code=http_status.HTTP_201_CREATED)
def create_deposit(
    payload: DepositCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Submit a deposit for manual verification of its transaction id."""
    return request_queue.create_deposit_request(
        db, user, payload.amount, payload.txid, payload.email, payload.user_type
    )


@router.put("/{request_id}", response_model=DepositOut)
def update_deposit(
    request_id: str,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    """Admin: approve (credits the balance) or reject a pending deposit."""
    return admin.process_request(db, "deposit", request_id, payload.status)
