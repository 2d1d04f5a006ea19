# staking_backend/routes/withdrawals.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status as http_status
from sqlalchemy.orm import Session

from .. import admin, request_queue
from ..auth import get_current_user, list_scope, require_admin
from ..db import get_db
from ..models import User
from ..schemas import StatusUpdate, WithdrawalCreate, WithdrawalOut

router = APIRouter(prefix="/withdrawals", tags=["withdrawals"])


@router.get("", response_model=List[WithdrawalOut])
def list_withdrawals(
    user_id: Optional[str] = Query(None, alias="userId"),
    is_admin: bool = Query(False, alias="isAdmin"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    scope = list_scope(user, user_id, is_admin)
    return request_queue.list_requests(db, "withdrawal", user_id=scope)


@router.post("", response_model=WithdrawalOut, status_code=http_status.HTTP_201_CREATED)
def create_withdrawal(
    payload: WithdrawalCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Request a withdrawal. The 3% fee is quoted on the request; the balance
    is checked now and again when an admin approves.
    """
    return request_queue.create_withdrawal_request(
        db, user, payload.amount, payload.destination_address
    )


@router.put("/{request_id}", response_model=WithdrawalOut)
def update_withdrawal(
    request_id: str,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    return admin.process_request(db, "withdrawal", request_id, payload.status)
