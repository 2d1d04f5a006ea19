# staking_backend/routes/init.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import accounts
from ..db import get_db

router = APIRouter(tags=["init"])


@router.post("/init")
def initialize(db: Session = Depends(get_db)):
    """Seed admin 00001, the user counter and the token price. Safe to repeat."""
    if not accounts.initialize_system(db):
        return {"message": "Already initialized"}
    return {"success": True, "message": "System initialized successfully"}
