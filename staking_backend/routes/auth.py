# staking_backend/routes/auth.py
from fastapi import APIRouter, Depends, Response, status as http_status
from sqlalchemy.orm import Session

from .. import accounts
from ..auth import create_token, get_current_user
from ..config import cookie_kwargs
from ..db import get_db
from ..models import User
from ..schemas import AuthOut, SignInIn, SignUpIn, UserOut

router = APIRouter(prefix="/auth", tags=["auth"])


def _session(user: User, resp: Response) -> AuthOut:
    token = create_token(user)
    resp.set_cookie(key="session", value=token, **cookie_kwargs())
    return AuthOut(user=UserOut.model_validate(user), token=token)


@router.post("/signup", response_model=AuthOut, status_code=http_status.HTTP_201_CREATED)
def signup(payload: SignUpIn, resp: Response, db: Session = Depends(get_db)):
    """
    Register a user with the next sequential id.
    400 if the email is already registered or the password is too weak.
    """
    user = accounts.sign_up(db, payload.email, payload.password)
    return _session(user, resp)


@router.post("/signin", response_model=AuthOut)
def signin(payload: SignInIn, resp: Response, db: Session = Depends(get_db)):
    user = accounts.sign_in(db, payload.email, payload.password)
    return _session(user, resp)


@router.post("/signout")
def signout(resp: Response):
    kw = cookie_kwargs()
    resp.delete_cookie(key="session", path=kw.get("path", "/"), httponly=True,
                       samesite=kw.get("samesite", "lax"), secure=kw.get("secure", False))
    return {"success": True}


@router.get("/user", response_model=UserOut)
def current_user(user: User = Depends(get_current_user)):
    return user
