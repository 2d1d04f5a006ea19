# staking_backend/auth.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException, status
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .config import JWT_ALG, JWT_EXPIRE_MIN, JWT_SECRET
from .db import get_db
from .errors import ValidationError
from .models import User


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# JWT helpers
# ─────────────────────────────────────────────────────────────────────────────

def create_token(user: User) -> str:
    """Create a signed JWT for a user session."""
    iat = _now_utc()
    exp = iat + timedelta(minutes=JWT_EXPIRE_MIN)
    payload = {
        "sub": user.user_id,
        "role": user.role,
        "iat": int(iat.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def _decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid or expired session: {str(e)}",
        )


# ─────────────────────────────────────────────────────────────────────────────
# Auth dependencies
# ─────────────────────────────────────────────────────────────────────────────

def require_auth(
    session: Optional[str] = Cookie(default=None),           # cookie "session"
    authorization: Optional[str] = Header(default=None),     # "Bearer <jwt>" fallback
) -> dict:
    """
    Validate the session. Accepts either:
      - Cookie: session=<jwt>
      - Header: Authorization: Bearer <jwt>
    Returns decoded claims on success; raises 401 on failure.
    """
    token = session

    if not token and authorization:
        parts = authorization.strip().split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            token = parts[1]

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthenticated")

    return _decode_token(token)


def get_current_user(
    claims: dict = Depends(require_auth),
    db: Session = Depends(get_db),
) -> User:
    user = db.get(User, claims.get("sub"))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admins only")
    return user


def ensure_self_or_admin(user: User, user_id: str) -> None:
    """Users may only touch their own records; admins may touch any."""
    if user.role != "admin" and user.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def list_scope(user: User, user_id: Optional[str], is_admin: bool) -> Optional[str]:
    """
    Resolve the ``?userId=`` / ``?isAdmin=true`` filter of list endpoints.

    Returns the user id to filter on, or None for the admin "everything" view.
    """
    if is_admin:
        if user.role != "admin":
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admins only")
        return None
    if not user_id:
        raise ValidationError("Missing userId parameter")
    ensure_self_or_admin(user, user_id)
    return user_id
