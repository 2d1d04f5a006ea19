# staking_backend/accounts.py
import logging
import re

import bcrypt
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import config, settings
from .db import unit_of_work
from .errors import AuthError, DuplicateEmailError, NotFoundError, ValidationError
from .models import Counter, Ledger, User, utcnow

logger = logging.getLogger(__name__)

ADMIN_USER_ID = "00001"
USER_COUNTER = "user_counter"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


# ─────────────────────────────────────────────────────────────────────────────
# Passwords
# ─────────────────────────────────────────────────────────────────────────────

def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode(), hashed.encode())
    except ValueError:
        # malformed hash in the row
        return False


def validate_password(password: str) -> None:
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        raise ValidationError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValidationError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        raise ValidationError("Password must contain at least one number")


def _normalize_email(email: str) -> str:
    e = (email or "").strip().lower()
    if not _EMAIL_RE.match(e):
        raise ValidationError("Invalid email address")
    return e


# ─────────────────────────────────────────────────────────────────────────────
# Sequential ids
# ─────────────────────────────────────────────────────────────────────────────

def _ensure_counter(db: Session) -> None:
    if not db.get(Counter, USER_COUNTER):
        # 00001 is reserved for the admin
        db.add(Counter(name=USER_COUNTER, value=1))
        db.flush()


def next_user_id(db: Session) -> str:
    """
    Increment-and-read the user counter.

    The UPDATE takes the row lock for the rest of the caller's transaction,
    so concurrent signups serialise and a rollback gives the number back.
    """
    _ensure_counter(db)
    db.execute(
        update(Counter)
        .where(Counter.name == USER_COUNTER)
        .values(value=Counter.value + 1)
        .execution_options(synchronize_session=False)
    )
    value = db.execute(
        select(Counter.value).where(Counter.name == USER_COUNTER)
    ).scalar_one()
    return str(value).zfill(5)


def current_counter(db: Session) -> int:
    value = db.execute(
        select(Counter.value).where(Counter.name == USER_COUNTER)
    ).scalar_one_or_none()
    return value or 0


# ─────────────────────────────────────────────────────────────────────────────
# Account operations
# ─────────────────────────────────────────────────────────────────────────────

def _create(db: Session, user_id: str, email: str, password_hash: str, role: str) -> User:
    user = User(
        user_id=user_id,
        email=email,
        password_hash=password_hash,
        role=role,
        created_at=utcnow(),
    )
    db.add(user)
    db.add(Ledger(user_id=user_id, last_reward_update=utcnow()))
    return user


def sign_up(db: Session, email: str, password: str) -> User:
    email = _normalize_email(email)
    validate_password(password)

    with unit_of_work(db):
        if db.execute(select(User.user_id).where(User.email == email)).first():
            logger.warning("Signup refused, email already registered: %s", email)
            raise DuplicateEmailError()
        user_id = next_user_id(db)
        user = _create(db, user_id, email, hash_password(password), "user")
        try:
            db.flush()
        except IntegrityError:
            # lost a race with a concurrent signup for the same email
            raise DuplicateEmailError()

    logger.info("User %s registered (%s)", user.user_id, email)
    return user


def sign_in(db: Session, email: str, password: str) -> User:
    email = (email or "").strip().lower()
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        logger.warning("Failed sign-in for %s", email)
        raise AuthError()
    return user


def get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def initialize_system(db: Session) -> bool:
    """
    Seed the admin account, the user counter and the token price.

    Returns False when the system was already initialized.
    """
    with unit_of_work(db):
        if settings.is_initialized(db):
            return False

        if not db.get(User, ADMIN_USER_ID):
            if config.ADMIN_PASSWORD_HASH:
                pw_hash = config.ADMIN_PASSWORD_HASH
            elif config.ADMIN_PASSWORD:
                pw_hash = hash_password(config.ADMIN_PASSWORD)
            else:
                raise ValidationError("ADMIN_PASSWORD or ADMIN_PASSWORD_HASH must be configured")
            _create(db, ADMIN_USER_ID, config.ADMIN_EMAIL.strip().lower(), pw_hash, "admin")
            logger.info("Admin user %s created", ADMIN_USER_ID)

        _ensure_counter(db)
        settings.ensure_token_price(db)
        settings.mark_initialized(db)

    logger.info("System initialized")
    return True
