# staking_backend/settings.py
"""Platform Settings: the singleton token price and the init flag."""
import json
import logging
import math
from typing import Optional

from sqlalchemy.orm import Session

from . import config
from .errors import ValidationError
from .models import Setting, utcnow

logger = logging.getLogger(__name__)

TOKEN_PRICE_KEY = "token_price"
INITIALIZED_KEY = "system_initialized"


def _get(db: Session, key: str) -> Optional[dict]:
    row = db.get(Setting, key)
    return json.loads(row.value) if row else None


def _put(db: Session, key: str, value) -> None:
    row = db.get(Setting, key)
    if row:
        row.value = json.dumps(value)
    else:
        db.add(Setting(key=key, value=json.dumps(value)))


def default_token_price() -> dict:
    return {
        "price": config.DEFAULT_TOKEN_PRICE,
        "updatedAt": utcnow().isoformat(),
        "updatedBy": "system",
    }


def get_token_price(db: Session) -> dict:
    return _get(db, TOKEN_PRICE_KEY) or default_token_price()


def set_token_price(db: Session, price: float, updated_by: str) -> dict:
    """Overwrite the singleton. Caller commits."""
    try:
        price = float(price)
    except (TypeError, ValueError):
        raise ValidationError("Price must be a number")
    if not math.isfinite(price):
        raise ValidationError("Price must be a finite number")
    if not price > 0:
        raise ValidationError("Price must be > 0")
    record = {"price": price, "updatedAt": utcnow().isoformat(), "updatedBy": updated_by}
    _put(db, TOKEN_PRICE_KEY, record)
    logger.info("Token price set to %s by %s", price, updated_by)
    return record


def is_initialized(db: Session) -> bool:
    return bool(_get(db, INITIALIZED_KEY))


def mark_initialized(db: Session) -> None:
    _put(db, INITIALIZED_KEY, True)


def ensure_token_price(db: Session) -> None:
    if not db.get(Setting, TOKEN_PRICE_KEY):
        _put(db, TOKEN_PRICE_KEY, default_token_price())
