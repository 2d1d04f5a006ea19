# staking_backend/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

# ─────────────────────────────────────────────────────────────────────────────
# Env loading
# ─────────────────────────────────────────────────────────────────────────────

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(dotenv_path=BASE_DIR / ".env")


def _truthy(name: str) -> bool:
    v = os.getenv(name, "")
    return v not in ("", "0", "false", "False", "no", "No")


# Required. db.py refuses to start without it.
DATABASE_URL = os.getenv("DATABASE_URL", "")

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret")
JWT_ALG = "HS256"
# default ~30 days (in minutes)
JWT_EXPIRE_MIN = int(os.getenv("JWT_EXPIRE_MIN", "43200"))

# Seed account created by /init as user 00001
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")
# Preferred over ADMIN_PASSWORD: a bcrypt hash string
ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH", "")

DEFAULT_TOKEN_PRICE = float(os.getenv("DEFAULT_TOKEN_PRICE", "0.5"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

IS_PROD = (
    _truthy("RENDER")
    or bool(os.getenv("RENDER_EXTERNAL_URL"))
    or os.getenv("ENV", "").lower() in {"prod", "production"}
    or _truthy("FORCE_CROSS_SITE_COOKIES")
)


def cookie_kwargs() -> dict:
    if IS_PROD:
        return dict(httponly=True, samesite="none", secure=True, path="/", max_age=JWT_EXPIRE_MIN * 60)
    else:
        return dict(httponly=True, samesite="lax", secure=False, path="/", max_age=JWT_EXPIRE_MIN * 60)
