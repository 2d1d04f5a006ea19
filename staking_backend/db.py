# staking_backend/db.py
import logging
from contextlib import contextmanager
from typing import Generator, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from .config import DATABASE_URL as RAW_DATABASE_URL
from .errors import StakingError, StorageError

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Build & normalize DATABASE_URL
#   - Accepts postgres:// or postgresql://; converts to postgresql+psycopg://
#   - Appends ?sslmode=require for non-local connections if not present
# -----------------------------------------------------------------------------

def _normalize_db_url(raw: Optional[str]) -> str:
    db_url = (raw or "").strip()

    if not db_url:
        raise RuntimeError("DATABASE_URL environment variable is not set")

    # Normalize scheme: postgres://  -> postgresql://
    db_url = db_url.replace("postgres://", "postgresql://", 1)

    # Ensure psycopg (v3) driver is used unless user already specified a driver
    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+psycopg://", 1)

    # Hosted providers (Render/Neon/RDS/etc.) require SSL. Add if missing.
    if (
        db_url.startswith("postgresql")
        and "localhost" not in db_url
        and "127.0.0.1" not in db_url
        and "sslmode=" not in db_url
    ):
        db_url += ("&" if "?" in db_url else "?") + "sslmode=require"

    return db_url


DATABASE_URL = _normalize_db_url(RAW_DATABASE_URL)

# -----------------------------------------------------------------------------
# SQLAlchemy setup
# -----------------------------------------------------------------------------

_connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    _connect_args = {"check_same_thread": False}  # needed for SQLite + threads

engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args,
    pool_pre_ping=True,   # drop dead connections before issuing queries
    future=True,          # 2.0-style engine
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a DB session and ensures close."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create tables if they don't exist yet."""
    from . import models  # noqa: F401  ensure models are registered
    Base.metadata.create_all(bind=engine)


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Commit everything done inside the block as one transaction.

    Domain errors roll back and propagate unchanged; driver errors roll back
    and surface as StorageError.
    """
    try:
        yield db
        db.commit()
    except StakingError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Storage failure, transaction rolled back")
        raise StorageError("Storage unavailable") from e
