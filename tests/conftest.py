"""
Shared pytest fixtures.

DATABASE_URL must exist before staking_backend is imported, so it is set
at module import time, pointing at a throwaway SQLite file.
"""
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="staking-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("ADMIN_PASSWORD", "Admin#Pass123")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from staking_backend import accounts, admin, request_queue  # noqa: E402
from staking_backend.db import Base, SessionLocal, engine  # noqa: E402
from staking_backend.models import Ledger, Stake  # noqa: E402

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]
USER_PASSWORD = "Secret123"


@pytest.fixture(autouse=True)
def fresh_schema():
    """Recreate every table so each test starts from an empty store."""
    from staking_backend import models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def initialized(db):
    accounts.initialize_system(db)
    return db


@pytest.fixture
def make_user(initialized):
    """Factory: register a user, optionally funding the balance."""
    db = initialized
    counter = {"n": 0}

    def _make(balance: float = 0.0, email: str = None):
        counter["n"] += 1
        user = accounts.sign_up(db, email or f"user{counter['n']}@example.com", USER_PASSWORD)
        if balance:
            admin.admin_credit(db, user.user_id, balance)
        return user

    return _make


@pytest.fixture
def ledger_of(db):
    def _read(user_id: str) -> Ledger:
        db.expire_all()
        return db.get(Ledger, user_id)

    return _read


@pytest.fixture
def open_stake(db, make_user):
    """Factory: user with an approved stake. Returns (user, stake)."""
    def _open(amount: float = 1000.0, pool_type: str = "30-day", extra_balance: float = 0.0):
        user = make_user(balance=amount + extra_balance)
        req = request_queue.create_staking_request(db, user, "stake", amount, pool_type)
        req = admin.approve_staking(db, req.id)
        return user, db.get(Stake, req.stake_id)

    return _open


@pytest.fixture
def client():
    from staking_backend.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def login(client):
    """Sign in over HTTP and return bearer headers (cookie jar is cleared)."""
    def _login(email: str, password: str = USER_PASSWORD) -> dict:
        resp = client.post("/auth/signin", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login


@pytest.fixture
def admin_headers(client, login):
    assert client.post("/init").status_code == 200
    return login(ADMIN_EMAIL, ADMIN_PASSWORD)
