"""Tests for registration, sign-in and system initialization."""
import pytest

from staking_backend import accounts, settings
from staking_backend.errors import AuthError, DuplicateEmailError, ValidationError
from staking_backend.models import Ledger, User

from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD, USER_PASSWORD


def test_initialize_seeds_admin_counter_and_price(db):
    assert accounts.initialize_system(db) is True

    admin = db.get(User, accounts.ADMIN_USER_ID)
    assert admin.role == "admin"
    assert admin.email == ADMIN_EMAIL
    assert db.get(Ledger, "00001").balance == 0
    assert accounts.current_counter(db) == 1
    assert settings.get_token_price(db)["price"] == pytest.approx(0.5)
    assert settings.is_initialized(db)


def test_initialize_is_idempotent(db):
    assert accounts.initialize_system(db) is True
    assert accounts.initialize_system(db) is False
    assert db.query(User).count() == 1


def test_user_ids_are_sequential_after_admin(initialized):
    db = initialized
    a = accounts.sign_up(db, "a@example.com", USER_PASSWORD)
    b = accounts.sign_up(db, "b@example.com", USER_PASSWORD)

    assert (a.user_id, b.user_id) == ("00002", "00003")
    assert a.role == "user"
    assert db.get(Ledger, a.user_id) is not None


def test_signup_without_init_still_reserves_admin_id(db):
    user = accounts.sign_up(db, "early@example.com", USER_PASSWORD)
    assert user.user_id == "00002"


def test_duplicate_email_creates_nothing(initialized):
    db = initialized
    accounts.sign_up(db, "dup@example.com", USER_PASSWORD)
    users_before = db.query(User).count()
    counter_before = accounts.current_counter(db)

    with pytest.raises(DuplicateEmailError):
        accounts.sign_up(db, "DUP@example.com", USER_PASSWORD)

    assert db.query(User).count() == users_before
    assert accounts.current_counter(db) == counter_before


def test_password_is_hashed(initialized):
    user = accounts.sign_up(initialized, "hash@example.com", USER_PASSWORD)
    assert user.password_hash != USER_PASSWORD
    assert accounts.verify_password(USER_PASSWORD, user.password_hash)


@pytest.mark.parametrize("password", ["Short1", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere"])
def test_weak_passwords_rejected(initialized, password):
    with pytest.raises(ValidationError):
        accounts.sign_up(initialized, "weak@example.com", password)


def test_invalid_email_rejected(initialized):
    with pytest.raises(ValidationError):
        accounts.sign_up(initialized, "not-an-email", USER_PASSWORD)


def test_sign_in(initialized):
    db = initialized
    accounts.sign_up(db, "login@example.com", USER_PASSWORD)

    assert accounts.sign_in(db, "login@example.com", USER_PASSWORD).user_id == "00002"
    assert accounts.sign_in(db, ADMIN_EMAIL, ADMIN_PASSWORD).role == "admin"

    with pytest.raises(AuthError):
        accounts.sign_in(db, "login@example.com", "Wrong1234")
    with pytest.raises(AuthError):
        accounts.sign_in(db, "nobody@example.com", USER_PASSWORD)
