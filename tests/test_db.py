"""Tests for DATABASE_URL normalisation and the unit_of_work transaction."""
import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from staking_backend import ledger
from staking_backend.db import _normalize_db_url, unit_of_work
from staking_backend.errors import StorageError, ValidationError


class TestNormalizeDbUrl:

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_missing_url_is_fatal(self, raw):
        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            _normalize_db_url(raw)

    def test_heroku_style_scheme_gets_psycopg_driver_and_ssl(self):
        url = _normalize_db_url("postgres://u:p@db.host/x")
        assert url == "postgresql+psycopg://u:p@db.host/x?sslmode=require"

    def test_existing_query_string_is_extended(self):
        url = _normalize_db_url("postgresql://u:p@db.host/x?application_name=staking")
        assert url == "postgresql+psycopg://u:p@db.host/x?application_name=staking&sslmode=require"

    @pytest.mark.parametrize("host", ["localhost", "127.0.0.1"])
    def test_local_postgres_has_no_sslmode(self, host):
        url = _normalize_db_url(f"postgresql://u:p@{host}:5432/x")
        assert url == f"postgresql+psycopg://u:p@{host}:5432/x"

    def test_explicit_sslmode_is_kept(self):
        url = _normalize_db_url("postgresql+psycopg://u:p@db.host/x?sslmode=disable")
        assert url == "postgresql+psycopg://u:p@db.host/x?sslmode=disable"

    def test_sqlite_is_untouched(self):
        assert _normalize_db_url(" sqlite:///./local.db ") == "sqlite:///./local.db"


class TestUnitOfWork:

    def test_commits_on_success(self, db, make_user, ledger_of):
        user = make_user()
        with unit_of_work(db):
            ledger.credit(db, user.user_id, 7)
        assert ledger_of(user.user_id).balance == pytest.approx(7)

    def test_driver_error_rolls_back_as_storage_error(self, db, make_user, ledger_of):
        user = make_user(balance=10)

        with pytest.raises(StorageError, match="Storage unavailable") as info:
            with unit_of_work(db):
                ledger.credit(db, user.user_id, 90)
                ledger.record_transaction(db, user.user_id, "deposit", 90, "never lands")
                raise OperationalError("UPDATE ledgers", {}, Exception("connection lost"))

        assert info.value.status_code == 500
        assert isinstance(info.value.__cause__, SQLAlchemyError)
        assert ledger_of(user.user_id).balance == pytest.approx(10)
        assert [tx.description for tx in ledger.list_transactions(db, user.user_id)] == ["Admin manual credit"]

    def test_domain_error_propagates_unchanged(self, db, make_user, ledger_of):
        user = make_user(balance=10)

        with pytest.raises(ValidationError):
            with unit_of_work(db):
                ledger.credit(db, user.user_id, 5)
                raise ValidationError("nope")

        assert ledger_of(user.user_id).balance == pytest.approx(10)
