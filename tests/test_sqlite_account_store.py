from __future__ import annotations

import sqlite3
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from daydreams.adapters.sqlite_account_store import SQLiteAccountStore

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


def _store(tmp_path: Path) -> SQLiteAccountStore:
    return SQLiteAccountStore(db_path=tmp_path / "daydreams.db")


def test_accounts_are_unique_by_lowercase_email(tmp_path: Path) -> None:
    store = _store(tmp_path)
    account = store.create_account(email="Jon@Example.com", display_name="Jon", password_hash="h")
    assert account is not None
    assert account.email == "jon@example.com"
    assert store.find_account(email="JON@example.com ") == account
    assert store.find_account(user_id=account.user_id) == account
    assert store.find_account(user_id="missing") is None
    duplicate = store.create_account(email="jon@example.com", display_name="J", password_hash="h")
    assert duplicate is None
    with pytest.raises(ValueError):
        store.find_account()


def test_sessions_expire_close_and_store_only_digests(tmp_path: Path) -> None:
    store = _store(tmp_path)
    account = store.create_account(email="jon@example.com", display_name="Jon", password_hash="h")
    assert account is not None
    short = store.open_session(user_id=account.user_id, ttl=timedelta(minutes=5), now=NOW)
    long = store.open_session(user_id=account.user_id, ttl=timedelta(hours=24), now=NOW)

    assert store.account_for_session(token=long.token, now=NOW) == account
    assert store.account_for_session(token="not-a-token", now=NOW) is None
    later = NOW + timedelta(hours=1)
    assert store.account_for_session(token=short.token, now=later) is None
    assert store.account_for_session(token=long.token, now=later) == account

    with sqlite3.connect(tmp_path / "daydreams.db") as connection:
        digests = [row[0] for row in connection.execute("SELECT token_digest FROM sessions")]
    assert long.token not in digests

    assert store.prune_sessions(now=later) == 1
    assert store.close_sessions(user_id=account.user_id) == 1
    assert store.account_for_session(token=long.token, now=NOW) is None


def test_device_token_is_replaced_per_account(tmp_path: Path) -> None:
    store = _store(tmp_path)
    account = store.create_account(email="jon@example.com", display_name="Jon", password_hash="h")
    assert account is not None
    assert store.device_token_for(account.user_id) is None
    assert store.set_device_token(user_id=account.user_id, device_token="first") is True
    assert store.set_device_token(user_id=account.user_id, device_token="second") is True
    assert store.device_token_for(account.user_id) == "second"
    assert store.device_token_for("missing") is None
    assert store.set_device_token(user_id="missing", device_token="x") is False
