"""SQLite persistence for member accounts, their device, and sign-in sessions."""

from __future__ import annotations

import hashlib
import secrets
import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

_ACCOUNT_COLUMNS = (
    "a.user_id, a.email, a.display_name, a.password_hash, a.device_token, a.created_at_utc"
)


def _digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class Account:
    """A signed-up member and the device that receives their pushes."""

    user_id: str
    email: str
    display_name: str
    password_hash: str
    created_at: datetime
    device_token: str | None = None


@dataclass(frozen=True)
class Session:
    """A bearer token handed to a client; only its digest is stored."""

    token: str
    user_id: str
    expires_at: datetime


class SQLiteAccountStore:
    """Accounts keyed by lowercase email, plus hashed bearer sessions."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_schema()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(str(self._db_path))
        connection.row_factory = sqlite3.Row
        return connection

    def _initialize_schema(self) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    user_id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    display_name TEXT NOT NULL,
                    password_hash TEXT NOT NULL,
                    device_token TEXT,
                    created_at_utc TEXT NOT NULL
                )
                """
            )
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    token_digest TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL REFERENCES accounts(user_id),
                    expires_at_utc TEXT NOT NULL
                )
                """
            )
            connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_sessions_user ON sessions(user_id)"
            )

    def create_account(
        self, *, email: str, display_name: str, password_hash: str
    ) -> Account | None:
        """Insert a new account; None means the email is already registered."""
        account = Account(
            user_id=uuid4().hex,
            email=email.strip().lower(),
            display_name=display_name,
            password_hash=password_hash,
            created_at=datetime.now(UTC),
        )
        try:
            with self._connect() as connection:
                connection.execute(
                    """
                    INSERT INTO accounts (
                        user_id, email, display_name, password_hash, created_at_utc
                    )
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        account.user_id,
                        account.email,
                        account.display_name,
                        account.password_hash,
                        account.created_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError:
            return None
        return account

    def find_account(
        self, *, email: str | None = None, user_id: str | None = None
    ) -> Account | None:
        if (email is None) == (user_id is None):
            raise ValueError("Pass exactly one of email or user_id")
        if email is not None:
            column, value = "email", email.strip().lower()
        else:
            column, value = "user_id", user_id
        with self._connect() as connection:
            row = connection.execute(
                f"SELECT {_ACCOUNT_COLUMNS} FROM accounts a WHERE a.{column} = ?",
                (value,),
            ).fetchone()
        return self._account_from_row(row) if row is not None else None

    def open_session(self, *, user_id: str, ttl: timedelta, now: datetime) -> Session:
        session = Session(token=secrets.token_urlsafe(32), user_id=user_id, expires_at=now + ttl)
        with self._connect() as connection:
            connection.execute(
                "INSERT INTO sessions (token_digest, user_id, expires_at_utc) VALUES (?, ?, ?)",
                (_digest(session.token), user_id, session.expires_at.astimezone(UTC).isoformat()),
            )
        return session

    def account_for_session(self, *, token: str, now: datetime) -> Account | None:
        """Resolve an unexpired bearer token to its account."""
        with self._connect() as connection:
            row = connection.execute(
                f"""
                SELECT {_ACCOUNT_COLUMNS}
                FROM sessions s
                JOIN accounts a ON a.user_id = s.user_id
                WHERE s.token_digest = ? AND s.expires_at_utc > ?
                """,
                (_digest(token), now.astimezone(UTC).isoformat()),
            ).fetchone()
        return self._account_from_row(row) if row is not None else None

    def close_sessions(self, *, user_id: str) -> int:
        with self._connect() as connection:
            return connection.execute(
                "DELETE FROM sessions WHERE user_id = ?", (user_id,)
            ).rowcount

    def prune_sessions(self, *, now: datetime) -> int:
        with self._connect() as connection:
            return connection.execute(
                "DELETE FROM sessions WHERE expires_at_utc <= ?",
                (now.astimezone(UTC).isoformat(),),
            ).rowcount

    def set_device_token(self, *, user_id: str, device_token: str | None) -> bool:
        with self._connect() as connection:
            cursor = connection.execute(
                "UPDATE accounts SET device_token = ? WHERE user_id = ?",
                (device_token, user_id),
            )
            return cursor.rowcount > 0

    def device_token_for(self, user_id: str) -> str | None:
        """Push token lookup used by the push gateway."""
        account = self.find_account(user_id=user_id)
        return account.device_token if account is not None else None

    @staticmethod
    def _account_from_row(row: sqlite3.Row) -> Account:
        return Account(
            user_id=str(row["user_id"]),
            email=str(row["email"]),
            display_name=str(row["display_name"]),
            password_hash=str(row["password_hash"]),
            created_at=datetime.fromisoformat(str(row["created_at_utc"])),
            device_token=str(row["device_token"]) if row["device_token"] else None,
        )
