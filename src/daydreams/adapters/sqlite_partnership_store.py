"""SQLite persistence for pal invitations and story partnerships."""

from __future__ import annotations

import json
import sqlite3
from datetime import date, datetime
from pathlib import Path

from daydreams.domain.models import (
    Category,
    InvitationStatus,
    PalInvitation,
    Partnership,
)


def _date_or_none(value: object) -> date | None:
    if value is None:
        return None
    return date.fromisoformat(str(value))


def _iso_or_none(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


class SQLitePartnershipStore:
    """Invitation codes and the partnerships they produce."""

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
                CREATE TABLE IF NOT EXISTS invitations (
                    invitation_id TEXT PRIMARY KEY,
                    from_user_id TEXT NOT NULL,
                    from_user_name TEXT NOT NULL,
                    from_user_email TEXT NOT NULL,
                    to_user_id TEXT,
                    invitation_code TEXT NOT NULL,
                    status TEXT NOT NULL,
                    created_at_utc TEXT NOT NULL,
                    expires_at_utc TEXT NOT NULL
                )
                """
            )
            connection.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS idx_invitations_pending_code
                ON invitations(invitation_code)
                WHERE status = 'pending'
                """
            )
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS partnerships (
                    partnership_id TEXT PRIMARY KEY,
                    user1_id TEXT NOT NULL,
                    user2_id TEXT NOT NULL,
                    created_at_utc TEXT NOT NULL,
                    last_story_date TEXT,
                    next_author_id TEXT,
                    enabled_categories_json TEXT NOT NULL,
                    shared_trip_date TEXT
                )
                """
            )
            connection.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_partnerships_user1
                ON partnerships(user1_id)
                """
            )
            connection.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_partnerships_user2
                ON partnerships(user2_id)
                """
            )

    def create_invitation(self, invitation: PalInvitation) -> PalInvitation | None:
        """Persist an invitation; return None when the code collides with a pending one."""
        try:
            with self._connect() as connection:
                connection.execute(
                    """
                    INSERT INTO invitations (
                        invitation_id, from_user_id, from_user_name, from_user_email,
                        to_user_id, invitation_code, status, created_at_utc, expires_at_utc
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        invitation.invitation_id,
                        invitation.from_user_id,
                        invitation.from_user_name,
                        invitation.from_user_email,
                        invitation.to_user_id,
                        invitation.invitation_code,
                        invitation.status.value,
                        invitation.created_at.isoformat(),
                        invitation.expires_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError:
            return None
        return invitation

    def get_invitation(self, *, invitation_id: str) -> PalInvitation | None:
        with self._connect() as connection:
            row = connection.execute(
                "SELECT * FROM invitations WHERE invitation_id = ?",
                (invitation_id,),
            ).fetchone()
        if row is None:
            return None
        return self._invitation_from_row(row)

    def get_pending_invitation(self, *, invitation_code: str) -> PalInvitation | None:
        with self._connect() as connection:
            row = connection.execute(
                """
                SELECT * FROM invitations
                WHERE invitation_code = ? AND status = ?
                """,
                (invitation_code, InvitationStatus.PENDING.value),
            ).fetchone()
        if row is None:
            return None
        return self._invitation_from_row(row)

    def list_invitations(self, *, from_user_id: str) -> list[PalInvitation]:
        with self._connect() as connection:
            rows = connection.execute(
                """
                SELECT * FROM invitations
                WHERE from_user_id = ?
                ORDER BY created_at_utc DESC
                """,
                (from_user_id,),
            ).fetchall()
        return [self._invitation_from_row(row) for row in rows]

    def list_pending_invitations(self) -> list[PalInvitation]:
        with self._connect() as connection:
            rows = connection.execute(
                "SELECT * FROM invitations WHERE status = ?",
                (InvitationStatus.PENDING.value,),
            ).fetchall()
        return [self._invitation_from_row(row) for row in rows]

    def update_invitation(self, invitation: PalInvitation) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                UPDATE invitations
                SET status = ?, to_user_id = ?
                WHERE invitation_id = ?
                """,
                (invitation.status.value, invitation.to_user_id, invitation.invitation_id),
            )

    def create_partnership(self, partnership: Partnership) -> Partnership:
        with self._connect() as connection:
            connection.execute(
                """
                INSERT INTO partnerships (
                    partnership_id, user1_id, user2_id, created_at_utc, last_story_date,
                    next_author_id, enabled_categories_json, shared_trip_date
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    partnership.partnership_id,
                    partnership.user1_id,
                    partnership.user2_id,
                    partnership.created_at.isoformat(),
                    _iso_or_none(partnership.last_story_date),
                    partnership.next_author_id,
                    self._categories_json(partnership.enabled_categories),
                    _iso_or_none(partnership.shared_trip_date),
                ),
            )
        return partnership

    def get_partnership(self, *, partnership_id: str) -> Partnership | None:
        with self._connect() as connection:
            row = connection.execute(
                "SELECT * FROM partnerships WHERE partnership_id = ?",
                (partnership_id,),
            ).fetchone()
        if row is None:
            return None
        return self._partnership_from_row(row)

    def list_partnerships(self, *, user_id: str) -> list[Partnership]:
        with self._connect() as connection:
            rows = connection.execute(
                """
                SELECT * FROM partnerships
                WHERE user1_id = ? OR user2_id = ?
                ORDER BY created_at_utc DESC
                """,
                (user_id, user_id),
            ).fetchall()
        return [self._partnership_from_row(row) for row in rows]

    def find_partnership(self, *, user_a: str, user_b: str) -> Partnership | None:
        with self._connect() as connection:
            row = connection.execute(
                """
                SELECT * FROM partnerships
                WHERE (user1_id = ? AND user2_id = ?) OR (user1_id = ? AND user2_id = ?)
                """,
                (user_a, user_b, user_b, user_a),
            ).fetchone()
        if row is None:
            return None
        return self._partnership_from_row(row)

    def update_partnership(self, partnership: Partnership) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                UPDATE partnerships
                SET last_story_date = ?, next_author_id = ?, enabled_categories_json = ?,
                    shared_trip_date = ?
                WHERE partnership_id = ?
                """,
                (
                    _iso_or_none(partnership.last_story_date),
                    partnership.next_author_id,
                    self._categories_json(partnership.enabled_categories),
                    _iso_or_none(partnership.shared_trip_date),
                    partnership.partnership_id,
                ),
            )

    def delete_partnership(self, *, partnership_id: str) -> bool:
        with self._connect() as connection:
            cursor = connection.execute(
                "DELETE FROM partnerships WHERE partnership_id = ?",
                (partnership_id,),
            )
            return cursor.rowcount > 0

    @staticmethod
    def _categories_json(categories: tuple[Category, ...]) -> str:
        return json.dumps([category.value for category in categories])

    @staticmethod
    def _invitation_from_row(row: sqlite3.Row) -> PalInvitation:
        to_user_id = row["to_user_id"]
        return PalInvitation(
            invitation_id=str(row["invitation_id"]),
            from_user_id=str(row["from_user_id"]),
            from_user_name=str(row["from_user_name"]),
            from_user_email=str(row["from_user_email"]),
            invitation_code=str(row["invitation_code"]),
            status=InvitationStatus(str(row["status"])),
            created_at=datetime.fromisoformat(str(row["created_at_utc"])),
            expires_at=datetime.fromisoformat(str(row["expires_at_utc"])),
            to_user_id=str(to_user_id) if to_user_id is not None else None,
        )

    @staticmethod
    def _partnership_from_row(row: sqlite3.Row) -> Partnership:
        raw_categories = json.loads(str(row["enabled_categories_json"]))
        categories = tuple(
            Category(value) for value in raw_categories if value in Category._value2member_map_
        )
        next_author_id = row["next_author_id"]
        return Partnership(
            partnership_id=str(row["partnership_id"]),
            user1_id=str(row["user1_id"]),
            user2_id=str(row["user2_id"]),
            created_at=datetime.fromisoformat(str(row["created_at_utc"])),
            last_story_date=_date_or_none(row["last_story_date"]),
            next_author_id=str(next_author_id) if next_author_id is not None else None,
            enabled_categories=categories,
            shared_trip_date=_date_or_none(row["shared_trip_date"]),
        )
