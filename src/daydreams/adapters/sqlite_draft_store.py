"""SQLite persistence for unsaved story drafts."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from daydreams.domain.models import StoryDraft


class SQLiteDraftStore:
    """One draft per user per story, last write wins."""

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
                CREATE TABLE IF NOT EXISTS drafts (
                    user_id TEXT NOT NULL,
                    story_id TEXT NOT NULL,
                    text TEXT NOT NULL,
                    saved_at_utc TEXT NOT NULL,
                    PRIMARY KEY (user_id, story_id)
                )
                """
            )

    def save_draft(self, draft: StoryDraft) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                INSERT INTO drafts (user_id, story_id, text, saved_at_utc)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (user_id, story_id) DO UPDATE SET
                    text = excluded.text,
                    saved_at_utc = excluded.saved_at_utc
                """,
                (draft.user_id, draft.story_id, draft.text, draft.saved_at.isoformat()),
            )

    def get_draft(self, *, user_id: str, story_id: str) -> StoryDraft | None:
        with self._connect() as connection:
            row = connection.execute(
                """
                SELECT user_id, story_id, text, saved_at_utc
                FROM drafts
                WHERE user_id = ? AND story_id = ?
                """,
                (user_id, story_id),
            ).fetchone()
        if row is None:
            return None
        return StoryDraft(
            user_id=str(row["user_id"]),
            story_id=str(row["story_id"]),
            text=str(row["text"]),
            saved_at=datetime.fromisoformat(str(row["saved_at_utc"])),
        )

    def delete_draft(self, *, user_id: str, story_id: str) -> bool:
        with self._connect() as connection:
            cursor = connection.execute(
                "DELETE FROM drafts WHERE user_id = ? AND story_id = ?",
                (user_id, story_id),
            )
            return cursor.rowcount > 0

    def delete_drafts_before(self, *, cutoff: datetime) -> int:
        with self._connect() as connection:
            cursor = connection.execute(
                "DELETE FROM drafts WHERE saved_at_utc < ?",
                (cutoff.isoformat(),),
            )
            return cursor.rowcount
