"""SQLite persistence for shared daily prompts and their per-user mirrors."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import UTC, date, datetime
from pathlib import Path

from daydreams.domain.models import Category, DaydreamStory, StoryAuthor

logger = logging.getLogger(__name__)

_STORY_COLUMNS = "story_id, date_assigned, items_json, author, story_text"


def _items_json(items: dict[Category, str]) -> str:
    return json.dumps(
        {category.value: value for category, value in items.items()},
        ensure_ascii=False,
        sort_keys=True,
    )


def _items_from_json(raw: str) -> dict[Category, str]:
    payload = json.loads(raw)
    if not isinstance(payload, dict):
        return {}
    items: dict[Category, str] = {}
    for key, value in payload.items():
        if key in Category._value2member_map_:
            items[Category(key)] = str(value)
    return items


class SQLiteDaydreamStore:
    """Shared records keyed by partnership, plus history and favorites copies per user.

    The shared table holds at most one record per partnership per calendar day.
    """

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
                CREATE TABLE IF NOT EXISTS shared_stories (
                    story_id TEXT PRIMARY KEY,
                    partnership_id TEXT NOT NULL,
                    date_assigned TEXT NOT NULL,
                    items_json TEXT NOT NULL,
                    author TEXT NOT NULL,
                    story_text TEXT,
                    created_at_utc TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL,
                    UNIQUE (partnership_id, date_assigned)
                )
                """
            )
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS history (
                    user_id TEXT NOT NULL,
                    story_id TEXT NOT NULL,
                    partnership_id TEXT NOT NULL,
                    date_assigned TEXT NOT NULL,
                    items_json TEXT NOT NULL,
                    author TEXT NOT NULL,
                    story_text TEXT,
                    is_favorite INTEGER NOT NULL DEFAULT 0,
                    updated_at_utc TEXT NOT NULL,
                    PRIMARY KEY (user_id, story_id)
                )
                """
            )
            connection.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_history_user_partnership_date
                ON history(user_id, partnership_id, date_assigned DESC)
                """
            )
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS favorites (
                    user_id TEXT NOT NULL,
                    story_id TEXT NOT NULL,
                    partnership_id TEXT NOT NULL,
                    date_assigned TEXT NOT NULL,
                    items_json TEXT NOT NULL,
                    author TEXT NOT NULL,
                    story_text TEXT,
                    favorited_at_utc TEXT NOT NULL,
                    PRIMARY KEY (user_id, story_id)
                )
                """
            )
            connection.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_favorites_user_date
                ON favorites(user_id, date_assigned DESC)
                """
            )

    def get_shared_story_for_day(
        self, *, partnership_id: str, day: date
    ) -> DaydreamStory | None:
        with self._connect() as connection:
            row = connection.execute(
                f"""
                SELECT {_STORY_COLUMNS}
                FROM shared_stories
                WHERE partnership_id = ? AND date_assigned = ?
                """,
                (partnership_id, day.isoformat()),
            ).fetchone()
        if row is None:
            return None
        return self._story_from_row(row)

    def get_shared_story(self, *, partnership_id: str, story_id: str) -> DaydreamStory | None:
        with self._connect() as connection:
            row = connection.execute(
                f"""
                SELECT {_STORY_COLUMNS}
                FROM shared_stories
                WHERE partnership_id = ? AND story_id = ?
                """,
                (partnership_id, story_id),
            ).fetchone()
        if row is None:
            return None
        return self._story_from_row(row)

    def latest_shared_story(
        self, *, partnership_id: str, before: date | None = None
    ) -> DaydreamStory | None:
        """Return the most recently dated shared record, used to derive the next turn."""
        cutoff = before.isoformat() if before is not None else "9999-12-31"
        with self._connect() as connection:
            row = connection.execute(
                f"""
                SELECT {_STORY_COLUMNS}
                FROM shared_stories
                WHERE partnership_id = ? AND date_assigned < ?
                ORDER BY date_assigned DESC, created_at_utc DESC
                LIMIT 1
                """,
                (partnership_id, cutoff),
            ).fetchone()
        if row is None:
            return None
        return self._story_from_row(row)

    def list_shared_stories(self, *, partnership_id: str, limit: int = 100) -> list[DaydreamStory]:
        with self._connect() as connection:
            rows = connection.execute(
                f"""
                SELECT {_STORY_COLUMNS}
                FROM shared_stories
                WHERE partnership_id = ?
                ORDER BY date_assigned DESC
                LIMIT ?
                """,
                (partnership_id, limit),
            ).fetchall()
        return [self._story_from_row(row) for row in rows]

    def insert_shared_story_if_absent(
        self, *, partnership_id: str, story: DaydreamStory
    ) -> tuple[DaydreamStory, bool]:
        """Insert the day's record unless one exists; return (winner, inserted)."""
        now = datetime.now(UTC).isoformat()
        try:
            with self._connect() as connection:
                connection.execute(
                    """
                    INSERT INTO shared_stories (
                        story_id, partnership_id, date_assigned, items_json, author,
                        story_text, created_at_utc, updated_at_utc
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        story.story_id,
                        partnership_id,
                        story.date_assigned.isoformat(),
                        _items_json(story.items),
                        story.assigned_author.value,
                        story.story_text,
                        now,
                        now,
                    ),
                )
        except sqlite3.IntegrityError:
            existing = self.get_shared_story_for_day(
                partnership_id=partnership_id, day=story.date_assigned
            )
            if existing is None:
                raise
            logger.info(
                "shared_story.insert_conflict partnership_id=%s day=%s winner=%s",
                partnership_id,
                story.date_assigned.isoformat(),
                existing.story_id,
            )
            return existing, False
        return story, True

    def replace_shared_story_for_day(
        self, *, partnership_id: str, story: DaydreamStory
    ) -> DaydreamStory:
        """Swap the day's shared record for a freshly drawn one.

        History and favorites copies of the replaced record go in the same transaction.
        """
        now = datetime.now(UTC).isoformat()
        day = story.date_assigned.isoformat()
        with self._connect() as connection:
            replaced = connection.execute(
                "SELECT story_id FROM shared_stories"
                " WHERE partnership_id = ? AND date_assigned = ?",
                (partnership_id, day),
            ).fetchone()
            if replaced is not None:
                old_story_id = str(replaced["story_id"])
                for table in ("history", "favorites"):
                    connection.execute(
                        f"DELETE FROM {table} WHERE partnership_id = ? AND story_id = ?",
                        (partnership_id, old_story_id),
                    )
                connection.execute(
                    "DELETE FROM shared_stories WHERE story_id = ?", (old_story_id,)
                )
                logger.info(
                    "shared_story.replaced partnership_id=%s day=%s old=%s new=%s",
                    partnership_id,
                    day,
                    old_story_id,
                    story.story_id,
                )
            connection.execute(
                """
                INSERT INTO shared_stories (
                    story_id, partnership_id, date_assigned, items_json, author,
                    story_text, created_at_utc, updated_at_utc
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    story.story_id,
                    partnership_id,
                    story.date_assigned.isoformat(),
                    _items_json(story.items),
                    story.assigned_author.value,
                    story.story_text,
                    now,
                    now,
                ),
            )
        return story

    def apply_mirror_update(
        self,
        *,
        partnership_id: str,
        story: DaydreamStory,
        history_user_ids: tuple[str, ...],
        favorite_user_id: str | None = None,
        favorite: bool | None = None,
        update_shared: bool = True,
    ) -> list[str]:
        """Write the shared record, history copies, and favorites copy in one transaction.

        Returns the list of locations touched. Any failure rolls back every write.
        """
        now = datetime.now(UTC).isoformat()
        items_json = _items_json(story.items)
        touched: list[str] = []
        with self._connect() as connection:
            if update_shared:
                cursor = connection.execute(
                    """
                    UPDATE shared_stories
                    SET story_text = ?, updated_at_utc = ?
                    WHERE partnership_id = ? AND story_id = ?
                    """,
                    (story.story_text, now, partnership_id, story.story_id),
                )
                if cursor.rowcount == 0:
                    raise LookupError(f"Shared story {story.story_id} not found")
                touched.append("shared")
            for user_id in history_user_ids:
                connection.execute(
                    """
                    INSERT INTO history (
                        user_id, story_id, partnership_id, date_assigned, items_json,
                        author, story_text, is_favorite, updated_at_utc
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?)
                    ON CONFLICT (user_id, story_id) DO UPDATE SET
                        story_text = excluded.story_text,
                        updated_at_utc = excluded.updated_at_utc
                    """,
                    (
                        user_id,
                        story.story_id,
                        partnership_id,
                        story.date_assigned.isoformat(),
                        items_json,
                        story.assigned_author.value,
                        story.story_text,
                        now,
                    ),
                )
                touched.append(f"history:{user_id}")
            if update_shared:
                cursor = connection.execute(
                    """
                    UPDATE favorites SET story_text = ?
                    WHERE story_id = ?
                    """,
                    (story.story_text, story.story_id),
                )
                if cursor.rowcount:
                    touched.append("favorites:text")
            if favorite_user_id is not None and favorite is not None:
                if favorite:
                    connection.execute(
                        """
                        INSERT INTO favorites (
                            user_id, story_id, partnership_id, date_assigned, items_json,
                            author, story_text, favorited_at_utc
                        )
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                        ON CONFLICT (user_id, story_id) DO NOTHING
                        """,
                        (
                            favorite_user_id,
                            story.story_id,
                            partnership_id,
                            story.date_assigned.isoformat(),
                            items_json,
                            story.assigned_author.value,
                            story.story_text,
                            now,
                        ),
                    )
                else:
                    connection.execute(
                        "DELETE FROM favorites WHERE user_id = ? AND story_id = ?",
                        (favorite_user_id, story.story_id),
                    )
                connection.execute(
                    """
                    UPDATE history SET is_favorite = ?
                    WHERE user_id = ? AND story_id = ?
                    """,
                    (1 if favorite else 0, favorite_user_id, story.story_id),
                )
                touched.append(f"favorites:{favorite_user_id}")
        return touched

    def list_history(self, *, user_id: str, partnership_id: str) -> list[DaydreamStory]:
        with self._connect() as connection:
            rows = connection.execute(
                f"""
                SELECT {_STORY_COLUMNS}, is_favorite
                FROM history
                WHERE user_id = ? AND partnership_id = ?
                ORDER BY date_assigned DESC, updated_at_utc DESC
                """,
                (user_id, partnership_id),
            ).fetchall()
        return [self._story_from_row(row, is_favorite=bool(row["is_favorite"])) for row in rows]

    def list_favorites(self, *, user_id: str) -> list[DaydreamStory]:
        with self._connect() as connection:
            rows = connection.execute(
                f"""
                SELECT {_STORY_COLUMNS}
                FROM favorites
                WHERE user_id = ?
                ORDER BY date_assigned DESC, favorited_at_utc DESC
                """,
                (user_id,),
            ).fetchall()
        return [self._story_from_row(row, is_favorite=True) for row in rows]

    def is_favorite(self, *, user_id: str, story_id: str) -> bool:
        with self._connect() as connection:
            row = connection.execute(
                "SELECT 1 FROM favorites WHERE user_id = ? AND story_id = ?",
                (user_id, story_id),
            ).fetchone()
        return row is not None

    def clear_history(
        self, *, user_id: str, partnership_id: str, keep_day: date | None = None
    ) -> int:
        """Bulk-delete one user's history copies, optionally keeping one day."""
        with self._connect() as connection:
            if keep_day is None:
                cursor = connection.execute(
                    "DELETE FROM history WHERE user_id = ? AND partnership_id = ?",
                    (user_id, partnership_id),
                )
            else:
                cursor = connection.execute(
                    """
                    DELETE FROM history
                    WHERE user_id = ? AND partnership_id = ? AND date_assigned != ?
                    """,
                    (user_id, partnership_id, keep_day.isoformat()),
                )
            return cursor.rowcount

    @staticmethod
    def _story_from_row(row: sqlite3.Row, *, is_favorite: bool = False) -> DaydreamStory:
        story_text = row["story_text"]
        return DaydreamStory(
            story_id=str(row["story_id"]),
            date_assigned=date.fromisoformat(str(row["date_assigned"])),
            items=_items_from_json(str(row["items_json"])),
            assigned_author=StoryAuthor(str(row["author"])),
            story_text=str(story_text) if story_text is not None else None,
            is_favorite=is_favorite,
        )
