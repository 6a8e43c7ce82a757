from __future__ import annotations

import asyncio
import random
import sqlite3
from dataclasses import replace
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

import pytest

from daydreams.adapters.sqlite_daydream_store import SQLiteDaydreamStore
from daydreams.adapters.sqlite_partnership_store import SQLitePartnershipStore
from daydreams.application.daily_prompt import DailyPromptCoordinator, PromptState
from daydreams.application.errors import (
    NotAMemberError,
    PartnershipNotFoundError,
    PromptPersistError,
)
from daydreams.domain.models import (
    DEFAULT_CATEGORIES,
    Category,
    DaydreamStory,
    Partnership,
    StoryAuthor,
    new_story,
)

DAY = date(2026, 7, 4)


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def notify(
        self, *, user_id: str, title: str, body: str, data: dict[str, str] | None = None
    ) -> bool:
        self.sent.append((user_id, title, body))
        return True


class StaleReadStore(SQLiteDaydreamStore):
    """Misses today's record on the first read, like a second process racing the first."""

    def __init__(self, db_path: Path) -> None:
        super().__init__(db_path)
        self.stale_reads = 1

    def get_shared_story_for_day(self, *, partnership_id: str, day: date) -> DaydreamStory | None:
        if self.stale_reads:
            self.stale_reads -= 1
            return None
        return super().get_shared_story_for_day(partnership_id=partnership_id, day=day)


class FlakyStore(SQLiteDaydreamStore):
    def __init__(self, db_path: Path) -> None:
        super().__init__(db_path)
        self.failures = 1

    def insert_shared_story_if_absent(
        self, *, partnership_id: str, story: DaydreamStory
    ) -> tuple[DaydreamStory, bool]:
        if self.failures:
            self.failures -= 1
            raise sqlite3.OperationalError("disk I/O error")
        return super().insert_shared_story_if_absent(partnership_id=partnership_id, story=story)


def _partnerships(db_path: Path) -> SQLitePartnershipStore:
    store = SQLitePartnershipStore(db_path=db_path)
    store.create_partnership(
        Partnership(
            partnership_id="p1",
            user1_id="inviter",
            user2_id="invitee",
            created_at=datetime(2026, 7, 1, tzinfo=UTC),
            next_author_id="inviter",
        )
    )
    return store


def _coordinator(
    tmp_path: Path, stories: SQLiteDaydreamStore | None = None
) -> tuple[DailyPromptCoordinator, SQLiteDaydreamStore, SQLitePartnershipStore, RecordingNotifier]:
    db_path = tmp_path / "daydreams.db"
    partnerships = _partnerships(db_path)
    story_store = stories or SQLiteDaydreamStore(db_path=db_path)
    notifier = RecordingNotifier()
    coordinator = DailyPromptCoordinator(
        stories=story_store,
        partnerships=partnerships,
        notifier=notifier,
        rng=random.Random(5),
    )
    return coordinator, story_store, partnerships, notifier


def test_get_or_create_today_is_idempotent(tmp_path: Path) -> None:
    coordinator, stories, partnerships, notifier = _coordinator(tmp_path)
    assert asyncio.run(coordinator.current_state("p1", DAY)) is PromptState.NO_PROMPT_TODAY

    first = asyncio.run(coordinator.get_or_create_today("p1", DAY, requested_by="inviter"))
    second = asyncio.run(coordinator.get_or_create_today("p1", DAY, requested_by="invitee"))

    assert first.created is True
    assert second.created is False
    assert first.state is second.state is PromptState.PROMPT_PERSISTED
    assert second.story == first.story
    assert first.story.assigned_author is StoryAuthor.USER
    assert set(first.story.items) == set(DEFAULT_CATEGORIES)
    assert asyncio.run(coordinator.current_state("p1", DAY)) is PromptState.PROMPT_PERSISTED

    assert notifier.sent == [
        ("invitee", "New Disney Daydream! ✨", "It's Jon's turn to write today's story!")
    ]
    updated = partnerships.get_partnership(partnership_id="p1")
    assert updated is not None
    assert updated.last_story_date == DAY
    assert updated.next_author_id == "invitee"
    for user_id in ("inviter", "invitee"):
        history = stories.list_history(user_id=user_id, partnership_id="p1")
        assert [item.story_id for item in history] == [first.story.story_id]


def test_turns_alternate_across_days(tmp_path: Path) -> None:
    coordinator, _, _, _ = _coordinator(tmp_path)
    authors = [
        asyncio.run(coordinator.get_or_create_today("p1", DAY + timedelta(days=offset)))
        .story.assigned_author
        for offset in range(3)
    ]
    assert authors == [StoryAuthor.USER, StoryAuthor.PARTNER, StoryAuthor.USER]


def test_concurrent_requests_share_one_record(tmp_path: Path) -> None:
    coordinator, _, _, notifier = _coordinator(tmp_path)

    async def both() -> list:
        return list(
            await asyncio.gather(
                coordinator.get_or_create_today("p1", DAY, requested_by="inviter"),
                coordinator.get_or_create_today("p1", DAY, requested_by="invitee"),
            )
        )

    results = asyncio.run(both())
    assert results[0].story == results[1].story
    assert sorted(result.created for result in results) == [False, True]
    assert len(notifier.sent) == 1


def test_losing_writer_returns_the_stored_record(tmp_path: Path) -> None:
    db_path = tmp_path / "daydreams.db"
    winner = new_story(day=DAY, items={Category.PARK: "Epcot"}, author=StoryAuthor.USER)
    SQLiteDaydreamStore(db_path=db_path).insert_shared_story_if_absent(
        partnership_id="p1", story=winner
    )
    coordinator, _, partnerships, notifier = _coordinator(
        tmp_path, stories=StaleReadStore(db_path=db_path)
    )

    result = asyncio.run(coordinator.get_or_create_today("p1", DAY))

    assert result.created is False
    assert result.story == winner
    assert notifier.sent == []
    stored = partnerships.get_partnership(partnership_id="p1")
    assert stored is not None
    assert stored.last_story_date is None


def test_persist_failure_raises_and_next_call_tries_again(tmp_path: Path) -> None:
    db_path = tmp_path / "daydreams.db"
    flaky = FlakyStore(db_path=db_path)
    coordinator, _, _, notifier = _coordinator(tmp_path, stories=flaky)

    with pytest.raises(PromptPersistError):
        asyncio.run(coordinator.get_or_create_today("p1", DAY))
    assert flaky.get_shared_story_for_day(partnership_id="p1", day=DAY) is None
    assert notifier.sent == []

    retried = asyncio.run(coordinator.get_or_create_today("p1", DAY))
    assert retried.created is True
    assert flaky.get_shared_story_for_day(partnership_id="p1", day=DAY) == retried.story


def test_next_replaces_today_without_handing_over_the_turn(tmp_path: Path) -> None:
    coordinator, stories, _, _ = _coordinator(tmp_path)
    yesterday = asyncio.run(coordinator.get_or_create_today("p1", DAY - timedelta(days=1)))
    today = asyncio.run(coordinator.get_or_create_today("p1", DAY))

    redrawn = asyncio.run(coordinator.next("p1", DAY, requested_by="invitee"))

    assert redrawn.created is True
    assert redrawn.story.story_id != today.story.story_id
    assert redrawn.story.assigned_author is today.story.assigned_author
    assert yesterday.story.assigned_author is not today.story.assigned_author
    assert stories.get_shared_story_for_day(partnership_id="p1", day=DAY) == redrawn.story


def test_category_changes_rebuild_the_deck(tmp_path: Path) -> None:
    coordinator, _, partnerships, _ = _coordinator(tmp_path)
    asyncio.run(coordinator.get_or_create_today("p1", DAY))
    current = partnerships.get_partnership(partnership_id="p1")
    assert current is not None
    partnerships.update_partnership(replace(current, enabled_categories=(Category.HOTEL,)))

    result = asyncio.run(coordinator.get_or_create_today("p1", DAY + timedelta(days=1)))

    assert set(result.story.items) == {Category.HOTEL}
    refreshed = partnerships.get_partnership(partnership_id="p1")
    assert refreshed is not None
    assert coordinator.deck_for(refreshed).categories == (Category.HOTEL,)


def test_unknown_partnership_and_non_member_are_rejected(tmp_path: Path) -> None:
    coordinator, _, _, _ = _coordinator(tmp_path)
    with pytest.raises(PartnershipNotFoundError):
        asyncio.run(coordinator.get_or_create_today("missing", DAY))
    with pytest.raises(NotAMemberError):
        asyncio.run(coordinator.get_or_create_today("p1", DAY, requested_by="stranger"))


class BrokenPartnershipStore(SQLitePartnershipStore):
    def update_partnership(self, partnership: Partnership) -> None:
        raise sqlite3.OperationalError("database is locked")


def test_next_leaves_one_history_record_for_today(tmp_path: Path) -> None:
    coordinator, stories, _, _ = _coordinator(tmp_path)
    first = asyncio.run(coordinator.get_or_create_today("p1", DAY))
    redrawn = asyncio.run(coordinator.next("p1", DAY, requested_by="inviter"))

    for user_id in ("inviter", "invitee"):
        history = stories.list_history(user_id=user_id, partnership_id="p1")
        assert [story.story_id for story in history] == [redrawn.story.story_id]
    assert stories.get_shared_story(partnership_id="p1", story_id=first.story.story_id) is None


def test_partnership_update_failure_still_returns_and_notifies(tmp_path: Path) -> None:
    db_path = tmp_path / "daydreams.db"
    broken = BrokenPartnershipStore(db_path=db_path)
    broken.create_partnership(
        Partnership(
            partnership_id="p1",
            user1_id="inviter",
            user2_id="invitee",
            created_at=datetime(2026, 7, 1, tzinfo=UTC),
            next_author_id="inviter",
        )
    )
    stories = SQLiteDaydreamStore(db_path=db_path)
    notifier = RecordingNotifier()
    coordinator = DailyPromptCoordinator(
        stories=stories, partnerships=broken, notifier=notifier, rng=random.Random(2)
    )

    result = asyncio.run(coordinator.get_or_create_today("p1", DAY, requested_by="inviter"))

    assert result.created is True
    assert result.state is PromptState.PROMPT_PERSISTED
    assert stories.get_shared_story_for_day(partnership_id="p1", day=DAY) == result.story
    assert [user_id for user_id, _, _ in notifier.sent] == ["invitee"]
    stored = broken.get_partnership(partnership_id="p1")
    assert stored is not None and stored.last_story_date is None


def test_forget_drops_cached_deck(tmp_path: Path) -> None:
    coordinator, _, partnerships, _ = _coordinator(tmp_path)
    asyncio.run(coordinator.get_or_create_today("p1", DAY))
    partnership = partnerships.get_partnership(partnership_id="p1")
    assert partnership is not None
    deck = coordinator.deck_for(partnership)

    coordinator.forget("p1")
    coordinator.forget("p1")

    assert coordinator.deck_for(partnership) is not deck
