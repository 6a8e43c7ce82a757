"""Get-or-create orchestration for each partnership's daily prompt."""

from __future__ import annotations

import asyncio
import logging
import random
from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum

from daydreams.application.errors import (
    NotAMemberError,
    PartnershipNotFoundError,
    PromptPersistError,
)
from daydreams.core.notifications import new_prompt_message
from daydreams.core.prompt_deck import OptionsLookup, PromptDeck
from daydreams.core.turns import next_author
from daydreams.domain.catalog import options_for
from daydreams.domain.models import DaydreamStory, Partnership, new_story
from daydreams.domain.ports import DaydreamRepository, Notifier, PartnershipRepository

logger = logging.getLogger(__name__)


class PromptState(str, Enum):
    NO_PROMPT_TODAY = "no_prompt_today"
    PROMPT_PENDING = "prompt_pending"
    PROMPT_PERSISTED = "prompt_persisted"


@dataclass(frozen=True)
class DailyPromptResult:
    story: DaydreamStory
    state: PromptState
    created: bool


class DailyPromptCoordinator:
    """Ensures each partnership has exactly one shared prompt per calendar day.

    Concurrent callers inside one process are serialized per partnership. Across
    processes the store's unique ``(partnership_id, date_assigned)`` key decides
    the winner and the loser returns the stored record.
    """

    def __init__(
        self,
        *,
        stories: DaydreamRepository,
        partnerships: PartnershipRepository,
        notifier: Notifier | None = None,
        options: OptionsLookup = options_for,
        rng: random.Random | None = None,
    ) -> None:
        self._stories = stories
        self._partnerships = partnerships
        self._notifier = notifier
        self._options = options
        self._rng = rng or random.Random()
        self._decks: dict[str, PromptDeck] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def deck_for(self, partnership: Partnership) -> PromptDeck:
        """Return the partnership's deck, rebuilding it when categories changed."""
        deck = self._decks.get(partnership.partnership_id)
        if deck is None:
            deck = PromptDeck(
                partnership.enabled_categories, options=self._options, rng=self._rng
            )
            self._decks[partnership.partnership_id] = deck
        elif deck.categories != tuple(dict.fromkeys(partnership.enabled_categories)):
            deck.rebuild(partnership.enabled_categories)
        return deck

    def forget(self, partnership_id: str) -> None:
        """Drop the cached deck and lock of a removed partnership."""
        self._decks.pop(partnership_id, None)
        lock = self._locks.get(partnership_id)
        if lock is not None and not lock.locked():
            del self._locks[partnership_id]

    async def current_state(self, partnership_id: str, today: date) -> PromptState:
        existing = await asyncio.to_thread(
            self._stories.get_shared_story_for_day, partnership_id=partnership_id, day=today
        )
        return PromptState.NO_PROMPT_TODAY if existing is None else PromptState.PROMPT_PERSISTED

    async def get_or_create_today(
        self, partnership_id: str, today: date, *, requested_by: str | None = None
    ) -> DailyPromptResult:
        partnership = await self._load_partnership(partnership_id, requested_by)
        async with self._locks[partnership_id]:
            existing = await asyncio.to_thread(
                self._stories.get_shared_story_for_day,
                partnership_id=partnership_id,
                day=today,
            )
            if existing is not None:
                return DailyPromptResult(
                    story=existing, state=PromptState.PROMPT_PERSISTED, created=False
                )
            return await self._draw_and_persist(
                partnership, today, replace_existing=False, requested_by=requested_by
            )

    async def next(
        self, partnership_id: str, today: date, *, requested_by: str | None = None
    ) -> DailyPromptResult:
        """Discard today's prompt, if any, and draw a fresh one."""
        partnership = await self._load_partnership(partnership_id, requested_by)
        async with self._locks[partnership_id]:
            return await self._draw_and_persist(
                partnership, today, replace_existing=True, requested_by=requested_by
            )

    async def _load_partnership(
        self, partnership_id: str, requested_by: str | None
    ) -> Partnership:
        partnership = await asyncio.to_thread(
            self._partnerships.get_partnership, partnership_id=partnership_id
        )
        if partnership is None:
            raise PartnershipNotFoundError(partnership_id)
        if requested_by is not None and not partnership.is_member(requested_by):
            raise NotAMemberError(partnership_id)
        return partnership

    async def _draw_and_persist(
        self,
        partnership: Partnership,
        today: date,
        *,
        replace_existing: bool,
        requested_by: str | None,
    ) -> DailyPromptResult:
        partnership_id = partnership.partnership_id
        items = self.deck_for(partnership).draw()
        # Regenerating today's prompt keeps the turn computed from earlier days.
        latest = await asyncio.to_thread(
            self._stories.latest_shared_story,
            partnership_id=partnership_id,
            before=today if replace_existing else None,
        )
        author = next_author(latest.assigned_author if latest is not None else None)
        pending = new_story(day=today, items=items, author=author)
        logger.debug(
            "prompt.pending partnership_id=%s day=%s author=%s",
            partnership_id,
            today.isoformat(),
            author.value,
        )

        try:
            if replace_existing:
                story = await asyncio.to_thread(
                    self._stories.replace_shared_story_for_day,
                    partnership_id=partnership_id,
                    story=pending,
                )
                inserted = True
            else:
                story, inserted = await asyncio.to_thread(
                    self._stories.insert_shared_story_if_absent,
                    partnership_id=partnership_id,
                    story=pending,
                )
        except Exception as exc:
            logger.error(
                "prompt.persist_failed partnership_id=%s day=%s error=%s",
                partnership_id,
                today.isoformat(),
                exc,
            )
            raise PromptPersistError(f"Could not save today's prompt: {exc}") from exc

        if not inserted:
            return DailyPromptResult(story=story, state=PromptState.PROMPT_PERSISTED, created=False)

        logger.info(
            "prompt.persisted partnership_id=%s story_id=%s author=%s",
            partnership_id,
            story.story_id,
            story.assigned_author.value,
        )
        await self._after_persist(partnership, story, requested_by=requested_by)
        return DailyPromptResult(story=story, state=PromptState.PROMPT_PERSISTED, created=True)

    async def _after_persist(
        self, partnership: Partnership, story: DaydreamStory, *, requested_by: str | None
    ) -> None:
        try:
            await asyncio.to_thread(
                self._stories.apply_mirror_update,
                partnership_id=partnership.partnership_id,
                story=story,
                history_user_ids=(partnership.user1_id, partnership.user2_id),
                update_shared=False,
            )
        except Exception as exc:
            # The shared record is authoritative; history is rebuilt on the next save.
            logger.warning(
                "prompt.history_failed partnership_id=%s story_id=%s error=%s",
                partnership.partnership_id,
                story.story_id,
                exc,
            )

        try:
            await asyncio.to_thread(
                self._partnerships.update_partnership,
                replace(
                    partnership,
                    last_story_date=story.date_assigned,
                    next_author_id=partnership.user_for(story.assigned_author.next()),
                ),
            )
        except Exception as exc:
            logger.warning(
                "prompt.partnership_update_failed partnership_id=%s story_id=%s error=%s",
                partnership.partnership_id,
                story.story_id,
                exc,
            )

        if self._notifier is None:
            return
        message = new_prompt_message(
            assigned_author=story.assigned_author.display_name,
            prompt_text=story.prompt_text,
        )
        partner = partnership.partner_of(requested_by) if requested_by else None
        recipients = (partner,) if partner else (partnership.user1_id, partnership.user2_id)
        for user_id in recipients:
            await self._notifier.notify(
                user_id=user_id, title=message.title, body=message.body, data=message.data
            )
