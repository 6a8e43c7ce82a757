"""Unsaved story text per user, discarded after a week."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from daydreams.domain.models import StoryDraft
from daydreams.domain.ports import DraftRepository

logger = logging.getLogger(__name__)

DRAFT_MAX_AGE_DAYS = 7


def _utc_now() -> datetime:
    return datetime.now(UTC)


class DraftService:
    def __init__(
        self,
        *,
        drafts: DraftRepository,
        max_age_days: int = DRAFT_MAX_AGE_DAYS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._drafts = drafts
        self._max_age = timedelta(days=max_age_days)
        self._clock = clock

    def save(self, *, user_id: str, story_id: str, text: str) -> StoryDraft | None:
        """Store the draft; blank text clears any existing draft instead."""
        if not text.strip():
            self._drafts.delete_draft(user_id=user_id, story_id=story_id)
            return None
        draft = StoryDraft(user_id=user_id, story_id=story_id, text=text, saved_at=self._clock())
        self._drafts.save_draft(draft)
        return draft

    def load(self, *, user_id: str, story_id: str) -> StoryDraft | None:
        draft = self._drafts.get_draft(user_id=user_id, story_id=story_id)
        if draft is None:
            return None
        if self._clock() - draft.saved_at > self._max_age:
            self._drafts.delete_draft(user_id=user_id, story_id=story_id)
            logger.debug("draft.expired user_id=%s story_id=%s", user_id, story_id)
            return None
        return draft

    def delete(self, *, user_id: str, story_id: str) -> bool:
        return self._drafts.delete_draft(user_id=user_id, story_id=story_id)

    def has_draft(self, *, user_id: str, story_id: str) -> bool:
        return self.load(user_id=user_id, story_id=story_id) is not None

    def cleanup_old(self, now: datetime | None = None) -> int:
        removed = self._drafts.delete_drafts_before(cutoff=(now or self._clock()) - self._max_age)
        if removed:
            logger.info("draft.cleanup removed=%s", removed)
        return removed
