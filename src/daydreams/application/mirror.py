"""Story text and favorite writes mirrored across shared, history, and favorites records."""

from __future__ import annotations

import asyncio
import logging
from datetime import date

from daydreams.application.errors import (
    NotAMemberError,
    PartnershipNotFoundError,
    StoryNotFoundError,
)
from daydreams.core.notifications import story_completed_message
from daydreams.core.validation import validate_story_text
from daydreams.domain.models import DaydreamStory, MirrorWriteResult, Partnership
from daydreams.domain.ports import DaydreamRepository, Notifier, PartnershipRepository

logger = logging.getLogger(__name__)


class StoryMirror:
    """Applies user edits to every copy of a story in one store transaction."""

    def __init__(
        self,
        *,
        stories: DaydreamRepository,
        partnerships: PartnershipRepository,
        notifier: Notifier | None = None,
    ) -> None:
        self._stories = stories
        self._partnerships = partnerships
        self._notifier = notifier

    async def member_partnership(self, partnership_id: str, user_id: str) -> Partnership:
        partnership = await asyncio.to_thread(
            self._partnerships.get_partnership, partnership_id=partnership_id
        )
        if partnership is None:
            raise PartnershipNotFoundError(partnership_id)
        if not partnership.is_member(user_id):
            raise NotAMemberError(partnership_id)
        return partnership

    async def _shared_story(self, partnership_id: str, story_id: str) -> DaydreamStory:
        story = await asyncio.to_thread(
            self._stories.get_shared_story, partnership_id=partnership_id, story_id=story_id
        )
        if story is None:
            raise StoryNotFoundError(story_id)
        return story

    async def save_story_text(
        self,
        partnership_id: str,
        story_id: str,
        text: str,
        author_user_id: str,
        *,
        author_name: str | None = None,
    ) -> MirrorWriteResult | None:
        """Validate and store the story text for both members.

        Returns None without touching the store when ``text`` is empty.
        Raises ``ValidationError`` when moderation rejects the text.
        """
        if not text:
            return None
        partnership = await self.member_partnership(partnership_id, author_user_id)
        story = await self._shared_story(partnership_id, story_id)
        cleaned = validate_story_text(text)
        updated = story.with_text(cleaned)

        try:
            touched = await asyncio.to_thread(
                self._stories.apply_mirror_update,
                partnership_id=partnership_id,
                story=updated,
                history_user_ids=(partnership.user1_id, partnership.user2_id),
                update_shared=True,
            )
        except Exception as exc:
            logger.warning(
                "story.save_failed partnership_id=%s story_id=%s error=%s",
                partnership_id,
                story_id,
                exc,
            )
            return MirrorWriteResult(
                success=False, message=f"Could not save story: {exc}", story=story
            )

        is_favorite = await asyncio.to_thread(
            self._stories.is_favorite, user_id=author_user_id, story_id=story_id
        )
        updated = updated.with_favorite(is_favorite)
        logger.info(
            "story.saved partnership_id=%s story_id=%s touched=%s",
            partnership_id,
            story_id,
            ",".join(touched),
        )

        partner = partnership.partner_of(author_user_id)
        if self._notifier is not None and partner is not None:
            message = story_completed_message(
                author_name=author_name or story.assigned_author.display_name,
                prompt_text=story.prompt_text,
            )
            await self._notifier.notify(
                user_id=partner, title=message.title, body=message.body, data=message.data
            )
        return MirrorWriteResult(success=True, story=updated, touched=touched)

    async def set_favorite(
        self, user_id: str, partnership_id: str, story_id: str, *, favorite: bool
    ) -> MirrorWriteResult:
        await self.member_partnership(partnership_id, user_id)
        story = await self._shared_story(partnership_id, story_id)
        try:
            touched = await asyncio.to_thread(
                self._stories.apply_mirror_update,
                partnership_id=partnership_id,
                story=story,
                history_user_ids=(),
                favorite_user_id=user_id,
                favorite=favorite,
                update_shared=False,
            )
        except Exception as exc:
            logger.warning(
                "story.favorite_failed user_id=%s story_id=%s error=%s", user_id, story_id, exc
            )
            return MirrorWriteResult(
                success=False, message=f"Could not update favorite: {exc}", story=story
            )
        return MirrorWriteResult(success=True, story=story.with_favorite(favorite), touched=touched)

    async def toggle_favorite(
        self, user_id: str, partnership_id: str, story_id: str
    ) -> MirrorWriteResult:
        current = await asyncio.to_thread(
            self._stories.is_favorite, user_id=user_id, story_id=story_id
        )
        return await self.set_favorite(user_id, partnership_id, story_id, favorite=not current)

    async def remove_favorite(
        self, user_id: str, partnership_id: str, story_id: str
    ) -> MirrorWriteResult:
        return await self.set_favorite(user_id, partnership_id, story_id, favorite=False)

    async def list_history(self, user_id: str, partnership_id: str) -> list[DaydreamStory]:
        await self.member_partnership(partnership_id, user_id)
        return await asyncio.to_thread(
            self._stories.list_history, user_id=user_id, partnership_id=partnership_id
        )

    async def list_favorites(self, user_id: str) -> list[DaydreamStory]:
        return await asyncio.to_thread(self._stories.list_favorites, user_id=user_id)

    async def clear_history(self, user_id: str, partnership_id: str, today: date) -> int:
        """Delete the user's history for the partnership except today's record."""
        await self.member_partnership(partnership_id, user_id)
        removed = await asyncio.to_thread(
            self._stories.clear_history,
            user_id=user_id,
            partnership_id=partnership_id,
            keep_day=today,
        )
        logger.info(
            "history.cleared user_id=%s partnership_id=%s removed=%s",
            user_id,
            partnership_id,
            removed,
        )
        return removed
