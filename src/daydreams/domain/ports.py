"""Ports for persistence, notification delivery, and remote configuration."""

from __future__ import annotations

from datetime import date, datetime
from typing import Protocol

from daydreams.domain.models import (
    DaydreamStory,
    Partnership,
    PalInvitation,
    StoryDraft,
)


class DaydreamRepository(Protocol):
    """Shared prompt records and their per-user mirrors."""

    def get_shared_story_for_day(
        self, *, partnership_id: str, day: date
    ) -> DaydreamStory | None:
        ...

    def get_shared_story(self, *, partnership_id: str, story_id: str) -> DaydreamStory | None:
        ...

    def latest_shared_story(
        self, *, partnership_id: str, before: date | None = None
    ) -> DaydreamStory | None:
        ...

    def insert_shared_story_if_absent(
        self, *, partnership_id: str, story: DaydreamStory
    ) -> tuple[DaydreamStory, bool]:
        ...

    def replace_shared_story_for_day(
        self, *, partnership_id: str, story: DaydreamStory
    ) -> DaydreamStory:
        ...

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
        ...

    def list_history(self, *, user_id: str, partnership_id: str) -> list[DaydreamStory]:
        ...

    def list_favorites(self, *, user_id: str) -> list[DaydreamStory]:
        ...

    def is_favorite(self, *, user_id: str, story_id: str) -> bool:
        ...

    def clear_history(
        self, *, user_id: str, partnership_id: str, keep_day: date | None = None
    ) -> int:
        ...


class PartnershipRepository(Protocol):
    """Invitation and partnership lifecycle records."""

    def create_invitation(self, invitation: PalInvitation) -> PalInvitation | None:
        ...

    def get_pending_invitation(self, *, invitation_code: str) -> PalInvitation | None:
        ...

    def get_invitation(self, *, invitation_id: str) -> PalInvitation | None:
        ...

    def list_invitations(self, *, from_user_id: str) -> list[PalInvitation]:
        ...

    def list_pending_invitations(self) -> list[PalInvitation]:
        ...

    def update_invitation(self, invitation: PalInvitation) -> None:
        ...

    def create_partnership(self, partnership: Partnership) -> Partnership:
        ...

    def get_partnership(self, *, partnership_id: str) -> Partnership | None:
        ...

    def list_partnerships(self, *, user_id: str) -> list[Partnership]:
        ...

    def find_partnership(self, *, user_a: str, user_b: str) -> Partnership | None:
        ...

    def update_partnership(self, partnership: Partnership) -> None:
        ...

    def delete_partnership(self, *, partnership_id: str) -> bool:
        ...


class DraftRepository(Protocol):
    """Per-user unsaved story text."""

    def save_draft(self, draft: StoryDraft) -> None:
        ...

    def get_draft(self, *, user_id: str, story_id: str) -> StoryDraft | None:
        ...

    def delete_draft(self, *, user_id: str, story_id: str) -> bool:
        ...

    def delete_drafts_before(self, *, cutoff: datetime) -> int:
        ...


class Notifier(Protocol):
    """Delivers title/body notifications to a user."""

    async def notify(
        self, *, user_id: str, title: str, body: str, data: dict[str, str] | None = None
    ) -> bool:
        ...
