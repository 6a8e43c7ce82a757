"""Domain models and ports for daily daydream prompts."""

from daydreams.domain.models import (
    DEFAULT_CATEGORIES,
    Category,
    DaydreamStory,
    InvitationStatus,
    MirrorWriteResult,
    PalInvitation,
    Partnership,
    StoryAuthor,
    StoryDraft,
    format_prompt,
)
from daydreams.domain.ports import (
    DaydreamRepository,
    DraftRepository,
    Notifier,
    PartnershipRepository,
)

__all__ = [
    "Category",
    "DEFAULT_CATEGORIES",
    "DaydreamRepository",
    "DaydreamStory",
    "DraftRepository",
    "InvitationStatus",
    "MirrorWriteResult",
    "Notifier",
    "PalInvitation",
    "Partnership",
    "PartnershipRepository",
    "StoryAuthor",
    "StoryDraft",
    "format_prompt",
]
