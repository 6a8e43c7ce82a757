"""Application-level failures surfaced to the API layer."""

from __future__ import annotations


class DaydreamError(Exception):
    """Base class for expected, user-facing failures."""


class PartnershipNotFoundError(DaydreamError):
    pass


class NotAMemberError(DaydreamError):
    """The caller is not one of the two partnership members."""


class StoryNotFoundError(DaydreamError):
    pass


class InvitationError(DaydreamError):
    """An invitation cannot be redeemed or changed in its current state."""


class PromptPersistError(DaydreamError):
    """A drawn prompt could not be written; the next request draws again."""
