"""Invitation codes, partnership formation, and shared settings."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import UTC, date, datetime
from uuid import uuid4

from daydreams.application.errors import (
    InvitationError,
    NotAMemberError,
    PartnershipNotFoundError,
)
from daydreams.core.validation import INVITATION_CODE_LENGTH, validate_invitation_code
from daydreams.domain.models import (
    DEFAULT_CATEGORIES,
    Category,
    InvitationStatus,
    PalInvitation,
    Partnership,
    invitation_expiry,
)
from daydreams.domain.ports import PartnershipRepository

logger = logging.getLogger(__name__)

INVITATION_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
MAX_CODE_ATTEMPTS = 5


def generate_invitation_code(rng: random.Random) -> str:
    return "".join(rng.choice(INVITATION_CODE_ALPHABET) for _ in range(INVITATION_CODE_LENGTH))


def normalize_categories(categories: Sequence[Category]) -> tuple[Category, ...]:
    """Deduplicate while keeping order; an empty selection falls back to the defaults."""
    ordered = tuple(dict.fromkeys(categories))
    return ordered or DEFAULT_CATEGORIES


def _utc_now() -> datetime:
    return datetime.now(UTC)


class PartnershipService:
    """Creates and redeems invitations and manages the resulting partnerships."""

    def __init__(
        self,
        *,
        partnerships: PartnershipRepository,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._partnerships = partnerships
        self._rng = rng or random.SystemRandom()
        self._clock = clock

    def create_invitation(
        self, *, from_user_id: str, from_user_name: str, from_user_email: str
    ) -> PalInvitation:
        created_at = self._clock()
        for _ in range(MAX_CODE_ATTEMPTS):
            invitation = PalInvitation(
                invitation_id=uuid4().hex,
                from_user_id=from_user_id,
                from_user_name=from_user_name,
                from_user_email=from_user_email,
                invitation_code=generate_invitation_code(self._rng),
                status=InvitationStatus.PENDING,
                created_at=created_at,
                expires_at=invitation_expiry(created_at),
            )
            stored = self._partnerships.create_invitation(invitation)
            if stored is not None:
                logger.info(
                    "invitation.created invitation_id=%s from_user_id=%s",
                    stored.invitation_id,
                    from_user_id,
                )
                return stored
            logger.debug("invitation.code_collision code=%s", invitation.invitation_code)
        raise InvitationError("Could not allocate a unique invitation code")

    def find_invitation(self, code: str) -> PalInvitation | None:
        """Return the pending, unexpired invitation for ``code``."""
        normalized = validate_invitation_code(code)
        invitation = self._partnerships.get_pending_invitation(invitation_code=normalized)
        if invitation is None or invitation.is_expired(self._clock()):
            return None
        return invitation

    def list_invitations(self, user_id: str) -> list[PalInvitation]:
        return self._partnerships.list_invitations(from_user_id=user_id)

    def accept_invitation(self, *, code: str, user_id: str) -> Partnership:
        normalized = validate_invitation_code(code)
        invitation = self._partnerships.get_pending_invitation(invitation_code=normalized)
        if invitation is None:
            raise InvitationError("Invitation not found or no longer pending")
        if invitation.from_user_id == user_id:
            raise InvitationError("You cannot accept your own invitation")
        if invitation.is_expired(self._clock()):
            self._partnerships.update_invitation(
                replace(invitation, status=InvitationStatus.EXPIRED)
            )
            raise InvitationError("Invitation has expired")
        if self._partnerships.find_partnership(user_a=invitation.from_user_id, user_b=user_id):
            raise InvitationError("You are already partnered with this user")

        partnership = self._partnerships.create_partnership(
            Partnership(
                partnership_id=uuid4().hex,
                user1_id=invitation.from_user_id,
                user2_id=user_id,
                created_at=self._clock(),
                next_author_id=invitation.from_user_id,
            )
        )
        self._partnerships.update_invitation(
            replace(invitation, status=InvitationStatus.ACCEPTED, to_user_id=user_id)
        )
        logger.info(
            "invitation.accepted invitation_id=%s partnership_id=%s",
            invitation.invitation_id,
            partnership.partnership_id,
        )
        return partnership

    def decline_invitation(self, *, invitation_id: str, user_id: str) -> PalInvitation:
        invitation = self._partnerships.get_invitation(invitation_id=invitation_id)
        if invitation is None:
            raise InvitationError("Invitation not found")
        if invitation.status is not InvitationStatus.PENDING:
            raise InvitationError(f"Invitation is already {invitation.status.value}")
        declined = replace(invitation, status=InvitationStatus.DECLINED, to_user_id=user_id)
        self._partnerships.update_invitation(declined)
        logger.info("invitation.declined invitation_id=%s", invitation_id)
        return declined

    def cleanup_expired_invitations(self, now: datetime | None = None) -> int:
        """Mark every pending invitation past its expiry as expired."""
        moment = now or self._clock()
        expired = 0
        for invitation in self._partnerships.list_pending_invitations():
            if invitation.is_expired(moment):
                self._partnerships.update_invitation(
                    replace(invitation, status=InvitationStatus.EXPIRED)
                )
                expired += 1
        if expired:
            logger.info("invitation.cleanup expired=%s", expired)
        return expired

    def list_partnerships(self, user_id: str) -> list[Partnership]:
        return self._partnerships.list_partnerships(user_id=user_id)

    def get_partnership(self, partnership_id: str, user_id: str) -> Partnership:
        partnership = self._partnerships.get_partnership(partnership_id=partnership_id)
        if partnership is None:
            raise PartnershipNotFoundError(partnership_id)
        if not partnership.is_member(user_id):
            raise NotAMemberError(partnership_id)
        return partnership

    def update_settings(
        self,
        partnership_id: str,
        user_id: str,
        *,
        categories: Sequence[Category] | None = None,
        trip_date: date | None = None,
        clear_trip_date: bool = False,
    ) -> Partnership:
        partnership = self.get_partnership(partnership_id, user_id)
        updated = partnership
        if categories is not None:
            updated = replace(updated, enabled_categories=normalize_categories(categories))
        if clear_trip_date:
            updated = replace(updated, shared_trip_date=None)
        elif trip_date is not None:
            updated = replace(updated, shared_trip_date=trip_date)
        if updated != partnership:
            self._partnerships.update_partnership(updated)
            logger.info(
                "partnership.settings_updated partnership_id=%s categories=%s",
                partnership_id,
                [category.value for category in updated.enabled_categories],
            )
        return updated

    def remove_partnership(self, partnership_id: str, user_id: str) -> None:
        self.get_partnership(partnership_id, user_id)
        self._partnerships.delete_partnership(partnership_id=partnership_id)
        logger.info("partnership.removed partnership_id=%s by=%s", partnership_id, user_id)
