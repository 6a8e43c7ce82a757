from __future__ import annotations

import random
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

import pytest

from daydreams.adapters.sqlite_partnership_store import SQLitePartnershipStore
from daydreams.application.errors import (
    InvitationError,
    NotAMemberError,
    PartnershipNotFoundError,
)
from daydreams.application.partnerships import (
    INVITATION_CODE_ALPHABET,
    PartnershipService,
    normalize_categories,
)
from daydreams.core.validation import ValidationError
from daydreams.domain.models import (
    DEFAULT_CATEGORIES,
    Category,
    InvitationStatus,
    PalInvitation,
)

NOW = datetime(2026, 9, 1, 10, 0, tzinfo=UTC)


class CollidingStore(SQLitePartnershipStore):
    def __init__(self, db_path: Path, collisions: int) -> None:
        super().__init__(db_path)
        self.collisions = collisions

    def create_invitation(self, invitation: PalInvitation) -> PalInvitation | None:
        if self.collisions:
            self.collisions -= 1
            return None
        return super().create_invitation(invitation)


def _service(
    tmp_path: Path, *, now: datetime = NOW
) -> tuple[PartnershipService, SQLitePartnershipStore]:
    store = SQLitePartnershipStore(db_path=tmp_path / "daydreams.db")
    return PartnershipService(partnerships=store, rng=random.Random(3), clock=lambda: now), store


def _invite(service: PartnershipService, user_id: str = "inviter") -> PalInvitation:
    return service.create_invitation(
        from_user_id=user_id, from_user_name="Jon", from_user_email="jon@example.com"
    )


def test_invitation_codes_use_the_unambiguous_alphabet(tmp_path: Path) -> None:
    service, _ = _service(tmp_path)
    invitation = _invite(service)

    assert len(invitation.invitation_code) == 6
    assert set(invitation.invitation_code) <= set(INVITATION_CODE_ALPHABET)
    assert invitation.status is InvitationStatus.PENDING
    assert invitation.expires_at == NOW + timedelta(days=7)
    assert service.find_invitation(invitation.invitation_code.lower()) == invitation
    assert service.list_invitations("inviter") == [invitation]


def test_code_collisions_are_retried_then_reported(tmp_path: Path) -> None:
    store = CollidingStore(tmp_path / "daydreams.db", collisions=2)
    service = PartnershipService(partnerships=store, rng=random.Random(1), clock=lambda: NOW)
    assert _invite(service).status is InvitationStatus.PENDING

    store.collisions = 10
    with pytest.raises(InvitationError):
        _invite(service)


def test_accepting_creates_a_partnership_with_the_inviter_first(tmp_path: Path) -> None:
    service, store = _service(tmp_path)
    invitation = _invite(service)

    partnership = service.accept_invitation(code=invitation.invitation_code, user_id="invitee")

    assert partnership.user1_id == "inviter"
    assert partnership.user2_id == "invitee"
    assert partnership.next_author_id == "inviter"
    assert partnership.enabled_categories == DEFAULT_CATEGORIES
    accepted = store.get_invitation(invitation_id=invitation.invitation_id)
    assert accepted is not None
    assert accepted.status is InvitationStatus.ACCEPTED
    assert accepted.to_user_id == "invitee"
    assert service.find_invitation(invitation.invitation_code) is None
    assert [item.partnership_id for item in service.list_partnerships("inviter")] == [
        partnership.partnership_id
    ]


def test_accept_rejects_self_duplicates_and_unknown_codes(tmp_path: Path) -> None:
    service, _ = _service(tmp_path)
    invitation = _invite(service)

    with pytest.raises(InvitationError):
        service.accept_invitation(code=invitation.invitation_code, user_id="inviter")
    service.accept_invitation(code=invitation.invitation_code, user_id="invitee")

    again = _invite(service)
    with pytest.raises(InvitationError):
        service.accept_invitation(code=again.invitation_code, user_id="invitee")
    with pytest.raises(InvitationError):
        service.accept_invitation(code="ZZZZ22", user_id="invitee")
    with pytest.raises(ValidationError):
        service.accept_invitation(code="bad", user_id="invitee")


def test_expired_invitations_cannot_be_accepted(tmp_path: Path) -> None:
    service, store = _service(tmp_path)
    invitation = _invite(service)
    later, _ = _service(tmp_path, now=NOW + timedelta(days=8))

    assert later.find_invitation(invitation.invitation_code) is None
    with pytest.raises(InvitationError):
        later.accept_invitation(code=invitation.invitation_code, user_id="invitee")
    expired = store.get_invitation(invitation_id=invitation.invitation_id)
    assert expired is not None
    assert expired.status is InvitationStatus.EXPIRED


def test_decline_and_cleanup(tmp_path: Path) -> None:
    earlier, _ = _service(tmp_path, now=NOW - timedelta(days=10))
    service, store = _service(tmp_path)
    stale = _invite(earlier, "old-inviter")
    fresh = _invite(service, "new-inviter")
    declined_target = _invite(service, "third-inviter")

    declined = service.decline_invitation(
        invitation_id=declined_target.invitation_id, user_id="invitee"
    )
    assert declined.status is InvitationStatus.DECLINED
    with pytest.raises(InvitationError):
        service.decline_invitation(invitation_id=declined_target.invitation_id, user_id="invitee")

    assert service.cleanup_expired_invitations(NOW) == 1
    stale_row = store.get_invitation(invitation_id=stale.invitation_id)
    assert stale_row is not None and stale_row.status is InvitationStatus.EXPIRED
    assert [item.invitation_id for item in store.list_pending_invitations()] == [
        fresh.invitation_id
    ]


def test_settings_updates_and_default_categories(tmp_path: Path) -> None:
    service, _ = _service(tmp_path)
    partnership = service.accept_invitation(code=_invite(service).invitation_code, user_id="u2")
    pid = partnership.partnership_id

    cleared = service.update_settings(pid, "u2", categories=[])
    assert cleared.enabled_categories == DEFAULT_CATEGORIES

    chosen = service.update_settings(
        pid, "inviter", categories=[Category.HOTEL, Category.HOTEL, Category.EVENT]
    )
    assert chosen.enabled_categories == (Category.HOTEL, Category.EVENT)

    dated = service.update_settings(pid, "inviter", trip_date=date(2026, 12, 24))
    assert dated.days_until_trip(date(2026, 12, 1)) == 23
    assert dated.enabled_categories == (Category.HOTEL, Category.EVENT)
    assert service.update_settings(pid, "u2", clear_trip_date=True).shared_trip_date is None
    assert service.get_partnership(pid, "u2").enabled_categories == (
        Category.HOTEL,
        Category.EVENT,
    )


def test_membership_is_required_for_settings_and_removal(tmp_path: Path) -> None:
    service, _ = _service(tmp_path)
    partnership = service.accept_invitation(code=_invite(service).invitation_code, user_id="u2")

    with pytest.raises(NotAMemberError):
        service.update_settings(partnership.partnership_id, "stranger", categories=[])
    with pytest.raises(PartnershipNotFoundError):
        service.get_partnership("missing", "u2")

    service.remove_partnership(partnership.partnership_id, "u2")
    assert service.list_partnerships("inviter") == []


def test_normalize_categories_keeps_order() -> None:
    assert normalize_categories([Category.RIDE, Category.PARK, Category.RIDE]) == (
        Category.RIDE,
        Category.PARK,
    )
    assert normalize_categories([]) == DEFAULT_CATEGORIES
