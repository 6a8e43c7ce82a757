from __future__ import annotations

from datetime import UTC, datetime

from daydreams.core.turns import next_author, next_author_id
from daydreams.domain.models import Partnership, StoryAuthor


def _partnership() -> Partnership:
    return Partnership(
        partnership_id="p1",
        user1_id="inviter",
        user2_id="invitee",
        created_at=datetime(2026, 1, 1, tzinfo=UTC),
    )


def test_no_prior_record_defaults_to_user() -> None:
    assert next_author(None) is StoryAuthor.USER


def test_authors_alternate() -> None:
    assert next_author(StoryAuthor.USER) is StoryAuthor.PARTNER
    assert next_author(StoryAuthor.PARTNER) is StoryAuthor.USER


def test_default_can_be_overridden() -> None:
    assert next_author(None, default=StoryAuthor.PARTNER) is StoryAuthor.PARTNER


def test_next_author_id_maps_seats_to_members() -> None:
    partnership = _partnership()
    assert next_author_id(partnership, None) == "inviter"
    assert next_author_id(partnership, StoryAuthor.USER) == "invitee"
    assert next_author_id(partnership, StoryAuthor.PARTNER) == "inviter"


def test_author_display_names() -> None:
    assert StoryAuthor.USER.display_name == "Jon"
    assert StoryAuthor.PARTNER.display_name == "Carolyn"
