"""Turn alternation between the two partnership seats."""

from __future__ import annotations

from daydreams.domain.models import Partnership, StoryAuthor


def next_author(
    last: StoryAuthor | None, default: StoryAuthor = StoryAuthor.USER
) -> StoryAuthor:
    """Return the other seat, or ``default`` when nothing has been assigned yet."""
    if last is None:
        return default
    return last.next()


def next_author_id(partnership: Partnership, last: StoryAuthor | None) -> str:
    """Resolve the next author to a member user id."""
    return partnership.user_for(next_author(last))
