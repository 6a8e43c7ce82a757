"""Notification message builders and daily schedule math."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta

DEFAULT_REMINDER_HOUR = 9
DEFAULT_REMINDER_MINUTE = 0


@dataclass(frozen=True)
class NotificationMessage:
    """Title/body pair plus routing data for one notification."""

    kind: str
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)


def story_completed_message(*, author_name: str, prompt_text: str) -> NotificationMessage:
    return NotificationMessage(
        kind="story_completed",
        title="Story Complete! ✨",
        body=f"{author_name} just finished their Disney Daydream! Your turn now!",
        data={"type": "story_completed", "author": author_name, "prompt": prompt_text},
    )


def new_prompt_message(*, assigned_author: str, prompt_text: str) -> NotificationMessage:
    return NotificationMessage(
        kind="new_prompt",
        title="New Disney Daydream! ✨",
        body=f"It's {assigned_author}'s turn to write today's story!",
        data={"type": "new_prompt", "author": assigned_author, "prompt": prompt_text},
    )


def local_completion_message(*, author_name: str) -> NotificationMessage:
    return NotificationMessage(
        kind="story_completed_local",
        title="New Disney Story! ✨",
        body=f"{author_name} just wrote a magical Disney Daydream! Check it out!",
        data={"type": "story_completed", "author": author_name},
    )


def daily_reminder_message() -> NotificationMessage:
    return NotificationMessage(
        kind="daily_reminder",
        title="Time to Daydream! ✨",
        body="Today's Disney Daydream prompt is waiting for you.",
        data={"type": "daily_reminder"},
    )


def next_fire_time(now: datetime, *, hour: int, minute: int) -> datetime:
    """Return the next moment matching hour:minute, strictly after ``now``."""
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid reminder time {hour:02d}:{minute:02d}")
    candidate = datetime.combine(now.date(), time(hour, minute), tzinfo=now.tzinfo)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate
