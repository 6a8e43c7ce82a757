"""Core daydream domain models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from enum import Enum
from uuid import uuid4

INVITATION_TTL_DAYS = 7


class Category(str, Enum):
    """Prompt category a partnership can opt into."""

    HOTEL = "hotel"
    PARK = "park"
    RIDE = "ride"
    FOOD = "food"
    BEVERAGE = "beverage"
    SOUVENIR = "souvenir"
    CHARACTER = "character"
    EVENT = "event"

    @property
    def prompt_prefix(self) -> str:
        return _PROMPT_PREFIXES[self]


_PROMPT_PREFIXES: dict[Category, str] = {
    Category.HOTEL: "Staying at",
    Category.PARK: "Visiting",
    Category.RIDE: "Riding",
    Category.FOOD: "Eating",
    Category.BEVERAGE: "Drinking",
    Category.SOUVENIR: "Buying",
    Category.CHARACTER: "Meeting",
    Category.EVENT: "Attending",
}

DEFAULT_CATEGORIES: tuple[Category, ...] = (Category.PARK, Category.RIDE, Category.FOOD)


class StoryAuthor(str, Enum):
    """One of the two partnership seats that can be assigned a story."""

    USER = "Jon"
    PARTNER = "Carolyn"

    @property
    def display_name(self) -> str:
        return self.value

    def next(self) -> StoryAuthor:
        return StoryAuthor.PARTNER if self is StoryAuthor.USER else StoryAuthor.USER


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


def format_prompt(items: dict[Category, str]) -> str:
    """Render items as "Category: value" pairs in a stable order."""
    ordered = sorted(items.items(), key=lambda pair: pair[0].value)
    return ", ".join(f"{category.value.capitalize()}: {value}" for category, value in ordered)


@dataclass(frozen=True)
class DaydreamStory:
    """A single day's prompt and, once written, its story."""

    story_id: str
    date_assigned: date
    items: dict[Category, str]
    assigned_author: StoryAuthor
    story_text: str | None = None
    is_favorite: bool = False

    @property
    def prompt_text(self) -> str:
        return format_prompt(self.items)

    @property
    def is_written(self) -> bool:
        return bool(self.story_text)

    def is_for(self, day: date) -> bool:
        return self.date_assigned == day

    def with_text(self, text: str) -> DaydreamStory:
        return replace(self, story_text=text)

    def with_favorite(self, is_favorite: bool) -> DaydreamStory:
        return replace(self, is_favorite=is_favorite)


def new_story(
    *, day: date, items: dict[Category, str], author: StoryAuthor
) -> DaydreamStory:
    return DaydreamStory(
        story_id=uuid4().hex,
        date_assigned=day,
        items=dict(items),
        assigned_author=author,
    )


@dataclass(frozen=True)
class Partnership:
    """Two user accounts sharing one sequence of daily prompts."""

    partnership_id: str
    user1_id: str
    user2_id: str
    created_at: datetime
    last_story_date: date | None = None
    next_author_id: str | None = None
    enabled_categories: tuple[Category, ...] = DEFAULT_CATEGORIES
    shared_trip_date: date | None = None

    def is_member(self, user_id: str) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def partner_of(self, user_id: str) -> str | None:
        if user_id == self.user1_id:
            return self.user2_id
        if user_id == self.user2_id:
            return self.user1_id
        return None

    def author_for(self, user_id: str) -> StoryAuthor | None:
        if user_id == self.user1_id:
            return StoryAuthor.USER
        if user_id == self.user2_id:
            return StoryAuthor.PARTNER
        return None

    def user_for(self, author: StoryAuthor) -> str:
        return self.user1_id if author is StoryAuthor.USER else self.user2_id

    def days_until_trip(self, today: date) -> int | None:
        if self.shared_trip_date is None:
            return None
        return (self.shared_trip_date - today).days


@dataclass(frozen=True)
class PalInvitation:
    """A pending request to form a partnership, redeemed by code."""

    invitation_id: str
    from_user_id: str
    from_user_name: str
    from_user_email: str
    invitation_code: str
    status: InvitationStatus
    created_at: datetime
    expires_at: datetime
    to_user_id: str | None = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


def invitation_expiry(created_at: datetime) -> datetime:
    return created_at + timedelta(days=INVITATION_TTL_DAYS)


@dataclass(frozen=True)
class StoryDraft:
    """Unsaved story text kept for one user and one story."""

    user_id: str
    story_id: str
    text: str
    saved_at: datetime


@dataclass
class MirrorWriteResult:
    """Outcome of a multi-location story write."""

    success: bool
    message: str | None = None
    story: DaydreamStory | None = None
    touched: list[str] = field(default_factory=list)
