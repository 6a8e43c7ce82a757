"""Typed contracts shared by API handlers and the Python client."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from daydreams.domain.models import Category, InvitationStatus, StoryAuthor


class ContractModel(BaseModel):
    """Base model config used by all API contracts."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class AuthRegisterRequest(ContractModel):
    """Register an account; field rules are enforced by the validator with reason codes."""

    email: str = Field(min_length=1, max_length=320)
    password: SecretStr = Field(min_length=1, max_length=200)
    display_name: str = Field(min_length=1, max_length=120)


class AuthLoginRequest(ContractModel):
    email: str = Field(min_length=1, max_length=320)
    password: SecretStr = Field(min_length=1, max_length=200)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class AuthTokenResponse(ContractModel):
    """Bearer token payload used by clients."""

    access_token: str
    token_type: str = Field(default="bearer", pattern=r"^bearer$")
    expires_at_utc: str


class UserResponse(ContractModel):
    user_id: str
    email: str
    display_name: str
    created_at_utc: str


class DeviceTokenRequest(ContractModel):
    device_token: str = Field(min_length=1, max_length=4096)


class NotificationResponse(ContractModel):
    notification_id: str
    title: str
    body: str
    data: dict[str, str] = Field(default_factory=dict)
    created_at_utc: str


class ReminderRequest(ContractModel):
    hour: int = Field(ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)


class ReminderResponse(ContractModel):
    hour: int
    minute: int
    next_fire_at: str


class InvitationResponse(ContractModel):
    invitation_id: str
    from_user_id: str
    from_user_name: str
    invitation_code: str
    status: InvitationStatus
    created_at_utc: str
    expires_at_utc: str
    to_user_id: str | None = None


class InvitationAcceptRequest(ContractModel):
    invitation_code: str = Field(min_length=1, max_length=32)


class PartnershipResponse(ContractModel):
    """A partnership as seen by one of its members."""

    partnership_id: str
    user1_id: str
    user2_id: str
    partner_id: str
    created_at_utc: str
    last_story_date: date | None = None
    next_author_id: str | None = None
    enabled_categories: list[Category]
    shared_trip_date: date | None = None
    days_until_trip: int | None = None


class PartnershipSettingsRequest(ContractModel):
    """Partial settings update; an empty category list restores the defaults."""

    enabled_categories: list[Category] | None = None
    shared_trip_date: date | None = None
    clear_trip_date: bool = False


class StoryResponse(ContractModel):
    story_id: str
    date_assigned: date
    items: dict[Category, str]
    prompt_text: str
    assigned_author: StoryAuthor
    assigned_user_id: str | None = None
    story_text: str | None = None
    is_favorite: bool = False
    is_my_turn: bool = False


class DailyPromptResponse(ContractModel):
    story: StoryResponse
    state: str
    created: bool


class StoryTextRequest(ContractModel):
    """Story text is forwarded untrimmed so moderation sees what the user typed."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=False)

    story_text: str = Field(max_length=50_000)


class StorySaveResponse(ContractModel):
    saved: bool
    message: str | None = None
    story: StoryResponse | None = None
    touched: list[str] = Field(default_factory=list)


class FavoriteResponse(ContractModel):
    story_id: str
    is_favorite: bool


class HistoryClearResponse(ContractModel):
    removed: int


class DraftRequest(ContractModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=False)

    text: str = Field(max_length=50_000)


class DraftResponse(ContractModel):
    story_id: str
    text: str
    saved_at_utc: str


class ErrorResponse(ContractModel):
    detail: str
    reason: str | None = None
