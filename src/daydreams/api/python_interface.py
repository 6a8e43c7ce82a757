"""Python-first client for the daydreams HTTP API."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

import httpx

from daydreams.api.contracts import (
    DailyPromptResponse,
    FavoriteResponse,
    InvitationAcceptRequest,
    InvitationResponse,
    NotificationResponse,
    PartnershipResponse,
    PartnershipSettingsRequest,
    StoryResponse,
    StorySaveResponse,
    StoryTextRequest,
)
from daydreams.domain.models import Category


@dataclass(frozen=True)
class AuthSession:
    """Authenticated client session."""

    access_token: str
    api_base_url: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}


class DaydreamApiClient:
    """Tiny typed API client for scripts and tests."""

    def __init__(self, api_base_url: str = "http://127.0.0.1:8000") -> None:
        self._api_base_url = api_base_url.rstrip("/")

    @property
    def api_base_url(self) -> str:
        return self._api_base_url

    def register(self, *, email: str, password: str, display_name: str) -> None:
        response = httpx.post(
            f"{self._api_base_url}/api/v1/auth/register",
            json={"email": email, "password": password, "display_name": display_name},
            timeout=30.0,
        )
        response.raise_for_status()

    def login(self, *, email: str, password: str) -> AuthSession:
        """Authenticate and return a reusable auth session."""
        response = httpx.post(
            f"{self._api_base_url}/api/v1/auth/login",
            json={"email": email, "password": password},
            timeout=30.0,
        )
        response.raise_for_status()
        payload = response.json()
        return AuthSession(
            access_token=str(payload["access_token"]), api_base_url=self._api_base_url
        )

    def create_invitation(self, *, session: AuthSession) -> InvitationResponse:
        response = httpx.post(
            f"{session.api_base_url}/api/v1/invitations",
            headers=session.headers,
            timeout=30.0,
        )
        response.raise_for_status()
        return InvitationResponse.model_validate(response.json())

    def accept_invitation(self, *, session: AuthSession, code: str) -> PartnershipResponse:
        request = InvitationAcceptRequest(invitation_code=code)
        response = httpx.post(
            f"{session.api_base_url}/api/v1/invitations/accept",
            json=request.model_dump(mode="json"),
            headers=session.headers,
            timeout=30.0,
        )
        response.raise_for_status()
        return PartnershipResponse.model_validate(response.json())

    def list_partnerships(self, *, session: AuthSession) -> list[PartnershipResponse]:
        response = httpx.get(
            f"{session.api_base_url}/api/v1/partnerships",
            headers=session.headers,
            timeout=30.0,
        )
        response.raise_for_status()
        return [PartnershipResponse.model_validate(item) for item in response.json()]

    def update_settings(
        self,
        *,
        session: AuthSession,
        partnership_id: str,
        categories: Sequence[Category] | None = None,
        trip_date: date | None = None,
    ) -> PartnershipResponse:
        """Change enabled categories and/or the shared trip date."""
        request = PartnershipSettingsRequest(
            enabled_categories=list(categories) if categories is not None else None,
            shared_trip_date=trip_date,
        )
        response = httpx.put(
            f"{session.api_base_url}/api/v1/partnerships/{partnership_id}/settings",
            json=request.model_dump(mode="json", exclude_none=True),
            headers=session.headers,
            timeout=30.0,
        )
        response.raise_for_status()
        return PartnershipResponse.model_validate(response.json())

    def today_prompt(self, *, session: AuthSession, partnership_id: str) -> DailyPromptResponse:
        """Fetch today's shared prompt, creating it when nobody has yet."""
        response = httpx.post(
            f"{session.api_base_url}/api/v1/partnerships/{partnership_id}/prompts/today",
            headers=session.headers,
            timeout=30.0,
        )
        response.raise_for_status()
        return DailyPromptResponse.model_validate(response.json())

    def next_prompt(self, *, session: AuthSession, partnership_id: str) -> DailyPromptResponse:
        response = httpx.post(
            f"{session.api_base_url}/api/v1/partnerships/{partnership_id}/prompts/next",
            headers=session.headers,
            timeout=30.0,
        )
        response.raise_for_status()
        return DailyPromptResponse.model_validate(response.json())

    def save_story_text(
        self, *, session: AuthSession, partnership_id: str, story_id: str, text: str
    ) -> StorySaveResponse:
        request = StoryTextRequest(story_text=text)
        response = httpx.put(
            f"{session.api_base_url}/api/v1/partnerships/{partnership_id}"
            f"/stories/{story_id}/text",
            json=request.model_dump(mode="json"),
            headers=session.headers,
            timeout=30.0,
        )
        response.raise_for_status()
        return StorySaveResponse.model_validate(response.json())

    def toggle_favorite(
        self, *, session: AuthSession, partnership_id: str, story_id: str
    ) -> FavoriteResponse:
        response = httpx.post(
            f"{session.api_base_url}/api/v1/partnerships/{partnership_id}"
            f"/stories/{story_id}/favorite",
            headers=session.headers,
            timeout=30.0,
        )
        response.raise_for_status()
        return FavoriteResponse.model_validate(response.json())

    def history(self, *, session: AuthSession, partnership_id: str) -> list[StoryResponse]:
        response = httpx.get(
            f"{session.api_base_url}/api/v1/partnerships/{partnership_id}/history",
            headers=session.headers,
            timeout=30.0,
        )
        response.raise_for_status()
        return [StoryResponse.model_validate(item) for item in response.json()]

    def favorites(self, *, session: AuthSession) -> list[StoryResponse]:
        response = httpx.get(
            f"{session.api_base_url}/api/v1/favorites",
            headers=session.headers,
            timeout=30.0,
        )
        response.raise_for_status()
        return [StoryResponse.model_validate(item) for item in response.json()]

    def notifications(self, *, session: AuthSession) -> list[NotificationResponse]:
        """Drain notifications queued for the signed-in user."""
        response = httpx.get(
            f"{session.api_base_url}/api/v1/me/notifications",
            headers=session.headers,
            timeout=30.0,
        )
        response.raise_for_status()
        return [NotificationResponse.model_validate(item) for item in response.json()]


__all__ = ["AuthSession", "DaydreamApiClient"]
