"""FastAPI application coordinating partnerships, daily prompts, and stories."""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import hmac
import logging
import random
import secrets
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from typing import Any, Literal

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from daydreams.adapters.notifications import (
    CompositeNotifier,
    LocalNotificationCenter,
    PushGateway,
)
from daydreams.adapters.remote_config import WEATHER_API_KEY, RemoteConfigClient
from daydreams.adapters.runtime_config import RuntimeSettings
from daydreams.adapters.sqlite_account_store import Account, SQLiteAccountStore
from daydreams.adapters.sqlite_daydream_store import SQLiteDaydreamStore
from daydreams.adapters.sqlite_draft_store import SQLiteDraftStore
from daydreams.adapters.sqlite_partnership_store import SQLitePartnershipStore
from daydreams.api.contracts import (
    AuthLoginRequest,
    AuthRegisterRequest,
    AuthTokenResponse,
    DailyPromptResponse,
    DeviceTokenRequest,
    DraftRequest,
    DraftResponse,
    ErrorResponse,
    FavoriteResponse,
    HistoryClearResponse,
    InvitationAcceptRequest,
    InvitationResponse,
    NotificationResponse,
    PartnershipResponse,
    PartnershipSettingsRequest,
    ReminderRequest,
    ReminderResponse,
    StoryResponse,
    StorySaveResponse,
    StoryTextRequest,
    UserResponse,
)
from daydreams.application.daily_prompt import DailyPromptCoordinator, DailyPromptResult
from daydreams.application.drafts import DraftService
from daydreams.application.errors import (
    DaydreamError,
    InvitationError,
    NotAMemberError,
    PartnershipNotFoundError,
    PromptPersistError,
    StoryNotFoundError,
)
from daydreams.application.mirror import StoryMirror
from daydreams.application.partnerships import PartnershipService
from daydreams.core.notifications import daily_reminder_message
from daydreams.core.validation import (
    ValidationError,
    validate_display_name,
    validate_email,
    validate_password,
)
from daydreams.domain.models import DaydreamStory, PalInvitation, Partnership

PBKDF2_ITERATIONS = 310_000
REMINDER_POLL_SECONDS = 60.0

logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[DaydreamError], int] = {
    PartnershipNotFoundError: status.HTTP_404_NOT_FOUND,
    NotAMemberError: status.HTTP_404_NOT_FOUND,
    StoryNotFoundError: status.HTTP_404_NOT_FOUND,
    InvitationError: status.HTTP_409_CONFLICT,
    PromptPersistError: status.HTTP_503_SERVICE_UNAVAILABLE,
}
_ERROR_DETAIL: dict[type[DaydreamError], str] = {
    PartnershipNotFoundError: "Partnership not found",
    NotAMemberError: "Partnership not found",
    StoryNotFoundError: "Story not found",
}
_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"model": ErrorResponse} for code in (404, 409, 422, 503)
}


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    service: str = "daydreams"


class ApiRootResponse(BaseModel):
    """Describes currently available API capabilities."""

    name: str = "daydreams"
    persistence: Literal["sqlite"] = "sqlite"
    auth: Literal["bearer-token"] = "bearer-token"
    endpoints: list[str] = Field(
        default_factory=lambda: [
            "/healthz",
            "/api/v1",
            "/api/v1/auth/register",
            "/api/v1/auth/login",
            "/api/v1/auth/logout",
            "/api/v1/me",
            "/api/v1/me/device-token",
            "/api/v1/me/notifications",
            "/api/v1/me/reminder",
            "/api/v1/config",
            "/api/v1/invitations",
            "/api/v1/invitations/{invitation_code}",
            "/api/v1/invitations/accept",
            "/api/v1/invitations/{invitation_id}/decline",
            "/api/v1/partnerships",
            "/api/v1/partnerships/{partnership_id}",
            "/api/v1/partnerships/{partnership_id}/settings",
            "/api/v1/partnerships/{partnership_id}/prompts/today",
            "/api/v1/partnerships/{partnership_id}/prompts/next",
            "/api/v1/partnerships/{partnership_id}/stories/{story_id}/text",
            "/api/v1/partnerships/{partnership_id}/stories/{story_id}/favorite",
            "/api/v1/partnerships/{partnership_id}/history",
            "/api/v1/partnerships/{partnership_id}/favorites/{story_id}",
            "/api/v1/favorites",
            "/api/v1/drafts/{story_id}",
        ]
    )


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _hash_password(password: str) -> str:
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt.hex()}${digest.hex()}"


def _verify_password(password: str, password_hash: str) -> bool:
    try:
        algorithm, iterations, salt_hex, digest_hex = password_hash.split("$", maxsplit=3)
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    recomputed = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), bytes.fromhex(salt_hex), int(iterations)
    )
    return hmac.compare_digest(recomputed.hex(), digest_hex)


def _user_response(user: Account) -> UserResponse:
    return UserResponse(
        user_id=user.user_id,
        email=user.email,
        display_name=user.display_name,
        created_at_utc=user.created_at.isoformat(),
    )


def _invitation_response(invitation: PalInvitation) -> InvitationResponse:
    return InvitationResponse(
        invitation_id=invitation.invitation_id,
        from_user_id=invitation.from_user_id,
        from_user_name=invitation.from_user_name,
        invitation_code=invitation.invitation_code,
        status=invitation.status,
        created_at_utc=invitation.created_at.isoformat(),
        expires_at_utc=invitation.expires_at.isoformat(),
        to_user_id=invitation.to_user_id,
    )


def _partnership_response(
    partnership: Partnership, *, user_id: str, today: date
) -> PartnershipResponse:
    return PartnershipResponse(
        partnership_id=partnership.partnership_id,
        user1_id=partnership.user1_id,
        user2_id=partnership.user2_id,
        partner_id=partnership.partner_of(user_id) or "",
        created_at_utc=partnership.created_at.isoformat(),
        last_story_date=partnership.last_story_date,
        next_author_id=partnership.next_author_id,
        enabled_categories=list(partnership.enabled_categories),
        shared_trip_date=partnership.shared_trip_date,
        days_until_trip=partnership.days_until_trip(today),
    )


def _story_response(
    story: DaydreamStory, *, partnership: Partnership | None = None, user_id: str | None = None
) -> StoryResponse:
    assigned_user_id = (
        partnership.user_for(story.assigned_author) if partnership is not None else None
    )
    return StoryResponse(
        story_id=story.story_id,
        date_assigned=story.date_assigned,
        items=dict(story.items),
        prompt_text=story.prompt_text,
        assigned_author=story.assigned_author,
        assigned_user_id=assigned_user_id,
        story_text=story.story_text,
        is_favorite=story.is_favorite,
        is_my_turn=assigned_user_id is not None and assigned_user_id == user_id,
    )


def create_app(
    db_path: Path | None = None,
    *,
    settings: RuntimeSettings | None = None,
    clock: Callable[[], datetime] = _utc_now,
    rng: random.Random | None = None,
    push_transport: httpx.AsyncBaseTransport | None = None,
    config_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create the API application with every service wired against one SQLite file."""
    runtime = settings or RuntimeSettings.from_env()
    if db_path is not None:
        runtime = replace(runtime, db_path=db_path)

    accounts = SQLiteAccountStore(db_path=runtime.db_path)
    partnership_store = SQLitePartnershipStore(db_path=runtime.db_path)
    story_store = SQLiteDaydreamStore(db_path=runtime.db_path)
    draft_store = SQLiteDraftStore(db_path=runtime.db_path)

    local_notifications = LocalNotificationCenter()
    push = PushGateway(
        push_url=runtime.push_url,
        server_key=runtime.push_server_key,
        token_lookup=accounts.device_token_for,
        timeout_seconds=float(runtime.push_timeout_seconds),
        transport=push_transport,
    )
    notifier = CompositeNotifier(local_notifications, push)
    remote_config = RemoteConfigClient(
        url=runtime.remote_config_url,
        minimum_fetch_interval_seconds=runtime.remote_config_min_fetch_seconds,
        transport=config_transport,
    )

    coordinator = DailyPromptCoordinator(
        stories=story_store, partnerships=partnership_store, notifier=notifier, rng=rng
    )
    mirror = StoryMirror(stories=story_store, partnerships=partnership_store, notifier=notifier)
    partnerships = PartnershipService(partnerships=partnership_store, rng=rng, clock=clock)
    drafts = DraftService(drafts=draft_store, max_age_days=runtime.draft_max_age_days, clock=clock)
    bearer = HTTPBearer(auto_error=False)

    def today() -> date:
        return clock().astimezone(runtime.timezone).date()

    async def reminder_loop() -> None:
        while True:
            await asyncio.sleep(REMINDER_POLL_SECONDS)
            fired = await local_notifications.fire_due(clock())
            if fired:
                logger.info("reminder.fired count=%s", fired)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        expired = partnerships.cleanup_expired_invitations()
        removed = drafts.cleanup_old()
        sessions = accounts.prune_sessions(now=_utc_now())
        logger.info(
            "startup.cleanup expired_invitations=%s stale_drafts=%s expired_sessions=%s",
            expired,
            removed,
            sessions,
        )
        await remote_config.fetch_and_activate()
        reminders = asyncio.create_task(reminder_loop())
        try:
            yield
        finally:
            reminders.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reminders

    app = FastAPI(
        title="daydreams API",
        version="0.1.0",
        description="Shared daily Disney daydream prompts for two-person partnerships.",
        lifespan=lifespan,
        responses=_ERROR_RESPONSES,
        openapi_tags=[
            {"name": "system", "description": "Service health and runtime metadata."},
            {"name": "auth", "description": "Registration, login, and device registration."},
            {"name": "invitations", "description": "Invitation codes and redemption."},
            {"name": "partnerships", "description": "Partnership listing and settings."},
            {"name": "prompts", "description": "Daily prompt get-or-create."},
            {"name": "stories", "description": "Story text, favorites, history, and drafts."},
        ],
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(runtime.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("api.start db_path=%s timezone=%s", runtime.db_path, runtime.timezone.key)

    @app.exception_handler(ValidationError)
    async def _on_validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(detail=exc.message, reason=exc.reason.value).model_dump(),
        )

    @app.exception_handler(DaydreamError)
    async def _on_daydream_error(_: Request, exc: DaydreamError) -> JSONResponse:
        status_code = _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
        detail = _ERROR_DETAIL.get(type(exc), str(exc))
        content = ErrorResponse(detail=detail).model_dump(exclude_none=True)
        return JSONResponse(status_code=status_code, content=content)

    def current_user(
        credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    ) -> Account:
        if credentials is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing bearer token",
            )
        user = accounts.account_for_session(token=credentials.credentials, now=_utc_now())
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
            )
        return user

    @app.get("/healthz", response_model=HealthResponse, tags=["system"])
    def healthz() -> HealthResponse:
        return HealthResponse()

    @app.get("/api/v1", response_model=ApiRootResponse, tags=["system"])
    def api_v1_root() -> ApiRootResponse:
        return ApiRootResponse()

    @app.post("/api/v1/auth/register", response_model=UserResponse, tags=["auth"], status_code=201)
    def register(payload: AuthRegisterRequest) -> UserResponse:
        email = validate_email(payload.email)
        password = validate_password(payload.password.get_secret_value())
        display_name = validate_display_name(payload.display_name)
        created = accounts.create_account(
            email=email, display_name=display_name, password_hash=_hash_password(password)
        )
        if created is None:
            raise HTTPException(status_code=409, detail="Email already registered")
        return _user_response(created)

    @app.post("/api/v1/auth/login", response_model=AuthTokenResponse, tags=["auth"])
    def login(payload: AuthLoginRequest) -> AuthTokenResponse:
        user = accounts.find_account(email=payload.email)
        if user is None or not _verify_password(
            payload.password.get_secret_value(), user.password_hash
        ):
            raise HTTPException(status_code=401, detail="Invalid credentials")
        session = accounts.open_session(
            user_id=user.user_id, ttl=timedelta(hours=runtime.token_ttl_hours), now=_utc_now()
        )
        return AuthTokenResponse(
            access_token=session.token, expires_at_utc=session.expires_at.isoformat()
        )

    @app.post("/api/v1/auth/logout", status_code=204, tags=["auth"])
    def logout(user: Account = Depends(current_user)) -> Response:
        accounts.close_sessions(user_id=user.user_id)
        return Response(status_code=204)

    @app.get("/api/v1/me", response_model=UserResponse, tags=["auth"])
    def me(user: Account = Depends(current_user)) -> UserResponse:
        return _user_response(user)

    @app.put("/api/v1/me/device-token", status_code=204, tags=["auth"])
    def register_device(
        payload: DeviceTokenRequest, user: Account = Depends(current_user)
    ) -> Response:
        accounts.set_device_token(user_id=user.user_id, device_token=payload.device_token)
        return Response(status_code=204)

    @app.get(
        "/api/v1/me/notifications", response_model=list[NotificationResponse], tags=["auth"]
    )
    def drain_notifications(user: Account = Depends(current_user)) -> list[NotificationResponse]:
        return [
            NotificationResponse(
                notification_id=item.notification_id,
                title=item.title,
                body=item.body,
                data=item.data,
                created_at_utc=item.created_at_utc,
            )
            for item in local_notifications.drain(user.user_id)
        ]

    @app.put("/api/v1/me/reminder", response_model=ReminderResponse, tags=["auth"])
    def schedule_reminder(
        payload: ReminderRequest, user: Account = Depends(current_user)
    ) -> ReminderResponse:
        scheduled = local_notifications.schedule_daily(
            user_id=user.user_id,
            hour=payload.hour,
            minute=payload.minute,
            message=daily_reminder_message(),
            now=clock().astimezone(runtime.timezone),
        )
        return ReminderResponse(
            hour=scheduled.hour,
            minute=scheduled.minute,
            next_fire_at=scheduled.next_fire_at.isoformat(),
        )

    @app.delete("/api/v1/me/reminder", status_code=204, tags=["auth"])
    def cancel_reminder(user: Account = Depends(current_user)) -> Response:
        local_notifications.cancel_schedule(user.user_id)
        return Response(status_code=204)

    @app.get("/api/v1/config", response_model=dict[str, str], tags=["system"])
    async def remote_flags(user: Account = Depends(current_user)) -> dict[str, str]:
        return {WEATHER_API_KEY: await remote_config.get_string(WEATHER_API_KEY)}

    @app.post(
        "/api/v1/invitations",
        response_model=InvitationResponse,
        tags=["invitations"],
        status_code=201,
    )
    def create_invitation(user: Account = Depends(current_user)) -> InvitationResponse:
        invitation = partnerships.create_invitation(
            from_user_id=user.user_id,
            from_user_name=user.display_name,
            from_user_email=user.email,
        )
        return _invitation_response(invitation)

    @app.get(
        "/api/v1/invitations", response_model=list[InvitationResponse], tags=["invitations"]
    )
    def list_invitations(user: Account = Depends(current_user)) -> list[InvitationResponse]:
        return [_invitation_response(item) for item in partnerships.list_invitations(user.user_id)]

    @app.post(
        "/api/v1/invitations/accept",
        response_model=PartnershipResponse,
        tags=["invitations"],
        status_code=201,
    )
    def accept_invitation(
        payload: InvitationAcceptRequest, user: Account = Depends(current_user)
    ) -> PartnershipResponse:
        partnership = partnerships.accept_invitation(
            code=payload.invitation_code, user_id=user.user_id
        )
        return _partnership_response(partnership, user_id=user.user_id, today=today())

    @app.get(
        "/api/v1/invitations/{invitation_code}",
        response_model=InvitationResponse,
        tags=["invitations"],
    )
    def find_invitation(
        invitation_code: str, user: Account = Depends(current_user)
    ) -> InvitationResponse:
        invitation = partnerships.find_invitation(invitation_code)
        if invitation is None:
            raise HTTPException(status_code=404, detail="Invitation not found")
        return _invitation_response(invitation)

    @app.post(
        "/api/v1/invitations/{invitation_id}/decline",
        response_model=InvitationResponse,
        tags=["invitations"],
    )
    def decline_invitation(
        invitation_id: str, user: Account = Depends(current_user)
    ) -> InvitationResponse:
        declined = partnerships.decline_invitation(
            invitation_id=invitation_id, user_id=user.user_id
        )
        return _invitation_response(declined)

    @app.get(
        "/api/v1/partnerships", response_model=list[PartnershipResponse], tags=["partnerships"]
    )
    def list_partnerships(user: Account = Depends(current_user)) -> list[PartnershipResponse]:
        current_day = today()
        return [
            _partnership_response(item, user_id=user.user_id, today=current_day)
            for item in partnerships.list_partnerships(user.user_id)
        ]

    @app.get(
        "/api/v1/partnerships/{partnership_id}",
        response_model=PartnershipResponse,
        tags=["partnerships"],
    )
    def get_partnership(
        partnership_id: str, user: Account = Depends(current_user)
    ) -> PartnershipResponse:
        partnership = partnerships.get_partnership(partnership_id, user.user_id)
        return _partnership_response(partnership, user_id=user.user_id, today=today())

    @app.put(
        "/api/v1/partnerships/{partnership_id}/settings",
        response_model=PartnershipResponse,
        tags=["partnerships"],
    )
    def update_settings(
        partnership_id: str,
        payload: PartnershipSettingsRequest,
        user: Account = Depends(current_user),
    ) -> PartnershipResponse:
        updated = partnerships.update_settings(
            partnership_id,
            user.user_id,
            categories=payload.enabled_categories,
            trip_date=payload.shared_trip_date,
            clear_trip_date=payload.clear_trip_date,
        )
        return _partnership_response(updated, user_id=user.user_id, today=today())

    @app.delete("/api/v1/partnerships/{partnership_id}", status_code=204, tags=["partnerships"])
    def delete_partnership(
        partnership_id: str, user: Account = Depends(current_user)
    ) -> Response:
        partnerships.remove_partnership(partnership_id, user.user_id)
        coordinator.forget(partnership_id)
        return Response(status_code=204)

    async def prompt_response(
        partnership_id: str, result: DailyPromptResult, user: Account
    ) -> DailyPromptResponse:
        partnership = await mirror.member_partnership(partnership_id, user.user_id)
        is_favorite = await asyncio.to_thread(
            story_store.is_favorite, user_id=user.user_id, story_id=result.story.story_id
        )
        return DailyPromptResponse(
            story=_story_response(
                result.story.with_favorite(is_favorite),
                partnership=partnership,
                user_id=user.user_id,
            ),
            state=result.state.value,
            created=result.created,
        )

    @app.api_route(
        "/api/v1/partnerships/{partnership_id}/prompts/today",
        methods=["GET", "POST"],
        response_model=DailyPromptResponse,
        tags=["prompts"],
    )
    async def today_prompt(
        partnership_id: str, user: Account = Depends(current_user)
    ) -> DailyPromptResponse:
        result = await coordinator.get_or_create_today(
            partnership_id, today(), requested_by=user.user_id
        )
        return await prompt_response(partnership_id, result, user)

    @app.post(
        "/api/v1/partnerships/{partnership_id}/prompts/next",
        response_model=DailyPromptResponse,
        tags=["prompts"],
    )
    async def next_prompt(
        partnership_id: str, user: Account = Depends(current_user)
    ) -> DailyPromptResponse:
        result = await coordinator.next(partnership_id, today(), requested_by=user.user_id)
        return await prompt_response(partnership_id, result, user)

    @app.put(
        "/api/v1/partnerships/{partnership_id}/stories/{story_id}/text",
        response_model=StorySaveResponse,
        tags=["stories"],
    )
    async def save_story_text(
        partnership_id: str,
        story_id: str,
        payload: StoryTextRequest,
        user: Account = Depends(current_user),
    ) -> StorySaveResponse:
        result = await mirror.save_story_text(
            partnership_id,
            story_id,
            payload.story_text,
            user.user_id,
            author_name=user.display_name,
        )
        if result is None:
            return StorySaveResponse(saved=False, message="Nothing to save")
        if not result.success:
            raise HTTPException(status_code=503, detail=result.message or "Could not save story")
        partnership = await mirror.member_partnership(partnership_id, user.user_id)
        await asyncio.to_thread(drafts.delete, user_id=user.user_id, story_id=story_id)
        return StorySaveResponse(
            saved=True,
            story=(
                _story_response(result.story, partnership=partnership, user_id=user.user_id)
                if result.story is not None
                else None
            ),
            touched=result.touched,
        )

    @app.post(
        "/api/v1/partnerships/{partnership_id}/stories/{story_id}/favorite",
        response_model=FavoriteResponse,
        tags=["stories"],
    )
    async def toggle_favorite(
        partnership_id: str, story_id: str, user: Account = Depends(current_user)
    ) -> FavoriteResponse:
        result = await mirror.toggle_favorite(user.user_id, partnership_id, story_id)
        if not result.success or result.story is None:
            raise HTTPException(status_code=503, detail=result.message or "Could not update")
        return FavoriteResponse(story_id=story_id, is_favorite=result.story.is_favorite)

    @app.delete(
        "/api/v1/partnerships/{partnership_id}/favorites/{story_id}",
        status_code=204,
        tags=["stories"],
    )
    async def remove_favorite(
        partnership_id: str, story_id: str, user: Account = Depends(current_user)
    ) -> Response:
        result = await mirror.remove_favorite(user.user_id, partnership_id, story_id)
        if not result.success:
            raise HTTPException(status_code=503, detail=result.message or "Could not update")
        return Response(status_code=204)

    @app.get("/api/v1/favorites", response_model=list[StoryResponse], tags=["stories"])
    async def list_favorites(user: Account = Depends(current_user)) -> list[StoryResponse]:
        return [_story_response(story) for story in await mirror.list_favorites(user.user_id)]

    @app.get(
        "/api/v1/partnerships/{partnership_id}/history",
        response_model=list[StoryResponse],
        tags=["stories"],
    )
    async def list_history(
        partnership_id: str, user: Account = Depends(current_user)
    ) -> list[StoryResponse]:
        partnership = await mirror.member_partnership(partnership_id, user.user_id)
        stories = await mirror.list_history(user.user_id, partnership_id)
        return [
            _story_response(story, partnership=partnership, user_id=user.user_id)
            for story in stories
        ]

    @app.delete(
        "/api/v1/partnerships/{partnership_id}/history",
        response_model=HistoryClearResponse,
        tags=["stories"],
    )
    async def clear_history(
        partnership_id: str, user: Account = Depends(current_user)
    ) -> HistoryClearResponse:
        removed = await mirror.clear_history(user.user_id, partnership_id, today())
        return HistoryClearResponse(removed=removed)

    @app.put("/api/v1/drafts/{story_id}", response_model=DraftResponse | None, tags=["stories"])
    def save_draft(
        story_id: str, payload: DraftRequest, user: Account = Depends(current_user)
    ) -> DraftResponse | None:
        draft = drafts.save(user_id=user.user_id, story_id=story_id, text=payload.text)
        if draft is None:
            return None
        return DraftResponse(
            story_id=draft.story_id, text=draft.text, saved_at_utc=draft.saved_at.isoformat()
        )

    @app.get("/api/v1/drafts/{story_id}", response_model=DraftResponse, tags=["stories"])
    def load_draft(story_id: str, user: Account = Depends(current_user)) -> DraftResponse:
        draft = drafts.load(user_id=user.user_id, story_id=story_id)
        if draft is None:
            raise HTTPException(status_code=404, detail="Draft not found")
        return DraftResponse(
            story_id=draft.story_id, text=draft.text, saved_at_utc=draft.saved_at.isoformat()
        )

    @app.delete("/api/v1/drafts/{story_id}", status_code=204, tags=["stories"])
    def delete_draft(story_id: str, user: Account = Depends(current_user)) -> Response:
        drafts.delete(user_id=user.user_id, story_id=story_id)
        return Response(status_code=204)

    return app


app = create_app()
