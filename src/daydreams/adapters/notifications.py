"""Notification delivery: an in-process outbox and an HTTP push gateway."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

import httpx

from daydreams.core.notifications import NotificationMessage, next_fire_time

logger = logging.getLogger(__name__)

DeviceTokenLookup = Callable[[str], str | None]

MAX_OUTBOX_PER_USER = 50


@dataclass(frozen=True)
class DeliveredNotification:
    """One notification queued for a user's devices."""

    notification_id: str
    user_id: str
    title: str
    body: str
    data: dict[str, str]
    created_at_utc: str


@dataclass(frozen=True)
class ScheduledNotification:
    """A repeating daily notification at a fixed local time."""

    user_id: str
    hour: int
    minute: int
    title: str
    body: str
    next_fire_at: datetime


class LocalNotificationCenter:
    """Per-user outbox that clients drain, plus daily reminder schedules."""

    def __init__(self) -> None:
        self._outbox: dict[str, list[DeliveredNotification]] = defaultdict(list)
        self._schedules: dict[str, ScheduledNotification] = {}

    async def notify(
        self, *, user_id: str, title: str, body: str, data: dict[str, str] | None = None
    ) -> bool:
        notification = DeliveredNotification(
            notification_id=uuid4().hex,
            user_id=user_id,
            title=title,
            body=body,
            data=dict(data or {}),
            created_at_utc=datetime.now(UTC).isoformat(),
        )
        outbox = self._outbox[user_id]
        outbox.append(notification)
        # Oldest undrained entries are dropped first.
        del outbox[:-MAX_OUTBOX_PER_USER]
        logger.info("notification.local user_id=%s title=%s", user_id, title)
        return True

    async def send(self, *, user_id: str, message: NotificationMessage) -> bool:
        return await self.notify(
            user_id=user_id, title=message.title, body=message.body, data=message.data
        )

    def pending(self, user_id: str) -> list[DeliveredNotification]:
        return list(self._outbox.get(user_id, []))

    def drain(self, user_id: str) -> list[DeliveredNotification]:
        return self._outbox.pop(user_id, [])

    def schedule_daily(
        self,
        *,
        user_id: str,
        hour: int,
        minute: int,
        message: NotificationMessage,
        now: datetime,
    ) -> ScheduledNotification:
        """Replace the user's daily reminder with one firing at hour:minute."""
        scheduled = ScheduledNotification(
            user_id=user_id,
            hour=hour,
            minute=minute,
            title=message.title,
            body=message.body,
            next_fire_at=next_fire_time(now, hour=hour, minute=minute),
        )
        self._schedules[user_id] = scheduled
        logger.info(
            "notification.schedule user_id=%s at=%02d:%02d next=%s",
            user_id,
            hour,
            minute,
            scheduled.next_fire_at.isoformat(),
        )
        return scheduled

    def schedule_for(self, user_id: str) -> ScheduledNotification | None:
        return self._schedules.get(user_id)

    def cancel_schedule(self, user_id: str) -> bool:
        return self._schedules.pop(user_id, None) is not None

    async def fire_due(self, now: datetime) -> int:
        """Deliver every schedule whose time has come and roll it to the next day."""
        fired = 0
        for user_id, scheduled in list(self._schedules.items()):
            if scheduled.next_fire_at > now:
                continue
            await self.notify(
                user_id=user_id,
                title=scheduled.title,
                body=scheduled.body,
                data={"type": "daily_reminder"},
            )
            self._schedules[user_id] = ScheduledNotification(
                user_id=user_id,
                hour=scheduled.hour,
                minute=scheduled.minute,
                title=scheduled.title,
                body=scheduled.body,
                next_fire_at=next_fire_time(
                    now.astimezone(scheduled.next_fire_at.tzinfo),
                    hour=scheduled.hour,
                    minute=scheduled.minute,
                ),
            )
            fired += 1
        return fired


class PushGateway:
    """Posts notifications to an FCM-style HTTP endpoint for a user's device token."""

    def __init__(
        self,
        *,
        push_url: str,
        server_key: str,
        token_lookup: DeviceTokenLookup,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._push_url = push_url.strip()
        self._server_key = server_key.strip()
        self._token_lookup = token_lookup
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._push_url)

    async def notify(
        self, *, user_id: str, title: str, body: str, data: dict[str, str] | None = None
    ) -> bool:
        if not self.enabled:
            return False
        device_token = await asyncio.to_thread(self._token_lookup, user_id)
        if not device_token:
            logger.info("push.skip user_id=%s reason=no_device_token", user_id)
            return False
        payload = {
            "to": device_token,
            "notification": {"title": title, "body": body, "sound": "default"},
            "data": dict(data or {}),
            "priority": "high",
        }
        headers = {"Content-Type": "application/json"}
        if self._server_key:
            headers["Authorization"] = f"key={self._server_key}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self._push_url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("push.failed user_id=%s error=%s", user_id, exc)
            return False
        logger.info("push.sent user_id=%s title=%s", user_id, title)
        return True


class CompositeNotifier:
    """Fans one notification out to the local outbox and the push gateway."""

    def __init__(self, local: LocalNotificationCenter, push: PushGateway | None = None) -> None:
        self._local = local
        self._push = push

    @property
    def local(self) -> LocalNotificationCenter:
        return self._local

    async def notify(
        self, *, user_id: str, title: str, body: str, data: dict[str, str] | None = None
    ) -> bool:
        deliveries = [self._local.notify(user_id=user_id, title=title, body=body, data=data)]
        if self._push is not None and self._push.enabled:
            deliveries.append(
                self._push.notify(user_id=user_id, title=title, body=body, data=data)
            )
        results = await asyncio.gather(*deliveries)
        return any(results)
