"""Remote feature-flag fetching with a minimum refetch interval."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

logger = logging.getLogger(__name__)

WEATHER_API_KEY = "weather_api_key"
DEFAULT_VALUES: dict[str, str] = {WEATHER_API_KEY: ""}


@dataclass
class _ConfigCache:
    values: dict[str, str] = field(default_factory=dict)
    fetched_at: float | None = None


class RemoteConfigClient:
    """Fetches a flat JSON object of string flags and serves cached values between fetches."""

    def __init__(
        self,
        *,
        url: str,
        minimum_fetch_interval_seconds: int = 3600,
        defaults: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._url = url.strip()
        self._minimum_fetch_interval_seconds = minimum_fetch_interval_seconds
        self._defaults = dict(DEFAULT_VALUES if defaults is None else defaults)
        self._transport = transport
        self._clock = clock
        self._cache = _ConfigCache()

    def _is_fresh(self) -> bool:
        if self._cache.fetched_at is None:
            return False
        return self._clock() - self._cache.fetched_at < self._minimum_fetch_interval_seconds

    async def fetch_and_activate(self) -> bool:
        """Refresh the cache unless it is younger than the minimum interval."""
        if not self._url or self._is_fresh():
            return False
        try:
            async with httpx.AsyncClient(
                timeout=10.0, follow_redirects=True, transport=self._transport
            ) as client:
                response = await client.get(self._url)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("remote_config.fetch_failed url=%s error=%s", self._url, exc)
            return False
        if not isinstance(payload, dict):
            logger.warning("remote_config.invalid_payload type=%s", type(payload).__name__)
            return False
        self._cache.values = {str(key): str(value) for key, value in payload.items()}
        self._cache.fetched_at = self._clock()
        logger.info("remote_config.activated keys=%s", sorted(self._cache.values))
        return True

    async def get_string(self, key: str) -> str:
        await self.fetch_and_activate()
        if key in self._cache.values:
            return self._cache.values[key]
        return self._defaults.get(key, "")
