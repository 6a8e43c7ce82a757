"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_DB_PATH = Path("work/local/daydreams.db")
DEFAULT_LOG_PATH = Path("work/logs/daydreams.log")
DEFAULT_CORS_ORIGINS = ("http://127.0.0.1:5173", "http://localhost:5173")


def str_env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = str_env(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def zone_env(name: str, default: str = "UTC") -> ZoneInfo:
    raw = str_env(name, default) or default
    try:
        return ZoneInfo(raw)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo(default)


@dataclass(frozen=True)
class RuntimeSettings:
    """Every tunable the service reads at startup."""

    db_path: Path = DEFAULT_DB_PATH
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    token_ttl_hours: int = 24
    push_url: str = ""
    push_server_key: str = ""
    push_timeout_seconds: int = 10
    remote_config_url: str = ""
    remote_config_min_fetch_seconds: int = 3600
    timezone: ZoneInfo = ZoneInfo("UTC")
    draft_max_age_days: int = 7

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> RuntimeSettings:
        raw_origins = str_env("DAYDREAMS_CORS_ORIGINS")
        origins = (
            tuple(origin.strip() for origin in raw_origins.split(",") if origin.strip())
            if raw_origins
            else DEFAULT_CORS_ORIGINS
        )
        env_db_path = str_env("DAYDREAMS_DB_PATH")
        return cls(
            db_path=db_path or (Path(env_db_path) if env_db_path else DEFAULT_DB_PATH),
            cors_origins=origins,
            token_ttl_hours=int_env("DAYDREAMS_TOKEN_TTL_HOURS", 24, minimum=1, maximum=24 * 30),
            push_url=str_env("DAYDREAMS_PUSH_URL"),
            push_server_key=str_env("DAYDREAMS_PUSH_SERVER_KEY"),
            push_timeout_seconds=int_env(
                "DAYDREAMS_PUSH_TIMEOUT_SECONDS", 10, minimum=1, maximum=120
            ),
            remote_config_url=str_env("DAYDREAMS_REMOTE_CONFIG_URL"),
            remote_config_min_fetch_seconds=int_env(
                "DAYDREAMS_REMOTE_CONFIG_MIN_FETCH_SECONDS", 3600, minimum=0, maximum=86_400
            ),
            timezone=zone_env("DAYDREAMS_DEFAULT_TIMEZONE"),
            draft_max_age_days=int_env("DAYDREAMS_DRAFT_MAX_AGE_DAYS", 7, minimum=1, maximum=365),
        )
