"""Runtime logging configuration with bounded retention."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from daydreams.adapters.runtime_config import DEFAULT_LOG_PATH, int_env, str_env

_CONFIGURED = False
_QUIET_LOGGERS = ("httpx", "httpcore")


def _level(name: str, default: int) -> int:
    level_name = str_env(name).upper()
    if not level_name:
        return default
    resolved = logging.getLevelName(level_name)
    return resolved if isinstance(resolved, int) else default


def configure_runtime_logging(*, force: bool = False) -> None:
    """Configure console + rotating file logs once per process."""
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    log_path = Path(str_env("DAYDREAMS_LOG_PATH") or DEFAULT_LOG_PATH)
    max_bytes = int_env(
        "DAYDREAMS_LOG_MAX_BYTES", 5 * 1024 * 1024, minimum=64 * 1024, maximum=100 * 1024 * 1024
    )
    backup_count = int_env("DAYDREAMS_LOG_BACKUP_COUNT", 10, minimum=1, maximum=120)

    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    handlers: list[logging.Handler] = [
        logging.StreamHandler(),
        RotatingFileHandler(
            filename=log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        ),
    ]
    root = logging.getLogger()
    root.setLevel(_level("DAYDREAMS_LOG_LEVEL", logging.INFO))
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(
        _level("DAYDREAMS_ACCESS_LOG_LEVEL", logging.WARNING)
    )
    # httpx logs every request at INFO.
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _CONFIGURED = True
