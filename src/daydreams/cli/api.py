"""CLI entrypoint for serving the daydreams HTTP API."""

from __future__ import annotations

import argparse
import os

import uvicorn

from daydreams.adapters.observability import configure_runtime_logging


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the daydreams API.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    parser.add_argument(
        "--db-path",
        default="",
        help="SQLite path for persistence (default: work/local/daydreams.db).",
    )
    parser.add_argument(
        "--timezone",
        default="",
        help="IANA zone used to decide which calendar day is 'today' (default: UTC).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI flags and start uvicorn against the module-level app."""
    configure_runtime_logging()
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)
    db_path = str(parsed.db_path).strip()
    if db_path:
        os.environ["DAYDREAMS_DB_PATH"] = db_path
    timezone = str(parsed.timezone).strip()
    if timezone:
        os.environ["DAYDREAMS_DEFAULT_TIMEZONE"] = timezone
    uvicorn.run(
        "daydreams.api.app:app",
        host=str(parsed.host),
        port=int(parsed.port),
        reload=bool(parsed.reload),
    )


if __name__ == "__main__":
    main()
