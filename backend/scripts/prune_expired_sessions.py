"""Maintenance script to delete expired browser sessions.

Usage:
    uv run python scripts/prune_expired_sessions.py

Environment overrides:
    SESSION_PRUNE_BATCH_SIZE=500
    SESSION_PRUNE_MAX_ROWS=5000
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path
from time import perf_counter

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core import configure_logging, settings  # noqa: E402
from db import create_engine, create_session_maker  # noqa: E402
from services.auth import prune_expired_sessions  # noqa: E402
from services.auth.session_store import PRUNE_BATCH_SIZE  # noqa: E402

BATCH_SIZE_ENV = "SESSION_PRUNE_BATCH_SIZE"
MAX_ROWS_ENV = "SESSION_PRUNE_MAX_ROWS"
DEFAULT_MAX_ROWS = 5000

logger = logging.getLogger("scripts.prune_expired_sessions")


def _parse_positive_int(raw_value: str | None, *, default: int, label: str) -> int:
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        parsed = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{label} must be an integer") from exc
    if parsed <= 0:
        raise ValueError(f"{label} must be positive")
    return parsed


def _parse_non_negative_int(raw_value: str | None, *, default: int, label: str) -> int:
    """Like ``_parse_positive_int`` but zero is allowed (zero disables the cap)."""
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        parsed = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{label} must be an integer") from exc
    if parsed < 0:
        raise ValueError(f"{label} must be non-negative")
    return parsed


async def run() -> int:
    batch_size = _parse_positive_int(
        os.getenv(BATCH_SIZE_ENV),
        default=PRUNE_BATCH_SIZE,
        label=BATCH_SIZE_ENV,
    )
    max_rows = _parse_non_negative_int(
        os.getenv(MAX_ROWS_ENV),
        default=DEFAULT_MAX_ROWS,
        label=MAX_ROWS_ENV,
    )

    started_at = perf_counter()
    engine = create_engine(settings)
    try:
        async with create_session_maker(engine)() as session:
            deleted = await prune_expired_sessions(
                session,
                batch_size=batch_size,
                max_deleted=max_rows or None,
            )
    finally:
        await engine.dispose()

    elapsed_ms = int((perf_counter() - started_at) * 1000)
    logger.info(
        "Expired session prune complete: rows_deleted=%d, elapsed_ms=%d",
        deleted,
        elapsed_ms,
    )
    return deleted


def main() -> None:
    configure_logging(settings.log_level)
    asyncio.run(run())


if __name__ == "__main__":
    main()
