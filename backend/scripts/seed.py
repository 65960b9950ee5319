"""Database seed script for local development.

Usage:
    uv run python scripts/seed.py

Every demo account shares the password in ``SEED_PASSWORD`` (a policy-compliant
default is used when unset). Accounts that already exist are left untouched.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core import configure_logging, settings  # noqa: E402
from db import create_engine, create_session_maker  # noqa: E402
from services.users import CreateUser, UsersStorage  # noqa: E402

DEFAULT_PASSWORD = "Password123!"

logger = logging.getLogger("scripts.seed")


def build_seed_users(password: str) -> list[CreateUser]:
    rows: Sequence[tuple[str, str, str, str]] = [
        ("demo_alex", "Alex", "Demo", "Trying out the account service."),
        ("demo_bella", "Bella", "Demo", "Coffee and code."),
        ("demo_chris", "Chris", "Demo", "Weekend hiker."),
        ("demo_dana", "Dana", "Demo", "Always reading."),
        ("demo_eli", "Eli", "Demo", ""),
    ]
    return [
        CreateUser(
            username=username,
            email=f"{username.removeprefix('demo_')}@example.com",
            password=password,
            first_name=first_name,
            last_name=last_name,
            bio=bio or None,
        )
        for username, first_name, last_name, bio in rows
    ]


async def seed() -> None:
    password = os.getenv("SEED_PASSWORD") or DEFAULT_PASSWORD
    payloads = build_seed_users(password)

    engine = create_engine(settings)
    try:
        async with create_session_maker(engine)() as session:
            storage = UsersStorage(session)
            created = 0
            for payload in payloads:
                if await storage.get_by_username(payload.username) is not None:
                    continue
                if await storage.get_by_email(str(payload.email)) is not None:
                    continue
                await storage.create(payload)
                created += 1
    finally:
        await engine.dispose()

    logger.info("Seed complete: created=%d, skipped=%d", created, len(payloads) - created)


def main() -> None:
    configure_logging(settings.log_level)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
