"""Tests for server-side browser session persistence."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core import hash_password
from models import User, UserSession
from services.auth import (
    create_user_session,
    hash_session_id,
    prune_expired_sessions,
    resolve_session_user,
    revoke_user_session,
)


async def make_user(session: AsyncSession) -> User:
    suffix = uuid4().hex[:8]
    user = User(
        username=f"session_{suffix}",
        email=f"session_{suffix}@example.com",
        password_hash=hash_password("Sup3rSecret!"),
    )
    session.add(user)
    await session.commit()
    return user


async def count_sessions(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(UserSession))
    return int(result.scalar_one())


@pytest.mark.asyncio
async def test_session_id_resolves_to_user_and_only_digest_is_stored(
    db_session: AsyncSession,
):
    user = await make_user(db_session)

    session_id = await create_user_session(db_session, user.id, ttl=timedelta(hours=1))

    resolved = await resolve_session_user(db_session, session_id)
    assert resolved is not None
    assert resolved.id == user.id

    stored = (await db_session.execute(select(UserSession))).scalar_one()
    assert stored.token_hash == hash_session_id(session_id)
    assert stored.token_hash != session_id


@pytest.mark.asyncio
async def test_unknown_session_id_resolves_to_none(db_session: AsyncSession):
    assert await resolve_session_user(db_session, "unknown") is None


@pytest.mark.asyncio
async def test_expired_session_is_ignored(db_session: AsyncSession):
    user = await make_user(db_session)

    session_id = await create_user_session(db_session, user.id, ttl=timedelta(seconds=-1))

    assert await resolve_session_user(db_session, session_id) is None


@pytest.mark.asyncio
async def test_revoke_session(db_session: AsyncSession):
    user = await make_user(db_session)
    session_id = await create_user_session(db_session, user.id, ttl=timedelta(hours=1))

    assert await revoke_user_session(db_session, session_id) is True
    assert await revoke_user_session(db_session, session_id) is False
    assert await resolve_session_user(db_session, session_id) is None


@pytest.mark.asyncio
async def test_prune_deletes_only_expired_sessions(db_session: AsyncSession):
    user = await make_user(db_session)
    live_id = await create_user_session(db_session, user.id, ttl=timedelta(hours=1))
    for _ in range(5):
        await create_user_session(db_session, user.id, ttl=timedelta(seconds=-1))

    deleted = await prune_expired_sessions(db_session, batch_size=2)

    assert deleted == 5
    assert await count_sessions(db_session) == 1
    assert await resolve_session_user(db_session, live_id) is not None


@pytest.mark.asyncio
async def test_prune_honours_max_deleted(db_session: AsyncSession):
    user = await make_user(db_session)
    for _ in range(4):
        await create_user_session(db_session, user.id, ttl=timedelta(seconds=-1))

    deleted = await prune_expired_sessions(db_session, batch_size=10, max_deleted=3)

    assert deleted == 3
    assert await count_sessions(db_session) == 1


@pytest.mark.asyncio
async def test_prune_uses_supplied_clock(db_session: AsyncSession):
    user = await make_user(db_session)
    await create_user_session(db_session, user.id, ttl=timedelta(hours=1))

    assert await prune_expired_sessions(db_session) == 0
    later = datetime.now(timezone.utc) + timedelta(hours=2)
    assert await prune_expired_sessions(db_session, now=later) == 1
