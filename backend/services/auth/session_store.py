"""Server-side browser session persistence."""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, cast

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import User, UserSession

SESSION_ID_BYTES = 32
PRUNE_BATCH_SIZE = 500


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _lte(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column <= value)


def hash_session_id(session_id: str) -> str:
    return hashlib.sha256(session_id.encode("utf-8")).hexdigest()


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


async def create_user_session(
    session: AsyncSession,
    user_id: str,
    *,
    ttl: timedelta,
) -> str:
    """Persist a new session for the user and return the raw session id.

    Only the digest is stored, so a leaked table cannot be replayed.
    """
    session_id = secrets.token_urlsafe(SESSION_ID_BYTES)
    session.add(
        UserSession(
            user_id=user_id,
            token_hash=hash_session_id(session_id),
            expires_at=datetime.now(timezone.utc) + ttl,
        )
    )
    await session.commit()
    return session_id


async def resolve_session_user(
    session: AsyncSession,
    session_id: str,
) -> User | None:
    result = await session.execute(
        select(UserSession, User)
        .join(User, _eq(User.id, UserSession.user_id))
        .where(_eq(UserSession.token_hash, hash_session_id(session_id)))
        .limit(1)
    )
    row = result.first()
    if row is None:
        return None
    user_session, user = row
    if ensure_aware(user_session.expires_at) <= datetime.now(timezone.utc):
        return None
    return user


async def revoke_user_session(session: AsyncSession, session_id: str) -> bool:
    result = await session.execute(
        delete(UserSession).where(_eq(UserSession.token_hash, hash_session_id(session_id)))
    )
    await session.commit()
    return bool(cast(Any, result).rowcount)


async def prune_expired_sessions(
    session: AsyncSession,
    *,
    now: datetime | None = None,
    batch_size: int = PRUNE_BATCH_SIZE,
    max_deleted: int | None = None,
) -> int:
    """Delete expired sessions in id-ordered batches; return how many went."""
    cutoff = now or datetime.now(timezone.utc)
    id_column = cast(Any, UserSession.id)
    deleted_total = 0

    while True:
        limit = batch_size
        if max_deleted is not None:
            remaining = max_deleted - deleted_total
            if remaining <= 0:
                break
            limit = min(limit, remaining)

        ids_result = await session.execute(
            select(id_column)
            .where(_lte(UserSession.expires_at, cutoff))
            .order_by(id_column)
            .limit(limit)
        )
        expired_ids = list(ids_result.scalars().all())
        if not expired_ids:
            break

        await session.execute(delete(UserSession).where(id_column.in_(expired_ids)))
        await session.commit()
        deleted_total += len(expired_ids)
        if len(expired_ids) < limit:
            break

    return deleted_total
