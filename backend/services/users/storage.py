"""Parameterized persistence for user accounts."""

from __future__ import annotations

import asyncio
from typing import Any, cast

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import hash_password, verify_password
from db.errors import is_unique_violation, violated_column
from models import User, UserSession

from .errors import DuplicateUserError
from .schemas import CreateUser, UpdateUser, UserListResponse, UserResponse, UserSearch

UNIQUE_COLUMNS = ("username", "email")
LIKE_ESCAPE = "\\"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _ilike(column: Any, pattern: str) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column.ilike(pattern, escape=LIKE_ESCAPE))


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


def normalize_email(value: str) -> str:
    return value.strip().lower()


def escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


def build_search_filter(search: str | None) -> ColumnElement[bool] | None:
    """Case-insensitive substring match over username and email."""
    if search is None:
        return None
    term = search.strip()
    if not term:
        return None
    pattern = f"%{escape_like(term)}%"
    return cast(
        ColumnElement[bool],
        or_(
            _ilike(User.username, pattern),
            _ilike(User.email, pattern),
        ),
    )


class UsersStorage:
    """CRUD over the ``users`` table bound to one database session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _commit(self, user: User | None = None) -> None:
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            if is_unique_violation(exc):
                raise DuplicateUserError(violated_column(exc, UNIQUE_COLUMNS)) from exc
            raise
        if user is not None:
            await self.session.refresh(user)

    async def create(self, data: CreateUser) -> User:
        password_hash = await asyncio.to_thread(hash_password, data.password)
        user = User(
            username=data.username,
            email=normalize_email(str(data.email)),
            password_hash=password_hash,
            first_name=data.first_name,
            last_name=data.last_name,
            bio=data.bio,
        )
        self.session.add(user)
        await self._commit(user)
        return user

    async def get_by_email(self, email: str) -> User | None:
        lowered_email_column = cast(Any, func.lower(cast(Any, User.email)))
        result = await self.session.execute(
            select(User).where(_eq(lowered_email_column, normalize_email(email))).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: str) -> User | None:
        return await self.session.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        result = await self.session.execute(
            select(User).where(_eq(User.username, username)).limit(1)
        )
        return result.scalar_one_or_none()

    async def verify_user(self, email: str, password: str) -> bool:
        """Check a password against the stored hash for the email.

        Raises LookupError when no account owns the email and
        InvalidPasswordHashError when the stored hash is unreadable.
        """
        lowered_email_column = cast(Any, func.lower(cast(Any, User.email)))
        result = await self.session.execute(
            select(User.password_hash)
            .where(_eq(lowered_email_column, normalize_email(email)))
            .limit(1)
        )
        password_hash = result.scalar_one_or_none()
        if password_hash is None:
            raise LookupError("wrong credentials")
        return await asyncio.to_thread(verify_password, password, password_hash)

    async def list_users(self, data: UserSearch) -> UserListResponse:
        search_filter = build_search_filter(data.search)

        count_stmt = select(func.count()).select_from(User)
        users_stmt = select(User)
        if search_filter is not None:
            count_stmt = count_stmt.where(search_filter)
            users_stmt = users_stmt.where(search_filter)

        total_count = (await self.session.execute(count_stmt)).scalar_one()
        # Empty pages are valid here; the service decides what they mean.
        users_result = await self.session.execute(
            users_stmt.order_by(_desc(User.created_at), _desc(User.id))
            .limit(data.limit)
            .offset(data.offset)
        )
        users = users_result.scalars().all()
        return UserListResponse(
            users=[UserResponse.model_validate(user) for user in users],
            total_count=int(total_count or 0),
            limit=data.limit,
            offset=data.offset,
        )

    async def update(self, user_id: str, data: UpdateUser) -> User | None:
        user = await self.get_by_id(user_id)
        if user is None:
            return None

        # Absent and null fields keep their stored value.
        changes = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        password = changes.pop("password", None)
        if password is not None:
            user.password_hash = await asyncio.to_thread(hash_password, password)
        if "email" in changes:
            changes["email"] = normalize_email(str(changes["email"]))
        for key, value in changes.items():
            setattr(user, key, value)

        self.session.add(user)
        await self._commit(user)
        return user

    async def set_password_hash(self, user: User, password_hash: str) -> None:
        user.password_hash = password_hash
        self.session.add(user)
        await self._commit()

    async def delete(self, user_id: str) -> str | None:
        user = await self.get_by_id(user_id)
        if user is None:
            return None
        await self.session.execute(
            delete(UserSession).where(_eq(UserSession.user_id, user_id))
        )
        await self.session.delete(user)
        await self._commit()
        return user_id
