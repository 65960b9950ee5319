"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from core import Settings
from db.session import get_session
from models import User
from services.auth import SESSION_ID_KEY, resolve_session_user
from services.users import TokenConfig, UsersService, UsersStorage


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async for session in get_session(request):
        yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_users_service(
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UsersService:
    return UsersService(UsersStorage(session), TokenConfig.from_settings(settings))


def _extract_bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("authorization")
    if not authorization:
        return None

    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = value.strip()
    return token or None


async def get_optional_user(
    request: Request,
    session: AsyncSession = Depends(get_db),
) -> User | None:
    """Resolve the signed-in browser user from the cookie session, if any."""
    session_id = request.session.get(SESSION_ID_KEY)
    if not session_id:
        return None
    user = await resolve_session_user(session, session_id)
    if user is None:
        request.session.pop(SESSION_ID_KEY, None)
    return user


async def get_current_user(
    request: Request,
    service: UsersService = Depends(get_users_service),
    session_user: User | None = Depends(get_optional_user),
) -> User:
    token = _extract_bearer_token(request)
    if token is not None:
        user = await service.authenticate_token(token)
        if user is not None:
            return user
    elif session_user is not None:
        return session_user

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
