"""Shared helpers for the server-rendered account forms."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any

from fastapi import Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from core import Settings
from services.auth import (
    SESSION_ID_KEY,
    create_user_session,
    ensure_csrf_token,
    revoke_user_session,
    rotate_csrf_token,
)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
CSRF_ERROR_MESSAGE = "Invalid CSRF token"
GENERIC_ERROR_MESSAGE = "Something went wrong, please try again"
PASSWORD_HINT = (
    "Password needs an uppercase letter, a lowercase letter, a digit, "
    "a special character and 8 to 64 characters"
)
EMAIL_HINT = "Enter a valid email"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def render_page(
    request: Request,
    template_name: str,
    context: dict[str, Any],
    *,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    settings: Settings = request.app.state.settings
    full_context = {
        "app_name": settings.app_name,
        "csrf_token": ensure_csrf_token(request),
        **context,
    }
    return templates.TemplateResponse(
        request,
        template_name,
        full_context,
        status_code=status_code,
    )


def redirect_home() -> RedirectResponse:
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


async def start_browser_session(
    request: Request,
    db: AsyncSession,
    user_id: str,
    settings: Settings,
) -> None:
    """Bind a fresh server-side session to the cookie and rotate the CSRF token.

    A session id already held by the cookie is revoked first.
    """
    previous_session_id = request.session.pop(SESSION_ID_KEY, None)
    if previous_session_id:
        await revoke_user_session(db, previous_session_id)
    session_id = await create_user_session(
        db,
        user_id,
        ttl=timedelta(minutes=settings.session_expire_minutes),
    )
    request.session[SESSION_ID_KEY] = session_id
    rotate_csrf_token(request)
