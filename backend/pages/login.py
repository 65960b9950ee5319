"""Sign-in and sign-out pages."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from api.deps import get_db, get_optional_user, get_settings, get_users_service
from core import Settings
from models import User
from services.auth import SESSION_ID_KEY, revoke_user_session, rotate_csrf_token, validate_csrf
from services.users import (
    InvalidCredentialsError,
    SignInRequest,
    UsersService,
    UsersServiceError,
    field_errors,
    password_violations,
)

from .forms import (
    CSRF_ERROR_MESSAGE,
    EMAIL_HINT,
    GENERIC_ERROR_MESSAGE,
    PASSWORD_HINT,
    redirect_home,
    render_page,
    start_browser_session,
)

router = APIRouter(tags=["pages"])
logger = logging.getLogger(__name__)

LOGIN_TEMPLATE = "pages/login.html"


class LoginSignals(BaseModel):
    email: str = ""
    password: str = ""


class LoginFieldErrors(BaseModel):
    email_error: str = ""
    password_error: str = ""


def _render_login(
    request: Request,
    *,
    email: str = "",
    email_error: str | None = None,
    password_error: str | None = None,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    return render_page(
        request,
        LOGIN_TEMPLATE,
        {
            "title": "Login",
            "email": email,
            "email_error": email_error,
            "password_error": password_error,
        },
        status_code=status_code,
    )


@router.get("/login")
async def login_page(
    request: Request,
    current_user: User | None = Depends(get_optional_user),
) -> Response:
    if current_user is not None:
        return redirect_home()
    return _render_login(request)


@router.post("/login")
async def login_form(
    request: Request,
    email: str = Form(default=""),
    password: str = Form(default=""),
    csrf_token: str = Form(default=""),
    service: UsersService = Depends(get_users_service),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Response:
    if not validate_csrf(request, csrf_token):
        return _render_login(
            request,
            email=email,
            email_error=CSRF_ERROR_MESSAGE,
            status_code=status.HTTP_403_FORBIDDEN,
        )

    try:
        credentials = SignInRequest(email=email.strip(), password=password)
    except ValidationError as exc:
        errors = field_errors(exc.errors())
        return _render_login(
            request,
            email=email,
            email_error=EMAIL_HINT if "email" in errors else None,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        result = await service.sign_in(credentials)
    except InvalidCredentialsError as exc:
        return _render_login(
            request,
            email=email,
            password_error=exc.reason,
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    except UsersServiceError:
        logger.exception("Sign-in form failed")
        return _render_login(
            request,
            email=email,
            password_error=GENERIC_ERROR_MESSAGE,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    await start_browser_session(request, db, result.user.id, settings)
    return redirect_home()


@router.post("/login/validate", response_model=LoginFieldErrors)
async def login_form_validate(data: LoginSignals) -> LoginFieldErrors:
    """Live validation for the sign-in form; empty fields are not reported."""
    errors = LoginFieldErrors()
    if data.email:
        try:
            SignInRequest(email=data.email.strip(), password=data.password)
        except ValidationError as exc:
            if "email" in field_errors(exc.errors()):
                errors.email_error = EMAIL_HINT
    if data.password and password_violations(data.password):
        errors.password_error = PASSWORD_HINT
    return errors


@router.post("/logout")
async def logout(
    request: Request,
    csrf_token: str = Form(default=""),
    db: AsyncSession = Depends(get_db),
) -> Response:
    if not validate_csrf(request, csrf_token):
        return _render_login(
            request,
            email_error=CSRF_ERROR_MESSAGE,
            status_code=status.HTTP_403_FORBIDDEN,
        )
    session_id = request.session.pop(SESSION_ID_KEY, None)
    if session_id:
        await revoke_user_session(db, session_id)
    rotate_csrf_token(request)
    return redirect_home()
