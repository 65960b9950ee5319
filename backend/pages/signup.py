"""Account registration page."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from api.deps import get_db, get_optional_user, get_settings, get_users_service
from core import Settings
from models import User
from services.auth import validate_csrf
from services.users import (
    InvalidCredentialsError,
    SignInRequest,
    SignUpRequest,
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
    blank_to_none,
    redirect_home,
    render_page,
    start_browser_session,
)

router = APIRouter(tags=["pages"])
logger = logging.getLogger(__name__)

SIGNUP_TEMPLATE = "pages/signup.html"
USERNAME_TAKEN_MESSAGE = "Username already exists"
EMAIL_TAKEN_MESSAGE = "Email already exists"
PASSWORD_MISMATCH_MESSAGE = "Passwords do not match"


class SignupSignals(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""


class SignupFieldErrors(BaseModel):
    username_error: str = ""
    email_error: str = ""
    password_error: str = ""


def _render_signup(
    request: Request,
    *,
    values: dict[str, str] | None = None,
    errors: SignupFieldErrors | None = None,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    return render_page(
        request,
        SIGNUP_TEMPLATE,
        {
            "title": "Sign up",
            "values": values or {},
            "errors": errors or SignupFieldErrors(),
        },
        status_code=status_code,
    )


def _email_is_valid(email: str) -> bool:
    try:
        SignInRequest(email=email, password="")
    except ValidationError as exc:
        return "email" not in field_errors(exc.errors())
    return True


@router.get("/signup")
async def signup_page(
    request: Request,
    current_user: User | None = Depends(get_optional_user),
) -> Response:
    if current_user is not None:
        return redirect_home()
    return _render_signup(request)


@router.post("/signup")
async def signup_form(
    request: Request,
    username: str = Form(default=""),
    email: str = Form(default=""),
    password: str = Form(default=""),
    confirm_password: str = Form(default=""),
    first_name: str = Form(default=""),
    last_name: str = Form(default=""),
    bio: str = Form(default=""),
    csrf_token: str = Form(default=""),
    service: UsersService = Depends(get_users_service),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Response:
    values = {
        "username": username,
        "email": email,
        "first_name": first_name,
        "last_name": last_name,
        "bio": bio,
    }
    if not validate_csrf(request, csrf_token):
        return _render_signup(
            request,
            values=values,
            errors=SignupFieldErrors(username_error=CSRF_ERROR_MESSAGE),
            status_code=status.HTTP_403_FORBIDDEN,
        )

    errors = SignupFieldErrors()
    data: SignUpRequest | None = None
    try:
        data = SignUpRequest(
            username=username,
            email=email.strip(),
            password=password,
            first_name=blank_to_none(first_name),
            last_name=blank_to_none(last_name),
            bio=blank_to_none(bio),
        )
    except ValidationError as exc:
        messages = field_errors(exc.errors())
        errors.username_error = messages.get("username", "")
        errors.email_error = EMAIL_HINT if "email" in messages else ""
        errors.password_error = messages.get("password", "")
        for extra in ("first_name", "last_name", "bio"):
            if extra in messages and not errors.username_error:
                errors.username_error = f"{extra}: {messages[extra]}"

    if password != confirm_password and not errors.password_error:
        errors.password_error = PASSWORD_MISMATCH_MESSAGE

    if data is None or errors.password_error:
        return _render_signup(
            request,
            values=values,
            errors=errors,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        result = await service.sign_up(data)
    except InvalidCredentialsError as exc:
        if exc.reason == EMAIL_TAKEN_MESSAGE:
            errors.email_error = exc.reason
        else:
            errors.username_error = exc.reason
        return _render_signup(
            request,
            values=values,
            errors=errors,
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    except UsersServiceError:
        logger.exception("Sign-up form failed")
        return _render_signup(
            request,
            values=values,
            errors=SignupFieldErrors(username_error=GENERIC_ERROR_MESSAGE),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    await start_browser_session(request, db, result.user.id, settings)
    return redirect_home()


@router.post("/signup/validate", response_model=SignupFieldErrors)
async def signup_form_validate(
    data: SignupSignals,
    service: UsersService = Depends(get_users_service),
) -> SignupFieldErrors:
    """Live validation for the registration form.

    Empty fields are left alone so a half-filled form is not flagged before the
    user reaches them.
    """
    errors = SignupFieldErrors()
    if data.username.strip() and await service.check_username_exists(data.username):
        errors.username_error = USERNAME_TAKEN_MESSAGE
    if data.email.strip() and not _email_is_valid(data.email.strip()):
        errors.email_error = EMAIL_HINT
    if data.password and password_violations(data.password):
        errors.password_error = PASSWORD_HINT
    elif data.confirm_password and data.password != data.confirm_password:
        errors.password_error = PASSWORD_MISMATCH_MESSAGE
    return errors


@router.post("/signup/reset", response_model=SignupFieldErrors)
async def signup_form_reset() -> SignupFieldErrors:
    return SignupFieldErrors()
