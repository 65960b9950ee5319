"""Token-based authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import get_current_user, get_users_service
from models import User
from services.users import (
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
    UserResponse,
    UsersService,
)

router = APIRouter(tags=["auth"])


@router.post("/signin", response_model=SignInResponse)
async def sign_in(
    credentials: SignInRequest,
    service: UsersService = Depends(get_users_service),
) -> SignInResponse:
    """Exchange email and password for the account and a signed token."""
    return await service.sign_in(credentials)


@router.post("/signup", response_model=SignUpResponse)
async def sign_up(
    user_data: SignUpRequest,
    service: UsersService = Depends(get_users_service),
) -> SignUpResponse:
    return await service.sign_up(user_data)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the account behind the bearer token or browser session."""
    return UserResponse.model_validate(current_user)
