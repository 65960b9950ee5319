"""User profile CRUD and search endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from api.deps import get_users_service
from services.users import (
    CreateUser,
    DeleteUserResponse,
    ListUsersRequest,
    UpdateUserRequest,
    UserListResponse,
    UserResponse,
    UsersService,
)

from .pagination import set_pagination_headers

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse)
async def create_user(
    payload: CreateUser,
    service: UsersService = Depends(get_users_service),
) -> UserResponse:
    return await service.create(payload)


@router.post("/list", response_model=UserListResponse)
async def list_users(
    data: ListUsersRequest,
    response: Response,
    service: UsersService = Depends(get_users_service),
) -> UserListResponse:
    """Page through users, newest first, optionally filtered by a search term."""
    result = await service.list(data.page, data.per_page, data.search_query)
    set_pagination_headers(
        response,
        total_count=result.total_count,
        offset=result.offset,
        limit=result.limit,
    )
    return result


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_by_id(
    user_id: str,
    service: UsersService = Depends(get_users_service),
) -> UserResponse:
    return await service.get_by_id(user_id)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: UpdateUserRequest,
    service: UsersService = Depends(get_users_service),
) -> UserResponse:
    """Apply a partial profile update; a new password needs ``old_password``."""
    return await service.update(user_id, data.changes(), data.old_password)


@router.delete("/{user_id}", response_model=DeleteUserResponse)
async def delete_user(
    user_id: str,
    service: UsersService = Depends(get_users_service),
) -> DeleteUserResponse:
    deleted_id = await service.delete(user_id)
    return DeleteUserResponse(deleted_id=deleted_id)
