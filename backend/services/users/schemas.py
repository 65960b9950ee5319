"""User API payload schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator

from .policy import validate_password

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
MAX_USERNAME_LENGTH = 64
MAX_NAME_LENGTH = 80
MAX_BIO_LENGTH = 500
# Largest offset a signed 64-bit OFFSET clause accepts.
MAX_OFFSET = 2**63 - 1

Password = Annotated[str, AfterValidator(validate_password)]
Username = Annotated[str, Field(min_length=1, max_length=MAX_USERNAME_LENGTH)]
PersonName = Annotated[str, Field(max_length=MAX_NAME_LENGTH)]
Bio = Annotated[str, Field(max_length=MAX_BIO_LENGTH)]


def _strip_username(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if not normalized:
        raise ValueError("Username cannot be blank")
    return normalized


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    created_at: datetime


class CreateUser(BaseModel):
    username: Username
    email: EmailStr
    password: Password
    first_name: PersonName | None = None
    last_name: PersonName | None = None
    bio: Bio | None = None

    @field_validator("username")
    @classmethod
    def _normalize_username(cls, value: str | None) -> str | None:
        return _strip_username(value)


class SignUpRequest(CreateUser):
    pass


class UpdateUser(BaseModel):
    username: Username | None = None
    email: EmailStr | None = None
    password: Password | None = None
    first_name: PersonName | None = None
    last_name: PersonName | None = None
    bio: Bio | None = None

    @field_validator("username")
    @classmethod
    def _normalize_username(cls, value: str | None) -> str | None:
        return _strip_username(value)


class UpdateUserRequest(UpdateUser):
    old_password: str | None = None

    def changes(self) -> UpdateUser:
        return UpdateUser.model_construct(
            **self.model_dump(exclude={"old_password"}, exclude_unset=True)
        )


class SignInRequest(BaseModel):
    email: EmailStr
    # Verified against the stored hash only; the policy applies at write time.
    password: str


class AuthResponse(BaseModel):
    user: UserResponse
    token: str


class SignInResponse(AuthResponse):
    pass


class SignUpResponse(AuthResponse):
    pass


class UserSearch(BaseModel):
    search: str | None = None
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    offset: int = Field(default=0, ge=0, le=MAX_OFFSET)


class ListUsersRequest(BaseModel):
    page: int = Field(ge=0)
    per_page: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    search_query: str | None = None


class UserListResponse(BaseModel):
    users: list[UserResponse]
    total_count: int
    limit: int
    offset: int


class DeleteUserResponse(BaseModel):
    deleted_id: str
