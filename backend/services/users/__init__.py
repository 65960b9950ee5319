"""User account services: storage, business rules and payload schemas."""

from .errors import (
    DuplicateUserError,
    InvalidCredentialsError,
    NotFoundError,
    StorageError,
    UsersServiceError,
    VerificationError,
)
from .policy import (
    MAX_PASSWORD_LENGTH,
    MIN_PASSWORD_LENGTH,
    SPECIAL_CHARACTERS,
    field_errors,
    format_validation_errors,
    password_violations,
    validate_password,
)
from .schemas import (
    CreateUser,
    DeleteUserResponse,
    ListUsersRequest,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
    UpdateUser,
    UpdateUserRequest,
    UserListResponse,
    UserResponse,
    UserSearch,
)
from .service import TokenConfig, UsersService
from .storage import UsersStorage, normalize_email

__all__ = [
    "UsersServiceError",
    "NotFoundError",
    "InvalidCredentialsError",
    "StorageError",
    "VerificationError",
    "DuplicateUserError",
    "MIN_PASSWORD_LENGTH",
    "MAX_PASSWORD_LENGTH",
    "SPECIAL_CHARACTERS",
    "password_violations",
    "validate_password",
    "format_validation_errors",
    "field_errors",
    "CreateUser",
    "SignUpRequest",
    "SignInRequest",
    "UpdateUser",
    "UpdateUserRequest",
    "ListUsersRequest",
    "UserSearch",
    "UserResponse",
    "UserListResponse",
    "SignInResponse",
    "SignUpResponse",
    "DeleteUserResponse",
    "TokenConfig",
    "UsersService",
    "UsersStorage",
    "normalize_email",
]
