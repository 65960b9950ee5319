"""User account business logic: sign-in, sign-up, profile CRUD and search."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from functools import lru_cache
from datetime import timedelta
from typing import TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from core import (
    InvalidPasswordHashError,
    Settings,
    create_access_token,
    decode_token,
    hash_password,
    needs_rehash,
    verify_password,
)
from models import User

from .errors import (
    DuplicateUserError,
    InvalidCredentialsError,
    NotFoundError,
    StorageError,
    VerificationError,
)
from .schemas import (
    MAX_OFFSET,
    CreateUser,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
    UpdateUser,
    UserListResponse,
    UserResponse,
    UserSearch,
)
from .storage import UsersStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")

INVALID_SIGN_IN_MESSAGE = "Invalid email or password"


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    return hash_password("unknown-account-placeholder")


@dataclass(frozen=True, slots=True)
class TokenConfig:
    """Signing parameters for access tokens."""

    secret: str
    algorithm: str = "HS256"
    ttl: timedelta = timedelta(days=7)

    @classmethod
    def from_settings(cls, config: Settings) -> TokenConfig:
        return cls(
            secret=config.jwt_secret,
            algorithm=config.jwt_algorithm,
            ttl=timedelta(minutes=config.access_token_expire_minutes),
        )


def _parse_user_id(user_id: str) -> str:
    try:
        return str(UUID(user_id))
    except (ValueError, AttributeError, TypeError) as exc:
        raise InvalidCredentialsError("Wrong id format") from exc


def _duplicate_message(exc: DuplicateUserError) -> str:
    if exc.field == "email":
        return "Email already exists"
    if exc.field == "username":
        return "Username already exists"
    return "User with that username or email already exists"


class UsersService:
    def __init__(self, storage: UsersStorage, tokens: TokenConfig) -> None:
        self.storage = storage
        self.tokens = tokens

    async def _storage_call(self, operation: Awaitable[T]) -> T:
        try:
            return await operation
        except DuplicateUserError as exc:
            raise InvalidCredentialsError(_duplicate_message(exc)) from exc
        except SQLAlchemyError as exc:
            logger.error("User storage operation failed: %s", exc)
            raise StorageError(str(exc)) from exc

    def generate_token(self, user: User) -> str:
        try:
            return create_access_token(
                str(user.id),
                user.email,
                secret=self.tokens.secret,
                algorithm=self.tokens.algorithm,
                expires_delta=self.tokens.ttl,
            )
        except Exception as exc:
            logger.error("Failed to sign access token for user %s", user.id)
            raise StorageError(f"Failed to generate token: {exc}") from exc

    async def _verify(self, email: str, password: str) -> bool:
        try:
            return await self._storage_call(self.storage.verify_user(email, password))
        except (LookupError, InvalidPasswordHashError) as exc:
            logger.error("Password verification failed: %s", exc)
            raise VerificationError(str(exc)) from exc

    async def sign_in(self, credentials: SignInRequest) -> SignInResponse:
        email = str(credentials.email)
        user = await self._storage_call(self.storage.get_by_email(email))
        if user is None:
            # Unknown emails pay the same Argon2 cost as wrong passwords.
            await asyncio.to_thread(
                verify_password, credentials.password, _dummy_password_hash()
            )
            logger.info("Sign-in rejected: unknown email")
            raise InvalidCredentialsError(INVALID_SIGN_IN_MESSAGE)

        if not await self._verify(user.email, credentials.password):
            logger.info("Sign-in rejected: wrong password for user %s", user.id)
            raise InvalidCredentialsError(INVALID_SIGN_IN_MESSAGE)

        if needs_rehash(user.password_hash):
            new_hash = await asyncio.to_thread(hash_password, credentials.password)
            await self._storage_call(self.storage.set_password_hash(user, new_hash))

        token = self.generate_token(user)
        return SignInResponse(user=UserResponse.model_validate(user), token=token)

    async def sign_up(self, user_data: SignUpRequest) -> SignUpResponse:
        existing = await self._storage_call(self.storage.get_by_email(str(user_data.email)))
        if existing is not None:
            raise InvalidCredentialsError("Email already exists")
        if await self.check_username_exists(user_data.username):
            raise InvalidCredentialsError("Username already exists")

        user = await self._storage_call(self.storage.create(user_data))
        logger.info("Registered user %s", user.id)
        token = self.generate_token(user)
        return SignUpResponse(user=UserResponse.model_validate(user), token=token)

    async def create(self, data: CreateUser) -> UserResponse:
        user = await self._storage_call(self.storage.create(data))
        logger.info("Created user %s", user.id)
        return UserResponse.model_validate(user)

    async def get_user(self, user_id: str) -> User:
        parsed = _parse_user_id(user_id)
        user = await self._storage_call(self.storage.get_by_id(parsed))
        if user is None:
            raise NotFoundError()
        return user

    async def get_by_id(self, user_id: str) -> UserResponse:
        return UserResponse.model_validate(await self.get_user(user_id))

    async def get_by_email(self, email: str) -> UserResponse:
        user = await self._storage_call(self.storage.get_by_email(email))
        if user is None:
            raise NotFoundError()
        return UserResponse.model_validate(user)

    async def list(
        self,
        page: int,
        per_page: int,
        search_query: str | None = None,
    ) -> UserListResponse:
        if page <= 0:
            raise InvalidCredentialsError("Page must be greater than zero")
        offset = (page - 1) * per_page
        if offset > MAX_OFFSET:
            raise InvalidCredentialsError("Page is out of range")
        search = UserSearch(search=search_query, limit=per_page, offset=offset)
        result = await self._storage_call(self.storage.list_users(search))
        if not result.users:
            raise NotFoundError()
        return result

    async def update(
        self,
        user_id: str,
        data: UpdateUser,
        old_password: str | None = None,
    ) -> UserResponse:
        existing_user = await self.get_user(user_id)
        if data.password is not None:
            if old_password is None:
                raise InvalidCredentialsError(
                    "To change password please provide old password"
                )
            if not await self._verify(existing_user.email, old_password):
                raise InvalidCredentialsError("Wrong old password")

        updated = await self._storage_call(self.storage.update(str(existing_user.id), data))
        if updated is None:
            raise NotFoundError()
        return UserResponse.model_validate(updated)

    async def delete(self, user_id: str) -> str:
        parsed = _parse_user_id(user_id)
        deleted_id = await self._storage_call(self.storage.delete(parsed))
        if deleted_id is None:
            raise NotFoundError()
        logger.info("Deleted user %s", deleted_id)
        return deleted_id

    async def check_username_exists(self, username: str) -> bool:
        existing = await self._storage_call(self.storage.get_by_username(username.strip()))
        return existing is not None

    async def authenticate_token(self, token: str) -> User | None:
        """Return the account a signed token belongs to, if it is still valid."""
        try:
            payload = decode_token(
                token,
                secret=self.tokens.secret,
                algorithm=self.tokens.algorithm,
            )
        except ValueError:
            return None
        subject = payload.get("sub")
        if not isinstance(subject, str):
            return None
        try:
            return await self.get_user(subject)
        except (InvalidCredentialsError, NotFoundError):
            return None
