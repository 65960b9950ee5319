"""Error taxonomy for the user service."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .policy import format_validation_errors


class UsersServiceError(Exception):
    """Base class for failures surfaced by UsersService."""

    reason: str = "Users service error"

    def __init__(self, reason: str | None = None) -> None:
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)


class NotFoundError(UsersServiceError):
    reason = "Not found"


class InvalidCredentialsError(UsersServiceError):
    """Bad input: failed validation, wrong credentials, malformed ids."""

    reason = "Wrong credentials"

    @classmethod
    def from_validation_errors(
        cls,
        errors: Iterable[Mapping[str, Any]],
    ) -> InvalidCredentialsError:
        return cls(format_validation_errors(errors))


class StorageError(UsersServiceError):
    reason = "Storage failure"


class VerificationError(UsersServiceError):
    reason = "Credential verification failure"


class DuplicateUserError(Exception):
    """Raised by the storage layer when a unique column already holds the value."""

    def __init__(self, field: str | None = None) -> None:
        self.field = field
        super().__init__(f"Duplicate value for {field or 'unique field'}")


__all__ = [
    "UsersServiceError",
    "NotFoundError",
    "InvalidCredentialsError",
    "StorageError",
    "VerificationError",
    "DuplicateUserError",
]
