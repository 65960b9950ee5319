"""Password hashing and signed-token helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

TOKEN_TYPE = "access"

# Argon2id with the library's RFC 9106 "low memory" defaults.
_password_hasher = PasswordHasher()


class InvalidPasswordHashError(ValueError):
    """Raised when a stored password hash cannot be parsed or checked."""


def hash_password(password: str) -> str:
    """Return a PHC-formatted Argon2id hash with a fresh random salt."""
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Return True when the password matches the stored hash.

    A mismatch returns False. A hash that cannot be decoded raises
    InvalidPasswordHashError so callers can tell corruption apart from a
    wrong password.
    """
    try:
        return _password_hasher.verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError) as exc:
        raise InvalidPasswordHashError(str(exc) or "Invalid password hash") from exc


def needs_rehash(password_hash: str) -> bool:
    try:
        return _password_hasher.check_needs_rehash(password_hash)
    except (InvalidHashError, ValueError) as exc:
        raise InvalidPasswordHashError(str(exc) or "Invalid password hash") from exc


def create_access_token(
    subject: str,
    email: str,
    *,
    secret: str,
    algorithm: str,
    expires_delta: timedelta,
    now: datetime | None = None,
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": subject,
        "email": email,
        "type": TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token: str, *, secret: str, algorithm: str) -> dict[str, Any]:
    """Decode and verify a signed token, raising ValueError when it is unusable."""
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as exc:
        raise ValueError("Invalid token") from exc
    if payload.get("type") != TOKEN_TYPE:
        raise ValueError("Invalid token type")
    return payload
