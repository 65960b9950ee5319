"""Core configuration, logging and security helpers."""

from .config import Settings, settings
from .logging import configure_logging, request_id_var
from .security import (
    InvalidPasswordHashError,
    create_access_token,
    decode_token,
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "Settings",
    "settings",
    "configure_logging",
    "request_id_var",
    "InvalidPasswordHashError",
    "create_access_token",
    "decode_token",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
