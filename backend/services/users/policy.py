"""Password policy and validation message helpers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 64
SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
PASSWORD_REQUIREMENTS_PREFIX = "Password requirements not met"


def password_violations(password: str) -> list[str]:
    """Return every rule the password breaks, in a stable order."""
    violations: list[str] = []
    if not MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH:
        violations.append(
            f"length must be between {MIN_PASSWORD_LENGTH} and {MAX_PASSWORD_LENGTH} characters"
        )
    if not any(char.isupper() for char in password):
        violations.append("uppercase letter required")
    if not any(char.islower() for char in password):
        violations.append("lowercase letter required")
    if not any(char in "0123456789" for char in password):
        violations.append("digit required")
    if not any(char in SPECIAL_CHARACTERS for char in password):
        violations.append("special character required")
    return violations


def validate_password(password: str) -> str:
    violations = password_violations(password)
    if violations:
        raise ValueError(f"{PASSWORD_REQUIREMENTS_PREFIX}: {', '.join(violations)}")
    return password


def _strip_value_error_prefix(message: str) -> str:
    # pydantic prefixes messages raised from validators with "Value error, ".
    prefix = "Value error, "
    if message.startswith(prefix):
        return message[len(prefix):]
    return message


def _location(entry: Mapping[str, Any]) -> str:
    loc: Sequence[Any] = entry.get("loc") or ()
    # FastAPI prepends the request part ("body", "query"...).
    parts = [str(part) for part in loc if part not in {"body", "query", "path", "form"}]
    return ".".join(parts)


def format_validation_errors(errors: Iterable[Mapping[str, Any]]) -> str:
    """Collapse pydantic error entries into ``field: message;field: message``."""
    messages: list[str] = []
    for entry in errors:
        message = _strip_value_error_prefix(str(entry.get("msg", "Invalid value")))
        field = _location(entry)
        messages.append(f"{field}: {message}" if field else message)
    return ";".join(messages) or "Wrong credentials"


def field_errors(errors: Iterable[Mapping[str, Any]]) -> dict[str, str]:
    """Map each invalid top-level field to its first message."""
    result: dict[str, str] = {}
    for entry in errors:
        loc = [str(part) for part in entry.get("loc") or ()]
        if not loc:
            continue
        message = _strip_value_error_prefix(str(entry.get("msg", "Invalid value")))
        result.setdefault(loc[0], message)
    return result
