"""Database error classification helpers."""

from __future__ import annotations

import re
from collections.abc import Iterable

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION_SQLSTATE = "23505"
_POSTGRES_KEY_PATTERN = re.compile(r"Key \(([^)]*)\)=")
_SQLITE_COLUMNS_PATTERN = re.compile(r"UNIQUE constraint failed: ([\w., ]+)")


def _original(error: IntegrityError) -> object:
    return getattr(error, "orig", None)


def _constraint_name(original: object) -> str | None:
    # psycopg exposes it on .diag; asyncpg on the exception SQLAlchemy wraps.
    sources = (getattr(original, "diag", None), original, getattr(original, "__cause__", None))
    for source in sources:
        name = getattr(source, "constraint_name", None)
        if isinstance(name, str) and name:
            return name
    return None


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError comes from a unique constraint."""
    original = _original(error)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate == UNIQUE_VIOLATION_SQLSTATE:
        return True
    message = str(original or error).lower()
    return "duplicate key" in message or "unique constraint" in message


def violated_column(error: IntegrityError, candidates: Iterable[str]) -> str | None:
    """Guess which of the candidate columns a unique violation refers to.

    The constraint name (PostgreSQL ``users_email_key``) is checked first, then
    the column list the driver reports: ``Key (email)=(...)`` on PostgreSQL or
    ``UNIQUE constraint failed: users.email`` on SQLite. The offending value is
    never searched.
    """
    columns = list(candidates)
    original = _original(error)
    message = str(original or error)

    constraint = _constraint_name(original)
    if constraint:
        tokens = set(constraint.lower().split("_"))
        for column in columns:
            if column.lower() in tokens:
                return column

    reported: list[str] = []
    key_match = _POSTGRES_KEY_PATTERN.search(message)
    if key_match:
        reported = [part.strip().lower() for part in key_match.group(1).split(",")]
    else:
        sqlite_match = _SQLITE_COLUMNS_PATTERN.search(message)
        if sqlite_match:
            reported = [
                part.strip().rsplit(".", 1)[-1].lower()
                for part in sqlite_match.group(1).split(",")
            ]
    for column in columns:
        if column.lower() in reported:
            return column
    return None


__all__ = ["is_unique_violation", "violated_column"]
