"""Authentication domain services."""

from .csrf import (
    CSRF_HEADER,
    ensure_csrf_token,
    rotate_csrf_token,
    validate_csrf,
)
from .session_store import (
    create_user_session,
    ensure_aware,
    hash_session_id,
    prune_expired_sessions,
    resolve_session_user,
    revoke_user_session,
)

SESSION_ID_KEY = "sid"

__all__ = [
    "CSRF_HEADER",
    "SESSION_ID_KEY",
    "ensure_csrf_token",
    "rotate_csrf_token",
    "validate_csrf",
    "create_user_session",
    "ensure_aware",
    "hash_session_id",
    "prune_expired_sessions",
    "resolve_session_user",
    "revoke_user_session",
]
