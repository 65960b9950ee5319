"""Per-session CSRF tokens kept in the signed cookie session."""

from __future__ import annotations

import hmac
import secrets

from starlette.requests import Request

CSRF_SESSION_KEY = "csrf_token"
CSRF_HEADER = "x-csrf-token"


def ensure_csrf_token(request: Request) -> str:
    """Return the session's CSRF token, creating one on first use."""
    token = request.session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_urlsafe(32)
        request.session[CSRF_SESSION_KEY] = token
    return token


def rotate_csrf_token(request: Request) -> str:
    request.session.pop(CSRF_SESSION_KEY, None)
    return ensure_csrf_token(request)


def validate_csrf(request: Request, submitted: str | None) -> bool:
    """Compare a submitted token (form field or header) with the session's."""
    expected = request.session.get(CSRF_SESSION_KEY)
    candidate = submitted or request.headers.get(CSRF_HEADER)
    if not expected or not candidate:
        return False
    return hmac.compare_digest(str(candidate), str(expected))
