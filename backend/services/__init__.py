"""Business logic services."""

from .request_context import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    RequestTimeoutMiddleware,
)

__all__ = [
    "REQUEST_ID_HEADER",
    "RequestIdMiddleware",
    "RequestTimeoutMiddleware",
]
