"""Request id propagation and request timeout middleware."""

from __future__ import annotations

import asyncio
import logging
import re
from uuid import uuid4

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from core.logging import request_id_var

REQUEST_ID_HEADER = "x-request-id"
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")

logger = logging.getLogger(__name__)


def _incoming_request_id(request: Request) -> str | None:
    candidate = request.headers.get(REQUEST_ID_HEADER)
    if not candidate:
        return None
    normalized = candidate.strip()
    if not REQUEST_ID_PATTERN.fullmatch(normalized):
        return None
    return normalized


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, expose it to logging and echo it back."""

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER) -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _incoming_request_id(request) or uuid4().hex
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[self.header_name] = request_id
        return response


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Answer 408 when a handler runs longer than the configured budget."""

    def __init__(self, app: ASGIApp, timeout_seconds: float) -> None:
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Request timed out after %.1fs: %s %s",
                self.timeout_seconds,
                request.method,
                request.url.path,
            )
            return JSONResponse(
                {"detail": "Request timed out"},
                status_code=status.HTTP_408_REQUEST_TIMEOUT,
            )
