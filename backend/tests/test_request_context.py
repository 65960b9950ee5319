"""Tests for request id propagation and the request timeout middleware."""

import asyncio
import logging

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from core.logging import RequestIdFilter, request_id_var
from services import REQUEST_ID_HEADER, RequestIdMiddleware, RequestTimeoutMiddleware


@pytest.mark.asyncio
async def test_response_carries_generated_request_id(async_client: AsyncClient):
    response = await async_client.get("/api/v1/health")

    request_id = response.headers[REQUEST_ID_HEADER]
    assert len(request_id) == 32
    int(request_id, 16)


@pytest.mark.asyncio
async def test_incoming_request_id_is_echoed(async_client: AsyncClient):
    response = await async_client.get(
        "/api/v1/health",
        headers={REQUEST_ID_HEADER: "trace-abc.123"},
    )

    assert response.headers[REQUEST_ID_HEADER] == "trace-abc.123"


@pytest.mark.asyncio
async def test_malformed_request_id_is_replaced(async_client: AsyncClient):
    response = await async_client.get(
        "/api/v1/health",
        headers={REQUEST_ID_HEADER: "bad id with spaces"},
    )

    assert response.headers[REQUEST_ID_HEADER] != "bad id with spaces"


@pytest.mark.asyncio
async def test_request_id_is_visible_to_handlers():
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/whoami")
    async def whoami() -> dict[str, str]:
        return {"request_id": request_id_var.get()}

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/whoami", headers={REQUEST_ID_HEADER: "req-1"})

    assert response.json() == {"request_id": "req-1"}
    assert request_id_var.get() == "-"


def test_request_id_filter_stamps_records():
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)
    token = request_id_var.set("req-42")
    try:
        assert RequestIdFilter().filter(record) is True
    finally:
        request_id_var.reset(token)

    assert record.request_id == "req-42"


@pytest.mark.asyncio
async def test_slow_request_times_out_with_408():
    app = FastAPI()
    app.add_middleware(RequestTimeoutMiddleware, timeout_seconds=0.05)

    @app.get("/slow")
    async def slow() -> dict[str, str]:
        await asyncio.sleep(1)
        return {"status": "late"}

    @app.get("/fast")
    async def fast() -> dict[str, str]:
        return {"status": "ok"}

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        slow_response = await client.get("/slow")
        fast_response = await client.get("/fast")

    assert slow_response.status_code == 408
    assert slow_response.json() == {"detail": "Request timed out"}
    assert fast_response.status_code == 200
