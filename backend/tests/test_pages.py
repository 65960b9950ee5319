"""Tests for the server-rendered login and signup pages."""

from __future__ import annotations

import re
from uuid import uuid4

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy import func, select

from models import UserSession

STRONG_PASSWORD = "Sup3rSecret!"
CSRF_INPUT_PATTERN = re.compile(r'name="csrf_token" value="([^"]+)"')


def extract_csrf_token(html: str) -> str:
    match = CSRF_INPUT_PATTERN.search(html)
    assert match is not None, "page has no csrf_token field"
    return match.group(1)


async def register(async_client: AsyncClient) -> dict[str, str]:
    suffix = uuid4().hex[:8]
    payload = {
        "username": f"page_{suffix}",
        "email": f"page_{suffix}@example.com",
        "password": STRONG_PASSWORD,
    }
    response = await async_client.post("/api/v1/signup", json=payload)
    assert response.status_code == status.HTTP_200_OK
    return payload


async def login(async_client: AsyncClient, email: str, password: str):
    page = await async_client.get("/login")
    token = extract_csrf_token(page.text)
    return await async_client.post(
        "/login",
        data={"email": email, "password": password, "csrf_token": token},
    )


@pytest.mark.asyncio
async def test_login_page_renders_form_with_csrf_token(async_client: AsyncClient):
    response = await async_client.get("/login")

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith("text/html")
    assert extract_csrf_token(response.text)
    assert 'action="/login"' in response.text


@pytest.mark.asyncio
async def test_login_without_csrf_token_is_forbidden(async_client: AsyncClient):
    account = await register(async_client)
    await async_client.get("/login")

    response = await async_client.post(
        "/login",
        data={"email": account["email"], "password": account["password"]},
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert "Invalid CSRF token" in response.text


@pytest.mark.asyncio
async def test_login_success_redirects_and_shows_user(async_client: AsyncClient):
    account = await register(async_client)

    response = await login(async_client, account["email"], account["password"])

    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.headers["location"] == "/"

    home = await async_client.get("/")
    assert account["username"] in home.text
    assert 'action="/logout"' in home.text

    me = await async_client.get("/api/v1/me")
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["email"] == account["email"]

    again = await async_client.get("/login")
    assert again.status_code == status.HTTP_303_SEE_OTHER


@pytest.mark.asyncio
async def test_login_rotates_csrf_token(async_client: AsyncClient):
    account = await register(async_client)
    before = extract_csrf_token((await async_client.get("/login")).text)

    await login(async_client, account["email"], account["password"])
    after = extract_csrf_token((await async_client.get("/")).text)

    assert before != after


@pytest.mark.asyncio
async def test_login_with_wrong_password_rerenders_form(async_client: AsyncClient):
    account = await register(async_client)

    response = await login(async_client, account["email"], "Wr0ngPassword!")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Invalid email or password" in response.text
    assert account["email"] in response.text


@pytest.mark.asyncio
async def test_login_with_malformed_email_shows_hint(async_client: AsyncClient):
    response = await login(async_client, "not-an-email", STRONG_PASSWORD)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Enter a valid email" in response.text


@pytest.mark.asyncio
async def test_logout_ends_session(async_client: AsyncClient):
    account = await register(async_client)
    await login(async_client, account["email"], account["password"])
    token = extract_csrf_token((await async_client.get("/")).text)

    response = await async_client.post("/logout", data={"csrf_token": token})

    assert response.status_code == status.HTTP_303_SEE_OTHER
    me = await async_client.get("/api/v1/me")
    assert me.status_code == status.HTTP_401_UNAUTHORIZED
    home = await async_client.get("/")
    assert 'href="/login"' in home.text


@pytest.mark.asyncio
async def test_logout_requires_csrf_token(async_client: AsyncClient):
    account = await register(async_client)
    await login(async_client, account["email"], account["password"])

    response = await async_client.post("/logout", data={"csrf_token": "forged"})

    assert response.status_code == status.HTTP_403_FORBIDDEN
    me = await async_client.get("/api/v1/me")
    assert me.status_code == status.HTTP_200_OK


@pytest.mark.asyncio
async def test_login_validate_reports_field_errors(async_client: AsyncClient):
    response = await async_client.post(
        "/login/validate",
        json={"email": "broken", "password": "short"},
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["email_error"] == "Enter a valid email"
    assert body["password_error"]


@pytest.mark.asyncio
async def test_login_validate_ignores_empty_fields(async_client: AsyncClient):
    response = await async_client.post("/login/validate", json={})

    assert response.json() == {"email_error": "", "password_error": ""}


@pytest.mark.asyncio
async def test_signup_form_creates_account_and_signs_in(async_client: AsyncClient):
    page = await async_client.get("/signup")
    token = extract_csrf_token(page.text)
    suffix = uuid4().hex[:8]

    response = await async_client.post(
        "/signup",
        data={
            "username": f"form_{suffix}",
            "email": f"form_{suffix}@example.com",
            "password": STRONG_PASSWORD,
            "confirm_password": STRONG_PASSWORD,
            "first_name": "Form",
            "csrf_token": token,
        },
    )

    assert response.status_code == status.HTTP_303_SEE_OTHER
    me = await async_client.get("/api/v1/me")
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["username"] == f"form_{suffix}"
    assert me.json()["first_name"] == "Form"
    assert me.json()["bio"] is None


@pytest.mark.asyncio
async def test_signup_form_rejects_mismatched_passwords(async_client: AsyncClient):
    token = extract_csrf_token((await async_client.get("/signup")).text)
    suffix = uuid4().hex[:8]

    response = await async_client.post(
        "/signup",
        data={
            "username": f"form_{suffix}",
            "email": f"form_{suffix}@example.com",
            "password": STRONG_PASSWORD,
            "confirm_password": "Different1!",
            "csrf_token": token,
        },
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Passwords do not match" in response.text


@pytest.mark.asyncio
async def test_signup_form_reports_taken_email(async_client: AsyncClient):
    account = await register(async_client)
    token = extract_csrf_token((await async_client.get("/signup")).text)

    response = await async_client.post(
        "/signup",
        data={
            "username": f"other_{uuid4().hex[:8]}",
            "email": account["email"],
            "password": STRONG_PASSWORD,
            "confirm_password": STRONG_PASSWORD,
            "csrf_token": token,
        },
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Email already exists" in response.text


@pytest.mark.asyncio
async def test_signup_form_without_csrf_is_forbidden(async_client: AsyncClient):
    await async_client.get("/signup")

    response = await async_client.post(
        "/signup",
        data={"username": "nobody", "email": "nobody@example.com"},
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
async def test_signup_validate_reports_each_field(async_client: AsyncClient):
    account = await register(async_client)

    response = await async_client.post(
        "/signup/validate",
        json={
            "username": account["username"],
            "email": "broken",
            "password": "weak",
            "confirm_password": "weak",
        },
    )

    body = response.json()
    assert body["username_error"] == "Username already exists"
    assert body["email_error"] == "Enter a valid email"
    assert body["password_error"]


@pytest.mark.asyncio
async def test_signup_validate_flags_confirmation_mismatch(async_client: AsyncClient):
    response = await async_client.post(
        "/signup/validate",
        json={"password": STRONG_PASSWORD, "confirm_password": "Sup3rSecret?"},
    )

    assert response.json() == {
        "username_error": "",
        "email_error": "",
        "password_error": "Passwords do not match",
    }


@pytest.mark.asyncio
async def test_signup_reset_clears_errors(async_client: AsyncClient):
    response = await async_client.post("/signup/reset")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"username_error": "", "email_error": "", "password_error": ""}


@pytest.mark.asyncio
async def test_unknown_page_renders_html_not_found(async_client: AsyncClient):
    response = await async_client.get("/definitely/not/here")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.headers["content-type"].startswith("text/html")
    assert "Page not found" in response.text


@pytest.mark.asyncio
async def test_second_login_revokes_previous_server_session(
    async_client: AsyncClient,
    db_session,
):
    account = await register(async_client)
    await login(async_client, account["email"], account["password"])
    token = extract_csrf_token((await async_client.get("/")).text)

    response = await async_client.post(
        "/login",
        data={
            "email": account["email"],
            "password": account["password"],
            "csrf_token": token,
        },
    )

    assert response.status_code == status.HTTP_303_SEE_OTHER
    result = await db_session.execute(select(func.count()).select_from(UserSession))
    assert result.scalar_one() == 1
    me = await async_client.get("/api/v1/me")
    assert me.status_code == status.HTTP_200_OK
