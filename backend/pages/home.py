"""Landing page for signed-in and anonymous visitors."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from starlette.responses import Response

from api.deps import get_optional_user
from models import User

from .forms import render_page

router = APIRouter(tags=["pages"])


@router.get("/")
async def home_page(
    request: Request,
    current_user: User | None = Depends(get_optional_user),
) -> Response:
    return render_page(
        request,
        "pages/home.html",
        {"title": "Home", "current_user": current_user},
    )
