"""Server-rendered account pages."""

from fastapi import APIRouter

from . import home, login, signup
from .forms import render_page, templates

router = APIRouter()
router.include_router(home.router)
router.include_router(login.router)
router.include_router(signup.router)

__all__ = ["router", "render_page", "templates"]
