"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from api.v1 import router as api_v1_router
from core import Settings, configure_logging
from core.config import settings as default_settings
from db import create_engine, create_session_maker
from pages import render_page
from pages import router as pages_router
from services import RequestIdMiddleware, RequestTimeoutMiddleware
from services.users import InvalidCredentialsError, NotFoundError, UsersServiceError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _service_error_status(exc: UsersServiceError) -> int:
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, InvalidCredentialsError):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _register_exception_handlers(app: FastAPI, config: Settings) -> None:
    @app.exception_handler(UsersServiceError)
    async def users_service_error_handler(
        request: Request,
        exc: UsersServiceError,
    ) -> JSONResponse:
        status_code = _service_error_status(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(
                "Service failure on %s %s: %s",
                request.method,
                request.url.path,
                exc.reason,
            )
            detail = INTERNAL_ERROR_MESSAGE
        else:
            detail = exc.reason
        return JSONResponse({"detail": detail}, status_code=status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        error = InvalidCredentialsError.from_validation_errors(exc.errors())
        return JSONResponse(
            {"detail": error.reason},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(StarletteHTTPException)
    async def not_found_page_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> Response:
        path = request.url.path
        if exc.status_code == status.HTTP_404_NOT_FOUND and not path.startswith(
            config.api_prefix
        ):
            return render_page(
                request,
                "pages/notfound.html",
                {"title": "Not found", "path": path},
                status_code=status.HTTP_404_NOT_FOUND,
            )
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            {"detail": INTERNAL_ERROR_MESSAGE},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def create_app(config: Settings | None = None) -> FastAPI:
    """Build the application around ``config`` (the environment settings by default)."""
    config = config or default_settings
    configure_logging(config.log_level)

    engine = create_engine(config)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting %s (%s)", config.app_name, config.app_env)
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(title=config.app_name, lifespan=lifespan)
    app.state.settings = config
    app.state.engine = engine
    app.state.session_maker = create_session_maker(engine)

    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret,
        session_cookie=config.session_cookie,
        max_age=config.session_expire_minutes * 60,
        same_site="lax",
        https_only=config.secure_cookies,
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RequestTimeoutMiddleware,
        timeout_seconds=config.request_timeout_seconds,
    )
    app.add_middleware(RequestIdMiddleware)

    _register_exception_handlers(app, config)

    @app.get(f"{config.api_prefix}/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(api_v1_router, prefix=config.api_prefix)
    app.include_router(pages_router)
    return app
