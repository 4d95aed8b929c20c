"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import api_router
from app.core.config import Settings, get_settings
from app.core.errors import AppError, RateLimited
from app.core.logger import setup_logging
from app.core.rate_limit import BruteForceLimiter
from app.core.security import AccountNumberCipher, PasswordHasher, TokenService
from app.db.base import Base
from app.db.session import engine
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.services.scheduler import schedule_limiter_sweep, start_scheduler, stop_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    start_scheduler()
    schedule_limiter_sweep(app.state.login_limiter, settings.limiter_sweep_interval_seconds)
    try:
        yield
    finally:
        stop_scheduler()


def _error_body(exc: AppError, settings: Settings) -> dict:
    body = {"message": exc.message}
    if settings.is_development and exc.detail and exc.status_code < 500:
        body["error"] = exc.detail
    return body


def register_exception_handlers(app: FastAPI) -> None:
    settings: Settings = app.state.settings

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
        headers = None
        if isinstance(exc, RateLimited):
            headers = {"Retry-After": str(max(1, math.ceil(exc.retry_after)))}
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc, settings), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if any(error.get("type") == "missing" for error in errors):
            message = "All fields are required"
        else:
            message = "Invalid input"
        details = [
            {"field": ".".join(str(part) for part in error.get("loc", ())[1:]), "message": error.get("msg")}
            for error in errors
        ]
        return JSONResponse(status_code=400, content={"message": message, "errors": details})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "An unexpected error occurred."})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    # Key material is loaded once here and never swapped while the process runs.
    app.state.settings = settings
    app.state.password_hasher = PasswordHasher()
    app.state.cipher = AccountNumberCipher(settings)
    app.state.token_service = TokenService(settings)
    app.state.login_limiter = BruteForceLimiter.from_settings(settings)

    app.add_middleware(SecurityHeadersMiddleware, settings=settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
