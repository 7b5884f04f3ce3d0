#!/usr/bin/env python3
"""
Survey Validation API - HTTP layer for the youth survey validation queue.

This is the FastAPI application behind the staff review dashboard. It serves:
- Validation queue listing and statistics
- Single and bulk adjudication of queued survey responses
- Export auditing
- A WebSocket feed of queue updates
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from survey_validation.auth import AuthMiddleware, AuthUser, get_current_user
from survey_validation.core.constants import GENERIC_INTERNAL_ERROR
from survey_validation.core.errors import SurveyValidationError, TransactionFailure
from survey_validation.logging_config import configure_logging, get_logger

from .dependencies import get_database, get_task_queue
from .settings import get_settings

# Configure unified logging format
# Format: 2026-01-06T14:05:52Z [api] LEVEL message
configure_logging(source="api")
logger = get_logger(__name__)


def _error_body(message: str, error: str | None = None) -> dict[str, Any]:
    return {"success": False, "message": message, "error": error or message}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle - startup and shutdown."""
    get_database().create_all()
    logger.info("Survey validation API started")

    yield

    # Pending delayed emails are dropped on shutdown
    get_task_queue().shutdown(wait_for_tasks=False)
    get_database().dispose()
    logger.info("Survey validation API stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Survey Validation API",
        description="Youth survey response validation and deduplication",
        lifespan=lifespan,
    )

    @app.exception_handler(SurveyValidationError)
    async def survey_validation_error_handler(request: Request, exc: SurveyValidationError) -> JSONResponse:
        if isinstance(exc, TransactionFailure) or exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message} {exc.details}")
            return JSONResponse(status_code=exc.status_code, content=_error_body(GENERIC_INTERNAL_ERROR, exc.message))
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location} {first.get('msg', '')}".strip()
        return JSONResponse(status_code=400, content=_error_body(message, "Bad Request"))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = str(exc.detail) if exc.detail else "Error"
        return JSONResponse(status_code=exc.status_code, content=_error_body(detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content=_error_body(GENERIC_INTERNAL_ERROR, "Internal Server Error"))

    # Load settings
    settings = get_settings()

    # Authentication middleware (runs after CORS due to reverse order)
    app.add_middleware(
        AuthMiddleware,
        auth_mode=settings.get_effective_auth_mode(),
        admin_group=settings.admin_group_name,
        jwt_secret=settings.jwt_secret,
        jwt_algorithm=settings.jwt_algorithm,
        jwt_audience=settings.jwt_audience,
    )

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    # Register routers
    from .routers import realtime, validation_queue

    app.include_router(validation_queue.router)
    app.include_router(realtime.router)

    # Core endpoints (not in a router)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "service": "survey-validation-api"}

    @app.get("/api/user/me")
    async def get_current_user_info(user: AuthUser = Depends(get_current_user)) -> dict[str, Any]:
        """Get current user information."""
        return user.to_dict()

    return app


# Create app instance for uvicorn
app = create_app()
