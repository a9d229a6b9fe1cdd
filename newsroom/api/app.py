"""FastAPI server for the Newsroom tag learning pipeline"""

from __future__ import annotations

import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from newsroom.api.middleware.rate_limit import RateLimitMiddleware
from newsroom.api.models import failure
from newsroom.api.routes import learning
from newsroom.api.routes.health import router as health_router
from newsroom.config import (
    APP_ENV,
    APP_NAME,
    APP_VERSION,
    CORS_ORIGIN,
    RATE_LIMIT_ENABLED,
    RATE_LIMIT_RPH,
    RATE_LIMIT_RPM,
)
from newsroom.exceptions import NewsroomError
from newsroom.infrastructure.database import init_database, validate_schema
from newsroom.learning.service import LearningService
from newsroom.observability.logging import get_logger
from newsroom.observability.telemetry import counter, log_event
from newsroom.utils.error_sanitizer import generic_message, sanitize_error_message

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Initialize storage and the learning service on startup (fail fast).

    Side Effects:
        - Creates/validates the SQLite schema
        - Injects a LearningService into the learning router if none was given
    """
    try:
        init_database()
        validate_schema()
        logger.info("Database schema validation passed")
    except (sqlite3.Error, ValueError, OSError) as e:
        logger.critical("Database initialization failed: %s", e)
        raise RuntimeError(f"Database initialization failed: {e}") from e

    if learning.learning_service is None:
        learning.set_learning_service(LearningService())

    log_event("api.startup", service="newsroom", version=APP_VERSION, env=APP_ENV)
    yield
    log_event("api.shutdown", service="newsroom")


async def newsroom_error_handler(request: Request, exc: NewsroomError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    else:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    counter(f"api.errors.{exc.status_code}")
    return JSONResponse(
        status_code=exc.status_code,
        content=failure(sanitize_error_message(exc.message, exc.status_code)),
    )


_LOCATION_PREFIXES = frozenset({"body", "query", "path", "header", "cookie"})


def _field_name(loc: tuple[Any, ...] | list[Any]) -> str | None:
    """Innermost named field in a validation error location, if any."""
    for part in reversed(loc):
        # Integer parts are list indexes or JSON decode offsets
        if isinstance(part, str) and part not in _LOCATION_PREFIXES:
            return part
    return None


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Report schema failures as a 400 envelope listing only the offending field names.

    Side Effects:
        - Logs the full validation errors
        - Increments the validation error counter
    """
    errors = exc.errors()
    logger.warning("Validation error on %s: %s", request.url.path, errors)
    counter("api.validation_errors")

    fields = sorted({name for err in errors if (name := _field_name(err.get("loc", ())))})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=failure(
            f"Invalid or missing fields: {', '.join(fields)}" if fields else generic_message(400),
            "Invalid request format. Please check your request and try again.",
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=failure(sanitize_error_message(str(exc.detail), exc.status_code)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content=failure(generic_message(500)))


def create_app(
    service: LearningService | None = None,
    rate_limit: bool = RATE_LIMIT_ENABLED,
) -> FastAPI:
    """
    Build the API application.

    Args:
        service: Learning service to serve; created on startup when omitted
        rate_limit: Whether to install the per-IP rate limiter
    """
    app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=lifespan)

    app.add_exception_handler(NewsroomError, newsroom_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[CORS_ORIGIN],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    if rate_limit:
        app.add_middleware(
            RateLimitMiddleware,
            requests_per_minute=RATE_LIMIT_RPM,
            requests_per_hour=RATE_LIMIT_RPH,
        )

    if service is not None:
        learning.set_learning_service(service)

    app.include_router(health_router)
    app.include_router(learning.router)
    # Dashboard frontend calls /api/learning/...
    app.include_router(learning.router, prefix="/api", include_in_schema=False)

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {"service": APP_NAME, "version": APP_VERSION, "status": "running"}

    return app


app = create_app()


def main() -> None:
    import os

    import uvicorn

    uvicorn.run(
        "newsroom.api.app:app",
        host=os.getenv("NEWSROOM_HOST", "127.0.0.1"),
        port=int(os.getenv("NEWSROOM_PORT", "3001")),
        log_level=os.getenv("NEWSROOM_LOG_LEVEL", "info").lower(),
    )
