"""
Readlog Backend - FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       the module-level `app` is what uvicorn serves (readlog.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐  │
    │  │  Rate Limit  │→│ Req ID   │→│  Logging        │  │
    │  └──────────────┘ └──────────┘ └─────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────┐ ┌────────────┐ ┌──────────┐ ┌───────┐ │
    │  │ /users   │ │ /auth/login│ │ /records │ │/health│ │
    │  └──────────┘ └────────────┘ └──────────┘ └───────┘ │
    │                                                     │
    │  Exception Handlers (all render the envelope):      │
    │   Validation→400  Auth→401  NotFound→404            │
    │   Conflict→409    RateLimit→429  Storage/other→500  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging → ensure schema (if enabled) → ready
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from readlog import __version__
from readlog.config import settings
from readlog.database import dispose_engine, ensure_schema
from readlog.exceptions import (
    AuthenticationError,
    ConflictError,
    HashingError,
    NotFoundError,
    RateLimitExceededError,
    ReadlogError,
    StorageError,
    ValidationError,
)
from readlog.middleware.logging import RequestLoggingMiddleware
from readlog.middleware.rate_limit import RateLimitMiddleware
from readlog.middleware.request_id import RequestIDMiddleware, request_id_var
from readlog.routes import auth, health, records, users
from readlog.schemas.envelope import error_response

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout.
    Called once at startup before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our own access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Readlog Backend %s starting up...", __version__)

    if settings.auto_create_schema:
        await ensure_schema()
    else:
        logger.info("AUTO_CREATE_SCHEMA disabled; expecting `alembic upgrade head` to have run")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Readlog Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten FastAPI's error list into one readable line."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to HTTP status codes and the error envelope.

    Handler hierarchy:
        RequestValidationError  → 400 (FastAPI's default would be 422)
        ValidationError         → 400
        AuthenticationError     → 401
        NotFoundError           → 404
        ConflictError           → 409
        RateLimitExceededError  → 429
        StorageError            → 500 (generic message, details logged)
        HashingError            → 500
        ReadlogError (base)     → its status_code
        StarletteHTTPException  → its status_code (unknown route, wrong method)
        Exception               → 500 (generic message, stack trace logged)

    Raw database or driver text never reaches the client.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = _format_validation_errors(exc)
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return error_response(400, message)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, exc.message)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return error_response(401, exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.warning("[%s] Conflict: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return error_response(409, exc.message)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return error_response(429, exc.message, headers={"Retry-After": str(exc.retry_after)})

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        logger.error("[%s] Storage error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return error_response(500, GENERIC_SERVER_ERROR)

    @app.exception_handler(HashingError)
    async def handle_hashing_error(request: Request, exc: HashingError):
        logger.error("[%s] Hashing error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return error_response(500, exc.message)

    @app.exception_handler(ReadlogError)
    async def handle_readlog_error(request: Request, exc: ReadlogError):
        logger.error("[%s] %s: %s | Context: %s", request_id_var.get(""), type(exc).__name__, exc.message, exc.context)
        message = exc.message if exc.status_code < 500 else GENERIC_SERVER_ERROR
        return error_response(exc.status_code, message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return error_response(500, "An unexpected error occurred. Please try again or contact support.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers into a FastAPI app."""
    app = FastAPI(
        title="Readlog API",
        description=(
            "Backend for a personal reading tracker: user accounts and per-user "
            "reading records (progress through a book, keyed by user and ISBN)."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RateLimit → RequestID → Logging → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(users.router)
    app.include_router(auth.router)
    app.include_router(records.router)
    app.include_router(health.router)

    return app


app = create_app()
