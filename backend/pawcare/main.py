"""
PawCare Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance
       owning its storage adapter, session store and notification dispatcher
       (all on app.state).
Who:   Called by uvicorn to start the server (uvicorn pawcare.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────┐ ┌─────────┐ ┌────────────┐ ┌─────────┐       │
    │  │ Req ID │→│ Logging │→│ Rate Limit │→│ Session │→ ...  │
    │  └────────┘ └─────────┘ └────────────┘ └─────────┘       │
    │                                                          │
    │  Routes (/api):                                          │
    │  auth · customer · services · bookings · customers       │
    │  feedback · export · health                              │
    │                                                          │
    │  app.state:                                              │
    │  settings · storage · session_store · notifier           │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Report insecure production configuration
    3. Create tables and seed rows on the active backend
    4. Purge expired database sessions

    Shutdown:
    1. Dispose the storage engine (close all pooled connections)
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from pawcare import __version__
from pawcare.config import Settings, settings as default_settings
from pawcare.exceptions import UNEXPECTED_ERROR, PawCareError, RateLimitExceededError, StorageError
from pawcare.middleware.logging import RequestLoggingMiddleware
from pawcare.middleware.rate_limit import RateLimitMiddleware, default_policies
from pawcare.middleware.request_id import RequestIDMiddleware, error_body, request_id_var
from pawcare.middleware.session import SessionMiddleware
from pawcare.routes import auth, bookings, customer, customers, export, feedback, health, services
from pawcare.services.notification_service import (
    NotificationDispatcher,
    NotificationSender,
    create_notification_sender,
)
from pawcare.sessions import DatabaseSessionStore, create_session_store
from pawcare.storage import create_storage_adapter

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once from the lifespan, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup and shutdown for the app's own resources.

    Storage initialization also happens lazily on the first request, so an
    app driven without lifespan events (test transports) still works.
    """
    config: Settings = app.state.settings
    storage = app.state.storage

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(config.log_level)
    logger.info("=" * 60)
    logger.info("PawCare Backend %s starting up (storage=%s)", __version__, storage.backend_name)

    try:
        config.validate_required_for_production()
    except ValueError as e:
        # Not fatal: health checks still answer and the problem stays visible
        logger.error("Configuration error: %s", str(e))

    await storage.ensure_initialized()

    session_store = app.state.session_store
    if isinstance(session_store, DatabaseSessionStore):
        purged = await session_store.purge_expired()
        if purged:
            logger.info("Purged %d expired sessions", purged)

    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("PawCare Backend shutting down...")
    await storage.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the failure envelope.

    Handler hierarchy:
        PawCareError subclasses → their own status_code / error_code
            StorageError (500)  → generic message, context logged server-side
        RequestValidationError  → 400 validation_error (first message)
        Exception (fallback)    → 500 internal_server_error

    Exception context is only ever logged, never returned.
    """

    @app.exception_handler(PawCareError)
    async def handle_pawcare_error(request: Request, exc: PawCareError):
        rid = request_id_var.get("")
        headers = {}
        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)

        if exc.status_code >= 500 or isinstance(exc, StorageError):
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            message = GENERIC_SERVER_ERROR
        else:
            logger.warning("[%s] %s (%s %s)", rid, exc.message, request.method, request.url.path)
            message = exc.message

        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.error_code, message),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Malformed JSON or wrongly-typed fields; report the first problem."""
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
            if field:
                message = f"{field}: {message}"
        else:
            message = "Invalid request"
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return JSONResponse(status_code=400, content=error_body("validation_error", message))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: stack trace to the log, generic message to the client."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body("internal_server_error", UNEXPECTED_ERROR),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    notification_sender: Optional[NotificationSender] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings:            Configuration; defaults to the environment-loaded singleton.
        notification_sender: Delivery backend; defaults to SMTP when configured,
                             otherwise log-only. Tests pass a mock here.
    """
    config = settings or default_settings

    app = FastAPI(
        title="PawCare API",
        description=(
            "Backend for the PawCare pet-care business: public booking form, "
            "customer portal, admin dashboard, feedback and spreadsheet export."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    storage = create_storage_adapter(config)
    session_store = create_session_store(config, storage)
    app.state.settings = config
    app.state.storage = storage
    app.state.session_store = session_store
    app.state.notifier = NotificationDispatcher(
        notification_sender or create_notification_sender(config),
        operator_email=config.operator_email,
    )
    app.state.start_time = time.time()

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition. Adding
    # CORS → GZip → Session → RateLimit → Logging → RequestID gives the
    # execution order RequestID → Logging → RateLimit → Session → GZip → CORS.

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,  # session cookie
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After", "Content-Disposition"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SessionMiddleware, store=session_store, settings=config)
    app.add_middleware(RateLimitMiddleware, policies=default_policies(config))
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(customer.router)
    app.include_router(services.router)
    app.include_router(bookings.router)
    app.include_router(customers.router)
    app.include_router(feedback.router)
    app.include_router(export.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `pawcare.main:app` to be importable
app = create_app()
