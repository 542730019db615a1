"""
NoteApp: FastAPI Application Factory
=====================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn noteapp.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌───────────┐   │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│  Session  │   │
    │  └──────────┘ └──────────┘ └──────┘ └───────────┘   │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────────────────────┐ ┌──────────────┐  │
    │  │ / and /notes/{create,edit,   │ │ GET /health  │  │
    │  │ delete}  (HTML)              │ │              │  │
    │  └──────────────────────────────┘ └──────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ NotFound→404 │ CSRF→400 │ other→error page   │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, not fatal)
    3. Create tables when DB_AUTO_CREATE is set

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from noteapp import __version__
from noteapp.config import settings
from noteapp.database import create_tables, dispose_engine
from noteapp.exceptions import CSRFError, NoteAppError, NotFoundError
from noteapp.middleware.logging import RequestLoggingMiddleware
from noteapp.middleware.request_id import RequestIDMiddleware
from noteapp.routes import health, notes
from noteapp.views import current_trace_id, render_bad_request, render_error, render_not_found

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout, so container runtimes capture it.
    Called once during app startup, before any other initialization.
    """
    log_format = (
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,  # Override any existing logging config
    )

    # Third-party loggers that are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Run startup procedures before yield and shutdown procedures after."""
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("NoteApp %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # The app still serves requests; this is for the operator
        logger.error("Configuration error: %s", str(e))

    if settings.db_auto_create:
        await create_tables()
        logger.info("Database tables created (DB_AUTO_CREATE=true)")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("NoteApp shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTML responses.

    Handler hierarchy:
        NotFoundError           → 404 page
        RequestValidationError  → 404 page (non-numeric note id in the URL)
        HTTPException 404       → 404 page (unknown URL)
        CSRFError               → 400 page
        NoteAppError (base)     → error page with trace id, 500
        Exception (fallback)    → error page with trace id, 500

    Pages never contain exception text; details are logged server-side.
    """

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        logger.warning("[%s] Not found: %s", current_trace_id(request), exc.message)
        return render_not_found(request)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        # Form fields all have defaults, so only path ids reach this handler
        logger.warning(
            "[%s] Unparsable request parameters for %s: %s",
            current_trace_id(request),
            request.url.path,
            exc.errors(),
        )
        return render_not_found(request)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return render_not_found(request)
        return await http_exception_handler(request, exc)

    @app.exception_handler(CSRFError)
    async def handle_csrf_error(request: Request, exc: CSRFError):
        return render_bad_request(request, exc.message)

    @app.exception_handler(NoteAppError)
    async def handle_app_error(request: Request, exc: NoteAppError):
        logger.error(
            "[%s] %s: %s | Context: %s",
            current_trace_id(request),
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return render_error(request, status_code=500)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: full stack trace in the log, generic page for the user."""
        logger.error(
            "[%s] Unexpected error: %s",
            current_trace_id(request),
            str(exc),
            exc_info=True,
        )
        return render_error(request, status_code=500)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="NoteApp",
        description="Create, list, edit and delete short text notes.",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition: the last added
    # (RequestID) sees the request first.

    # Signed cookie session holding the anti-forgery token
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key,
        session_cookie=settings.session_cookie,
        same_site="lax",
        https_only=False,
    )

    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(notes.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
