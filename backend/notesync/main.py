"""
NoteSync Backend: FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       the lifespan builds the NoteSynchronizer and tears it down.
Who:   uvicorn (`uvicorn notesync.main:app`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Logging → GZip → CORS    │
    │                                                     │
    │  Routes:  /api/notes  /api/draft  /api/files  /health│
    │                 │                                   │
    │                 ▼                                   │
    │        app.state.synchronizer (NoteSynchronizer)    │
    │           │                         │               │
    │      RecordStore                BlobStore           │
    │   (sql | graphql)            (local files)          │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation→400 │ NotFound→404 │ RemoteError→503    │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Validate configuration (logged, not fatal)
    3. Create tables when DB_CREATE_TABLES is set (sql backend)
    4. Build the synchronizer unless one was injected
    5. Initial fetch of the note list (failure is logged, not fatal)

    Shutdown:
    1. Close store clients
    2. Dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from notesync import __version__
from notesync.config import settings
from notesync.database import create_tables, dispose_engine
from notesync.exceptions import (
    NoteSyncError,
    NotFoundError,
    RemoteError,
    ValidationError,
)
from notesync.middleware.logging import RequestLoggingMiddleware
from notesync.middleware.request_id import RequestIDMiddleware, request_id_var
from notesync.routes import draft, health, notes
from notesync.services.note_synchronizer import NoteSynchronizer, build_synchronizer

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (collected by the container runtime).
    """
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Third-party libraries that log every request or query
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the synchronizer on startup and release its clients on shutdown.

    A synchronizer already present on app.state (injected through
    create_app) is used as-is.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("NoteSync Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    if settings.record_store_backend == "sql" and settings.db_create_tables:
        await create_tables()
        logger.info("Database tables ensured")

    if getattr(app.state, "synchronizer", None) is None:
        app.state.synchronizer = build_synchronizer(settings)
    synchronizer: NoteSynchronizer = app.state.synchronizer

    if settings.fetch_on_startup:
        try:
            await synchronizer.fetch_all()
        except RemoteError as e:
            # The client can retry through POST /api/notes/refresh
            logger.error("Initial note fetch failed: %s | Context: %s", e.message, e.context)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("NoteSync Backend shutting down...")
    await synchronizer.aclose()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy to JSON error responses.

    Handler hierarchy:
        ValidationError   → 400 Bad Request
        NotFoundError     → 404 Not Found
        RemoteError       → 503 Service Unavailable (record or blob store)
        NoteSyncError     → 500 Internal Server Error
        Exception         → 500 Internal Server Error (unexpected errors)

    Stack traces and raw store errors are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(RemoteError)
    async def handle_remote_error(request: Request, exc: RemoteError):
        """A collaborator store failed; local state follows the per-operation rules."""
        rid = request_id_var.get("")
        logger.error("[%s] Remote store error: %s | Context: %s", rid, exc.message, exc.context)
        details = {
            name: exc.context[name]
            for name in ("operation", "key")
            if name in exc.context
        }
        return JSONResponse(
            status_code=503,
            content={
                "error": "remote_error",
                "message": exc.message,
                "details": details or None,
                "request_id": rid,
            },
        )

    @app.exception_handler(NoteSyncError)
    async def handle_app_error(request: Request, exc: NoteSyncError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error(
            "[%s] Unexpected error: %s",
            rid,
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(synchronizer: Optional[NoteSynchronizer] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        synchronizer: Pre-built synchronizer (tests inject one with fake
            stores). When None, the lifespan builds one from settings.
    """
    app = FastAPI(
        title="NoteSync API",
        description=(
            "Notes with optional images. Note text lives in a record store, "
            "image bytes in a blob store; the API keeps both in step."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.synchronizer = synchronizer

    # Middleware executes in reverse order of addition:
    # RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(draft.router)
    app.include_router(health.router)

    return app


app = create_app()
