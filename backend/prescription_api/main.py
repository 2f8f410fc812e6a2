"""
Prescription API — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn prescription_api.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                     FastAPI App                         │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐            │
    │  │ Req ID   │→│ Logging  │→│ GZip │→│ CORS │            │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘            │
    │                                                         │
    │  Routes:                                                │
    │  /prescriptions/...  /prescription/{id}                 │
    │  /patients/medical-details  /health                     │
    │                                                         │
    │  Exception Handlers:                                    │
    │  Validation→400 │ NotFound→404 │ DataService→500 │ *→500│
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, validate configuration, log readiness
    Shutdown: dispose the database engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from prescription_api import __version__
from prescription_api.config import settings
from prescription_api.database import dispose_engine
from prescription_api.exceptions import (
    DataServiceError,
    NotFoundError,
    PrescriptionAPIError,
    ValidationError,
)
from prescription_api.middleware.logging import RequestLoggingMiddleware
from prescription_api.middleware.request_id import RequestIDMiddleware, request_id_var
from prescription_api.routes import health, patients, prescriptions

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (captured by the container runtime)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Prescription API starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")
        # Keep serving: /health reports the database as disconnected

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Prescription API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(error: str, message: str, details=None) -> dict:
    """Error response body shared by every handler (see ErrorResponse)."""
    return {
        "error": error,
        "message": message,
        "details": details or None,
        "request_id": request_id_var.get(""),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError           → 400 Bad Request
        NotFoundError             → 404 Not Found
        DataServiceError          → 500 (database's message)
        PrescriptionAPIError      → 500 (catch-all for custom errors)
        Exception (fallback)      → 500 "Server error"
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        """Required input missing: tell the client which field."""
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=error_body("not_found", exc.message),
        )

    @app.exception_handler(DataServiceError)
    async def handle_data_service_error(request: Request, exc: DataServiceError):
        logger.error(
            "[%s] Data service error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=error_body("data_service_error", exc.message),
        )

    @app.exception_handler(PrescriptionAPIError)
    async def handle_application_error(request: Request, exc: PrescriptionAPIError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=500,
            content=error_body("server_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Anything not raised on purpose: 500 with the exception text as details."""
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=error_body("server_error", "Server error", {"reason": str(exc)}),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Prescription API",
        description=(
            "Optical prescription records: list a patient's prescriptions, read a "
            "prescription with both eye-detail records, add prescriptions, and "
            "append to a patient's medical details."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in REVERSE order of addition: RequestID → Logging → GZip → CORS
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

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(prescriptions.router)
    app.include_router(patients.router)
    app.include_router(health.router)

    return app


# uvicorn expects `prescription_api.main:app` to be importable
app = create_app()
