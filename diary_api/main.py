"""
Diary API — FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers, routers and the
       process-wide ImageService; uvicorn serves `diary_api.main:app`.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐ ┌──────────────┐  │
    │  │ Req ID   │→│  Logging        │→│  CORS        │  │
    │  └──────────┘ └─────────────────┘ └──────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────────────────────┐ ┌──────────────┐  │
    │  │ /api/diary (CRUD + image)    │ │ GET /health  │  │
    │  └──────────────────────────────┘ └──────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ DiaryAPIError → status of exc.kind           │   │
    │  │ RequestValidationError → 400                 │   │
    │  │ Exception → 500                              │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, ensure the image root exists
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from diary_api import __version__
from diary_api.config import settings
from diary_api.database import dispose_engine
from diary_api.exceptions import DiaryAPIError, ErrorKind
from diary_api.middleware.logging import RequestLoggingMiddleware
from diary_api.middleware.request_id import (
    RequestIDLogFilter,
    RequestIDMiddleware,
    request_id_var,
)
from diary_api.routes import diary, health
from diary_api.schemas.diary import field_errors
from diary_api.services.image_service import ImageService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s
    The request ID comes from RequestIDLogFilter on the stdout handler.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("Diary API %s starting up...", __version__)

    image_service: ImageService = app.state.image_service
    image_service.image_root.mkdir(parents=True, exist_ok=True)
    logger.info("Image root: %s", image_service.image_root)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Diary API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(kind: ErrorKind, message: str, details=None) -> dict:
    body = {
        "error": kind.value,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map errors to HTTP responses.

    Handler table:
        DiaryAPIError            → exc.kind.status_code (400/404/413/415/500)
        RequestValidationError   → 400 with {"fields": {name: message}}
        Exception (fallback)     → 500, no internals in the body

    Server-side kinds never echo their context to the client.
    """

    @app.exception_handler(DiaryAPIError)
    async def handle_diary_error(request: Request, exc: DiaryAPIError):
        rid = request_id_var.get("")
        if exc.kind.is_server_error:
            logger.error("[%s] %s: %s | Context: %s", rid, exc.kind.value, exc.message, exc.context)
            details = None
        else:
            logger.warning("[%s] %s: %s", rid, exc.kind.value, exc.message)
            details = exc.context
        return JSONResponse(
            status_code=exc.kind.status_code,
            content=error_body(exc.kind, exc.message, details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        fields = field_errors(exc.errors())
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), fields)
        return JSONResponse(
            status_code=ErrorKind.VALIDATION.status_code,
            content=error_body(ErrorKind.VALIDATION, "Input validation failed", {"fields": fields}),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": request_id_var.get(""),
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(image_service: ImageService | None = None) -> FastAPI:
    """
    Assemble the application.

    Args:
        image_service: ImageService to serve requests with; defaults to one
                       built from settings (tests pass their own).
    """
    app = FastAPI(
        title="Diary API",
        description="Personal diary backend: entries with an optional image each.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.image_service = image_service or ImageService()

    # Last added runs first: RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(diary.router)
    app.include_router(health.router)

    return app


app = create_app()
