"""
CSV Query Service - Main Application.

FastAPI application factory: middleware, exception handlers, health check
and routers, plus a best-effort CSV load at startup.
"""

import logging
import sys
import threading
import traceback
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from csvquery import __version__
from csvquery.api.gate import readiness_gate
from csvquery.api.routes.init import router as init_router
from csvquery.api.routes.metrics import router as metrics_router
from csvquery.api.routes.query import router as query_router
from csvquery.api.routes.schema import router as schema_router
from csvquery.config import Settings, get_settings
from csvquery.context import AppContext
from csvquery.core import InitializationState
from csvquery.deps import get_context
from csvquery.exceptions import CsvQueryException
from csvquery.schemas import ErrorResponse, HealthResponse

logger = logging.getLogger("csvquery")


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.app_log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _error_response(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(
        message=message,
        code=code,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    context: AppContext = app.state.context
    settings = context.settings
    logger.info(f"Starting CSV Query Service v{__version__} [env={settings.app_env}]")
    logger.info(
        f"To initialize the database, place {context.csv_path} on disk "
        f"and make a POST request to /api/init"
    )

    # Runs off the event loop so the server accepts connections immediately.
    if settings.loader.auto_init:
        threading.Thread(target=context.auto_initialize, name="auto-init", daemon=True).start()

    yield

    logger.info("Shutting down CSV Query Service")
    context.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    _configure_logging(settings)

    app = FastAPI(
        title="CSV Query API",
        description="Loads a CSV file into an in-memory SQL database and runs queries against it.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = AppContext.from_settings(settings)

    # =========================================================================
    # Middleware (last registered runs first)
    # =========================================================================

    app.middleware("http")(readiness_gate)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests."""
        request_id = getattr(request.state, "request_id", "unknown")
        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        response = await call_next(request)

        logger.info(f"[{request_id}] {request.method} {request.url.path} -> {response.status_code}")

        return response

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add request ID to all requests."""
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    @app.exception_handler(CsvQueryException)
    async def csvquery_exception_handler(request: Request, exc: CsvQueryException):
        logger.warning(f"CsvQueryException: {exc.code} - {exc.message}")
        return _error_response(request, exc.status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return _error_response(request, 400, "BAD_REQUEST", f"Invalid request body: {detail}")

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}")
        logger.error(f"Exception type: {type(exc).__name__}")
        logger.error(f"Traceback:\n{traceback.format_exc()}")
        message = str(exc) if settings.app_debug else "An unexpected error occurred"
        return _error_response(request, 500, "INTERNAL_ERROR", message)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    def health_check(context: AppContext = Depends(get_context)):
        """Liveness plus load state. Never gated."""
        state = context.state
        info = context.coordinator.cached_info(context.table_name)
        return HealthResponse(
            version=__version__,
            db_initialized=state is InitializationState.READY,
            db_initializing=state is InitializationState.IN_PROGRESS,
            row_count=info.row_count if info else None,
            last_error=context.coordinator.last_error(context.table_name),
        )

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    def root():
        return "backend is running !"

    # =========================================================================
    # Routers
    # =========================================================================

    app.include_router(init_router)
    app.include_router(query_router)
    app.include_router(schema_router)
    app.include_router(metrics_router)

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir)), name="static")

    return app


app = create_app()
