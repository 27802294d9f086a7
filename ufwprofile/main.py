"""
Main FastAPI application entry point.

Run with an ASGI server, e.g. ``uvicorn ufwprofile.main:app``.
"""
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse

from ufwprofile import __version__
from ufwprofile.core.config import settings
from ufwprofile.core.exceptions import ProfileValidationError, UfwProfileError
from ufwprofile.core.logging_config import setup_logging
from ufwprofile.api.v1.router import api_router
from ufwprofile.middleware.request_logging import RequestLoggingMiddleware

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info(
        f"Starting up {settings.APP_NAME} API (ufw={settings.UFW_BINARY}, "
        f"applications_dir={settings.APPLICATIONS_DIR})"
    )
    yield
    logger.info(f"Shutting down {settings.APP_NAME} API...")


app = FastAPI(
    title="ufwprofile API",
    description="Generate UFW application profiles and register them with ufw",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    redirect_slashes=False,
)

# Request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# Include API router
app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(ProfileValidationError)
async def validation_exception_handler(request: Request, exc: ProfileValidationError):
    """Rejected profile fields and port entries become 422 responses."""
    trace_id = getattr(request.state, "trace_id", str(uuid.uuid4()))
    logger.info(f"[{trace_id}] Rejected profile: {exc}")
    return JSONResponse(
        status_code=422,
        content={
            "detail": {
                "error": type(exc).__name__,
                "value": exc.value,
                "message": str(exc),
            },
            "trace_id": trace_id,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors with trace_id."""
    # Get trace_id from request state (set by middleware)
    trace_id = getattr(request.state, "trace_id", str(uuid.uuid4()))

    logger.error(
        f"[{trace_id}] Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=True
    )

    if isinstance(exc, HTTPException):
        # Re-raise HTTPException as-is (FastAPI handles these)
        raise exc
    if isinstance(exc, UfwProfileError):
        error_detail = str(exc)
    else:
        error_detail = str(exc) if settings.DEBUG else "Internal Server Error"

    return JSONResponse(
        status_code=500,
        content={
            "detail": error_detail,
            "trace_id": trace_id,
            "error": type(exc).__name__,
        },
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "ufwprofile API",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """
    Health check endpoint for load balancers.

    Returns 200 immediately without touching ufw.
    """
    return {"status": "ok"}
