"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- The shortcode redirect path (middleware)
- The link API routes
- Health checks
- Middleware (logging, CORS) and error rendering

Design Decisions:
- Clean separation: Routes, middleware, and app config are separate
- Errors are rendered as {"error": "..."} everywhere
- The link store is created on startup and injected through app.state
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import endpoints
from app.api.schemas import HealthChecks, HealthResponse
from app.core.exceptions import StoreUnavailableError
from app.core.logging_config import configure_logging
from app.core.rate_limit import limiter
from app.core.setting import settings
from app.core.store_manager import initialize_store, shutdown_store
from app.middleware.logging import add_logging_middleware
from app.middleware.redirect import add_redirect_middleware

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Link Redirect Service",
    description="Resolves shortcodes to stored URLs and manages links",
    version=settings.APP_VERSION,
    docs_url="/docs",  # Swagger UI documentation
    redoc_url="/redoc",  # ReDoc documentation
)

app.state.limiter = limiter
app.state.link_store = None
app.state.resolver = None
app.state.link_service = None
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"}
    )


# Order matters: the last middleware added runs first
add_redirect_middleware(app)
add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz", tags=["Health"])
async def liveness():
    """
    Liveness check.

    Returns:
        Simple JSON response indicating the process is serving requests
    """
    return {"ok": True, "version": settings.APP_VERSION}


@app.get("/api/health", tags=["Health"], response_model=HealthResponse)
async def health_check(request: Request):
    """
    Detailed health check for monitoring.

    Verifies that the link store exists and that the database answers a
    trivial query. Responds 503 when either check fails.
    """
    errors: list[str] = []
    store = getattr(request.app.state, "link_store", None)

    if store is None:
        store_status = "uninitialized"
        database_status = "unknown"
        errors.append("Link store is not initialized")
    else:
        store_status = "ok"
        try:
            await store.ping()
            database_status = "ok"
        except StoreUnavailableError as e:
            database_status = "error"
            errors.append(str(e))

    report = HealthResponse(
        ok=not errors,
        version=settings.APP_VERSION,
        timestamp=datetime.now(timezone.utc),
        environment=settings.ENV_SETTING.value,
        checks=HealthChecks(store=store_status, database=database_status),
        errors=errors
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if report.ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=report.model_dump(mode="json")
    )


app.include_router(endpoints.router, tags=["Links"])


@app.on_event("startup")
async def startup_event():
    """Initialize the link store on startup."""
    await initialize_store(app)


@app.on_event("shutdown")
async def shutdown_event():
    """Drain click updates and close the store on shutdown."""
    await shutdown_store(app)
