"""
Main FastAPI Application

Entry point for the ISO QMS API.
Configures middleware, routes, error handlers, and startup/shutdown events.

Error bodies are {"error": message} with optional "details"; success
bodies are {"data": ...} (see api.responses).
"""
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from isoqms import __version__
from isoqms.config import get_settings
from isoqms.database import engine, init_db
from isoqms.middleware.request_context import RequestContextMiddleware
from isoqms.utils.logging import setup_logging, get_logger
from isoqms.core.exceptions import ValidationError, PlanLimitError, TenantIsolationError

# Import routers
from isoqms.api.endpoints import (
    auth,
    tenants,
    members,
    invitations,
    clients,
    projects,
    nonconformities,
    action_plans,
    risks,
    audits,
    documents,
    suppliers,
    policies,
    indicators,
    activity_log,
    admin,
)

settings = get_settings()

# Setup logging
setup_logging(
    log_level=settings.LOG_LEVEL,
    json_format=(settings.ENVIRONMENT == "production")
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(f"Starting application in {settings.ENVIRONMENT} mode")

    # Production schemas come from migrations
    if settings.ENVIRONMENT == "development":
        logger.warning("Initializing database tables (dev mode)")
        init_db()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")
    engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(
    title="ISO QMS Platform",
    description="Multi-tenant management system platform for ISO consultancies",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# ============================================================================
# MIDDLEWARE CONFIGURATION
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENVIRONMENT == "development" else settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)

app.add_middleware(RequestContextMiddleware)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

def error_body(message: str, details=None) -> dict:
    body = {"error": message}
    if details:
        body["details"] = details
    return body


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTPException (ours, FastAPI's and routing 404s) as {"error": ...}."""
    body = error_body(str(exc.detail))

    if isinstance(exc, ValidationError) and exc.errors:
        body["details"] = exc.errors
    elif isinstance(exc, PlanLimitError):
        body.update({"resource": exc.resource, "current": exc.current, "limit": exc.limit})
    elif isinstance(exc, TenantIsolationError):
        logger.error(
            f"TENANT ISOLATION VIOLATION: {exc.detail}",
            extra={"tenant_id": getattr(request.state, "tenant_id", None)}
        )

    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body") or "body"
        details.setdefault(field, []).append(error["msg"])

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request data", details)
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_body("Resource conflicts with existing data")
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all exception handler.

    Internal error text is only returned when DEBUG is on.
    """
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=True,
        extra={"tenant_id": getattr(request.state, "tenant_id", None)}
    )

    message = str(exc) if settings.DEBUG else "Internal server error"
    return JSONResponse(status_code=500, content=error_body(message))


# ============================================================================
# ROUTES
# ============================================================================

@app.get("/health", tags=["health"])
def health_check():
    """Health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": __version__
    }


@app.get("/", tags=["root"])
def root():
    return {
        "message": "ISO QMS Platform API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


for module in (
    auth,
    tenants,
    members,
    invitations,
    clients,
    projects,
    nonconformities,
    action_plans,
    risks,
    audits,
    documents,
    suppliers,
    policies,
    indicators,
    activity_log,
    admin,
):
    app.include_router(module.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug: {settings.DEBUG}")

    uvicorn.run(
        "isoqms.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
