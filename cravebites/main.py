# cravebites/main.py
"""
CraveBites API - Main FastAPI Application
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from sqlalchemy import text
import logging
import time

from cravebites import dependencies
from cravebites.api import admin, catalog, orders, uploads
from cravebites.common_instrumentation import instrument_fastapi, instrument_sqlalchemy, setup_opentelemetry
from cravebites.common_logging import setup_logging
from cravebites.config import settings
from cravebites.db import database
from cravebites.db.database import create_tables, init_database
from cravebites.errors import CraveBitesError, UpstreamFailure, ValidationError
from cravebites.services.admin_service import AdminService
from cravebites.services.mail_client import MailClient
from cravebites.services.media_client import MediaUploadClient

VERSION = "1.0.0"

# Setup logging
setup_logging(
    service_name=settings.service_name,
    log_level=settings.log_level,
    log_format=settings.log_format
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    # Startup
    logger.info(f"Starting {settings.service_name}")
    logger.info(f"Environment: {settings.environment}")

    try:
        engine = init_database(settings.database_url)
        create_tables()
        logger.info("Database initialized successfully")

        if settings.otel_enabled:
            instrument_sqlalchemy(engine)

    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    db = database.SessionLocal()
    try:
        AdminService.ensure_initial_admin(
            db,
            settings.initial_admin_name,
            settings.initial_admin_email,
            settings.initial_admin_password
        )
    finally:
        db.close()

    media_client = MediaUploadClient.from_settings(settings)
    dependencies.media_client = media_client
    if not media_client.is_configured():
        logger.warning("Cloudinary credentials missing, image uploads will fail")

    dependencies.mail_client = MailClient.from_settings(settings)
    if not dependencies.mail_client.is_configured():
        logger.warning("SMTP credentials missing, password reset emails will fail")

    provider = setup_opentelemetry(settings)

    logger.info(f"{settings.service_name} started successfully")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.service_name}")
    await media_client.close()
    dependencies.media_client = None
    dependencies.mail_client = None
    if provider is not None:
        provider.shutdown()


# Create FastAPI app
app = FastAPI(
    title="CraveBites API",
    description="Restaurant ordering backend: catalog, orders, sales reports and admin accounts",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Instrument FastAPI with OpenTelemetry
if settings.otel_enabled:
    instrument_fastapi(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"{request.method} {request.url.path} {response.status_code}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2)
        }
    )
    return response


# Include API routes
app.include_router(orders.router)
app.include_router(catalog.router)
app.include_router(uploads.router)
app.include_router(admin.router)


@app.exception_handler(CraveBitesError)
async def cravebites_error_handler(request: Request, exc: CraveBitesError):
    """Map domain errors to their HTTP status"""
    content = {"success": False, "message": exc.message}

    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
    elif isinstance(exc, UpstreamFailure):
        logger.error(f"Upstream failure on {request.url.path}: {exc}", exc_info=exc.__cause__)
        if settings.is_development and exc.__cause__ is not None:
            content["error"] = str(exc.__cause__)
    else:
        logger.info(f"{exc.__class__.__name__} on {request.url.path}: {exc}")

    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are reported like domain validation errors"""
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part != "body")
        errors.append(f"{location}: {error['msg']}" if location else error["msg"])

    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation Error", "errors": errors}
    )


@app.get("/health")
async def health_check():
    """Health check endpoint (liveness probe)"""
    return {
        "status": "healthy",
        "service": settings.service_name,
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/ready")
async def readiness_check():
    """Readiness check endpoint (readiness probe)"""
    try:
        db = database.SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()

        return {
            "status": "ready",
            "service": settings.service_name,
            "database": "connected",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "service": settings.service_name,
                "database": "disconnected",
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.service_name,
        "message": "API is running...",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready"
    }


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    content = {"success": False, "message": "Server Error"}
    if settings.is_development:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cravebites.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
