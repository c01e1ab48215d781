"""Main FastAPI application."""

import logging
import os
import time
from datetime import datetime

import psutil
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.exceptions import MarketplaceError, TransportError
from app.core.logging_config import setup_logging
from app.api.routes import health, auth, company, resources, messages, changes
from src.database.connection import DatabaseManager

# Get settings
settings = get_settings()
setup_logging(settings.log_level, settings.log_file)

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description=settings.app_description,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, error: MarketplaceError):
    """Render business-rule and transport errors as structured JSON."""
    if isinstance(error, TransportError):
        logger.error(f"[API] {request.method} {request.url.path}: {error.error_code} {error.details}")
    else:
        logger.info(f"[API] {request.method} {request.url.path}: {error.error_code}")

    headers = {}
    if isinstance(error, TransportError):
        headers["Retry-After"] = str(error.retry_after)

    return JSONResponse(
        status_code=error.status_code,
        content={
            "error": {
                "code": error.error_code,
                "message": error.message,
                "timestamp": datetime.utcnow().isoformat(),
                "path": request.url.path,
                **error.details
            }
        },
        headers=headers
    )


# Performance logging middleware
@app.middleware("http")
async def log_performance(request: Request, call_next):
    """Log request execution time and memory usage."""
    process = psutil.Process(os.getpid())

    start_time = time.time()
    start_memory = process.memory_info().rss / 1024 / 1024  # MB

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    end_memory = process.memory_info().rss / 1024 / 1024  # MB
    memory_used = end_memory - start_memory

    mem_sign = "+" if memory_used >= 0 else ""
    level = logging.INFO if duration_ms < 500 else logging.WARNING

    logger.log(
        level,
        f"[PERF] {request.method:6s} {request.url.path:50s} | "
        f"{response.status_code} | "
        f"{duration_ms:7.2f}ms | "
        f"{mem_sign}{memory_used:.2f}MB | "
        f"RSS: {end_memory:.1f}MB"
    )

    return response


# Event handlers
@app.on_event("startup")
async def startup_event():
    """Initialize database connection on startup."""
    DatabaseManager.initialize()
    logger.info(f"{settings.app_name} v{settings.app_version} started")
    logger.info("API docs available at /docs")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info(f"{settings.app_name} shutting down")


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/api", tags=["Authentication"])
app.include_router(company.router, prefix="/api/company", tags=["Company"])
app.include_router(resources.router, prefix="/api/resources", tags=["Resources"])
app.include_router(messages.router, prefix="/api/messages", tags=["Messages"])
app.include_router(changes.router, prefix="/api/changes", tags=["Changes"])
