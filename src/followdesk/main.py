"""Main FastAPI application for FollowDesk - owner directory administration API.

This module serves as the entry point for the FollowDesk application, a
FastAPI-based REST API that lets a directory owner manage users and the
directed follow relationships between them. Persistence lives entirely in a
hosted Supabase project: Postgres is reached through PostgREST and profile
images go to Supabase Storage, through its S3-compatible endpoint when S3
credentials are set and through the Storage API otherwise.

Application Architecture:
    - Presentation Layer: FastAPI routers and endpoints
    - Business Logic Layer: Service classes shaping rows into responses
    - Data Access Layer: supabase-py (PostgREST) and boto3 (storage)
    - Cross-cutting Concerns: Logging, error handling, dependency injection

Middleware Stack:
    1. CORS middleware for cross-origin request handling
    2. Request correlation middleware for tracking and request logging

Environment Configuration:
    - API_DEBUG: Enable debug mode and verbose logging
    - SUPABASE_URL / SUPABASE_ANON_KEY: Database access
    - STORAGE_* variables: Object storage credentials and upload limits

Example Usage:
    Start the development server:
        uvicorn followdesk.main:app --reload --port 3001

    Health check:
        curl http://localhost:3001/health
"""

import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .core.dependencies import get_service_container
from .core.error_handlers import register_error_handlers
from .core.logging import ContextLogger, setup_logging
from .core.settings import settings
from .routers import dashboard, follows, uploads, users

FEATURES = ["users", "follows", "uploads", "dashboard"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """FastAPI application lifespan context manager.

    Startup Sequence:
        1. Initialize structured logging system
        2. Record application start time for uptime tracking
        3. Initialize service container with all dependencies
        4. Log successful startup with environment information

    Shutdown Sequence:
        1. Log shutdown with uptime statistics
    """
    setup_logging()
    app.state.logger = ContextLogger(__name__)
    app.state.start_time = time.time()

    container = get_service_container()
    container.initialize()
    app.state.container = container

    app.state.logger.info(
        "FollowDesk application started successfully",
        extra={
            "environment": "development" if settings.debug else "production",
            "version": settings.version,
            "debug_mode": settings.debug,
            "api_prefix": settings.prefix,
            "database_configured": settings.supabase.is_configured,
            "storage_backend": settings.storage_backend,
        },
    )

    yield

    total_uptime = time.time() - app.state.start_time
    app.state.logger.info(
        "FollowDesk application shutting down gracefully",
        extra={"total_uptime_seconds": round(total_uptime, 2)},
    )


app = FastAPI(
    title=settings.project_name,
    description="""
    FollowDesk is the owner administration API for a social follow directory.

    Features:
    • Create, update, delete and bulk delete users
    • Paginated listing and sorted search with follower/following counts
    • Directed follow and unfollow between users
    • Profile image upload to object storage
    • Directory statistics for the dashboard
    """,
    version=settings.version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=(
        f"{settings.prefix}/openapi.json" if settings.prefix else "/openapi.json"
    ),
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
    max_age=3600,
)


@app.middleware("http")
async def request_middleware(request: Request, call_next: Any) -> Any:
    """HTTP request correlation and logging middleware.

    Request Flow:
        1. Reuse a valid UUID from X-Request-ID or generate a new one
        2. Attach correlation ID to request state and logger context
        3. Log request initiation with metadata
        4. Process request through application stack
        5. Log request completion with status and duration
        6. Add X-Correlation-ID to the response
    """
    client_request_id = request.headers.get("X-Request-ID")
    correlation_id: str
    request_id_source = "generated"
    if client_request_id:
        try:
            correlation_id = str(uuid.UUID(client_request_id))
            request_id_source = "client"
        except ValueError:
            correlation_id = str(uuid.uuid4())
            request_id_source = "regenerated"
    else:
        correlation_id = str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    request.state.request_id_source = request_id_source

    logger = app.state.logger
    token = logger.set_correlation_id(correlation_id)
    try:
        start_time = time.time()

        logger.info(
            "HTTP request initiated",
            extra={
                "method": request.method,
                "path": request.url.path,
                "query_params": (
                    str(request.query_params) if request.query_params else None
                ),
                "client_ip": request.client.host if request.client else "unknown",
                "user_agent": request.headers.get("user-agent"),
                "request_id_source": request_id_source,
            },
        )

        response = await call_next(request)

        duration = time.time() - start_time

        logger.info(
            "HTTP request completed",
            extra={
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
                "content_length": response.headers.get("content-length"),
            },
        )

        response.headers["X-Correlation-ID"] = correlation_id
        return response
    finally:
        logger.reset_correlation_id(token)


register_error_handlers(app)

app.include_router(users.router, prefix=settings.prefix)
app.include_router(follows.router, prefix=settings.prefix)
app.include_router(uploads.router, prefix=settings.prefix)
app.include_router(dashboard.router, prefix=settings.prefix)


@app.get(
    "/",
    summary="API root information",
    description="Returns basic API information and navigation links",
    tags=["System"],
)
async def root() -> dict[str, Any]:
    """API root endpoint providing basic service information and navigation."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs",
        "redoc": "/redoc",
        "status": "operational",
        "api_prefix": settings.prefix,
        "features": FEATURES,
    }


@app.get(
    "/health",
    summary="Application health check",
    description="Returns health, dependency state and process metrics",
    tags=["System"],
)
async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint for monitoring and diagnostics.

    Status Codes:
        - 200: Service is healthy and operational
        - 503: Service is degraded or unhealthy

    The service is unhealthy without Supabase credentials, and degraded
    above 1GB resident memory. Uploads use S3 credentials when present and
    the Supabase Storage API otherwise.
    """
    import psutil

    process = psutil.Process()
    uptime_seconds = int(time.time() - app.state.start_time)

    hours = uptime_seconds // 3600
    minutes = (uptime_seconds % 3600) // 60
    uptime_human = f"{hours} hours, {minutes} minutes"

    dependencies = {
        "database": (
            "configured" if settings.supabase.is_configured else "missing_credentials"
        ),
        "object_storage": settings.storage_backend or "not_configured",
        "logging_system": "operational",
    }

    health_status = "healthy"
    if not settings.supabase.is_configured:
        health_status = "unhealthy"

    if process.memory_info().rss > 1024 * 1024 * 1024:
        if health_status != "unhealthy":
            health_status = "degraded"

    correlation_id = getattr(request.state, "correlation_id", str(uuid.uuid4()))

    response_body = {
        "status": health_status,
        "version": settings.version,
        "environment": "development" if settings.debug else "production",
        "uptime_seconds": uptime_seconds,
        "uptime_human": uptime_human,
        "memory_mb": round(process.memory_info().rss / 1024 / 1024, 2),
        "cpu_percent": round(process.cpu_percent(), 2),
        "dependencies": dependencies,
        "timestamp": time.time(),
        "api_prefix": settings.prefix,
        "correlation_id": correlation_id,
    }

    status_code = (
        status.HTTP_200_OK
        if health_status == "healthy"
        else status.HTTP_503_SERVICE_UNAVAILABLE
    )

    return JSONResponse(status_code=status_code, content=response_body)


@app.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Exposes upload counters in the Prometheus text format",
    tags=["System"],
)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
