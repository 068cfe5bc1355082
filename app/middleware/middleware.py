# app/middleware/middleware.py
"""
Middleware components for the blog content API.

This module contains middleware for security headers, request logging and
CORS handling, plus the lifespan handler that builds the shared storage
collaborators and tears them down again.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from app.configs import settings
from app.db import async_session_maker, close_db, init_db
from app.monitoring import HealthChecker, bind_request_id, clear_context, configure_logging, get_logger
from app.services import ContentSanitizer, UrlIssuer, ViewCounter
from app.services.storage import KeyCodec, S3BlobStore, create_s3_client
from app.utils.helpers import get_summary, host

logger = get_logger(__name__)


def build_services(app: FastAPI) -> None:
    """Construct the process-wide collaborators and store them on `app.state`."""
    client = create_s3_client(settings)
    codec = KeyCodec(
        bucket=settings.S3_BUCKET,
        namespace=settings.S3_KEY_NAMESPACE,
        cdn_base=settings.S3_CDN_URL,
        region=settings.AWS_REGION,
    )
    blob_store = S3BlobStore(client, codec)

    app.state.key_codec = codec
    app.state.blob_store = blob_store
    app.state.url_issuer = UrlIssuer(client, codec, default_ttl=settings.PRESIGNED_URL_TTL)
    app.state.sanitizer = ContentSanitizer()
    app.state.view_counter = ViewCounter(async_session_maker)
    app.state.health_checker = HealthChecker(async_session_maker, blob_store, version=app.version)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Manage application startup and shutdown events with service initialization."""
    configure_logging()
    logger.info("Starting application", app=app.title, environment=settings.ENVIRONMENT)

    try:
        if settings.is_development:
            await init_db()
        build_services(app)
        logger.info(
            "Services initialized",
            bucket=settings.S3_BUCKET,
            content_types=settings.ALLOWED_CONTENT_TYPES,
        )
    except Exception:
        logger.exception("Failed to initialize services")
        raise

    yield

    logger.info("Shutting down application", app=app.title)
    try:
        view_counter: ViewCounter = app.state.view_counter
        if view_counter.pending:
            logger.info("Waiting for view increments", pending=view_counter.pending)
        await view_counter.drain()
        await close_db()
        logger.info("Services cleaned up successfully")
    except Exception:
        logger.exception("Error during service cleanup")


def configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware for the application."""
    # Determine allowed origins based on environment
    allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Add production origins if specified
    if frontend_url := settings.PRODUCTION_FRONTEND_URL:
        allowed_origins.append(frontend_url)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Log request summary and timing information under a request id."""

        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        bind_request_id(request_id)
        start_time = perf_counter()
        summary = get_summary(request)

        logger.info(
            "Request started",
            route=summary or f"{request.method} {request.url.path}",
            method=request.method,
            path=request.url.path,
            ip=host(request),
        )

        try:
            response = await call_next(request)
            duration = perf_counter() - start_time
            logger.info(
                "Request finished",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
        finally:
            clear_context()

        response.headers["X-Request-ID"] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Add security headers to all responses."""

        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response
