# app/main.py

"""Blog Content API - blog records in PostgreSQL, their documents and images in S3."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.status import HTTP_200_OK, HTTP_503_SERVICE_UNAVAILABLE
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.configs import settings
from app.errors import (
    AuthenticationError,
    BlogError,
    StorageError,
    ValidationFailure,
    auth_exception_handler,
    blog_exception_handler,
    create_unhandled_exception_handler,
    storage_exception_handler,
    validation_exception_handler,
    validation_failure_handler,
)
from app.managers import get_client_ip, limiter, rate_limit_exceeded_handler
from app.middleware import (
    LoggingMiddleware,
    SecurityHeadersMiddleware,
    configure_cors,
    lifespan,
)
from app.monitoring import HealthChecker, get_logger
from app.routes import blog_router, proxy_router

logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Blog content API: records in PostgreSQL, documents and images in S3",
    version="1.0.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
    swagger_ui_parameters={
        "docExpansion": "none",
        "operationsSorter": "method",
    },
)

configure_cors(app)

app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)
# Trust X-Forwarded-* from the load balancer so rate limits see client IPs
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")


routes = [
    blog_router,
    proxy_router,
]

_ = [app.include_router(router) for router in routes]

errors = [
    (BlogError, blog_exception_handler),
    (StorageError, storage_exception_handler),
    (ValidationFailure, validation_failure_handler),
    (AuthenticationError, auth_exception_handler),
    (RateLimitExceeded, rate_limit_exceeded_handler),
    (RequestValidationError, validation_exception_handler),
    (Exception, create_unhandled_exception_handler(logger)),
]

_ = [app.add_exception_handler(exc_type, handler) for exc_type, handler in errors]

app.state.limiter = limiter
limiter: Limiter = app.state.limiter


@app.get(
    "/health",
    tags=["🩺 Health"],
    summary="Health check endpoint",
    response_class=ORJSONResponse,
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "status": "ready",
                        "timestamp": "2025-01-01 12:00:00",
                        "version": "1.0.0",
                        "checks": {
                            "database": {"status": "pass", "response_ms": 15},
                            "object_store": {"status": "pass", "response_ms": 40},
                        },
                    },
                },
            },
        },
        503: {
            "description": "A backing store is down",
            "content": {
                "application/json": {
                    "example": {
                        "status": "not_ready",
                        "checks": {"database": {"status": "fail", "message": "database check timed out"}},
                    },
                },
            },
        },
    },
    operation_id="health_check",
)
@limiter.exempt
async def health_check(request: Request) -> ORJSONResponse:
    """
    Readiness check for the database and the object store.

    Parameters
    ----------
    request : Request
        Current request context.

    Returns
    -------
    ORJSONResponse
        200 with per-component results when both stores answer, 503 otherwise.
    """
    checker: HealthChecker = request.app.state.health_checker
    health = await checker.check_readiness()
    return ORJSONResponse(
        content=health.to_dict(),
        status_code=HTTP_200_OK if health.is_healthy else HTTP_503_SERVICE_UNAVAILABLE,
    )


@app.get(
    "/",
    tags=["🏠 Root"],
    summary="Root access",
    response_model=dict[str, str],
    response_class=ORJSONResponse,
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {"message": "Welcome to Blog Content API"},
                },
            },
        },
    },
    operation_id="root_access",
)
@limiter.limit(settings.RATE_LIMIT_PUBLIC_READ, key_func=get_client_ip)
async def root(request: Request, response: Response) -> ORJSONResponse:
    """
    Root endpoint.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Current response context.

    Returns
    -------
    ORJSONResponse
        Welcome message payload.
    """
    return ORJSONResponse(content={"message": f"Welcome to {settings.APP_NAME}"})


if __name__ == "__main__":
    from uvicorn import run

    run(
        app,
        host="127.0.0.1",
        port=8000,
        log_level="info",
        loop="uvloop",
        http="httptools",
    )
