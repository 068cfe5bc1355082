from app.middleware.middleware import (
    LoggingMiddleware,
    SecurityHeadersMiddleware,
    build_services,
    configure_cors,
    lifespan,
)

__all__ = [
    "LoggingMiddleware",
    "SecurityHeadersMiddleware",
    "build_services",
    "configure_cors",
    "lifespan",
]
