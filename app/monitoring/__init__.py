"""
Monitoring for the blog content API.

- Structured logging with secret redaction
- Readiness checks for the database and the object store

Usage
-----
>>> from app.monitoring import configure_logging, get_logger
>>> configure_logging()
>>> logger = get_logger(__name__)
"""

from app.monitoring.logging import (
    bind_request_id,
    clear_context,
    configure_logging,
    get_logger,
    sanitize_headers,
    sanitize_log_message,
)

from app.monitoring.health import (  # isort: skip
    CheckStatus,
    ComponentCheck,
    HealthChecker,
    HealthStatus,
    OverallStatus,
)

__all__ = [
    "CheckStatus",
    "ComponentCheck",
    "HealthChecker",
    "HealthStatus",
    "OverallStatus",
    "bind_request_id",
    "clear_context",
    "configure_logging",
    "get_logger",
    "sanitize_headers",
    "sanitize_log_message",
]
