# app/managers/rate_limiter.py

"""Rate limiter configuration using slowapi."""

from hashlib import sha256
from hmac import compare_digest
from typing import cast

from fastapi import Request
from fastapi.responses import ORJSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.status import HTTP_429_TOO_MANY_REQUESTS

from app.configs import LimiterConfig, settings
from app.errors.base import error_envelope
from app.monitoring.logging import get_logger
from app.utils.helpers import host

logger = get_logger(__name__)


def api_key_matches(api_key: str | None) -> bool:
    """Check a presented key against `API_KEY`; an unset secret matches nothing."""
    expected = settings.API_KEY.get_secret_value()
    return bool(expected and api_key and compare_digest(api_key.encode(), expected.encode()))


def get_client_ip(request: Request) -> str:
    """Rate limit key for public routes, always the caller's address."""
    return f"ip:{get_remote_address(request)}"


def get_identifier(request: Request) -> str:
    """
    Get unique identifier for rate limiting.

    Callers presenting the valid API key share one bucket, keyed by a digest
    so the secret itself never becomes a storage key. Any other caller,
    including one sending a wrong key, is limited by IP address.

    Args:
        request: FastAPI request object.

    Returns:
        Unique identifier string.
    """
    api_key = request.headers.get("X-API-Key")
    if api_key and api_key_matches(api_key):
        return f"apikey:{sha256(api_key.encode()).hexdigest()[:16]}"

    return get_client_ip(request)


limiter = Limiter(**LimiterConfig().model_dump(), key_func=get_identifier)


async def rate_limit_exceeded_handler(
    request: Request,
    exc: Exception,
) -> ORJSONResponse:
    """
    Handle rate limit exceeded exceptions.

    Args:
        request: FastAPI request object.
        exc: RateLimitExceeded exception.

    Returns:
        JSON response with the failure envelope.
    """
    http_exc = cast(RateLimitExceeded, exc)
    response = _rate_limit_exceeded_handler(request, http_exc)
    retry_after = response.headers.get("retry-after")

    logger.warning(
        "Rate limit exceeded",
        ip=host(request),
        endpoint=request.url.path,
        limit=http_exc.detail,
    )

    extra = {"retryAfter": f"{retry_after} seconds"} if retry_after else {}
    return ORJSONResponse(
        status_code=HTTP_429_TOO_MANY_REQUESTS,
        content=error_envelope(
            "Too many requests, please try again later.",
            allowedRequests=http_exc.detail,
            **extra,
        ),
        headers={"Retry-After": retry_after} if retry_after else None,
    )
