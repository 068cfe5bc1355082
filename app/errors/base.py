from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR
from structlog.stdlib import BoundLogger

from app.configs.settings import DEFAULT_ERROR_MESSAGE, settings
from app.utils.helpers import host

# Attributes that never leave the process outside development
_DIAGNOSTIC_FIELDS = frozenset({"diagnostic"})


class BaseAppError(Exception):
    """Base exception class for application errors."""

    def __init__(
        self,
        detail: str = "Internal Server Error",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        self.detail = detail
        self.status_code = status_code

    def __str__(self) -> str:
        return self.detail


def error_envelope(message: str, **extra: Any) -> dict[str, Any]:
    """Build the uniform failure body."""
    return {"success": False, "message": message, **extra}


def create_exception_handler(
    logger: BoundLogger,
) -> Callable[[Request, Exception], Awaitable[ORJSONResponse]]:
    """
    Create a standardized exception handler for the application.

    Args:
        logger: Logger instance to use for logging exceptions.

    Returns:
        A callable exception handler.
    """

    async def handler(request: Request, exc: Exception) -> ORJSONResponse:
        # Default values
        status_code = HTTP_500_INTERNAL_SERVER_ERROR
        detail = "Internal Server Error"

        # Extract from custom exception if available
        if hasattr(exc, "status_code"):
            status_code = exc.status_code
        if hasattr(exc, "detail"):
            detail = exc.detail

        logger.warning(
            "Request failed",
            detail=detail,
            status_code=status_code,
            ip=host(request),
            endpoint=request.url.path,
            diagnostic=getattr(exc, "diagnostic", None),
        )

        # Any additional exception attributes travel with the envelope
        extra = {
            k: v
            for k, v in exc.__dict__.items()
            if k not in ("status_code", "detail") and v is not None
        }
        if "diagnostic" in extra:
            diagnostic = extra.pop("diagnostic")
            if settings.is_development:
                extra["error"] = diagnostic
        extra = {k: v for k, v in extra.items() if k not in _DIAGNOSTIC_FIELDS}

        return ORJSONResponse(content=error_envelope(detail, **extra), status_code=status_code)

    return handler


def create_unhandled_exception_handler(
    logger: BoundLogger,
) -> Callable[[Request, Exception], Awaitable[ORJSONResponse]]:
    """Create the last-resort handler that hides internals outside development."""

    async def handler(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception(
            "Unhandled error",
            ip=host(request),
            endpoint=request.url.path,
        )
        extra = {"error": str(exc)} if settings.is_development else {}
        return ORJSONResponse(
            content=error_envelope(DEFAULT_ERROR_MESSAGE, **extra),
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return handler
