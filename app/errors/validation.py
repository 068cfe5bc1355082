"""Validation error handling with per-field detail."""

from typing import Any, cast

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_400_BAD_REQUEST

from app.errors.base import BaseAppError, create_exception_handler, error_envelope
from app.monitoring.logging import get_logger
from app.utils.helpers import host

logger = get_logger(__name__)


class ValidationFailure(BaseAppError):
    """Malformed input, surfaced with per-field detail."""

    def __init__(
        self,
        detail: str = "Validation failed",
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(detail=detail, status_code=HTTP_400_BAD_REQUEST)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str, value: Any = None) -> "ValidationFailure":
        """Build a failure that names a single offending field."""
        error: dict[str, Any] = {"field": field, "message": message}
        if value is not None:
            error["value"] = value
        return cls(detail=message, errors=[error])


def format_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Flatten pydantic error dicts into `{field, message, value}` entries."""
    formatted = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "form", "header"):
            loc = loc[1:]
        entry: dict[str, Any] = {
            "field": ".".join(loc),
            "message": error.get("msg", "Invalid value"),
        }
        value = error.get("input")
        if isinstance(value, str | int | float | bool):
            entry["value"] = value
        formatted.append(entry)
    return formatted


async def validation_exception_handler(
    request: Request,
    exc: Exception,
) -> ORJSONResponse:
    """
    Handle request validation errors with the failure envelope.

    Args:
        request: The incoming request.
        exc: The RequestValidationError exception.

    Returns:
        ORJSONResponse with formatted validation errors.
    """
    exec_error = cast(RequestValidationError, exc)
    formatted_errors = format_validation_errors(list(exec_error.errors()))

    logger.warning(
        "Validation error",
        ip=host(request),
        endpoint=request.url.path,
        errors=formatted_errors,
    )

    return ORJSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content=error_envelope("Validation failed", errors=formatted_errors),
    )


validation_failure_handler = create_exception_handler(logger)
