"""Errors raised by the blog record store and the content coordinator."""

from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)

from app.errors.base import BaseAppError, create_exception_handler
from app.monitoring.logging import get_logger

logger = get_logger(__name__)


class BlogError(BaseAppError):
    """Base exception for blog record errors."""


class NotFoundError(BlogError):
    """
    Raised when a record (or a blob promised by one) is absent.

    Soft-deleted records raise this too, with the same message, so callers
    cannot tell a deleted slug from one that never existed.
    """

    def __init__(self, detail: str = "Blog not found") -> None:
        super().__init__(detail, HTTP_404_NOT_FOUND)


class DuplicateSlugError(BlogError):
    """Raised when a slug is already taken, including by a soft-deleted record."""

    def __init__(self, slug: str | None = None) -> None:
        super().__init__("A blog with this slug already exists", HTTP_409_CONFLICT)
        self.diagnostic = f"slug={slug!r}" if slug else None


blog_exception_handler = create_exception_handler(logger)
