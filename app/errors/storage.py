"""
Storage-related error classes.

These cover both backing stores: the relational record store and the
object store holding content and cover blobs.
"""

from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR, HTTP_503_SERVICE_UNAVAILABLE

from app.errors.base import BaseAppError, create_exception_handler
from app.monitoring.logging import get_logger

logger = get_logger(__name__)


class StorageError(BaseAppError):
    """Base exception for storage errors."""

    def __init__(
        self,
        detail: str = "Storage error",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
        diagnostic: str | None = None,
    ) -> None:
        super().__init__(detail, status_code)
        self.diagnostic = diagnostic


class UpstreamStoreFailure(StorageError):
    """Raised on a transport error talking to the record store or the object store."""

    def __init__(
        self,
        detail: str = "A storage service is temporarily unavailable",
        diagnostic: str | None = None,
    ) -> None:
        super().__init__(detail, HTTP_503_SERVICE_UNAVAILABLE, diagnostic)


class ContentFetchFailure(StorageError):
    """Raised when metadata references a blob the object store cannot produce."""

    def __init__(
        self,
        key: str | None = None,
        diagnostic: str | None = None,
    ) -> None:
        super().__init__(
            "Failed to fetch blog content",
            HTTP_500_INTERNAL_SERVER_ERROR,
            diagnostic=f"{key}: {diagnostic}" if diagnostic else key,
        )


class UnresolvableLocator(StorageError):
    """Raised when a stored locator matches none of the known key shapes."""

    def __init__(self, locator: str | None = None) -> None:
        super().__init__(
            "Invalid content URL format",
            HTTP_500_INTERNAL_SERVER_ERROR,
            diagnostic=f"Unresolvable locator: {locator!r}",
        )


storage_exception_handler = create_exception_handler(logger)
