"""Authentication errors."""

from starlette.status import HTTP_401_UNAUTHORIZED

from app.errors.base import BaseAppError, create_exception_handler
from app.monitoring.logging import get_logger

logger = get_logger(__name__)


class AuthenticationError(BaseAppError):
    """Raised when the shared-secret header is missing or wrong."""

    def __init__(self, detail: str = "Invalid or missing API key") -> None:
        super().__init__(detail, HTTP_401_UNAUTHORIZED)


auth_exception_handler = create_exception_handler(logger)
