from app.errors.auth import AuthenticationError, auth_exception_handler
from app.errors.base import (
    BaseAppError,
    create_exception_handler,
    create_unhandled_exception_handler,
    error_envelope,
)
from app.errors.blog import BlogError, DuplicateSlugError, NotFoundError, blog_exception_handler
from app.errors.storage import (
    ContentFetchFailure,
    StorageError,
    UnresolvableLocator,
    UpstreamStoreFailure,
    storage_exception_handler,
)
from app.errors.upload import (
    FileTooLargeError,
    InvalidContentError,
    MissingContentFileError,
    UnsupportedFileTypeError,
    UploadError,
)
from app.errors.validation import (
    ValidationFailure,
    validation_exception_handler,
    validation_failure_handler,
)

__all__ = [
    "AuthenticationError",
    "BaseAppError",
    "BlogError",
    "ContentFetchFailure",
    "DuplicateSlugError",
    "FileTooLargeError",
    "InvalidContentError",
    "MissingContentFileError",
    "NotFoundError",
    "StorageError",
    "UnresolvableLocator",
    "UnsupportedFileTypeError",
    "UploadError",
    "UpstreamStoreFailure",
    "ValidationFailure",
    "auth_exception_handler",
    "blog_exception_handler",
    "create_exception_handler",
    "create_unhandled_exception_handler",
    "error_envelope",
    "storage_exception_handler",
    "validation_exception_handler",
    "validation_failure_handler",
]
