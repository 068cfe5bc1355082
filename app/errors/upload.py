"""
Upload-related error classes.

Every upload problem is a validation failure (400) naming the offending
multipart field, matching how the rest of the input checks report.
"""

from app.errors.validation import ValidationFailure


class UploadError(ValidationFailure):
    """Base exception for upload-related errors."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(detail=message, errors=[{"field": field, "message": message}])


class MissingContentFileError(UploadError):
    """Raised when a create request carries no content file."""

    def __init__(self) -> None:
        super().__init__("content", "Content file is required")


class UnsupportedFileTypeError(UploadError):
    """Raised when an uploaded file's MIME type or extension is not accepted."""

    def __init__(self, field: str, received: str, allowed: list[str]) -> None:
        message = f"Unsupported file type {received!r}. Allowed: {', '.join(allowed)}"
        super().__init__(field, message)
        self.allowed_types = allowed


class FileTooLargeError(UploadError):
    """Raised when an uploaded file exceeds `MAX_FILE_SIZE`."""

    def __init__(self, field: str, max_size_bytes: int) -> None:
        max_size_mb = max_size_bytes / (1024 * 1024)
        super().__init__(field, f"File size must not exceed {max_size_mb:g}MB")


class InvalidContentError(UploadError):
    """Raised when the content document cannot be parsed for sanitization."""

    def __init__(self, message: str = "Content file is not a valid document") -> None:
        super().__init__("content", message)
