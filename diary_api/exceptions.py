"""
Diary API — Error Kinds and Exceptions
========================================

What:  Every application failure carries one `ErrorKind` tag.
How:   `DiaryAPIError` holds the kind, a user-facing message and a context
       dict. The single handler registered in main.py reads `exc.kind` to
       choose the HTTP status; nothing else branches on exception type.
Who:   Raised by the repository, the image store and the diary service.

Error Kinds:
    ErrorKind
    ├── validation_error        → 400 Bad Request
    ├── not_found               → 404 Not Found
    ├── payload_too_large       → 413 Payload Too Large
    ├── unsupported_media_type  → 415 Unsupported Media Type
    ├── io_failure              → 500 Internal Server Error
    └── database_error          → 500 Internal Server Error
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Tag carried by every application error, mapped to an HTTP status."""

    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    IO_FAILURE = "io_failure"
    DATABASE = "database_error"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PAYLOAD_TOO_LARGE: 413,
    ErrorKind.UNSUPPORTED_MEDIA_TYPE: 415,
    ErrorKind.IO_FAILURE: 500,
    ErrorKind.DATABASE: 500,
}


class DiaryAPIError(Exception):
    """
    Base exception for all Diary API errors.

    Attributes:
        kind:     ErrorKind tag; decides the HTTP status
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only for 4xx kinds)
    """

    kind: ErrorKind = ErrorKind.IO_FAILURE

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
        kind: Optional[ErrorKind] = None,
    ):
        if kind is not None:
            self.kind = kind
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(kind={self.kind.value}, message={self.message!r})>"


class ValidationError(DiaryAPIError):
    """
    Raised when client input fails validation.

    Example response:
        {
            "error": "validation_error",
            "message": "Input validation failed",
            "details": {"fields": {"title": "must not be blank"}}
        }
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Validation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(DiaryAPIError):
    """Raised when a diary entry, or the image attached to one, does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class PayloadTooLargeError(DiaryAPIError):
    """Raised when an uploaded image exceeds the configured size limit."""

    kind = ErrorKind.PAYLOAD_TOO_LARGE

    def __init__(self, max_size: int, actual_size: int):
        max_mb = max_size / (1024 * 1024)
        super().__init__(
            message=f"Image size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
            context={"max_size": max_size, "actual_size": actual_size},
        )


class UnsupportedImageTypeError(DiaryAPIError):
    """Raised when an image's extension is not one of the supported types."""

    kind = ErrorKind.UNSUPPORTED_MEDIA_TYPE

    def __init__(self, extension: str, allowed):
        shown = extension or "(none)"
        super().__init__(
            message=(
                f"Image type '{shown}' is not supported. "
                f"Allowed types: {', '.join(allowed)}"
            ),
            context={"extension": extension, "allowed": list(allowed)},
        )


class FileStorageError(DiaryAPIError):
    """
    Raised when an image file or directory cannot be written, read or removed.

    The client receives a generic message; OS error details stay in the logs.
    """

    kind = ErrorKind.IO_FAILURE

    def __init__(
        self,
        message: str = "Image storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(DiaryAPIError):
    """Raised when a query or flush fails; details are logged server-side only."""

    kind = ErrorKind.DATABASE

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
