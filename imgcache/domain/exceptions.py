"""Domain exceptions for the image cache.

Defines the error taxonomy of a request: invalid parameters, a failed
origin fetch and a failed transform. Presentation layer maps them to HTTP
responses in exception handlers; transform failures never reach it.
"""

from typing import Any


class ImageCacheException(Exception):
    """Base exception for all image cache errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using status_code and message.

    Attributes:
        message: Human-readable error description (sent as response body).
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, url).
        status_code: HTTP status the presentation layer should use.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serializable view used for structured logging."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(ImageCacheException):
    """Raised when a query parameter is missing, malformed or not allowed."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Literal message returned to the client.
            field: Optional query parameter that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class UpstreamException(ImageCacheException):
    """Raised when the origin fetch fails or answers with an error status.

    The origin's status code is propagated verbatim; the body is fixed.
    """

    MESSAGE = '"url" parameter is valid but upstream response is invalid'

    def __init__(self, status_code: int, url: str, reason: str = "") -> None:
        self.status_code = status_code
        super().__init__(
            self.MESSAGE,
            "UPSTREAM_ERROR",
            {"status_code": status_code, "url": url, "reason": reason},
        )


class TransformException(ImageCacheException):
    """Raised by the codec when re-encoding fails. Recovered by the optimizer."""

    status_code = 500

    def __init__(self, content_type: str, reason: str) -> None:
        super().__init__(
            f"Failed to transform image to {content_type}",
            "TRANSFORM_ERROR",
            {"content_type": content_type, "reason": reason},
        )
