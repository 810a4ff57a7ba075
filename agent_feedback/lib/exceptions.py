"""Custom exception classes for the Agent Feedback engine.

Every error raised by the core carries an ``ERROR_CODE`` and an ``HTTP_STATUS``
so the HTTP boundary can map it without inspecting messages.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any, List


@dataclass(frozen=True)
class FieldError:
    """A single violated validation rule."""

    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class FeedbackError(Exception):
    """Base exception for feedback engine errors."""

    ERROR_CODE = "FEEDBACK_001"
    HTTP_STATUS = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize exception with message, code, and optional details.

        Args:
            message: Error message
            error_code: Optional error code override
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.ERROR_CODE
        self.details = details or {}


class ValidationError(FeedbackError):
    """Raised when input fails validation. Carries every violated rule."""

    ERROR_CODE = "FEEDBACK_VALIDATION_001"
    HTTP_STATUS = 400

    def __init__(self, errors: List[FieldError], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = list(errors)
        self.details["errors"] = [e.to_dict() for e in self.errors]


class NotFoundError(FeedbackError):
    """Raised when a referenced subject or comment does not exist."""

    ERROR_CODE = "FEEDBACK_NOT_FOUND_001"
    HTTP_STATUS = 404


class ConflictError(FeedbackError):
    """Reserved for unique-constraint violations not absorbed by an upsert."""

    ERROR_CODE = "FEEDBACK_CONFLICT_001"
    HTTP_STATUS = 409


class RateLimitedError(FeedbackError):
    """Raised when a caller exceeds its rate-limit window."""

    ERROR_CODE = "FEEDBACK_RATE_LIMIT_001"
    HTTP_STATUS = 429

    def __init__(self, retry_after_sec: int, message: str = "Too many requests"):
        super().__init__(message)
        self.retry_after_sec = retry_after_sec
        self.details["retry_after_sec"] = retry_after_sec


class StorageError(FeedbackError):
    """Raised when the durable store cannot be read or written.

    The message is safe to show to callers: it never contains paths or SQL.
    """

    ERROR_CODE = "FEEDBACK_STORAGE_001"
    HTTP_STATUS = 500


class AuthError(FeedbackError):
    """Raised by an identity provider when a credential cannot be resolved."""

    ERROR_CODE = "FEEDBACK_AUTH_001"
    HTTP_STATUS = 401


class PayloadTooLargeError(FeedbackError):
    """Raised when a request body exceeds the route's byte limit."""

    ERROR_CODE = "FEEDBACK_PAYLOAD_001"
    HTTP_STATUS = 413

    def __init__(self, max_bytes: int, message: str = "Payload too large"):
        super().__init__(message)
        self.max_bytes = max_bytes
        self.details["max_bytes"] = max_bytes
