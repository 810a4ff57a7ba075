"""Unit tests for custom exception classes."""

import pytest

from agent_feedback.lib.exceptions import (
    AuthError,
    ConflictError,
    FeedbackError,
    FieldError,
    NotFoundError,
    PayloadTooLargeError,
    RateLimitedError,
    StorageError,
    ValidationError,
)


class TestFeedbackError:
    """Test cases for the FeedbackError base class."""

    def test_create_with_message_only(self):
        """Test creating exception with just message."""
        error = FeedbackError("Test error message")
        assert str(error) == "Test error message"
        assert error.error_code == "FEEDBACK_001"
        assert error.details == {}

    def test_create_with_custom_error_code(self):
        error = FeedbackError("Test error", error_code="CUSTOM_001")
        assert error.error_code == "CUSTOM_001"

    def test_create_with_details(self):
        details = {"subject_id": "art_1"}
        error = FeedbackError("Test error", details=details)
        assert error.details == details


@pytest.mark.parametrize(
    "exc_class,code,status",
    [
        (NotFoundError, "FEEDBACK_NOT_FOUND_001", 404),
        (ConflictError, "FEEDBACK_CONFLICT_001", 409),
        (StorageError, "FEEDBACK_STORAGE_001", 500),
        (AuthError, "FEEDBACK_AUTH_001", 401),
    ],
)
def test_error_codes_and_statuses(exc_class, code, status):
    error = exc_class("boom")
    assert isinstance(error, FeedbackError)
    assert error.error_code == code
    assert error.HTTP_STATUS == status


class TestValidationError:

    def test_carries_every_field_error(self):
        errors = [FieldError("score", "out of range"), FieldError("kind", "unknown")]

        error = ValidationError(errors)

        assert error.HTTP_STATUS == 400
        assert error.errors == errors
        assert error.details["errors"] == [
            {"field": "score", "message": "out of range"},
            {"field": "kind", "message": "unknown"},
        ]


class TestRateLimitedError:

    def test_carries_retry_hint(self):
        error = RateLimitedError(12)

        assert error.HTTP_STATUS == 429
        assert error.retry_after_sec == 12
        assert error.details == {"retry_after_sec": 12}
        assert error.message == "Too many requests"


class TestPayloadTooLargeError:

    def test_carries_limit(self):
        error = PayloadTooLargeError(2000)

        assert error.HTTP_STATUS == 413
        assert error.error_code == "FEEDBACK_PAYLOAD_001"
        assert error.details == {"max_bytes": 2000}
