"""
Unit Tests for the service error taxonomy
"""

from yt_commenter.services.exceptions import (
    DeadlineExceededError,
    GenerationFailedError,
    InvalidContentError,
    RateLimitExceededError,
    ResourceConflictError,
    ResourceNotFoundError,
    StoreFailureError,
    UnauthenticatedError,
    error_to_http_status,
    get_retry_delay,
    is_retryable_error,
)


def test_http_status_mapping():
    assert error_to_http_status(UnauthenticatedError("x")) == 401
    assert error_to_http_status(ResourceNotFoundError("comment", "c1")) == 404
    assert error_to_http_status(ResourceConflictError("x")) == 409
    assert error_to_http_status(InvalidContentError("x")) == 422
    assert error_to_http_status(RateLimitExceededError("x")) == 429
    assert error_to_http_status(GenerationFailedError("x")) == 502
    assert error_to_http_status(DeadlineExceededError("x")) == 504
    assert error_to_http_status(StoreFailureError("x")) == 500
    assert error_to_http_status(ValueError("x")) == 500


def test_to_dict_carries_details():
    error = ResourceNotFoundError("comment", "c1")

    assert error.to_dict() == {
        "error": "comment not found: c1",
        "code": "NOT_FOUND",
        "resource_type": "comment",
        "resource_id": "c1",
    }


def test_retry_helpers():
    limited = RateLimitExceededError("slow down", retry_after=12)

    assert is_retryable_error(limited) is True
    assert is_retryable_error(ResourceConflictError("x")) is False
    assert get_retry_delay(limited, default=60) == 12
    assert get_retry_delay(RateLimitExceededError("slow down"), default=60) == 60
