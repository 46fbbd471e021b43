"""
Service Exceptions
Error taxonomy shared by the platform client, the store and the services.

Every error carries a stable ``error_code`` and renders to the JSON body the
API returns (``{"error": ..., "code": ..., **details}``).
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for all service-level errors"""

    status_code = 500
    error_code = "SERVICE_ERROR"
    retryable = False

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.error_code, **self.details}

    def __str__(self) -> str:
        return self.message


# ============================================================================
# Authentication Errors
# ============================================================================


class UnauthenticatedError(ServiceError):
    """Missing, unknown, pending or expired session"""

    status_code = 401
    error_code = "UNAUTHENTICATED"


class UnauthorizedError(ServiceError):
    """Platform rejected the credential"""

    status_code = 401
    error_code = "UNAUTHORIZED"


class ReauthRequiredError(ServiceError):
    """Refresh token rejected; the OAuth flow must be restarted"""

    status_code = 401
    error_code = "REAUTH_REQUIRED"


# ============================================================================
# Resource Errors
# ============================================================================


class ResourceNotFoundError(ServiceError):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"{resource_type} not found: {resource_id}",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ResourceConflictError(ServiceError):
    """Upstream state changed (comment deleted, locked, comments disabled)"""

    status_code = 409
    error_code = "CONFLICT"


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(ServiceError):
    status_code = 422
    error_code = "VALIDATION_ERROR"


class InvalidContentError(ServiceError):
    """Reply text violates platform policy; the user has to edit it"""

    status_code = 422
    error_code = "INVALID_CONTENT"


# ============================================================================
# External Service Errors
# ============================================================================


class ExternalServiceError(ServiceError):
    status_code = 502
    error_code = "EXTERNAL_SERVICE_ERROR"


class YouTubeAPIError(ExternalServiceError):
    error_code = "YOUTUBE_API_ERROR"

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        reason: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        details: Dict[str, Any] = {}
        if status is not None:
            details["upstream_status"] = status
        if reason:
            details["reason"] = reason
        super().__init__(message, error_code=error_code, details=details)
        self.status = status
        self.reason = reason


class PostResponseUnreadableError(ExternalServiceError):
    """The platform accepted a post but its confirmation could not be read"""

    error_code = "POST_RESPONSE_UNREADABLE"

    def __init__(self, message: str, comment_id: Optional[str] = None):
        details: Dict[str, Any] = {"posted": True}
        if comment_id:
            details["comment_id"] = comment_id
        super().__init__(message, details=details)
        self.comment_id = comment_id


class RateLimitExceededError(ServiceError):
    status_code = 429
    error_code = "RATE_LIMITED"
    retryable = True

    def __init__(self, message: str, retry_after: Optional[float] = None):
        details = {"retry_after": retry_after} if retry_after is not None else {}
        super().__init__(message, details=details)
        self.retry_after = retry_after


class GenerationFailedError(ExternalServiceError):
    error_code = "GENERATION_FAILED"
    retryable = True


class DeadlineExceededError(ServiceError):
    """Caller deadline hit before the outbound call completed"""

    status_code = 504
    error_code = "DEADLINE_EXCEEDED"


# ============================================================================
# Store Errors
# ============================================================================


class StoreFailureError(ServiceError):
    """Infrastructure-level persistence failure"""

    status_code = 500
    error_code = "STORE_FAILURE"


class ReplyPostedStoreFailureError(StoreFailureError):
    """The platform accepted the reply but recording it locally failed"""

    error_code = "REPLY_POSTED_STORE_FAILURE"

    def __init__(self, message: str, reply_id: str, comment_id: str):
        super().__init__(
            message,
            details={"reply_id": reply_id, "comment_id": comment_id, "posted": True},
        )
        self.reply_id = reply_id
        self.comment_id = comment_id


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(ServiceError):
    status_code = 500
    error_code = "CONFIGURATION_ERROR"


# ============================================================================
# Utility Functions
# ============================================================================


def is_retryable_error(error: Exception) -> bool:
    """Whether retrying the same call later can succeed"""
    return isinstance(error, ServiceError) and error.retryable


def get_retry_delay(error: Exception, default: float = 1.0) -> float:
    """Suggested delay before retrying, honoring a platform retry-after hint"""
    if isinstance(error, RateLimitExceededError) and error.retry_after is not None:
        return max(0.0, float(error.retry_after))
    return default


def error_to_http_status(error: Exception) -> int:
    if isinstance(error, ServiceError):
        return error.status_code
    return 500
