"""
Services Package
Business logic layer for YouTube Commenter

Service classes are imported from their modules
(e.g. ``yt_commenter.services.comment_store``); this package re-exports the
error taxonomy, which every layer shares.
"""

from .exceptions import (
    # Base
    ServiceError,

    # Authentication Errors
    UnauthenticatedError,
    UnauthorizedError,
    ReauthRequiredError,

    # Resource Errors
    ResourceNotFoundError,
    ResourceConflictError,

    # Validation Errors
    ValidationError,
    InvalidContentError,

    # External Service Errors
    ExternalServiceError,
    YouTubeAPIError,
    RateLimitExceededError,
    GenerationFailedError,
    DeadlineExceededError,
    PostResponseUnreadableError,

    # Store Errors
    StoreFailureError,
    ReplyPostedStoreFailureError,

    # Configuration Errors
    ConfigurationError,

    # Utility Functions
    is_retryable_error,
    get_retry_delay,
    error_to_http_status,
)

__all__ = [
    # Base Exception
    "ServiceError",

    # Authentication Errors
    "UnauthenticatedError",
    "UnauthorizedError",
    "ReauthRequiredError",

    # Resource Errors
    "ResourceNotFoundError",
    "ResourceConflictError",

    # Validation Errors
    "ValidationError",
    "InvalidContentError",

    # External Service Errors
    "ExternalServiceError",
    "YouTubeAPIError",
    "RateLimitExceededError",
    "GenerationFailedError",
    "DeadlineExceededError",
    "PostResponseUnreadableError",

    # Store Errors
    "StoreFailureError",
    "ReplyPostedStoreFailureError",

    # Configuration Errors
    "ConfigurationError",

    # Utility Functions
    "is_retryable_error",
    "get_retry_delay",
    "error_to_http_status",
]

# Package metadata
__version__ = "0.1.0"
__description__ = "Service layer for YouTube Commenter"
