# yt_commenter/infrastructure/clients/__init__.py
"""API Clients"""

from .youtube_api import QuotaTracker, YouTubeAPIClient, create_youtube_client
from .rate_limiter import AdaptiveRateLimiter, RateLimiter, backoff_delay
from .oauth_client import GoogleOAuthClient, UserInfo
from .text_generator import OpenAIReplyGenerator

__all__ = [
    "YouTubeAPIClient",
    "QuotaTracker",
    "create_youtube_client",
    "RateLimiter",
    "AdaptiveRateLimiter",
    "backoff_delay",
    "GoogleOAuthClient",
    "UserInfo",
    "OpenAIReplyGenerator",
]
