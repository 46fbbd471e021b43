# yt_commenter/infrastructure/clients/youtube_api.py
"""
YouTube Data API v3 Client
Authenticated (OAuth bearer) access to comment threads, replies, reply posting
and the signed-in channel's uploads.

Features:
- Automatic quota tracking and warnings
- Bounded, jittered retry for rate-limited reads only
- Adaptive token bucket throttling
- Type-safe response parsing with Pydantic
- Platform errors mapped onto the service error taxonomy

The client never paginates on its own and never touches the store.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from yt_commenter.app.config import YouTubeAPISettings, get_config
from yt_commenter.domain.models import (
    Comment,
    Page,
    PlatformCredential,
    Reply,
    Video,
    to_naive_utc,
)
from yt_commenter.infrastructure.clients.rate_limiter import (
    AdaptiveRateLimiter,
    backoff_delay,
)
from yt_commenter.services.exceptions import (
    DeadlineExceededError,
    InvalidContentError,
    PostResponseUnreadableError,
    RateLimitExceededError,
    ResourceConflictError,
    ResourceNotFoundError,
    ServiceError,
    UnauthorizedError,
    YouTubeAPIError,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_REASONS = {"rateLimitExceeded", "userRateLimitExceeded"}
QUOTA_REASONS = {"quotaExceeded", "dailyLimitExceeded"}
POST_CONFLICT_REASONS = {
    "commentsDisabled",
    "forbidden",
    "operationNotSupported",
    "parentCommentIsPrivate",
    "parentNotFound",
}


# ============================================================================
# Response Models (Type-Safe Data Containers)
# ============================================================================


class AuthorChannel(BaseModel):
    value: Optional[str] = None


class CommentSnippet(BaseModel):
    """Comment metadata"""

    text_display: str = Field(alias="textDisplay", default="")
    text_original: Optional[str] = Field(alias="textOriginal", default=None)
    author_display_name: str = Field(alias="authorDisplayName", default="")
    author_channel_id: Optional[AuthorChannel] = Field(
        alias="authorChannelId", default=None
    )
    like_count: int = Field(alias="likeCount", default=0)
    published_at: Optional[datetime] = Field(alias="publishedAt", default=None)
    updated_at: Optional[datetime] = Field(alias="updatedAt", default=None)
    parent_id: Optional[str] = Field(alias="parentId", default=None)

    class Config:
        populate_by_name = True

    @property
    def text(self) -> str:
        return self.text_original if self.text_original is not None else self.text_display


class CommentResource(BaseModel):
    """A single comment (top-level or reply)"""

    id: str
    snippet: CommentSnippet

    class Config:
        populate_by_name = True


class CommentThreadSnippet(BaseModel):
    """Thread metadata wrapping the top-level comment"""

    video_id: Optional[str] = Field(alias="videoId", default=None)
    top_level_comment: CommentResource = Field(alias="topLevelComment")
    total_reply_count: int = Field(alias="totalReplyCount", default=0)
    can_reply: bool = Field(alias="canReply", default=True)
    is_public: bool = Field(alias="isPublic", default=True)

    class Config:
        populate_by_name = True


class CommentThreadResource(BaseModel):
    id: str
    snippet: CommentThreadSnippet


class CommentThreadListResponse(BaseModel):
    items: List[CommentThreadResource] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(alias="nextPageToken", default=None)

    class Config:
        populate_by_name = True


class CommentListResponse(BaseModel):
    items: List[CommentResource] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(alias="nextPageToken", default=None)

    class Config:
        populate_by_name = True


class VideoSnippet(BaseModel):
    """Video metadata snippet"""

    title: str = ""
    description: str = ""
    published_at: Optional[datetime] = Field(alias="publishedAt", default=None)
    channel_id: Optional[str] = Field(alias="channelId", default=None)
    thumbnails: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    class Config:
        populate_by_name = True


class VideoResource(BaseModel):
    id: str
    snippet: VideoSnippet


class ResourceId(BaseModel):
    video_id: Optional[str] = Field(alias="videoId", default=None)

    class Config:
        populate_by_name = True


class PlaylistItemSnippet(VideoSnippet):
    resource_id: ResourceId = Field(alias="resourceId", default_factory=ResourceId)


class PlaylistItemResource(BaseModel):
    id: str
    snippet: PlaylistItemSnippet


class PlaylistItemListResponse(BaseModel):
    items: List[PlaylistItemResource] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(alias="nextPageToken", default=None)

    class Config:
        populate_by_name = True


# ============================================================================
# Quota Management
# ============================================================================


@dataclass
class QuotaTracker:
    """Tracks API quota usage with daily reset"""

    daily_limit: int = 10000  # YouTube API default quota
    used_quota: int = 0
    reset_time: datetime = field(
        default_factory=lambda: datetime.now() + timedelta(days=1)
    )

    # Quota costs per operation (YouTube API v3 costs)
    COSTS = {
        "videos": 1,
        "channels": 1,
        "comments": 1,
        "comment_threads": 1,
        "playlist_items": 1,
        "comments_insert": 50,
    }

    def check_quota(self, operation: str, count: int = 1) -> bool:
        """Check if sufficient quota available"""
        self._reset_if_needed()
        cost = self.COSTS.get(operation, 1) * count
        return (self.used_quota + cost) <= self.daily_limit

    def consume_quota(self, operation: str, count: int = 1) -> None:
        """Consume quota for an operation"""
        self._reset_if_needed()
        cost = self.COSTS.get(operation, 1) * count
        self.used_quota += cost

        remaining = self.daily_limit - self.used_quota
        if remaining < 1000:
            logger.warning(f"⚠️ Low quota remaining: {remaining} units")

    def seconds_until_reset(self) -> float:
        return max(0.0, (self.reset_time - datetime.now()).total_seconds())

    def _reset_if_needed(self) -> None:
        """Reset quota counter if daily limit expired"""
        if datetime.now() >= self.reset_time:
            logger.info("🔄 Daily quota reset")
            self.used_quota = 0
            self.reset_time = datetime.now() + timedelta(days=1)

    def get_status(self) -> Dict[str, Any]:
        """Get current quota status"""
        self._reset_if_needed()
        return {
            "used": self.used_quota,
            "limit": self.daily_limit,
            "remaining": self.daily_limit - self.used_quota,
            "reset_at": self.reset_time.isoformat(),
            "percentage_used": round((self.used_quota / self.daily_limit) * 100, 2),
        }


# ============================================================================
# Conversion Helpers
# ============================================================================


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    return to_naive_utc(value) if value is not None else None


def _best_thumbnail(thumbnails: Dict[str, Dict[str, Any]]) -> Optional[str]:
    for size in ("high", "medium", "default"):
        url = thumbnails.get(size, {}).get("url")
        if url:
            return url
    return None


def _to_reply(resource: CommentResource, parent_comment_id: str) -> Reply:
    snippet = resource.snippet
    return Reply(
        reply_id=resource.id,
        parent_comment_id=snippet.parent_id or parent_comment_id,
        author=snippet.author_display_name,
        text=snippet.text,
        like_count=snippet.like_count,
        published_at=_naive(snippet.published_at),
        author_channel_id=(
            snippet.author_channel_id.value if snippet.author_channel_id else None
        ),
    )


def _to_comment(thread: CommentThreadResource, video_id: str) -> Comment:
    top = thread.snippet.top_level_comment
    snippet = top.snippet
    updated_at = _naive(snippet.updated_at)
    return Comment(
        video_id=thread.snippet.video_id or video_id,
        comment_id=top.id,
        author=snippet.author_display_name,
        text=snippet.text,
        like_count=snippet.like_count,
        published_at=_naive(snippet.published_at),
        author_channel_id=(
            snippet.author_channel_id.value if snippet.author_channel_id else None
        ),
        metadata={
            "thread_id": thread.id,
            "total_reply_count": thread.snippet.total_reply_count,
            "can_reply": thread.snippet.can_reply,
            "updated_at": updated_at.isoformat() if updated_at else None,
        },
    )


def _to_video(video_id: str, snippet: VideoSnippet) -> Video:
    return Video(
        video_id=video_id,
        title=snippet.title,
        description=snippet.description,
        published_at=_naive(snippet.published_at),
        thumbnail_url=_best_thumbnail(snippet.thumbnails),
        channel_id=snippet.channel_id,
    )


def _error_reason(response: httpx.Response) -> tuple:
    """Extract (reason, message) from a YouTube error body"""
    try:
        payload = response.json()
    except ValueError:
        return None, response.text[:200]

    error = payload.get("error", {}) if isinstance(payload, dict) else {}
    if not isinstance(error, dict):
        return None, str(error)[:200]

    errors = error.get("errors") or []
    reason = errors[0].get("reason") if errors and isinstance(errors[0], dict) else None
    return reason, error.get("message") or response.reason_phrase


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


# ============================================================================
# Main API Client
# ============================================================================


class YouTubeAPIClient:
    """
    YouTube Data API v3 Client

    Handles:
    - Comment thread listing (one page per call)
    - Reply listing (one page per call)
    - Reply posting (never retried)
    - Video metadata and channel uploads

    Every call takes the caller's PlatformCredential; the client keeps no
    per-user state.
    """

    def __init__(
        self,
        settings: Optional[YouTubeAPISettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[AdaptiveRateLimiter] = None,
        quota_tracker: Optional[QuotaTracker] = None,
    ):
        """
        Initialize YouTube API client

        Args:
            settings: YouTube API settings (reads global config if not provided)
            http_client: Preconfigured httpx client (tests pass a MockTransport)
            rate_limiter: Shared rate limiter
            quota_tracker: Shared quota tracker
        """
        self.settings = settings or get_config().youtube_api
        self.base_url = self.settings.base_url.rstrip("/")

        # HTTP client with connection pooling
        self.client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.read_timeout),
            limits=httpx.Limits(max_keepalive_connections=5),
        )

        self.rate_limiter = rate_limiter or AdaptiveRateLimiter(
            initial_calls_per_second=self.settings.requests_per_second,
            burst_capacity=self.settings.burst_capacity,
        )
        self.quota_tracker = quota_tracker or QuotaTracker(
            daily_limit=self.settings.daily_quota_limit
        )

        logger.info("✅ YouTube API client initialized")

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "YouTubeAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ========================================================================
    # Request Plumbing
    # ========================================================================

    async def _request(
        self,
        method: str,
        endpoint: str,
        credential: PlatformCredential,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        resource: Optional[tuple] = None,
        write: bool = False,
    ) -> Dict[str, Any]:
        """
        Make an authenticated API request

        Reads are retried on rate limiting (bounded, jittered backoff honoring
        Retry-After). Writes go out exactly once.

        Args:
            method: HTTP method
            endpoint: API endpoint path (e.g. 'commentThreads')
            credential: Caller's OAuth credential
            operation: Operation type for quota tracking
            params: Query parameters
            json_body: Request body for writes
            resource: (resource_type, resource_id) used for 404 mapping
            write: Whether this call mutates platform state

        Returns:
            Parsed JSON response
        """
        if not self.quota_tracker.check_quota(operation):
            raise RateLimitExceededError(
                "Daily YouTube API quota exhausted",
                retry_after=self.quota_tracker.seconds_until_reset(),
            )

        url = f"{self.base_url}/{endpoint}"
        headers = {"Authorization": f"{credential.token_type} {credential.access_token}"}
        timeout = self.settings.write_timeout if write else self.settings.read_timeout
        attempts = 1 if write else max(1, self.settings.max_retries)

        for attempt in range(attempts):
            await self.rate_limiter.acquire()

            try:
                response = await self.client.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    headers=headers,
                    timeout=timeout,
                )
            except httpx.TimeoutException as e:
                if write:
                    # The platform may or may not have applied the write
                    logger.error(f"❌ Timeout posting to {endpoint}; outcome unknown")
                    raise DeadlineExceededError(
                        "Timed out waiting for YouTube to confirm the post",
                        error_code="POST_OUTCOME_UNKNOWN",
                        details={"outcome": "unknown"},
                    ) from e
                logger.warning(f"⚠️ Timeout calling {endpoint}")
                raise DeadlineExceededError(f"YouTube {endpoint} call timed out") from e
            except httpx.RequestError as e:
                logger.error(f"❌ Network error calling {endpoint}: {type(e).__name__}")
                raise YouTubeAPIError(f"Network error calling YouTube: {e}") from e

            if response.is_success:
                self.quota_tracker.consume_quota(operation)
                self.rate_limiter.report_success()
                try:
                    return response.json() if response.content else {}
                except ValueError as e:
                    if write:
                        logger.error(f"❌ {endpoint} write accepted but response unreadable")
                        raise PostResponseUnreadableError(
                            "YouTube accepted the reply but its confirmation was unreadable",
                            comment_id=resource[1] if resource else None,
                        ) from e
                    raise YouTubeAPIError(f"Unreadable response from YouTube {endpoint}") from e

            self.rate_limiter.report_error(response.status_code)
            error = self._map_error(response, resource, write)

            retryable = isinstance(error, RateLimitExceededError) and error.retryable
            if not retryable or attempt == attempts - 1:
                raise error
            # Hints beyond the backoff cap go back to the caller
            if error.retry_after is not None and error.retry_after > self.settings.backoff_max:
                logger.warning(
                    f"⚠️ Rate limited on {endpoint} for {error.retry_after:.0f}s; not retrying"
                )
                raise error

            wait_time = backoff_delay(
                attempt,
                base=self.settings.backoff_base,
                cap=self.settings.backoff_max,
                retry_after=error.retry_after,
            )
            logger.warning(
                f"⚠️ Rate limited on {endpoint}, "
                f"retrying in {wait_time:.2f}s (attempt {attempt + 1}/{attempts})"
            )
            await asyncio.sleep(wait_time)

        raise YouTubeAPIError(f"Failed after {attempts} attempts")

    def _map_error(
        self,
        response: httpx.Response,
        resource: Optional[tuple],
        write: bool,
    ) -> ServiceError:
        """Translate a non-2xx response into a service error"""
        status = response.status_code
        reason, message = _error_reason(response)
        message = message or f"YouTube API error {status}"

        logger.error(f"❌ YouTube API error {status} ({reason}): {message}")

        if status == 429 or (status == 403 and reason in RATE_LIMIT_REASONS):
            return RateLimitExceededError(message, retry_after=_retry_after(response))

        if status == 403 and reason in QUOTA_REASONS:
            error = RateLimitExceededError(message, retry_after=_retry_after(response))
            error.retryable = False
            return error

        if status == 401:
            return UnauthorizedError(message)

        if write:
            if status == 404 or reason in POST_CONFLICT_REASONS:
                return ResourceConflictError(message, details={"reason": reason})
            if status == 400:
                return InvalidContentError(message, details={"reason": reason})
        else:
            if status == 404:
                resource_type, resource_id = resource or ("resource", "unknown")
                return ResourceNotFoundError(resource_type, resource_id, message)
            if status == 403 and reason == "commentsDisabled":
                return ResourceConflictError(message, details={"reason": reason})

        return YouTubeAPIError(message, status=status, reason=reason)

    # ========================================================================
    # Comment Operations
    # ========================================================================

    async def list_comments(
        self,
        credential: PlatformCredential,
        video_id: str,
        page_token: Optional[str] = None,
    ) -> Page:
        """
        Fetch one page of top-level comments for a video

        Returns:
            Page of Comment (replies not populated) and the next page token
        """
        params = {
            "part": "snippet",
            "videoId": video_id,
            "textFormat": "plainText",
            "order": "time",
            "maxResults": self.settings.max_results_per_page,
        }
        if page_token:
            params["pageToken"] = page_token

        data = await self._request(
            "GET",
            "commentThreads",
            credential,
            operation="comment_threads",
            params=params,
            resource=("video", video_id),
        )
        parsed = CommentThreadListResponse(**data)

        comments = [_to_comment(thread, video_id) for thread in parsed.items]
        logger.debug(f"📥 {len(comments)} comments fetched for {video_id}")
        return Page(comments, parsed.next_page_token)

    async def list_replies(
        self,
        credential: PlatformCredential,
        comment_id: str,
        page_token: Optional[str] = None,
    ) -> Page:
        """Fetch one page of replies to a top-level comment"""
        params = {
            "part": "snippet",
            "parentId": comment_id,
            "textFormat": "plainText",
            "maxResults": self.settings.max_results_per_page,
        }
        if page_token:
            params["pageToken"] = page_token

        data = await self._request(
            "GET",
            "comments",
            credential,
            operation="comments",
            params=params,
            resource=("comment", comment_id),
        )
        parsed = CommentListResponse(**data)

        return Page(
            [_to_reply(item, comment_id) for item in parsed.items],
            parsed.next_page_token,
        )

    async def post_reply(
        self, credential: PlatformCredential, comment_id: str, text: str
    ) -> Reply:
        """
        Post a reply under a top-level comment

        Issued exactly once; a failure is surfaced to the caller unchanged.

        Returns:
            The reply as confirmed by the platform
        """
        body = {"snippet": {"parentId": comment_id, "textOriginal": text}}

        data = await self._request(
            "POST",
            "comments",
            credential,
            operation="comments_insert",
            params={"part": "snippet"},
            json_body=body,
            resource=("comment", comment_id),
            write=True,
        )
        try:
            reply = _to_reply(CommentResource(**data), comment_id)
        except (PydanticValidationError, TypeError) as e:
            logger.error(f"❌ Reply under {comment_id} posted but confirmation malformed")
            raise PostResponseUnreadableError(
                "YouTube accepted the reply but its confirmation was malformed",
                comment_id=comment_id,
            ) from e
        if not reply.text:
            reply.text = text

        logger.info(f"💬 Reply {reply.reply_id} posted under {comment_id}")
        return reply

    # ========================================================================
    # Video Operations
    # ========================================================================

    async def get_video(self, credential: PlatformCredential, video_id: str) -> Video:
        """Fetch video metadata"""
        data = await self._request(
            "GET",
            "videos",
            credential,
            operation="videos",
            params={"part": "snippet", "id": video_id},
            resource=("video", video_id),
        )

        items = data.get("items") or []
        if not items:
            raise ResourceNotFoundError("video", video_id)

        video = VideoResource(**items[0])
        return _to_video(video.id, video.snippet)

    async def list_channel_videos(
        self, credential: PlatformCredential, page_token: Optional[str] = None
    ) -> Page:
        """
        Fetch one page of the signed-in channel's uploads

        Resolves the uploads playlist through channels.list(mine=true), then
        reads playlistItems.
        """
        data = await self._request(
            "GET",
            "channels",
            credential,
            operation="channels",
            params={"part": "contentDetails", "mine": "true"},
            resource=("channel", "mine"),
        )

        items = data.get("items") or []
        uploads = None
        if items:
            uploads = (
                items[0]
                .get("contentDetails", {})
                .get("relatedPlaylists", {})
                .get("uploads")
            )
        if not uploads:
            raise ResourceNotFoundError("channel", "mine", "No channel for this account")

        params = {
            "part": "snippet",
            "playlistId": uploads,
            "maxResults": min(50, self.settings.max_results_per_page),
        }
        if page_token:
            params["pageToken"] = page_token

        data = await self._request(
            "GET",
            "playlistItems",
            credential,
            operation="playlist_items",
            params=params,
            resource=("playlist", uploads),
        )
        parsed = PlaylistItemListResponse(**data)

        videos = [
            _to_video(item.snippet.resource_id.video_id, item.snippet)
            for item in parsed.items
            if item.snippet.resource_id.video_id
        ]
        return Page(videos, parsed.next_page_token)


# ============================================================================
# Factory Function
# ============================================================================


def create_youtube_client(
    settings: Optional[YouTubeAPISettings] = None,
) -> YouTubeAPIClient:
    """Factory function to create YouTube API client"""
    return YouTubeAPIClient(settings=settings)
