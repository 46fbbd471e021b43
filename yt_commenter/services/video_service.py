"""
Video Service
Business logic for the signed-in channel's videos
"""

import logging
from typing import Dict, List, Optional

from yt_commenter.domain.interfaces import PlatformClient
from yt_commenter.domain.models import AuthContext, Video
from yt_commenter.services.comment_store import CommentStore

logger = logging.getLogger(__name__)


class VideoService:
    """
    Video operations service

    Handles:
    - Channel upload listing with a local cache
    - Single video lookup (cache first)
    """

    def __init__(self, platform: PlatformClient, store: CommentStore, max_pages: int = 10):
        self.platform = platform
        self.store = store
        self.max_pages = max_pages
        # user_id -> channel_id, learned from the first upload listing
        self._channel_by_user: Dict[str, str] = {}

    async def list_channel_videos(
        self, ctx: AuthContext, refresh: bool = False
    ) -> List[Video]:
        """
        Uploads of the signed-in channel, newest first

        Args:
            ctx: Resolved session
            refresh: Bypass the cache

        Returns:
            List of videos
        """
        channel_id = self._channel_by_user.get(ctx.user_id)
        if not refresh and channel_id:
            cached = await self.store.list_videos(channel_id)
            if cached:
                return cached

        videos: List[Video] = []
        page_token: Optional[str] = None
        for _ in range(self.max_pages):
            page = await self.platform.list_channel_videos(ctx.credential, page_token)
            videos.extend(page.items)
            page_token = page.next_page_token
            if not page_token:
                break

        if videos:
            await self.store.upsert_videos(videos)
            channel_id = next((v.channel_id for v in videos if v.channel_id), None)
            if channel_id:
                self._channel_by_user[ctx.user_id] = channel_id

        logger.info(f"📺 Listed {len(videos)} channel videos for user {ctx.user_id}")
        return sorted(
            videos,
            key=lambda v: v.published_at.timestamp() if v.published_at else 0.0,
            reverse=True,
        )

    async def get_video(self, ctx: AuthContext, video_id: str) -> Video:
        """
        Get video metadata, cache first

        Raises:
            ResourceNotFoundError: Unknown video
        """
        cached = await self.store.get_video(video_id)
        if cached is not None:
            return cached

        video = await self.platform.get_video(ctx.credential, video_id)
        await self.store.upsert_videos([video])
        return video
