# yt_commenter/infrastructure/repositories/video_repository.py
"""
Video Repository
Cached video metadata
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from yt_commenter.domain.models import Video, utcnow
from yt_commenter.infrastructure.database.models import VideoModel, VideoSyncModel

from .base import BaseRepository

logger = logging.getLogger(__name__)


class VideoRepository(BaseRepository[VideoModel]):
    """Repository for Video metadata"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, VideoModel)

    async def get_by_channel(self, channel_id: Optional[str] = None) -> List[VideoModel]:
        """
        Cached videos, newest first

        Args:
            channel_id: Restrict to one channel (all videos if None)
        """
        query = select(VideoModel)
        if channel_id:
            query = query.where(VideoModel.channel_id == channel_id)
        query = query.order_by(desc(VideoModel.published_at), VideoModel.id)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def upsert(self, video: Video) -> VideoModel:
        row = await self.get_by_id(video.video_id)

        if row is None:
            row = VideoModel(
                id=video.video_id,
                channel_id=video.channel_id,
                title=video.title,
                description=video.description,
                published_at=video.published_at,
                thumbnail_url=video.thumbnail_url,
            )
            self.session.add(row)
            return row

        row.title = video.title or row.title
        row.description = video.description or row.description
        row.channel_id = video.channel_id or row.channel_id
        row.published_at = video.published_at or row.published_at
        row.thumbnail_url = video.thumbnail_url or row.thumbnail_url
        return row

    async def upsert_many(self, videos: Iterable[Video]) -> List[VideoModel]:
        unique = {video.video_id: video for video in videos}
        rows = [await self.upsert(video) for video in unique.values()]
        await self.session.flush()
        logger.debug(f"Merged {len(rows)} videos")
        return rows


class VideoSyncRepository(BaseRepository[VideoSyncModel]):
    """Tracks when each video's comments were last fully synced"""

    pk_name = "video_id"

    def __init__(self, session: AsyncSession):
        super().__init__(session, VideoSyncModel)

    async def mark_synced(
        self,
        video_id: str,
        comment_count: int,
        reply_count: int,
        synced_at: Optional[datetime] = None,
    ) -> VideoSyncModel:
        row = await self.get_by_id(video_id)

        if row is None:
            row = VideoSyncModel(video_id=video_id)
            self.session.add(row)

        row.synced_at = synced_at or utcnow()
        row.comment_count = comment_count
        row.reply_count = reply_count
        await self.session.flush()
        return row
