"""
Comment Sync Service
Fetch path: pull every comment page and reply page of a video under one
deadline, then hand the complete batch to the store.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from yt_commenter.app.config import SyncSettings, get_config
from yt_commenter.domain.interfaces import PlatformClient
from yt_commenter.domain.models import (
    AuthContext,
    Comment,
    InteractionRecord,
    InteractionType,
    PlatformCredential,
    Reply,
    Video,
)
from yt_commenter.services.comment_store import CommentStore
from yt_commenter.services.exceptions import DeadlineExceededError, ResourceNotFoundError

logger = logging.getLogger(__name__)


class CommentSyncService:
    """Synchronizes a video's comment threads into the local store"""

    def __init__(
        self,
        platform: PlatformClient,
        store: CommentStore,
        settings: Optional[SyncSettings] = None,
    ):
        self.platform = platform
        self.store = store
        self.settings = settings or get_config().sync

    async def get_comments(
        self, ctx: AuthContext, video_id: str, refresh: bool = False
    ) -> List[Comment]:
        """Cached comments, fetching from the platform on refresh or if never synced"""
        if not refresh and await self.store.last_synced_at(video_id) is not None:
            return await self.store.get_comments(video_id)
        return await self.sync_video(ctx, video_id)

    async def sync_video(
        self, ctx: AuthContext, video_id: str, deadline: Optional[float] = None
    ) -> List[Comment]:
        """
        Fetch all comments and replies of a video and store them

        Args:
            ctx: Resolved session
            video_id: YouTube video ID
            deadline: Seconds allowed for the whole collection

        Returns:
            Stored comments, newest first

        Raises:
            DeadlineExceededError: Collection did not finish in time; store untouched
        """
        timeout = deadline if deadline is not None else self.settings.deadline_seconds

        try:
            comments, replies_by_comment, video, pages = await asyncio.wait_for(
                self._collect(ctx.credential, video_id), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"⚠️ Sync of {video_id} exceeded {timeout:.0f}s deadline")
            raise DeadlineExceededError(
                f"Fetching comments for {video_id} exceeded the {timeout:.0f}s deadline"
            ) from e

        await self.store.sync_video(video_id, comments, replies_by_comment)
        if video is not None:
            await self.store.upsert_videos([video])

        reply_total = sum(len(replies) for replies in replies_by_comment.values())
        await self.store.record_interaction(
            InteractionRecord(
                user_id=ctx.user_id,
                video_id=video_id,
                comment_id="",
                interaction_type=InteractionType.FETCH,
                data={
                    "comments": len(comments),
                    "replies": reply_total,
                    "pages": pages,
                },
            )
        )

        logger.info(
            f"✅ Synced {video_id}: {len(comments)} comments, {reply_total} replies"
        )
        return await self.store.get_comments(video_id)

    async def _collect(
        self, credential: PlatformCredential, video_id: str
    ) -> Tuple[List[Comment], Dict[str, List[Reply]], Optional[Video], int]:
        collected: Dict[str, Comment] = {}
        page_token: Optional[str] = None
        pages = 0

        while True:
            page = await self.platform.list_comments(credential, video_id, page_token)
            pages += 1
            for comment in page.items:
                collected[comment.comment_id] = comment

            page_token = page.next_page_token
            if not page_token:
                break
            if pages >= self.settings.max_comment_pages:
                logger.warning(
                    f"⚠️ Stopped at {pages} comment pages for {video_id}"
                )
                break

        replies_by_comment: Dict[str, List[Reply]] = {}
        for comment in collected.values():
            if comment.total_reply_count > 0:
                replies_by_comment[comment.comment_id] = await self._collect_replies(
                    credential, comment.comment_id
                )

        video: Optional[Video] = None
        if await self.store.get_video(video_id) is None:
            try:
                video = await self.platform.get_video(credential, video_id)
            except ResourceNotFoundError:
                logger.warning(f"⚠️ No metadata available for video {video_id}")

        return list(collected.values()), replies_by_comment, video, pages

    async def _collect_replies(
        self, credential: PlatformCredential, comment_id: str
    ) -> List[Reply]:
        replies: Dict[str, Reply] = {}
        page_token: Optional[str] = None
        pages = 0

        while True:
            page = await self.platform.list_replies(credential, comment_id, page_token)
            pages += 1
            for reply in page.items:
                replies[reply.reply_id] = reply

            page_token = page.next_page_token
            if not page_token or pages >= self.settings.max_reply_pages:
                break

        return list(replies.values())
