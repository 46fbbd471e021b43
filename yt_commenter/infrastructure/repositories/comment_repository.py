# yt_commenter/infrastructure/repositories/comment_repository.py
"""
Comment Repository
Handles comment and reply persistence with stable reply threading
"""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import asc, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from yt_commenter.domain.models import Comment, Reply
from yt_commenter.infrastructure.database.models import CommentModel, ReplyModel

from .base import BaseRepository

logger = logging.getLogger(__name__)


class CommentRepository(BaseRepository[CommentModel]):
    """
    Repository for top-level comments
    Merges fetched comments without ever clearing a confirmed ``replied_to``
    """

    def __init__(self, session: AsyncSession):
        """Initialize comment repository"""
        super().__init__(session, CommentModel)

    # ========================================================================
    # Comment Retrieval Methods
    # ========================================================================

    async def get_by_video(self, video_id: str) -> List[CommentModel]:
        """
        Get all comments for a video, newest first

        Replies are eagerly loaded in stored order.
        """
        result = await self.session.execute(
            select(CommentModel)
            .where(CommentModel.video_id == video_id)
            .order_by(desc(CommentModel.published_at), asc(CommentModel.id))
        )
        return list(result.scalars().all())

    # ========================================================================
    # Merge Methods
    # ========================================================================

    async def upsert(self, video_id: str, comment: Comment) -> CommentModel:
        """
        Insert or refresh one comment

        Text, like count, author and metadata follow the platform;
        ``replied_to`` only ever moves from False to True.
        """
        row = await self.get_by_id(comment.comment_id)

        if row is None:
            row = CommentModel(
                id=comment.comment_id,
                video_id=video_id,
                author=comment.author,
                author_channel_id=comment.author_channel_id,
                text=comment.text,
                like_count=comment.like_count,
                published_at=comment.published_at,
                replied_to=bool(comment.replied_to),
                extra=dict(comment.metadata),
                replies=[],
            )
            self.session.add(row)
            return row

        row.video_id = video_id
        row.author = comment.author
        row.author_channel_id = comment.author_channel_id or row.author_channel_id
        row.text = comment.text
        row.like_count = comment.like_count
        if comment.published_at is not None:
            row.published_at = comment.published_at
        row.extra = {**(row.extra or {}), **comment.metadata}
        row.replied_to = bool(row.replied_to) or bool(comment.replied_to)
        return row

    async def upsert_many(self, video_id: str, comments: Iterable[Comment]) -> List[CommentModel]:
        unique = {comment.comment_id: comment for comment in comments}
        rows = [await self.upsert(video_id, comment) for comment in unique.values()]
        await self.session.flush()
        logger.debug(f"Merged {len(rows)} comments for video {video_id}")
        return rows


class ReplyRepository(BaseRepository[ReplyModel]):
    """
    Repository for replies
    Keeps first-seen order and never downgrades app-origin flags
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, ReplyModel)

    async def merge_into(self, parent: CommentModel, replies: Iterable[Reply]) -> CommentModel:
        """
        Merge replies into a loaded parent comment

        Known replies are refreshed in place and keep their position; new ones
        are appended in the given order. The parent's ``replied_to`` is
        recomputed afterwards.
        """
        existing: Dict[str, ReplyModel] = {r.id: r for r in parent.replies}
        next_position = max((r.position for r in parent.replies), default=-1) + 1
        added = 0

        for reply in replies:
            row: Optional[ReplyModel] = existing.get(reply.reply_id)

            if row is None:
                row = ReplyModel(
                    id=reply.reply_id,
                    comment_id=parent.id,
                    position=next_position,
                    author=reply.author,
                    author_channel_id=reply.author_channel_id,
                    text=reply.text,
                    like_count=reply.like_count,
                    published_at=reply.published_at,
                    ai_generated=bool(reply.ai_generated),
                    ai_model=reply.ai_model,
                    posted_by_app=bool(reply.posted_by_app),
                )
                parent.replies.append(row)
                existing[row.id] = row
                next_position += 1
                added += 1
                continue

            row.author = reply.author or row.author
            row.author_channel_id = reply.author_channel_id or row.author_channel_id
            row.text = reply.text
            row.like_count = reply.like_count
            if reply.published_at is not None:
                row.published_at = reply.published_at
            row.ai_generated = bool(row.ai_generated) or bool(reply.ai_generated)
            row.ai_model = row.ai_model or reply.ai_model
            row.posted_by_app = bool(row.posted_by_app) or bool(reply.posted_by_app)

        parent.replied_to = bool(parent.replied_to) or any(
            r.posted_by_app for r in parent.replies
        )

        await self.session.flush()
        if added:
            logger.debug(f"Appended {added} replies to comment {parent.id}")
        return parent
