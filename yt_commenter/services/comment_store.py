"""
Comment Store
Local, durable cache of comments and replies per video plus the append-only
interaction log.

Writes for one video are serialized with a per-video asyncio.Lock; writes for
different videos proceed independently and readers never take a lock.
"""

import asyncio
import logging
import weakref
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from yt_commenter.domain.models import (
    Comment,
    InteractionRecord,
    InteractionType,
    Reply,
    Video,
)
from yt_commenter.infrastructure.database.connection import DatabaseManager
from yt_commenter.infrastructure.repositories import (
    CommentRepository,
    InteractionRepository,
    ReplyRepository,
    VideoRepository,
    VideoSyncRepository,
)
from yt_commenter.services.exceptions import (
    ResourceNotFoundError,
    StoreFailureError,
    ValidationError,
)

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = frozenset(
    {"access_token", "refresh_token", "authorization", "client_secret", "token"}
)


def find_sensitive_keys(data: Any, prefix: str = "") -> List[str]:
    """Dotted paths of credential-like keys anywhere in a JSON-ish value"""
    found: List[str] = []
    if isinstance(data, Mapping):
        for key, value in data.items():
            path = f"{prefix}{key}"
            if str(key).lower() in SENSITIVE_KEYS:
                found.append(path)
            found.extend(find_sensitive_keys(value, f"{path}."))
    elif isinstance(data, (list, tuple)):
        for index, value in enumerate(data):
            found.extend(find_sensitive_keys(value, f"{prefix}{index}."))
    return found


class CommentStore:
    """
    Comment/reply cache and audit log

    Handles:
    - Idempotent comment and reply merges
    - Stable reply ordering and monotonic ``replied_to``
    - All-or-nothing application of a complete video fetch
    - Per-video sync markers, so an empty video still counts as cached
    - Interaction records (fetch / generate / post)
    - Cached video metadata
    """

    def __init__(self, db: DatabaseManager):
        self.db = db
        # Entries vanish once no writer holds or waits on the lock
        self._video_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, video_id: str) -> asyncio.Lock:
        lock = self._video_locks.get(video_id)
        if lock is None:
            lock = asyncio.Lock()
            self._video_locks[video_id] = lock
        return lock

    # ========================================================================
    # Comment Writes
    # ========================================================================

    async def upsert_comments(self, video_id: str, comments: Iterable[Comment]) -> int:
        """
        Merge comments for a video

        Returns:
            Number of comments merged
        """
        comments = list(comments)
        async with self._lock_for(video_id):
            try:
                async with self.db.session() as session:
                    rows = await CommentRepository(session).upsert_many(video_id, comments)
            except SQLAlchemyError as e:
                logger.error(f"❌ Failed to upsert comments for {video_id}: {e}")
                raise StoreFailureError(f"Failed to store comments for {video_id}") from e

        logger.info(f"💾 Stored {len(rows)} comments for video {video_id}")
        return len(rows)

    async def upsert_replies(self, comment_id: str, replies: Iterable[Reply]) -> Comment:
        """
        Merge replies under a stored comment

        Raises:
            ResourceNotFoundError: Parent comment is not stored
        """
        replies = list(replies)
        parent = await self.get_comment(comment_id)
        if parent is None:
            raise ResourceNotFoundError("comment", comment_id)

        async with self._lock_for(parent.video_id):
            try:
                async with self.db.session() as session:
                    row = await CommentRepository(session).get_by_id(comment_id)
                    if row is None:
                        raise ResourceNotFoundError("comment", comment_id)
                    await ReplyRepository(session).merge_into(row, replies)
                    merged = row.to_domain()
            except SQLAlchemyError as e:
                logger.error(f"❌ Failed to upsert replies for {comment_id}: {e}")
                raise StoreFailureError(f"Failed to store replies for {comment_id}") from e

        logger.debug(f"💾 Merged {len(replies)} replies under {comment_id}")
        return merged

    async def sync_video(
        self,
        video_id: str,
        comments: Iterable[Comment],
        replies_by_comment: Mapping[str, List[Reply]],
    ) -> int:
        """
        Apply a complete fetch of one video in a single transaction

        Either every comment and reply lands or nothing changes.

        Returns:
            Number of comments merged
        """
        comments = list(comments)
        async with self._lock_for(video_id):
            try:
                async with self.db.session() as session:
                    rows = await CommentRepository(session).upsert_many(video_id, comments)
                    reply_repo = ReplyRepository(session)
                    by_id = {row.id: row for row in rows}

                    for comment_id, replies in replies_by_comment.items():
                        parent = by_id.get(comment_id)
                        if parent is None:
                            logger.warning(
                                f"⚠️ Replies for unknown comment {comment_id} skipped"
                            )
                            continue
                        await reply_repo.merge_into(parent, replies)

                    await VideoSyncRepository(session).mark_synced(
                        video_id,
                        comment_count=len(rows),
                        reply_count=sum(len(r) for r in replies_by_comment.values()),
                    )
            except SQLAlchemyError as e:
                logger.error(f"❌ Sync of video {video_id} rolled back: {e}")
                raise StoreFailureError(f"Failed to store fetch of {video_id}") from e

        reply_total = sum(len(replies) for replies in replies_by_comment.values())
        logger.info(
            f"💾 Synced video {video_id}: {len(rows)} comments, {reply_total} replies"
        )
        return len(rows)

    # ========================================================================
    # Comment Reads (lock-free)
    # ========================================================================

    async def get_comments(self, video_id: str) -> List[Comment]:
        """Comments newest first with replies nested in stored order"""
        try:
            async with self.db.session() as session:
                rows = await CommentRepository(session).get_by_video(video_id)
                return [row.to_domain() for row in rows]
        except SQLAlchemyError as e:
            raise StoreFailureError(f"Failed to read comments for {video_id}") from e

    async def get_comment(self, comment_id: str) -> Optional[Comment]:
        try:
            async with self.db.session() as session:
                row = await CommentRepository(session).get_by_id(comment_id)
                return row.to_domain() if row is not None else None
        except SQLAlchemyError as e:
            raise StoreFailureError(f"Failed to read comment {comment_id}") from e

    async def last_synced_at(self, video_id: str) -> Optional[datetime]:
        """When the last complete fetch of a video was applied, if ever"""
        try:
            async with self.db.session() as session:
                row = await VideoSyncRepository(session).get_by_id(video_id)
                return row.synced_at if row is not None else None
        except SQLAlchemyError as e:
            raise StoreFailureError(f"Failed to read sync state of {video_id}") from e

    # ========================================================================
    # Interaction Log
    # ========================================================================

    async def record_interaction(self, record: InteractionRecord) -> InteractionRecord:
        """
        Append an interaction record

        Raises:
            ValidationError: Record data carries credential-like keys
            StoreFailureError: The record could not be written
        """
        leaked = find_sensitive_keys(record.data)
        if leaked:
            raise ValidationError(
                "Interaction data must not contain credentials",
                details={"fields": leaked},
            )

        try:
            async with self.db.session() as session:
                await InteractionRepository(session).append(record)
        except SQLAlchemyError as e:
            logger.error(
                f"❌ Failed to record {record.interaction_type.value} interaction: {e}"
            )
            raise StoreFailureError("Failed to record interaction") from e

        logger.debug(
            f"📝 Recorded {record.interaction_type.value} for comment "
            f"{record.comment_id or '-'}"
        )
        return record

    async def list_interactions(
        self,
        user_id: str,
        limit: int = 100,
        interaction_type: Optional[InteractionType] = None,
    ) -> List[InteractionRecord]:
        """Newest first, optionally only one kind of interaction"""
        try:
            async with self.db.session() as session:
                rows = await InteractionRepository(session).list_for_user(
                    user_id, limit=limit, interaction_type=interaction_type
                )
                return [row.to_domain() for row in rows]
        except SQLAlchemyError as e:
            raise StoreFailureError("Failed to read interaction history") from e

    # ========================================================================
    # Video Metadata
    # ========================================================================

    async def upsert_videos(self, videos: Iterable[Video]) -> int:
        videos = list(videos)
        try:
            async with self.db.session() as session:
                rows = await VideoRepository(session).upsert_many(videos)
        except SQLAlchemyError as e:
            raise StoreFailureError("Failed to store videos") from e
        return len(rows)

    async def get_video(self, video_id: str) -> Optional[Video]:
        try:
            async with self.db.session() as session:
                row = await VideoRepository(session).get_by_id(video_id)
                return row.to_domain() if row is not None else None
        except SQLAlchemyError as e:
            raise StoreFailureError(f"Failed to read video {video_id}") from e

    async def list_videos(self, channel_id: Optional[str] = None) -> List[Video]:
        try:
            async with self.db.session() as session:
                rows = await VideoRepository(session).get_by_channel(channel_id)
                return [row.to_domain() for row in rows]
        except SQLAlchemyError as e:
            raise StoreFailureError("Failed to read videos") from e
