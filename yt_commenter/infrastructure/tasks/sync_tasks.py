# yt_commenter/infrastructure/tasks/sync_tasks.py
"""
Comment Sync Background Tasks
Runs the fetch path for one video inside a Celery worker.
"""

import asyncio
import logging
from typing import Any, Dict

from yt_commenter.app.config import get_config
from yt_commenter.domain.models import utcnow
from yt_commenter.infrastructure.clients.oauth_client import GoogleOAuthClient
from yt_commenter.infrastructure.clients.youtube_api import create_youtube_client
from yt_commenter.infrastructure.credentials import EncryptedCredentialStore, build_fernet
from yt_commenter.infrastructure.database.connection import DatabaseManager
from yt_commenter.infrastructure.tasks.celery_app import celery_app
from yt_commenter.services.comment_store import CommentStore
from yt_commenter.services.comment_sync_service import CommentSyncService
from yt_commenter.services.exceptions import RateLimitExceededError, get_retry_delay
from yt_commenter.services.session_gate import SessionGate

logger = logging.getLogger(__name__)


async def run_sync(session_id: str, video_id: str) -> Dict[str, Any]:
    """
    Resolve the session and sync one video with worker-local resources

    Each run owns its engine and HTTP clients and disposes them afterwards.
    """
    config = get_config()
    db = DatabaseManager()
    oauth = GoogleOAuthClient(config.oauth)
    youtube = create_youtube_client(config.youtube_api)

    try:
        credentials = EncryptedCredentialStore(db, build_fernet(config.security.credential_key))
        gate = SessionGate(db, oauth, credentials, config.oauth)
        store = CommentStore(db)
        sync = CommentSyncService(youtube, store, config.sync)

        ctx = await gate.resolve_context(session_id)
        comments = await sync.sync_video(ctx, video_id)

        return {
            "video_id": video_id,
            "comments": len(comments),
            "replies": sum(len(c.replies) for c in comments),
            "synced_at": utcnow().isoformat(),
        }
    finally:
        await youtube.close()
        await oauth.close()
        await db.close()


@celery_app.task(
    bind=True,
    name="tasks.sync.sync_video_comments",
    max_retries=3,
)
def sync_video_comments(self, session_id: str, video_id: str) -> Dict[str, Any]:
    """
    Sync all comments and replies of a video

    Args:
        session_id: Session whose credential is used
        video_id: YouTube video ID

    Returns:
        Sync summary
    """
    logger.info(f"🔄 Background sync for video: {video_id}")

    try:
        return asyncio.run(run_sync(session_id, video_id))
    except RateLimitExceededError as e:
        delay = get_retry_delay(e, default=60.0)
        logger.warning(f"⚠️ Rate limited syncing {video_id}, retrying in {delay:.0f}s")
        raise self.retry(exc=e, countdown=delay)
