"""
Service Dependency Injection
FastAPI dependency providers for services
"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from yt_commenter.app.config import get_config
from yt_commenter.domain.models import AuthContext
from yt_commenter.infrastructure.clients.oauth_client import GoogleOAuthClient
from yt_commenter.infrastructure.clients.text_generator import OpenAIReplyGenerator
from yt_commenter.infrastructure.clients.youtube_api import create_youtube_client
from yt_commenter.infrastructure.credentials import EncryptedCredentialStore, build_fernet
from yt_commenter.infrastructure.database.connection import db_manager
from yt_commenter.services.comment_store import CommentStore
from yt_commenter.services.comment_sync_service import CommentSyncService
from yt_commenter.services.reply_orchestrator import ReplyOrchestrator
from yt_commenter.services.session_gate import SessionGate
from yt_commenter.services.user_service import UserService
from yt_commenter.services.video_service import VideoService

logger = logging.getLogger(__name__)


# ============================================================================
# Client Factories (Singletons)
# ============================================================================


@lru_cache()
def get_youtube_client():
    """
    Get or create YouTube API client (Singleton)

    Returns:
        YouTubeAPIClient instance
    """
    return create_youtube_client()


@lru_cache()
def get_oauth_client() -> GoogleOAuthClient:
    return GoogleOAuthClient()


@lru_cache()
def get_text_generator() -> OpenAIReplyGenerator:
    return OpenAIReplyGenerator()


@lru_cache()
def get_credential_store() -> EncryptedCredentialStore:
    config = get_config()
    return EncryptedCredentialStore(db_manager, build_fernet(config.security.credential_key))


# ============================================================================
# Service Factories (Singletons)
# ============================================================================


@lru_cache()
def get_comment_store() -> CommentStore:
    return CommentStore(db_manager)


@lru_cache()
def get_session_gate() -> SessionGate:
    return SessionGate(db_manager, get_oauth_client(), get_credential_store())


@lru_cache()
def get_comment_sync_service() -> CommentSyncService:
    return CommentSyncService(get_youtube_client(), get_comment_store())


@lru_cache()
def get_user_service() -> UserService:
    return UserService(db_manager, allowed_models=get_config().ai.allowed_models_list)


@lru_cache()
def get_reply_orchestrator() -> ReplyOrchestrator:
    return ReplyOrchestrator(
        get_youtube_client(),
        get_text_generator(),
        get_comment_store(),
        users=get_user_service(),
        generation_timeout=get_config().ai.timeout_seconds,
    )


@lru_cache()
def get_video_service() -> VideoService:
    return VideoService(get_youtube_client(), get_comment_store())


# ============================================================================
# Request Dependencies
# ============================================================================


async def require_session(
    x_session_id: Optional[str] = Header(None),
    gate: SessionGate = Depends(get_session_gate),
) -> AuthContext:
    """
    Resolve the ``x-session-id`` header to an authenticated context

    Usage in FastAPI:
        @router.get("/comments/{video_id}")
        async def list_comments(ctx: AuthContext = Depends(require_session)):
            ...

    Raises:
        UnauthenticatedError: Missing, unknown, pending or expired session
    """
    return await gate.resolve_context(x_session_id)


async def shutdown_clients() -> None:
    """Close HTTP clients created by the singleton factories"""
    if get_youtube_client.cache_info().currsize:
        await get_youtube_client().close()
    if get_oauth_client.cache_info().currsize:
        await get_oauth_client().close()
    if get_text_generator.cache_info().currsize:
        await get_text_generator().close()

    for factory in (
        get_youtube_client,
        get_oauth_client,
        get_text_generator,
        get_credential_store,
        get_comment_store,
        get_session_gate,
        get_comment_sync_service,
        get_user_service,
        get_reply_orchestrator,
        get_video_service,
    ):
        factory.cache_clear()

    logger.info("🔌 HTTP clients closed")
