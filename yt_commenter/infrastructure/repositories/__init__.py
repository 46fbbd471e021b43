# yt_commenter/infrastructure/repositories/__init__.py
"""
Repository Layer
Data access patterns for all entities
"""

from .base import BaseRepository
from .comment_repository import CommentRepository, ReplyRepository
from .interaction_repository import InteractionRepository
from .session_repository import CredentialRepository, SessionRepository
from .user_repository import UserRepository
from .video_repository import VideoRepository, VideoSyncRepository

__all__ = [
    "BaseRepository",
    "CommentRepository",
    "ReplyRepository",
    "InteractionRepository",
    "SessionRepository",
    "CredentialRepository",
    "UserRepository",
    "VideoRepository",
    "VideoSyncRepository",
]
