# yt_commenter/domain/__init__.py
"""
Domain layer: plain dataclasses and the collaborator Protocols the services
depend on.

The ORM rows live in yt_commenter.infrastructure.database.models.
Repositories live in yt_commenter.infrastructure.repositories.
"""
from .interfaces import CredentialStore, OAuthProvider, PlatformClient, TextGenerator
from .models import (
    AuthContext,
    Comment,
    GeneratedReply,
    InteractionRecord,
    InteractionType,
    Page,
    PlatformCredential,
    Reply,
    ReplyPrompt,
    ReplyTone,
    Session,
    SessionState,
    UserPreferences,
    UserProfile,
    Video,
)

__all__ = [
    "CredentialStore",
    "OAuthProvider",
    "PlatformClient",
    "TextGenerator",
    "AuthContext",
    "Comment",
    "GeneratedReply",
    "InteractionRecord",
    "InteractionType",
    "Page",
    "PlatformCredential",
    "Reply",
    "ReplyPrompt",
    "ReplyTone",
    "Session",
    "SessionState",
    "UserPreferences",
    "UserProfile",
    "Video",
]
