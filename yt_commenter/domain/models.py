# yt_commenter/domain/models.py
"""
Domain models shared by the client, store, services and API layers.

These are plain dataclasses; the ORM rows in
yt_commenter.infrastructure.database.models convert to and from them.
All datetimes are naive UTC.
"""
from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, NamedTuple, Optional


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the database hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class InteractionType(str, enum.Enum):
    """Kinds of user-visible actions kept in the audit log"""

    FETCH = "fetch"
    GENERATE = "generate"
    POST = "post"


class SessionState(str, enum.Enum):
    """Session gate lifecycle"""

    UNAUTHENTICATED = "unauthenticated"
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRING = "expiring"


class ReplyTone(str, enum.Enum):
    """Preset tones for generated replies; any other text is a custom tone"""

    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    ENTHUSIASTIC = "enthusiastic"
    HELPFUL = "helpful"


@dataclass
class PlatformCredential:
    access_token: str
    refresh_token: str
    expires_at: datetime
    token_type: str = "Bearer"
    scopes: List[str] = field(default_factory=list)

    def expires_within(self, seconds: float, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return (self.expires_at - now).total_seconds() <= seconds

    def __repr__(self) -> str:
        # Never leak tokens through logs or tracebacks
        return (
            f"PlatformCredential(token_type={self.token_type!r}, "
            f"expires_at={self.expires_at.isoformat()}, scopes={len(self.scopes)})"
        )


@dataclass
class Session:
    session_id: str
    state: SessionState
    created_at: datetime
    expires_at: datetime
    user_id: Optional[str] = None
    oauth_state: Optional[str] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.expires_at


@dataclass
class AuthContext:
    """What a resolved session hands to the services"""

    session_id: str
    user_id: str
    credential: PlatformCredential


@dataclass
class UserPreferences:
    """Per-user defaults for reply generation"""

    enable_ai_replies: bool = True
    reply_tone: str = ReplyTone.FRIENDLY.value
    ai_model: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enable_ai_replies": self.enable_ai_replies,
            "reply_tone": self.reply_tone,
            "ai_model": self.ai_model,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UserPreferences":
        data = data or {}
        return cls(
            enable_ai_replies=bool(data.get("enable_ai_replies", True)),
            reply_tone=data.get("reply_tone") or ReplyTone.FRIENDLY.value,
            ai_model=data.get("ai_model") or None,
        )


@dataclass
class UserProfile:
    """Google account profile kept from the last login"""

    user_id: str
    name: str = ""
    email: Optional[str] = None
    picture_url: Optional[str] = None
    preferences: UserPreferences = field(default_factory=UserPreferences)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Video:
    video_id: str
    title: str
    description: str = ""
    published_at: Optional[datetime] = None
    thumbnail_url: Optional[str] = None
    channel_id: Optional[str] = None


@dataclass
class Reply:
    reply_id: str
    parent_comment_id: str
    author: str
    text: str
    like_count: int = 0
    published_at: Optional[datetime] = None
    ai_generated: bool = False
    ai_model: Optional[str] = None
    author_channel_id: Optional[str] = None
    posted_by_app: bool = False


@dataclass
class Comment:
    video_id: str
    comment_id: str
    author: str
    text: str
    like_count: int = 0
    published_at: Optional[datetime] = None
    author_channel_id: Optional[str] = None
    replied_to: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)
    replies: List[Reply] = field(default_factory=list)

    @property
    def total_reply_count(self) -> int:
        return int(self.metadata.get("total_reply_count", 0) or 0)


@dataclass
class InteractionRecord:
    user_id: str
    video_id: str
    comment_id: str
    interaction_type: InteractionType
    reply_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=utcnow)


@dataclass
class GeneratedReply:
    reply_text: str
    model: str
    usage: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ReplyPrompt:
    """Everything the text generator needs to draft one reply"""

    comment_text: str
    comment_author: str
    tone: str = ReplyTone.FRIENDLY.value
    video_title: Optional[str] = None
    reply_history: List[str] = field(default_factory=list)
    additional_instructions: Optional[str] = None
    model: Optional[str] = None


class Page(NamedTuple):
    """One page of a platform list call; unpacks as (items, next_page_token)"""

    items: List[Any]
    next_page_token: Optional[str] = None


__all__ = [
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
    "to_naive_utc",
    "utcnow",
]
