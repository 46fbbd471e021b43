# yt_commenter/api/schemas.py
"""
API Schemas
Request/response models for the REST surface. Timestamps serialize as
ISO-8601.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from yt_commenter.domain.models import (
    Comment,
    InteractionRecord,
    Reply,
    UserPreferences,
    UserProfile,
    Video,
)


# ============================================================================
# Auth
# ============================================================================


class AuthUrlResponse(BaseModel):
    url: str = Field(..., description="Google consent URL")
    state: str = Field(..., description="OAuth state bound to the pending login")


class LoginResponse(BaseModel):
    session_id: str
    user_id: str
    expires_at: datetime


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# Comments & Replies
# ============================================================================


class ReplyResponse(BaseModel):
    """A reply nested under a comment"""

    reply_id: str
    parent_comment_id: str
    author: str
    text: str
    like_count: int = 0
    published_at: Optional[datetime] = None
    ai_generated: bool = False
    ai_model: Optional[str] = None
    posted_by_app: bool = False

    @classmethod
    def from_domain(cls, reply: Reply) -> "ReplyResponse":
        return cls(
            reply_id=reply.reply_id,
            parent_comment_id=reply.parent_comment_id,
            author=reply.author,
            text=reply.text,
            like_count=reply.like_count,
            published_at=reply.published_at,
            ai_generated=reply.ai_generated,
            ai_model=reply.ai_model,
            posted_by_app=reply.posted_by_app,
        )


class CommentResponse(BaseModel):
    """A top-level comment with its replies in stored order"""

    video_id: str
    comment_id: str
    author: str
    text: str
    like_count: int = 0
    published_at: Optional[datetime] = None
    replied_to: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)
    replies: List[ReplyResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, comment: Comment) -> "CommentResponse":
        return cls(
            video_id=comment.video_id,
            comment_id=comment.comment_id,
            author=comment.author,
            text=comment.text,
            like_count=comment.like_count,
            published_at=comment.published_at,
            replied_to=comment.replied_to,
            metadata=comment.metadata,
            replies=[ReplyResponse.from_domain(r) for r in comment.replies],
        )


class VideoResponse(BaseModel):
    video_id: str
    title: str
    description: str = ""
    published_at: Optional[datetime] = None
    thumbnail_url: Optional[str] = None
    channel_id: Optional[str] = None

    @classmethod
    def from_domain(cls, video: Video) -> "VideoResponse":
        return cls(
            video_id=video.video_id,
            title=video.title,
            description=video.description,
            published_at=video.published_at,
            thumbnail_url=video.thumbnail_url,
            channel_id=video.channel_id,
        )


class GenerateReplyRequest(BaseModel):
    """Request to draft a reply"""

    comment_id: str = Field(..., min_length=1, description="Top-level comment ID")
    tone: Optional[str] = Field(
        default=None,
        description="professional, friendly, enthusiastic, helpful or custom text; "
        "defaults to the user's preferred tone",
    )
    additional_instructions: Optional[str] = Field(
        default=None, max_length=2000, description="Extra guidance for the generator"
    )
    model: Optional[str] = Field(
        default=None, max_length=100, description="Generator model from the allow-list"
    )

    @field_validator("tone")
    @classmethod
    def validate_tone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("tone must not be empty")
        return v


class GenerateReplyResponse(BaseModel):
    reply_text: str
    model: str


class PostReplyRequest(BaseModel):
    """Request to post a reply"""

    comment_id: str = Field(..., min_length=1)
    reply_text: str = Field(..., min_length=1, max_length=10000)
    ai_generated: bool = False
    ai_model: Optional[str] = None


# ============================================================================
# Users
# ============================================================================


class PreferencesResponse(BaseModel):
    enable_ai_replies: bool = True
    reply_tone: str
    ai_model: Optional[str] = None

    @classmethod
    def from_domain(cls, preferences: UserPreferences) -> "PreferencesResponse":
        return cls(**preferences.to_dict())


class PreferencesUpdateRequest(BaseModel):
    """Fields left out keep their stored value"""

    enable_ai_replies: Optional[bool] = None
    reply_tone: Optional[str] = Field(default=None, max_length=200)
    ai_model: Optional[str] = Field(default=None, max_length=100)


class UserProfileResponse(BaseModel):
    user_id: str
    name: str
    email: Optional[str] = None
    picture_url: Optional[str] = None
    preferences: PreferencesResponse
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, profile: UserProfile) -> "UserProfileResponse":
        return cls(
            user_id=profile.user_id,
            name=profile.name,
            email=profile.email,
            picture_url=profile.picture_url,
            preferences=PreferencesResponse.from_domain(profile.preferences),
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )


# ============================================================================
# History
# ============================================================================


class InteractionResponse(BaseModel):
    id: str
    user_id: str
    video_id: str
    comment_id: str
    interaction_type: str
    reply_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime

    @classmethod
    def from_domain(cls, record: InteractionRecord) -> "InteractionResponse":
        return cls(
            id=record.id,
            user_id=record.user_id,
            video_id=record.video_id,
            comment_id=record.comment_id,
            interaction_type=record.interaction_type.value,
            reply_id=record.reply_id,
            data=record.data,
            timestamp=record.timestamp,
        )


# ============================================================================
# Background Sync
# ============================================================================


class TaskResponse(BaseModel):
    """Task submission response"""

    task_id: str = Field(..., description="Celery task ID")
    status: str = Field(..., description="Task status")
    message: str = Field(..., description="Response message")


class TaskStatusResponse(BaseModel):
    """Task status response"""

    task_id: str
    status: str
    ready: bool = False
    successful: Optional[bool] = None
    result: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
