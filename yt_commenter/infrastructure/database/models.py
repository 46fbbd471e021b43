# yt_commenter/infrastructure/database/models.py
"""
ORM Models
Tables backing the comment store, the audit log and the session gate.
Each row converts to its domain dataclass through ``to_domain()``.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from yt_commenter.domain.models import (
    Comment,
    InteractionRecord,
    InteractionType,
    Reply,
    Session,
    SessionState,
    UserPreferences,
    UserProfile,
    Video,
    utcnow,
)
from yt_commenter.infrastructure.database.connection import Base


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class VideoModel(Base):
    """Cached video metadata"""

    __tablename__ = "videos"

    id = Column(String(50), primary_key=True, comment="YouTube video ID")
    channel_id = Column(String(50), index=True, comment="Owning channel")
    title = Column(String(500), nullable=False, default="", comment="Video title")
    description = Column(Text, default="", comment="Video description")
    published_at = Column(DateTime, index=True, comment="Publication date")
    thumbnail_url = Column(String(500), comment="Best available thumbnail")

    fetched_at = Column(DateTime, default=utcnow, comment="First fetch")
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def to_domain(self) -> Video:
        return Video(
            video_id=self.id,
            title=self.title or "",
            description=self.description or "",
            published_at=self.published_at,
            thumbnail_url=self.thumbnail_url,
            channel_id=self.channel_id,
        )

    def __repr__(self) -> str:
        return f"<VideoModel(id={self.id}, title={(self.title or '')[:30]}...)>"


class VideoSyncModel(Base):
    """Completion marker of the last full comment sync of a video"""

    __tablename__ = "video_syncs"

    video_id = Column(String(50), primary_key=True, comment="YouTube video ID")
    synced_at = Column(DateTime, nullable=False, default=utcnow)
    comment_count = Column(Integer, nullable=False, default=0)
    reply_count = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<VideoSyncModel(video_id={self.video_id}, synced_at={self.synced_at})>"


class CommentModel(Base):
    """Top-level comment on a video"""

    __tablename__ = "comments"
    __table_args__ = (Index("ix_comments_video_published", "video_id", "published_at"),)

    id = Column(String(100), primary_key=True, comment="YouTube comment ID")
    video_id = Column(String(50), nullable=False, index=True, comment="Parent video")

    author = Column(String(200), nullable=False, default="", comment="Display name")
    author_channel_id = Column(String(50), comment="Author channel")
    text = Column(Text, nullable=False, default="", comment="Comment text")
    like_count = Column(Integer, default=0, comment="Likes")
    published_at = Column(DateTime, comment="Publication date")

    replied_to = Column(
        Boolean,
        default=False,
        nullable=False,
        comment="An app-originated reply was confirmed by the platform",
    )
    extra = Column("metadata", JSON, default=dict, comment="Platform metadata")

    fetched_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    replies = relationship(
        "ReplyModel",
        back_populates="comment",
        order_by="ReplyModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_domain(self) -> Comment:
        return Comment(
            video_id=self.video_id,
            comment_id=self.id,
            author=self.author or "",
            text=self.text or "",
            like_count=self.like_count or 0,
            published_at=self.published_at,
            author_channel_id=self.author_channel_id,
            replied_to=bool(self.replied_to),
            metadata=dict(self.extra or {}),
            replies=[r.to_domain() for r in self.replies],
        )

    def __repr__(self) -> str:
        return f"<CommentModel(id={self.id}, video_id={self.video_id})>"


class ReplyModel(Base):
    """Reply under a top-level comment, kept in first-seen order"""

    __tablename__ = "replies"

    id = Column(String(150), primary_key=True, comment="YouTube reply ID")
    comment_id = Column(
        String(100),
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Parent comment",
    )
    position = Column(Integer, nullable=False, comment="Stable order within thread")

    author = Column(String(200), nullable=False, default="")
    author_channel_id = Column(String(50))
    text = Column(Text, nullable=False, default="")
    like_count = Column(Integer, default=0)
    published_at = Column(DateTime)

    ai_generated = Column(Boolean, default=False, nullable=False)
    ai_model = Column(String(100))
    posted_by_app = Column(
        Boolean, default=False, nullable=False, comment="Posted through this service"
    )

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    comment = relationship("CommentModel", back_populates="replies")

    def to_domain(self) -> Reply:
        return Reply(
            reply_id=self.id,
            parent_comment_id=self.comment_id,
            author=self.author or "",
            text=self.text or "",
            like_count=self.like_count or 0,
            published_at=self.published_at,
            ai_generated=bool(self.ai_generated),
            ai_model=self.ai_model,
            author_channel_id=self.author_channel_id,
            posted_by_app=bool(self.posted_by_app),
        )


class InteractionRecordModel(Base):
    """Append-only audit log of fetch / generate / post actions"""

    __tablename__ = "interaction_records"
    __table_args__ = (Index("ix_interactions_user_time", "user_id", "timestamp"),)

    id = Column(String(36), primary_key=True)
    user_id = Column(String(100), nullable=False, index=True)
    video_id = Column(String(50), nullable=False, default="")
    comment_id = Column(String(100), nullable=False, default="")
    interaction_type = Column(
        SQLEnum(
            InteractionType,
            name="interaction_type",
            values_callable=_enum_values,
        ),
        nullable=False,
    )
    reply_id = Column(String(150))
    data = Column(JSON, default=dict)
    timestamp = Column(DateTime, nullable=False, default=utcnow)

    def to_domain(self) -> InteractionRecord:
        return InteractionRecord(
            id=self.id,
            user_id=self.user_id,
            video_id=self.video_id,
            comment_id=self.comment_id,
            interaction_type=self.interaction_type,
            reply_id=self.reply_id,
            data=dict(self.data or {}),
            timestamp=self.timestamp,
        )


class SessionModel(Base):
    """Login session; pending sessions are looked up by OAuth state"""

    __tablename__ = "sessions"

    id = Column(String(64), primary_key=True)
    oauth_state = Column(String(64), unique=True, index=True)
    user_id = Column(String(100), index=True)
    state = Column(
        SQLEnum(SessionState, name="session_state", values_callable=_enum_values),
        nullable=False,
        default=SessionState.PENDING,
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)
    expires_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    credential = relationship(
        "SessionCredentialModel",
        back_populates="session",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_domain(self) -> Session:
        return Session(
            session_id=self.id,
            state=self.state,
            created_at=self.created_at,
            expires_at=self.expires_at,
            user_id=self.user_id,
            oauth_state=self.oauth_state,
        )


class SessionCredentialModel(Base):
    """Encrypted OAuth tokens bound to a session"""

    __tablename__ = "session_credentials"

    session_id = Column(
        String(64), ForeignKey("sessions.id", ondelete="CASCADE"), primary_key=True
    )
    access_token_encrypted = Column(LargeBinary, nullable=False)
    refresh_token_encrypted = Column(LargeBinary, nullable=False)
    token_type = Column(String(20), nullable=False, default="Bearer")
    scopes = Column(JSON, default=list)
    expires_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    session = relationship("SessionModel", back_populates="credential")


class UserModel(Base):
    """Google account profile and reply preferences"""

    __tablename__ = "users"

    id = Column(String(100), primary_key=True, comment="Google account ID")
    name = Column(String(200), nullable=False, default="")
    email = Column(String(320), index=True)
    picture_url = Column(String(500))
    preferences = Column(JSON, default=dict, comment="Reply generation defaults")

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    last_login_at = Column(DateTime)

    def to_domain(self) -> UserProfile:
        return UserProfile(
            user_id=self.id,
            name=self.name or "",
            email=self.email,
            picture_url=self.picture_url,
            preferences=UserPreferences.from_dict(self.preferences),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email={self.email})>"
