# tests/conftest.py
"""
Shared test fixtures: in-memory database, fake platform and generator,
credentials and sessions.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from yt_commenter.domain.models import (
    AuthContext,
    Comment,
    GeneratedReply,
    Page,
    PlatformCredential,
    Reply,
    ReplyPrompt,
    Video,
    utcnow,
)
from yt_commenter.infrastructure.credentials import InMemoryCredentialStore
from yt_commenter.infrastructure.database.connection import DatabaseManager
from yt_commenter.services.comment_store import CommentStore
from yt_commenter.services.exceptions import ResourceNotFoundError

# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


# ============================================================================
# Builders
# ============================================================================


def make_comment(
    comment_id: str,
    video_id: str = "vid1",
    minutes: int = 0,
    reply_count: int = 0,
    text: Optional[str] = None,
) -> Comment:
    return Comment(
        video_id=video_id,
        comment_id=comment_id,
        author=f"author_{comment_id}",
        text=text or f"text of {comment_id}",
        like_count=1,
        published_at=BASE_TIME + timedelta(minutes=minutes),
        metadata={"thread_id": comment_id, "total_reply_count": reply_count},
    )


def make_reply(
    reply_id: str,
    parent_id: str,
    minutes: int = 0,
    text: Optional[str] = None,
    posted_by_app: bool = False,
) -> Reply:
    return Reply(
        reply_id=reply_id,
        parent_comment_id=parent_id,
        author=f"author_{reply_id}",
        text=text or f"reply {reply_id}",
        published_at=BASE_TIME + timedelta(minutes=minutes),
        posted_by_app=posted_by_app,
    )


def make_credential(expires_in: float = 3600, access_token: str = "access-1") -> PlatformCredential:
    return PlatformCredential(
        access_token=access_token,
        refresh_token="refresh-1",
        expires_at=utcnow() + timedelta(seconds=expires_in),
        scopes=["https://www.googleapis.com/auth/youtube.force-ssl"],
    )


# ============================================================================
# Fakes
# ============================================================================


class FakePlatform:
    """In-memory platform with paged comment and reply listings"""

    def __init__(self):
        self.comment_pages: Dict[str, List[List[Comment]]] = {}
        self.reply_pages: Dict[str, List[List[Reply]]] = {}
        self.videos: Dict[str, Video] = {}
        self.channel_pages: List[List[Video]] = []
        self.posted: List[tuple] = []
        self.post_error: Optional[Exception] = None
        self.delay: float = 0.0
        self.calls: List[tuple] = []

    @staticmethod
    def _page(pages: List[list], page_token: Optional[str]) -> Page:
        index = int(page_token) if page_token else 0
        items = pages[index] if index < len(pages) else []
        next_token = str(index + 1) if index + 1 < len(pages) else None
        return Page(list(items), next_token)

    async def list_comments(self, credential, video_id, page_token=None):
        self.calls.append(("list_comments", video_id, page_token))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self._page(self.comment_pages.get(video_id, []), page_token)

    async def list_replies(self, credential, comment_id, page_token=None):
        self.calls.append(("list_replies", comment_id, page_token))
        return self._page(self.reply_pages.get(comment_id, []), page_token)

    async def post_reply(self, credential, comment_id, text):
        self.calls.append(("post_reply", comment_id, text))
        if self.post_error is not None:
            raise self.post_error
        reply = Reply(
            reply_id=f"{comment_id}.posted{len(self.posted) + 1}",
            parent_comment_id=comment_id,
            author="Channel Owner",
            text=text,
            published_at=utcnow(),
        )
        self.posted.append((comment_id, text))
        return reply

    async def get_video(self, credential, video_id):
        self.calls.append(("get_video", video_id))
        if video_id not in self.videos:
            raise ResourceNotFoundError("video", video_id)
        return self.videos[video_id]

    async def list_channel_videos(self, credential, page_token=None):
        self.calls.append(("list_channel_videos", page_token))
        return self._page(self.channel_pages, page_token)


class FakeGenerator:
    def __init__(self, text: str = "Thanks for watching!", delay: float = 0.0):
        self.text = text
        self.delay = delay
        self.prompts: List[ReplyPrompt] = []

    async def generate(self, prompt: ReplyPrompt) -> GeneratedReply:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        return GeneratedReply(reply_text=self.text, model="fake-model")


# ============================================================================
# Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def db():
    """In-memory database shared across sessions of one test"""
    manager = DatabaseManager(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,  # Required for in-memory SQLite
        connect_args={"check_same_thread": False},
    )
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
def store(db):
    return CommentStore(db)


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def credential_store():
    return InMemoryCredentialStore()


@pytest.fixture
def credential():
    return make_credential()


@pytest.fixture
def auth_ctx(credential):
    return AuthContext(session_id="session-1", user_id="user-1", credential=credential)
