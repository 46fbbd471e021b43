# yt_commenter/domain/interfaces.py
"""
Domain-facing collaborator interfaces (Protocols).

These reflect only what the services actually use. Concrete clients and
stores satisfy them via duck typing; there is no inheritance requirement,
so tests can hand in fakes.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from yt_commenter.domain.models import (
    GeneratedReply,
    Page,
    PlatformCredential,
    Reply,
    ReplyPrompt,
    Video,
)


@runtime_checkable
class PlatformClient(Protocol):
    """Authenticated access to comment threads on the video platform."""

    async def list_comments(
        self,
        credential: PlatformCredential,
        video_id: str,
        page_token: Optional[str] = None,
    ) -> Page: ...

    async def list_replies(
        self,
        credential: PlatformCredential,
        comment_id: str,
        page_token: Optional[str] = None,
    ) -> Page: ...

    async def post_reply(
        self, credential: PlatformCredential, comment_id: str, text: str
    ) -> Reply: ...

    async def get_video(self, credential: PlatformCredential, video_id: str) -> Video: ...

    async def list_channel_videos(
        self, credential: PlatformCredential, page_token: Optional[str] = None
    ) -> Page: ...


@runtime_checkable
class TextGenerator(Protocol):
    """Drafts reply text for a prompt."""

    async def generate(self, prompt: ReplyPrompt) -> GeneratedReply: ...


@runtime_checkable
class CredentialStore(Protocol):
    """Per-session credential storage; implementations encrypt at rest."""

    async def get(self, session_id: str) -> Optional[PlatformCredential]: ...

    async def put(self, session_id: str, credential: PlatformCredential) -> None: ...

    async def delete(self, session_id: str) -> None: ...


@runtime_checkable
class OAuthProvider(Protocol):
    """Authorization-code flow against the identity provider."""

    def authorization_url(self, state: str) -> str: ...

    async def exchange_code(self, code: str) -> PlatformCredential: ...

    async def refresh(self, credential: PlatformCredential) -> PlatformCredential: ...

    async def get_user_info(self, credential: PlatformCredential): ...
