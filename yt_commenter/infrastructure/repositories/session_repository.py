# yt_commenter/infrastructure/repositories/session_repository.py
"""
Session Repositories
Login sessions and their encrypted credential rows
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from yt_commenter.domain.models import SessionState, utcnow
from yt_commenter.infrastructure.database.models import (
    SessionCredentialModel,
    SessionModel,
)

from .base import BaseRepository

logger = logging.getLogger(__name__)


class SessionRepository(BaseRepository[SessionModel]):
    """Repository for login sessions"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, SessionModel)

    async def create_pending(
        self, session_id: str, oauth_state: str, expires_at: datetime
    ) -> SessionModel:
        row = SessionModel(
            id=session_id,
            oauth_state=oauth_state,
            state=SessionState.PENDING,
            created_at=utcnow(),
            expires_at=expires_at,
        )
        return await self.add(row)

    async def get_by_oauth_state(self, oauth_state: str) -> Optional[SessionModel]:
        result = await self.session.execute(
            select(SessionModel).where(SessionModel.oauth_state == oauth_state)
        )
        return result.scalar_one_or_none()

    async def activate(
        self, row: SessionModel, user_id: str, expires_at: datetime
    ) -> SessionModel:
        """Pending -> Active; the OAuth state is single-use"""
        row.user_id = user_id
        row.state = SessionState.ACTIVE
        row.oauth_state = None
        row.expires_at = expires_at
        await self.session.flush()
        return row

    async def set_state(self, session_id: str, state: SessionState) -> None:
        row = await self.get_by_id(session_id)
        if row is not None:
            row.state = state
            await self.session.flush()

    async def remove(self, session_id: str) -> bool:
        """Delete a session together with its credential"""
        await self.session.execute(
            delete(SessionCredentialModel).where(
                SessionCredentialModel.session_id == session_id
            )
        )
        return await self.delete(session_id)

    async def expired_ids(self, now: Optional[datetime] = None) -> List[str]:
        result = await self.session.execute(
            select(SessionModel.id).where(SessionModel.expires_at <= (now or utcnow()))
        )
        return list(result.scalars().all())

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        ids = await self.expired_ids(now)
        if not ids:
            return 0

        await self.session.execute(
            delete(SessionCredentialModel).where(SessionCredentialModel.session_id.in_(ids))
        )
        removed = await self.delete_many(ids)
        logger.info(f"🧹 Purged {removed} expired sessions")
        return removed


class CredentialRepository(BaseRepository[SessionCredentialModel]):
    """Raw (already encrypted) credential rows keyed by session ID"""

    pk_name = "session_id"

    def __init__(self, session: AsyncSession):
        super().__init__(session, SessionCredentialModel)

    async def save(
        self,
        session_id: str,
        access_token_encrypted: bytes,
        refresh_token_encrypted: bytes,
        token_type: str,
        scopes: List[str],
        expires_at: datetime,
    ) -> SessionCredentialModel:
        row = await self.get_by_id(session_id)

        if row is None:
            row = SessionCredentialModel(session_id=session_id)
            self.session.add(row)

        row.access_token_encrypted = access_token_encrypted
        row.refresh_token_encrypted = refresh_token_encrypted
        row.token_type = token_type
        row.scopes = list(scopes)
        row.expires_at = expires_at
        await self.session.flush()
        return row
