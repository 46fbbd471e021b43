# yt_commenter/infrastructure/repositories/user_repository.py
"""
User Repository
Google account profiles and their reply preferences
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from yt_commenter.domain.models import UserPreferences, utcnow
from yt_commenter.infrastructure.database.models import UserModel

from .base import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[UserModel]):
    """
    Repository for users
    Profile fields follow the identity provider; preferences are user-owned
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, UserModel)

    async def upsert_profile(
        self,
        user_id: str,
        name: str,
        email: Optional[str] = None,
        picture_url: Optional[str] = None,
    ) -> UserModel:
        """
        Create a user with default preferences, or refresh an existing profile

        Stored preferences are never touched here.
        """
        now = utcnow()
        row = await self.get_by_id(user_id)

        if row is None:
            row = UserModel(
                id=user_id,
                name=name,
                email=email,
                picture_url=picture_url,
                preferences=UserPreferences().to_dict(),
                created_at=now,
                last_login_at=now,
            )
            self.session.add(row)
            await self.session.flush()
            logger.info(f"👤 Created user {user_id}")
            return row

        row.name = name or row.name
        row.email = email or row.email
        row.picture_url = picture_url or row.picture_url
        row.last_login_at = now
        await self.session.flush()
        return row

    async def save_preferences(
        self, row: UserModel, preferences: UserPreferences
    ) -> UserModel:
        # Reassign so the JSON column is marked dirty
        row.preferences = preferences.to_dict()
        await self.session.flush()
        return row
