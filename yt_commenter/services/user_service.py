"""
User Service
Google account profiles and the per-user defaults for reply generation.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from yt_commenter.domain.models import UserPreferences, UserProfile
from yt_commenter.infrastructure.database.connection import DatabaseManager
from yt_commenter.infrastructure.repositories import UserRepository
from yt_commenter.services.exceptions import (
    ResourceNotFoundError,
    StoreFailureError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class UserService:
    """Profiles are written at login; preferences belong to the user"""

    def __init__(
        self,
        db: DatabaseManager,
        allowed_models: Optional[Iterable[str]] = None,
    ):
        self.db = db
        self.allowed_models: Optional[List[str]] = (
            list(allowed_models) if allowed_models is not None else None
        )

    async def get_profile(self, user_id: str) -> UserProfile:
        """
        Raises:
            ResourceNotFoundError: User never completed a login
        """
        try:
            async with self.db.session() as session:
                row = await UserRepository(session).get_by_id(user_id)
                profile = row.to_domain() if row is not None else None
        except SQLAlchemyError as e:
            raise StoreFailureError(f"Failed to read user {user_id}") from e

        if profile is None:
            raise ResourceNotFoundError("user", user_id)
        return profile

    async def get_preferences(self, user_id: str) -> UserPreferences:
        """Stored preferences, or the defaults for an unknown user"""
        try:
            async with self.db.session() as session:
                row = await UserRepository(session).get_by_id(user_id)
                if row is None:
                    return UserPreferences()
                return UserPreferences.from_dict(row.preferences)
        except SQLAlchemyError as e:
            raise StoreFailureError(f"Failed to read preferences of {user_id}") from e

    async def update_preferences(
        self,
        user_id: str,
        enable_ai_replies: Optional[bool] = None,
        reply_tone: Optional[str] = None,
        ai_model: Optional[str] = None,
    ) -> UserPreferences:
        """
        Change some preferences; ``None`` leaves a field as it is

        Raises:
            ValidationError: Empty tone or a model outside the allow-list
            ResourceNotFoundError: User never completed a login
        """
        if reply_tone is not None and not reply_tone.strip():
            raise ValidationError("Reply tone must not be empty")
        if ai_model is not None:
            self.check_model(ai_model)

        try:
            async with self.db.session() as session:
                repo = UserRepository(session)
                row = await repo.get_by_id(user_id)
                if row is None:
                    raise ResourceNotFoundError("user", user_id)

                preferences = UserPreferences.from_dict(row.preferences)
                if enable_ai_replies is not None:
                    preferences.enable_ai_replies = enable_ai_replies
                if reply_tone is not None:
                    preferences.reply_tone = reply_tone.strip()
                if ai_model is not None:
                    preferences.ai_model = ai_model

                await repo.save_preferences(row, preferences)
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to update preferences of {user_id}: {e}")
            raise StoreFailureError(f"Failed to update preferences of {user_id}") from e

        logger.info(f"⚙️ Preferences updated for user {user_id}")
        return preferences

    def check_model(self, model: str) -> str:
        """
        Raises:
            ValidationError: Model is not in the configured allow-list
        """
        if self.allowed_models is not None and model not in self.allowed_models:
            raise ValidationError(
                f"Model {model} is not available",
                details={"allowed_models": self.allowed_models},
            )
        return model
