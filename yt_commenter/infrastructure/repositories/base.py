# yt_commenter/infrastructure/repositories/base.py
"""
Base Repository Pattern
Provides generic CRUD operations for all entities

Repositories only flush; the caller's ``DatabaseManager.session()`` scope owns
the transaction so several repositories can write atomically.
"""

import logging
from typing import Generic, List, Optional, Type, TypeVar, cast

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

logger = logging.getLogger(__name__)

# Generic type for models
ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType]):
    """
    Repository with generic CRUD operations

    Usage:
        class VideoRepository(BaseRepository[VideoModel]):
            def __init__(self, session: AsyncSession):
                super().__init__(session, VideoModel)
    """

    pk_name = "id"

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """
        Initialize repository

        Args:
            session: Database session
            model: SQLAlchemy model class
        """
        self.session = session
        self.model = model

    # internal: mapped primary key column
    def _id_col(self) -> InstrumentedAttribute:
        return cast(InstrumentedAttribute, getattr(self.model, self.pk_name))

    # ========================================================================
    # CREATE Operations
    # ========================================================================

    async def add(self, instance: ModelType) -> ModelType:
        """Stage an instance and flush it"""
        self.session.add(instance)
        await self.session.flush()
        return instance

    # ========================================================================
    # READ Operations
    # ========================================================================

    async def get_by_id(self, id: str) -> Optional[ModelType]:
        """
        Get entity by ID

        Args:
            id: Entity ID

        Returns:
            Model instance or None
        """
        result = await self.session.get(self.model, id)
        return cast(Optional[ModelType], result)

    # ========================================================================
    # DELETE Operations
    # ========================================================================

    async def delete(self, id: str) -> bool:
        """
        Delete entity by ID

        Returns:
            True if deleted, False if not found
        """
        result = await self.session.execute(delete(self.model).where(self._id_col() == id))

        deleted = (result.rowcount or 0) > 0
        if not deleted:
            logger.debug(f"{self.model.__name__} not found for deletion: {id}")
        return deleted

    async def delete_many(self, ids: List[str]) -> int:
        if not ids:
            return 0
        result = await self.session.execute(
            delete(self.model).where(self._id_col().in_(ids))
        )
        return int(result.rowcount or 0)
