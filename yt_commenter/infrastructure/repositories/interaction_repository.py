# yt_commenter/infrastructure/repositories/interaction_repository.py
"""
Interaction Repository
Append-only audit log access
"""

import logging
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from yt_commenter.domain.models import InteractionRecord, InteractionType
from yt_commenter.infrastructure.database.models import InteractionRecordModel

from .base import BaseRepository

logger = logging.getLogger(__name__)


class InteractionRepository(BaseRepository[InteractionRecordModel]):
    """Records are only ever inserted; there is no update path"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, InteractionRecordModel)

    async def append(self, record: InteractionRecord) -> InteractionRecordModel:
        row = InteractionRecordModel(
            id=record.id,
            user_id=record.user_id,
            video_id=record.video_id,
            comment_id=record.comment_id,
            interaction_type=record.interaction_type,
            reply_id=record.reply_id,
            data=dict(record.data),
            timestamp=record.timestamp,
        )
        return await self.add(row)

    async def list_for_user(
        self,
        user_id: str,
        limit: int = 100,
        interaction_type: Optional[InteractionType] = None,
    ) -> List[InteractionRecordModel]:
        """
        Most recent interactions for a user

        Args:
            user_id: Platform user ID
            limit: Max results
            interaction_type: Optional filter

        Returns:
            Records, newest first
        """
        query = select(InteractionRecordModel).where(
            InteractionRecordModel.user_id == user_id
        )
        if interaction_type is not None:
            query = query.where(InteractionRecordModel.interaction_type == interaction_type)

        query = query.order_by(
            desc(InteractionRecordModel.timestamp), desc(InteractionRecordModel.id)
        ).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())
