"""
History API Router
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from yt_commenter.api.schemas import InteractionResponse
from yt_commenter.app.dependencies import get_comment_store, require_session
from yt_commenter.domain.models import AuthContext, InteractionType
from yt_commenter.services.comment_store import CommentStore

router = APIRouter(prefix="/api", tags=["History"])


@router.get("/history", response_model=List[InteractionResponse])
async def get_history(
    limit: int = Query(100, ge=1, le=500),
    interaction_type: Optional[InteractionType] = Query(
        None, alias="type", description="Only fetch, generate or post records"
    ),
    ctx: AuthContext = Depends(require_session),
    store: CommentStore = Depends(get_comment_store),
):
    """Most recent fetch / generate / post records of the signed-in user"""
    records = await store.list_interactions(
        ctx.user_id, limit=limit, interaction_type=interaction_type
    )
    return [InteractionResponse.from_domain(r) for r in records]
