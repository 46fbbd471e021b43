"""
Reply API Router
Draft and post replies
"""

from fastapi import APIRouter, Depends

from yt_commenter.api.schemas import (
    GenerateReplyRequest,
    GenerateReplyResponse,
    PostReplyRequest,
    ReplyResponse,
)
from yt_commenter.app.dependencies import get_reply_orchestrator, require_session
from yt_commenter.domain.models import AuthContext
from yt_commenter.services.reply_orchestrator import ReplyOrchestrator

router = APIRouter(prefix="/api/reply", tags=["Replies"])


@router.post("/generate", response_model=GenerateReplyResponse)
async def generate_reply(
    request: GenerateReplyRequest,
    ctx: AuthContext = Depends(require_session),
    orchestrator: ReplyOrchestrator = Depends(get_reply_orchestrator),
):
    """
    Draft a reply; nothing is posted

    - **comment_id**: Stored top-level comment
    - **tone**: professional, friendly, enthusiastic, helpful or free text
    - **model**: Optional generator model from the allow-list
    """
    generated = await orchestrator.generate_reply(
        ctx,
        request.comment_id,
        tone=request.tone,
        additional_instructions=request.additional_instructions,
        model=request.model,
    )
    return GenerateReplyResponse(reply_text=generated.reply_text, model=generated.model)


@router.post("/post", response_model=ReplyResponse)
async def post_reply(
    request: PostReplyRequest,
    ctx: AuthContext = Depends(require_session),
    orchestrator: ReplyOrchestrator = Depends(get_reply_orchestrator),
):
    """Post a reply to YouTube exactly once"""
    reply = await orchestrator.post_reply(
        ctx,
        request.comment_id,
        request.reply_text,
        ai_generated=request.ai_generated,
        ai_model=request.ai_model,
    )
    return ReplyResponse.from_domain(reply)
