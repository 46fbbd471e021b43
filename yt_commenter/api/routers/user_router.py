"""
User API Router
Profile of the signed-in user and their reply preferences
"""

from fastapi import APIRouter, Depends

from yt_commenter.api.schemas import (
    PreferencesResponse,
    PreferencesUpdateRequest,
    UserProfileResponse,
)
from yt_commenter.app.dependencies import get_user_service, require_session
from yt_commenter.domain.models import AuthContext
from yt_commenter.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/me", response_model=UserProfileResponse)
async def get_me(
    ctx: AuthContext = Depends(require_session),
    users: UserService = Depends(get_user_service),
):
    """Profile stored at the last login"""
    profile = await users.get_profile(ctx.user_id)
    return UserProfileResponse.from_domain(profile)


@router.patch("/me/preferences", response_model=PreferencesResponse)
async def update_preferences(
    request: PreferencesUpdateRequest,
    ctx: AuthContext = Depends(require_session),
    users: UserService = Depends(get_user_service),
):
    """
    Change reply defaults

    - **enable_ai_replies**: false blocks reply generation
    - **reply_tone**: Tone used when a request names none
    - **ai_model**: Model used when a request names none
    """
    preferences = await users.update_preferences(
        ctx.user_id,
        enable_ai_replies=request.enable_ai_replies,
        reply_tone=request.reply_tone,
        ai_model=request.ai_model,
    )
    return PreferencesResponse.from_domain(preferences)
