"""
Comment & Video API Router
Cached comment threads and channel uploads
"""

from typing import List

from fastapi import APIRouter, Depends, Path, Query

from yt_commenter.api.schemas import CommentResponse, VideoResponse
from yt_commenter.app.dependencies import (
    get_comment_sync_service,
    get_video_service,
    require_session,
)
from yt_commenter.domain.models import AuthContext
from yt_commenter.services.comment_sync_service import CommentSyncService
from yt_commenter.services.video_service import VideoService

router = APIRouter(prefix="/api", tags=["Comments"])


@router.get("/comments/{video_id}", response_model=List[CommentResponse])
async def list_comments(
    video_id: str = Path(..., min_length=1, max_length=50),
    refresh: bool = Query(False, description="Fetch from YouTube even if cached"),
    ctx: AuthContext = Depends(require_session),
    service: CommentSyncService = Depends(get_comment_sync_service),
):
    """
    Comments of a video, newest first, with replies nested

    - **refresh**: Bypass the local cache
    """
    comments = await service.get_comments(ctx, video_id, refresh=refresh)
    return [CommentResponse.from_domain(c) for c in comments]


@router.get("/videos", response_model=List[VideoResponse])
async def list_videos(
    refresh: bool = Query(False),
    ctx: AuthContext = Depends(require_session),
    service: VideoService = Depends(get_video_service),
):
    """Uploads of the signed-in channel"""
    videos = await service.list_channel_videos(ctx, refresh=refresh)
    return [VideoResponse.from_domain(v) for v in videos]
