"""
Sync API Router
REST endpoints for background comment synchronization
"""

import logging

from fastapi import APIRouter, Depends, Path
from kombu.exceptions import OperationalError

from yt_commenter.api.schemas import TaskResponse, TaskStatusResponse
from yt_commenter.app.dependencies import require_session
from yt_commenter.domain.models import AuthContext
from yt_commenter.infrastructure.tasks.celery_app import get_task_info
from yt_commenter.infrastructure.tasks.sync_tasks import sync_video_comments
from yt_commenter.services.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["Background Sync"])


@router.post("/{video_id}", response_model=TaskResponse, status_code=202)
async def enqueue_sync(
    video_id: str = Path(..., min_length=1, max_length=50),
    ctx: AuthContext = Depends(require_session),
):
    """
    Queue a full comment sync for a video

    - **video_id**: YouTube video ID
    """
    try:
        task = sync_video_comments.apply_async(args=(ctx.session_id, video_id))
    except OperationalError as e:
        logger.error(f"Failed to enqueue sync for {video_id}: {e}")
        raise ExternalServiceError("Task queue unavailable") from e

    return TaskResponse(
        task_id=task.id,
        status="pending",
        message=f"Sync started for video {video_id}",
    )


@router.get("/tasks/{task_id}", response_model=TaskStatusResponse)
async def get_sync_status(
    task_id: str,
    ctx: AuthContext = Depends(require_session),
):
    """Status of a queued sync"""
    info = get_task_info(task_id)
    result = info["result"] if isinstance(info["result"], dict) else None
    return TaskStatusResponse(
        task_id=task_id,
        status=info["status"],
        ready=info["ready"],
        successful=info["successful"],
        result=result,
        error_message=info["error_message"],
    )
