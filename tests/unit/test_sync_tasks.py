"""
Unit Tests for background sync tasks (executed eagerly, no broker)
"""

from unittest.mock import AsyncMock

from yt_commenter.infrastructure.tasks import sync_tasks
from yt_commenter.infrastructure.tasks.sync_tasks import sync_video_comments
from yt_commenter.services.exceptions import UnauthenticatedError


def test_sync_task_returns_summary(monkeypatch):
    run_sync = AsyncMock(return_value={"video_id": "vid1", "comments": 8, "replies": 3})
    monkeypatch.setattr(sync_tasks, "run_sync", run_sync)

    result = sync_video_comments.apply(args=("session-1", "vid1"))

    assert result.successful()
    assert result.get()["comments"] == 8
    run_sync.assert_awaited_once_with("session-1", "vid1")


def test_sync_task_fails_for_dead_session(monkeypatch):
    monkeypatch.setattr(
        sync_tasks, "run_sync", AsyncMock(side_effect=UnauthenticatedError("Session expired"))
    )

    result = sync_video_comments.apply(args=("gone", "vid1"))

    assert result.failed()
    assert isinstance(result.result, UnauthenticatedError)


def test_task_is_registered_under_sync_name():
    assert sync_video_comments.name == "tasks.sync.sync_video_comments"
