"""
Background Tasks Package
Celery-based asynchronous task processing
"""

from yt_commenter.infrastructure.tasks.celery_app import celery_app, get_task_info

# Import task modules to register them
from yt_commenter.infrastructure.tasks import sync_tasks

__all__ = [
    "celery_app",
    "get_task_info",
    "sync_tasks",
]
