# yt_commenter/infrastructure/tasks/celery_app.py
"""
Celery Application Factory
Creates and configures Celery app with project settings
"""

import logging

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun
from kombu import Exchange, Queue

from yt_commenter.app.config import get_config

logger = logging.getLogger(__name__)


def create_celery_app(app_name: str = "yt_commenter") -> Celery:
    """
    Create and configure Celery application

    Args:
        app_name: Application name for Celery

    Returns:
        Configured Celery instance
    """
    config = get_config()
    celery_config = config.celery

    celery_app = Celery(
        app_name,
        broker=celery_config.broker_url,
        backend=celery_config.result_backend,
    )

    celery_app.conf.update(
        # Serialization
        task_serializer=celery_config.task_serializer,
        result_serializer=celery_config.result_serializer,
        accept_content=celery_config.accept_content,
        # Task execution
        task_track_started=True,
        task_time_limit=celery_config.task_time_limit,
        task_soft_time_limit=celery_config.task_soft_time_limit,
        task_acks_late=celery_config.task_acks_late,
        # Result backend
        result_expires=celery_config.result_expires,
        # Logging
        worker_hijack_root_logger=celery_config.worker_hijack_root_logger,
        # Timezone
        timezone="UTC",
        enable_utc=True,
        # Task routing
        task_default_queue=celery_config.task_default_queue,
        task_routes={"tasks.sync.*": {"queue": celery_config.task_default_queue}},
    )

    default_exchange = Exchange("default", type="direct")
    celery_app.conf.task_queues = (
        Queue(
            celery_config.task_default_queue,
            exchange=default_exchange,
            routing_key=celery_config.task_default_queue,
        ),
    )

    logger.info(f"✅ Celery app initialized: {app_name}")
    logger.info(f"📡 Broker: {celery_config.broker_url.split('@')[-1]}")

    return celery_app


# Create global Celery instance
celery_app = create_celery_app()


# ============================================================================
# Signal Handlers
# ============================================================================


@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, **extra):
    """Log task start"""
    logger.info(f"🚀 Task started: {task.name} [ID: {task_id}]")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, state=None, **extra):
    """Log task completion"""
    logger.info(f"✅ Task finished: {task.name} [ID: {task_id}] state={state}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, **kwargs):
    """Log task failure"""
    logger.error(f"❌ Task failed: {sender.name} [ID: {task_id}]: {exception}")


# ============================================================================
# Utility Functions
# ============================================================================


def get_task_info(task_id: str) -> dict:
    """
    Get information about a task

    Args:
        task_id: Celery task ID

    Returns:
        Task information dictionary
    """
    result = celery_app.AsyncResult(task_id)
    ready = result.ready()

    return {
        "task_id": task_id,
        "status": result.status,
        "ready": ready,
        "successful": result.successful() if ready else None,
        "result": result.result if ready and result.successful() else None,
        "error_message": str(result.result) if ready and result.failed() else None,
    }
