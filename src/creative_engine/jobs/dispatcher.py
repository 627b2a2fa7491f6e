"""Celery-backed task dispatcher."""

from typing import Any

from creative_engine.logging import get_logger
from creative_engine.services.approval import TaskDispatcher

logger = get_logger(__name__)


class CeleryDispatcher(TaskDispatcher):
    """Sends deferred work through the broker by task name."""

    def defer(self, task_name: str, kwargs: dict[str, Any], countdown: float = 0) -> str | None:
        from creative_engine.worker import celery_app

        result = celery_app.send_task(task_name, kwargs=kwargs, countdown=countdown or None)
        logger.info("task_deferred", task=task_name, task_id=result.id, countdown=countdown)
        return result.id
