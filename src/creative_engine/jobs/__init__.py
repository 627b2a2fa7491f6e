"""Celery job definitions."""

from creative_engine.jobs.approval_tasks import record_decision_task, send_batch_task

__all__ = ["record_decision_task", "send_batch_task"]
