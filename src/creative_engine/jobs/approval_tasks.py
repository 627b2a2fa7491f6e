"""Celery tasks for the approval workflow."""

from typing import Any

from creative_engine.adapters.factory import get_ledger, get_notifier
from creative_engine.db.session import SessionLocal
from creative_engine.domain.models import ApprovalDecision
from creative_engine.errors import (
    BatchNotFoundError,
    IntegrityViolationError,
    TransientExternalError,
)
from creative_engine.jobs.dispatcher import CeleryDispatcher
from creative_engine.logging import get_logger
from creative_engine.services.approval import (
    RECORD_DECISION_TASK,
    SEND_BATCH_TASK,
    ApprovalScheduler,
)
from creative_engine.services.batch_store import BatchStore
from creative_engine.utils import run_async
from creative_engine.worker import celery_app

logger = get_logger(__name__)


def get_approval_scheduler() -> ApprovalScheduler:
    """Scheduler wired to the configured adapters."""
    return ApprovalScheduler(
        store=BatchStore(SessionLocal),
        notifier=get_notifier(),
        ledger=get_ledger(),
        dispatcher=CeleryDispatcher(),
    )


@celery_app.task(
    bind=True,
    name=SEND_BATCH_TASK,
    max_retries=3,
    default_retry_delay=60,
    retry_backoff=True,
)
def send_batch_task(self: Any, batch_id: str) -> dict[str, Any]:
    """Send the full approval request for a batch whose delay has elapsed.

    Integrity violations are final and never retried.
    """
    logger.info("send_batch_started", task_id=self.request.id, batch_id=batch_id)
    try:
        result = run_async(get_approval_scheduler().send_approval_now(batch_id))
    except (BatchNotFoundError, IntegrityViolationError) as e:
        logger.error("send_batch_rejected", batch_id=batch_id, error=e.message)
        return {"success": False, "batch_id": batch_id, "error": e.message}
    except TransientExternalError as e:
        logger.warning("send_batch_retrying", batch_id=batch_id, error=e.message)
        raise self.retry(exc=e) from e

    return {"success": result.sent, **result.to_dict()}


@celery_app.task(
    bind=True,
    name=RECORD_DECISION_TASK,
    max_retries=3,
    default_retry_delay=10,
    retry_backoff=True,
)
def record_decision_task(self: Any, decision: dict[str, Any]) -> dict[str, Any]:
    """Persist a reviewer decision received from the chat webhook."""
    parsed = ApprovalDecision.from_dict(decision)
    logger.info(
        "record_decision_started",
        task_id=self.request.id,
        batch=parsed.batch_name,
        item=parsed.item_number,
    )
    try:
        progress = run_async(get_approval_scheduler().record_decision(parsed))
    except TransientExternalError as e:
        logger.warning("record_decision_retrying", batch=parsed.batch_name, error=e.message)
        raise self.retry(exc=e) from e
    return {
        "success": True,
        "batch_name": progress.batch_name,
        "approved": progress.approved,
        "rejected": progress.rejected,
        "pending": progress.pending,
        "complete": progress.complete,
    }
