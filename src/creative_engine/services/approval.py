"""Chat-ops approval workflow for rendered batches.

Sending is gated on the integrity checks. A delayed send posts a short
notice immediately and hands the full request to the task dispatcher, so it
survives an API restart. Reviewer clicks arrive as webhook payloads that are
acknowledged at once and recorded by a deferred task.
"""

import hashlib
import hmac
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from creative_engine.adapters.ledger.base import LedgerAdapter
from creative_engine.adapters.notifier.base import VALUE_SEPARATOR, NotifierAdapter
from creative_engine.config import Settings
from creative_engine.config import settings as default_settings
from creative_engine.db.models import BatchScriptModel, ScriptBatchModel
from creative_engine.domain.enums import ActivityType, ApprovalAction, BatchStatus
from creative_engine.domain.models import (
    ApprovalDecision,
    ApprovalItem,
    ApprovalProgress,
    ApprovalRequest,
)
from creative_engine.errors import (
    BatchNotFoundError,
    ContentIntegrityError,
    CreativeEngineError,
    InteractionPayloadError,
    IntegrityViolationError,
)
from creative_engine.logging import get_logger
from creative_engine.services.batch_store import BatchStore
from creative_engine.services.integrity import IntegrityReport, assert_dispatchable

logger = get_logger(__name__)

SEND_BATCH_TASK = "approval.send_batch"
RECORD_DECISION_TASK = "approval.record_decision"

# Slack rejects signed requests older than this
SIGNATURE_MAX_AGE_SECONDS = 60 * 5


class TaskDispatcher(ABC):
    """Hands work to a background executor."""

    @abstractmethod
    def defer(self, task_name: str, kwargs: dict[str, Any], countdown: float = 0) -> str | None:
        """Schedule ``task_name`` to run after ``countdown`` seconds; returns a task id."""
        ...


@dataclass
class DeferredTask:
    task_name: str
    kwargs: dict[str, Any]
    countdown: float


class InMemoryDispatcher(TaskDispatcher):
    """Keeps deferred tasks in a list for local runs and tests."""

    def __init__(self) -> None:
        self.tasks: list[DeferredTask] = []

    def defer(self, task_name: str, kwargs: dict[str, Any], countdown: float = 0) -> str | None:
        self.tasks.append(DeferredTask(task_name, kwargs, countdown))
        return f"local-{len(self.tasks)}"


@dataclass
class ApprovalScheduleResult:
    """What happened when approval was requested for a batch."""

    batch_id: str
    sent: bool = False
    deferred: bool = False
    delay_minutes: int = 0
    item_count: int = 0
    script_only: bool = False
    task_id: str | None = None
    message: str = ""
    integrity: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "sent": self.sent,
            "deferred": self.deferred,
            "delay_minutes": self.delay_minutes,
            "item_count": self.item_count,
            "script_only": self.script_only,
            "task_id": self.task_id,
            "message": self.message,
            "integrity": self.integrity,
        }


def verify_slack_signature(
    signing_secret: str,
    body: bytes,
    timestamp: str | None,
    signature: str | None,
    now: float | None = None,
) -> bool:
    """Check Slack's ``v0`` HMAC-SHA256 request signature."""
    if not timestamp or not signature:
        return False
    try:
        age = abs((now or time.time()) - int(timestamp))
    except ValueError:
        return False
    if age > SIGNATURE_MAX_AGE_SECONDS:
        logger.warning("slack_signature_expired", age=age)
        return False

    basestring = f"v0:{timestamp}:{body.decode('utf-8')}"
    expected = "v0=" + hmac.new(
        signing_secret.encode(), basestring.encode(), hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(expected, signature)


def parse_interaction(payload: dict[str, Any]) -> ApprovalDecision:
    """Turn a ``block_actions`` payload into a decision.

    The clicked button's value is ``action||batch||item||file_id[||spreadsheet_id]``.

    Raises:
        InteractionPayloadError: Unsupported payload type or malformed value.
    """
    if payload.get("type") != "block_actions":
        raise InteractionPayloadError(f"Unsupported interaction type: {payload.get('type')}")

    actions = payload.get("actions") or []
    if not actions or not actions[0].get("value"):
        raise InteractionPayloadError("Interaction carries no action value")

    parts = actions[0]["value"].split(VALUE_SEPARATOR)
    if len(parts) < 4:
        raise InteractionPayloadError(f"Malformed action value: {actions[0]['value']!r}")
    try:
        action = ApprovalAction(parts[0])
        item_number = int(parts[2])
    except ValueError as e:
        raise InteractionPayloadError(f"Malformed action value: {actions[0]['value']!r}") from e

    user = payload.get("user") or {}
    message = payload.get("message") or {}
    blocks = message.get("blocks") or []
    original_text = None
    if blocks and isinstance(blocks[0].get("text"), dict):
        original_text = blocks[0]["text"].get("text")

    return ApprovalDecision(
        action=action,
        batch_name=parts[1],
        item_number=item_number,
        file_id=parts[3],
        spreadsheet_id=parts[4] if len(parts) > 4 and parts[4] else None,
        message_ts=message.get("ts"),
        channel_id=(payload.get("channel") or {}).get("id"),
        reviewer=user.get("name") or user.get("username") or user.get("id"),
        original_text=original_text,
    )


def build_approval_request(
    batch: ScriptBatchModel, scripts: Sequence[BatchScriptModel]
) -> ApprovalRequest:
    """Approval items for a batch.

    One item per rendered video, numbered from 1 in (script, footage) order.
    A batch without any video is reviewed script by script instead.
    """
    items: list[ApprovalItem] = []
    for script in scripts:
        renders = [r for r in script.video_renders or [] if r.get("video_file_id")]
        if not renders and script.video_file_id:
            renders = [
                {
                    "file_name": script.file_name,
                    "video_file_id": script.video_file_id,
                    "video_url": script.video_url,
                }
            ]
        for render in renders:
            items.append(
                ApprovalItem(
                    item_number=len(items) + 1,
                    title=script.title,
                    file_name=render.get("file_name") or script.file_name,
                    file_id=render["video_file_id"],
                    drive_link=render.get("video_url"),
                    content=script.content,
                )
            )

    if items:
        return ApprovalRequest(
            batch_name=batch.batch_id,
            items=items,
            folder_link=batch.folder_link,
            spreadsheet_id=batch.spreadsheet_id,
        )

    return ApprovalRequest(
        batch_name=batch.batch_id,
        items=[
            ApprovalItem(
                item_number=position + 1,
                title=script.title,
                file_name=script.file_name,
                # Script_Database rows are keyed by title
                file_id=script.title.replace(VALUE_SEPARATOR, " "),
                content=script.content,
            )
            for position, script in enumerate(scripts)
        ],
        folder_link=batch.folder_link,
        script_only=True,
        spreadsheet_id=batch.spreadsheet_id,
    )


class ApprovalScheduler:
    """Sends batches for review and records reviewer decisions."""

    def __init__(
        self,
        store: BatchStore,
        notifier: NotifierAdapter,
        ledger: LedgerAdapter,
        dispatcher: TaskDispatcher,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.ledger = ledger
        self.dispatcher = dispatcher
        self.settings = settings or default_settings

    # ------------------------------------------------------------------ dispatch

    def _gate(
        self, batch: ScriptBatchModel, scripts: Sequence[BatchScriptModel], script_only: bool
    ) -> IntegrityReport:
        """Run the integrity checks, auditing any violation before re-raising it."""
        try:
            return assert_dispatchable(batch, scripts, require_videos=not script_only)
        except ContentIntegrityError as e:
            logger.error("integrity_fingerprint_mismatch", batch_id=batch.batch_id, item=e.item)
            self.store.record_activity(
                ActivityType.SECURITY_ALERT,
                f"Content integrity violation detected in batch {batch.batch_id}, {e.item}",
                batch_id=batch.batch_id,
                details=e.details,
            )
            raise
        except IntegrityViolationError as e:
            logger.error("integrity_check_failed", batch_id=batch.batch_id, issues=e.issues)
            self.store.record_activity(
                ActivityType.INTEGRITY_FAILURE,
                e.message,
                batch_id=batch.batch_id,
                details=e.details,
            )
            raise

    def _prepare(self, batch_id: str) -> tuple[ScriptBatchModel, ApprovalRequest, IntegrityReport]:
        batch = self.store.get_batch(batch_id)
        scripts = self.store.list_scripts(batch_id)
        request = build_approval_request(batch, scripts)
        report = self._gate(batch, scripts, request.script_only)
        return batch, request, report

    async def _send(
        self, batch: ScriptBatchModel, request: ApprovalRequest, report: IntegrityReport
    ) -> ApprovalScheduleResult:
        refs = await self.notifier.send_approval_request(request)
        self.store.update_batch_status(batch.batch_id, BatchStatus.SLACK_SENT)
        self.store.record_activity(
            ActivityType.APPROVAL_SENT,
            f"Sent {len(request.items)} items of batch {batch.batch_id} for approval",
            batch_id=batch.batch_id,
            details={
                "script_only": request.script_only,
                "messages": [{"channel_id": r.channel_id, "ts": r.ts} for r in refs],
            },
        )
        logger.info(
            "approval_sent",
            batch_id=batch.batch_id,
            items=len(request.items),
            script_only=request.script_only,
        )
        return ApprovalScheduleResult(
            batch_id=batch.batch_id,
            sent=True,
            item_count=len(request.items),
            script_only=request.script_only,
            message=f"Batch {batch.batch_id} sent for approval",
            integrity=report.to_dict(),
        )

    def _skipped(self, batch_id: str, message: str) -> ApprovalScheduleResult:
        self.store.record_activity(ActivityType.APPROVAL_SKIPPED, message, batch_id=batch_id)
        logger.info("approval_skipped", batch_id=batch_id, reason=message)
        return ApprovalScheduleResult(batch_id=batch_id, message=message)

    def _batch_failed(self, batch_id: str) -> ApprovalScheduleResult:
        logger.warning("approval_send_batch_failed", batch_id=batch_id)
        return ApprovalScheduleResult(
            batch_id=batch_id, message=f"Batch {batch_id} failed; approval not sent"
        )

    async def schedule_approval(
        self, batch_id: str, delay_minutes: int | None = None
    ) -> ApprovalScheduleResult:
        """Send a batch for review now, or after ``delay_minutes``; a failed batch is never sent.

        Raises:
            BatchNotFoundError: Unknown batch.
            IntegrityViolationError: The batch failed the integrity checks.
        """
        if delay_minutes is None:
            delay_minutes = self.settings.approval_delay_minutes
        delay_minutes = max(delay_minutes, 0)

        if self.store.get_batch(batch_id).status == BatchStatus.FAILED:
            return self._batch_failed(batch_id)
        batch, request, report = self._prepare(batch_id)
        if not self.settings.slack_notifications_enabled:
            return self._skipped(batch_id, "Approval notifications are disabled")
        if not request.items:
            return self._skipped(batch_id, f"Batch {batch_id} has nothing to review")

        if delay_minutes == 0:
            return await self._send(batch, request, report)

        kind = "scripts" if request.script_only else "videos"
        await self.notifier.send_message(
            f"Batch {batch_id}: {len(request.items)} {kind} ready. "
            f"Approval request follows in {delay_minutes} minutes."
        )
        task_id = self.dispatcher.defer(
            SEND_BATCH_TASK, {"batch_id": batch_id}, countdown=delay_minutes * 60
        )
        self.store.record_activity(
            ActivityType.APPROVAL_SCHEDULED,
            f"Approval for batch {batch_id} scheduled in {delay_minutes} minutes",
            batch_id=batch_id,
            details={"task_id": task_id, "delay_minutes": delay_minutes},
        )
        logger.info("approval_deferred", batch_id=batch_id, delay_minutes=delay_minutes)
        return ApprovalScheduleResult(
            batch_id=batch_id,
            deferred=True,
            delay_minutes=delay_minutes,
            item_count=len(request.items),
            script_only=request.script_only,
            task_id=task_id,
            message=f"Approval scheduled in {delay_minutes} minutes",
            integrity=report.to_dict(),
        )

    async def send_approval_now(self, batch_id: str) -> ApprovalScheduleResult:
        """Body of the deferred send; the batch may have changed since scheduling."""
        if self.store.get_batch(batch_id).status == BatchStatus.FAILED:
            return self._batch_failed(batch_id)
        if not self.settings.slack_notifications_enabled:
            return self._skipped(batch_id, "Approval notifications are disabled")

        batch, request, report = self._prepare(batch_id)
        if not request.items:
            return self._skipped(batch_id, f"Batch {batch_id} has nothing to review")
        return await self._send(batch, request, report)

    # ------------------------------------------------------------------ decisions

    def accept_decision(self, decision: ApprovalDecision) -> str | None:
        """Queue a decision for recording and return without waiting for it."""
        task_id = self.dispatcher.defer(RECORD_DECISION_TASK, {"decision": decision.to_dict()})
        logger.info(
            "approval_decision_accepted",
            batch=decision.batch_name,
            item=decision.item_number,
            action=str(decision.action),
        )
        return task_id

    def completion(self, batch_name: str) -> ApprovalProgress:
        """Approved, rejected and pending counts for a batch."""
        decisions = self.store.list_decisions(batch_name)
        try:
            batch = self.store.get_batch(batch_name)
            total = len(build_approval_request(batch, self.store.list_scripts(batch_name)).items)
        except BatchNotFoundError:
            total = len(decisions)
        approved = sum(1 for d in decisions if d.approved)
        return ApprovalProgress(
            batch_name=batch_name,
            total=max(total, len(decisions)),
            approved=approved,
            rejected=len(decisions) - approved,
        )

    async def record_decision(self, decision: ApprovalDecision) -> ApprovalProgress:
        """Persist a decision and reflect it in chat and the ledger.

        Chat and ledger updates are best effort; the stored decision is the
        record. A summary is posted when the last pending item is decided.
        """
        already_decided = {
            d.item_number for d in self.store.list_decisions(decision.batch_name)
        }
        self.store.record_decision(decision)

        status = "approved" if decision.approved else "rejected"
        if decision.channel_id and decision.message_ts:
            icon = ":white_check_mark:" if decision.approved else ":x:"
            try:
                await self.notifier.update_decision_message(
                    decision.channel_id,
                    decision.message_ts,
                    decision.original_text,
                    f"{icon} {status.upper()}",
                    decision.reviewer,
                )
            except CreativeEngineError as e:
                logger.warning("decision_message_update_failed", error=str(e))

        if decision.script_only and decision.spreadsheet_id:
            try:
                await self.ledger.update_script_status(
                    decision.spreadsheet_id, decision.file_id, status
                )
            except CreativeEngineError as e:
                logger.warning("script_status_update_failed", error=str(e))

        self.store.record_activity(
            ActivityType.DECISION_RECORDED,
            f"{decision.reviewer or 'Reviewer'} {status} item {decision.item_number} "
            f"of {decision.batch_name}",
            batch_id=decision.batch_name,
            details=decision.to_dict(),
        )

        progress = self.completion(decision.batch_name)
        if progress.complete and decision.item_number not in already_decided:
            try:
                await self.notifier.send_message(
                    f"Batch {decision.batch_name} review complete: "
                    f"{progress.approved} approved, {progress.rejected} rejected"
                )
            except CreativeEngineError as e:
                logger.warning("completion_summary_failed", error=str(e))
        return progress
