"""Durable record of script batches, their scripts and approval decisions.

Every method opens and commits its own session, so a read issued after a
write has returned always sees that write. Returned ORM objects are detached
snapshots; mutate them through the store, never in place.
"""

import random
import re
import string
import time
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from creative_engine.db.models import (
    ActivityLogModel,
    ApprovalDecisionModel,
    BatchScriptModel,
    ScriptBatchModel,
)
from creative_engine.domain.enums import ActivityType, BatchStatus
from creative_engine.domain.models import ApprovalDecision, BatchSummary, ScriptDraft
from creative_engine.errors import (
    BatchNotFoundError,
    BatchStoreError,
    InvalidStatusTransitionError,
)
from creative_engine.logging import get_logger
from creative_engine.services.integrity import fingerprint

logger = get_logger(__name__)

_BASE36 = string.digits + string.ascii_lowercase

# Fields a script may have rewritten after creation; index, title and content are fixed
SCRIPT_UPDATABLE_FIELDS = frozenset(
    {
        "file_name",
        "audio_file",
        "audio_duration_seconds",
        "video_file",
        "video_url",
        "video_file_id",
        "video_renders",
        "video_error",
    }
)
BATCH_UPDATABLE_FIELDS = frozenset(
    {"folder_link", "market", "voice_id", "spreadsheet_id", "background_video_path"}
)


def _as_uuid(value: UUID | str) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


def generate_batch_id() -> str:
    """External batch id: ``batch_<epoch ms>_<7 base36 chars>``."""
    suffix = "".join(random.choices(_BASE36, k=7))
    return f"batch_{int(time.time() * 1000)}_{suffix}"


def generate_script_file_name(index: int, title: str | None = None) -> str:
    """Deterministic file name for a script: ``script<n>_<slug>``."""
    base = f"script{index + 1}"
    if not title or not title.strip():
        return base
    slug = re.sub(r"[^a-z0-9]+", "_", title.lower()).strip("_")[:50]
    return f"{base}_{slug}" if slug else base


class BatchStore:
    """Batch/script persistence over a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _detach(session: Session, *objs: Any) -> None:
        """Flush, reload and detach rows so callers can read them after commit."""
        session.flush()
        for obj in objs:
            session.refresh(obj)
            session.expunge(obj)

    @staticmethod
    def _load_batch(session: Session, batch_id: str) -> ScriptBatchModel:
        batch = session.scalar(
            select(ScriptBatchModel).where(ScriptBatchModel.batch_id == batch_id)
        )
        if batch is None:
            raise BatchNotFoundError(f"Batch not found: {batch_id}", {"batch_id": batch_id})
        return batch

    # ------------------------------------------------------------------ batches

    def create_batch(
        self,
        script_count: int,
        spreadsheet_id: str | None = None,
        tab_name: str = "New Scripts",
        voice_id: str | None = None,
        guidance_prompt: str | None = None,
        background_video_path: str | None = None,
        market: str | None = None,
        batch_id: str | None = None,
    ) -> ScriptBatchModel:
        """Create a batch in ``generating`` status."""
        batch = ScriptBatchModel(
            batch_id=batch_id or generate_batch_id(),
            spreadsheet_id=spreadsheet_id,
            tab_name=tab_name,
            voice_id=voice_id,
            guidance_prompt=guidance_prompt,
            background_video_path=background_video_path,
            script_count=script_count,
            status=BatchStatus.GENERATING,
            market=market,
        )
        try:
            with self._session() as session:
                session.add(batch)
                self._detach(session, batch)
        except SQLAlchemyError as e:
            raise BatchStoreError(f"Failed to create batch: {e}") from e

        logger.info("batch_created", batch_id=batch.batch_id, script_count=script_count)
        return batch

    def get_batch(self, batch_id: str) -> ScriptBatchModel:
        with self._session() as session:
            batch = self._load_batch(session, batch_id)
            session.expunge(batch)
            return batch

    def update_batch(self, batch_id: str, **fields: Any) -> ScriptBatchModel:
        """Update derived batch fields (folder link, market, ...)."""
        unknown = set(fields) - BATCH_UPDATABLE_FIELDS
        if unknown:
            raise BatchStoreError(f"Cannot update batch fields: {sorted(unknown)}")

        with self._session() as session:
            batch = self._load_batch(session, batch_id)
            for key, value in fields.items():
                setattr(batch, key, value)
            self._detach(session, batch)
            return batch

    def update_batch_status(
        self,
        batch_id: str,
        status: BatchStatus | str,
        error_message: str | None = None,
    ) -> ScriptBatchModel:
        """Advance a batch's status.

        Re-applying the current status is a no-op.

        Raises:
            InvalidStatusTransitionError: If the move would regress the lifecycle.
        """
        target = BatchStatus(status)
        with self._session() as session:
            batch = self._load_batch(session, batch_id)
            current = BatchStatus(batch.status)

            if not current.can_transition_to(target):
                raise InvalidStatusTransitionError(
                    f"Batch {batch_id} cannot move from {current} to {target}",
                    {"batch_id": batch_id, "from": str(current), "to": str(target)},
                )
            if current != target:
                batch.status = target
                logger.info(
                    "batch_status_changed",
                    batch_id=batch_id,
                    from_status=str(current),
                    to_status=str(target),
                )
            if error_message is not None:
                batch.error_message = error_message
            self._detach(session, batch)
            return batch

    def mark_failed(self, batch_id: str, error_message: str) -> ScriptBatchModel:
        return self.update_batch_status(batch_id, BatchStatus.FAILED, error_message)

    def recent_batches(self, limit: int = 10) -> list[BatchSummary]:
        """Most recent batches with the number of scripts that carry a video."""
        video_count = (
            select(func.count(BatchScriptModel.id))
            .where(
                BatchScriptModel.batch_id == ScriptBatchModel.batch_id,
                (BatchScriptModel.video_url.is_not(None))
                | (BatchScriptModel.video_file_id.is_not(None))
                | (BatchScriptModel.video_file.is_not(None)),
            )
            .correlate(ScriptBatchModel)
            .scalar_subquery()
        )
        stmt = (
            select(ScriptBatchModel, video_count)
            .order_by(ScriptBatchModel.created_at.desc(), ScriptBatchModel.id)
            .limit(limit)
        )
        with self._session() as session:
            return [
                BatchSummary(
                    batch_id=batch.batch_id,
                    status=BatchStatus(batch.status),
                    script_count=batch.script_count,
                    video_count=count or 0,
                    folder_link=batch.folder_link,
                    market=batch.market,
                    created_at=batch.created_at,
                )
                for batch, count in session.execute(stmt).all()
            ]

    # ------------------------------------------------------------------ scripts

    def add_scripts(self, batch_id: str, drafts: Sequence[ScriptDraft]) -> list[BatchScriptModel]:
        """Persist all scripts for a batch in one transaction.

        Indices are assigned 0..n-1 in draft order and content is fingerprinted.
        The declared script count is set to the number stored. If any row
        fails the whole set is rolled back and the batch is marked failed.

        Raises:
            BatchStoreError: If the scripts could not be persisted.
        """
        try:
            with self._session() as session:
                batch = self._load_batch(session, batch_id)
                if batch.script_count != len(drafts):
                    logger.warning(
                        "batch_script_count_adjusted",
                        batch_id=batch_id,
                        declared=batch.script_count,
                        stored=len(drafts),
                    )
                    batch.script_count = len(drafts)
                scripts = [
                    BatchScriptModel(
                        batch_id=batch_id,
                        script_index=index,
                        title=draft.title,
                        content=draft.content,
                        content_hash=fingerprint(draft.content),
                        reasoning=draft.reasoning or None,
                        target_metrics=list(draft.target_metrics) or None,
                        file_name=generate_script_file_name(index, draft.title),
                    )
                    for index, draft in enumerate(drafts)
                ]
                session.add_all(scripts)
                self._detach(session, *scripts)
        except BatchNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error("batch_scripts_persist_failed", batch_id=batch_id, error=str(e))
            self.mark_failed(batch_id, f"Failed to persist scripts: {e}")
            raise BatchStoreError(
                f"Failed to persist scripts for batch {batch_id}", {"error": str(e)}
            ) from e

        logger.info("batch_scripts_stored", batch_id=batch_id, count=len(scripts))
        return scripts

    def list_scripts(self, batch_id: str) -> list[BatchScriptModel]:
        """All scripts of a batch ordered by index."""
        with self._session() as session:
            scripts = list(
                session.scalars(
                    select(BatchScriptModel)
                    .where(BatchScriptModel.batch_id == batch_id)
                    .order_by(BatchScriptModel.script_index)
                )
            )
            session.expunge_all()
            return scripts

    def update_script(self, script_id: UUID | str, **fields: Any) -> BatchScriptModel:
        """Update artifact fields of one script and return the refreshed row."""
        unknown = set(fields) - SCRIPT_UPDATABLE_FIELDS
        if unknown:
            raise BatchStoreError(f"Cannot update script fields: {sorted(unknown)}")

        with self._session() as session:
            script = session.get(BatchScriptModel, _as_uuid(script_id))
            if script is None:
                raise BatchNotFoundError(f"Script not found: {script_id}")
            for key, value in fields.items():
                setattr(script, key, value)
            self._detach(session, script)
            return script

    def append_render(self, script_id: UUID | str, render: dict[str, Any]) -> BatchScriptModel:
        """Record a rendered video for one footage, replacing any earlier render of it.

        The first footage recorded for a script backs the primary video fields.
        """
        with self._session() as session:
            script = session.get(BatchScriptModel, _as_uuid(script_id))
            if script is None:
                raise BatchNotFoundError(f"Script not found: {script_id}")

            renders = list(script.video_renders or [])
            positions = [i for i, r in enumerate(renders) if r.get("base_id") == render["base_id"]]
            if positions:
                renders[positions[0]] = dict(render)
            else:
                renders.append(dict(render))
            script.video_renders = renders

            primary = renders[0]
            script.video_file = primary.get("video_file")
            script.video_url = primary.get("video_url")
            script.video_file_id = primary.get("video_file_id")
            script.video_error = None
            self._detach(session, script)
            return script

    # ------------------------------------------------------------------ audit

    def record_activity(
        self,
        type: ActivityType | str,
        message: str,
        batch_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ActivityLogModel:
        entry = ActivityLogModel(
            type=str(type), message=message, batch_id=batch_id, details=details
        )
        with self._session() as session:
            session.add(entry)
            self._detach(session, entry)
        return entry

    def list_activity(self, batch_id: str | None = None, limit: int = 50) -> list[ActivityLogModel]:
        stmt = select(ActivityLogModel).order_by(ActivityLogModel.created_at.desc()).limit(limit)
        if batch_id:
            stmt = stmt.where(ActivityLogModel.batch_id == batch_id)
        with self._session() as session:
            entries = list(session.scalars(stmt))
            session.expunge_all()
            return entries

    # ------------------------------------------------------------------ decisions

    def record_decision(self, decision: ApprovalDecision) -> ApprovalDecisionModel:
        """Store a reviewer decision; a repeat for the same item overwrites it."""
        try:
            return self._upsert_decision(decision)
        except IntegrityError:
            # A concurrent first write for the same item won; overwrite it
            return self._upsert_decision(decision)

    def _upsert_decision(self, decision: ApprovalDecision) -> ApprovalDecisionModel:
        with self._session() as session:
            row = session.scalar(
                select(ApprovalDecisionModel).where(
                    ApprovalDecisionModel.batch_name == decision.batch_name,
                    ApprovalDecisionModel.item_number == decision.item_number,
                )
            )
            if row is None:
                row = ApprovalDecisionModel(
                    batch_name=decision.batch_name,
                    item_number=decision.item_number,
                )
                session.add(row)
            row.file_id = decision.file_id or None
            row.approved = decision.approved
            row.script_only = decision.script_only
            row.message_ts = decision.message_ts
            row.channel_id = decision.channel_id
            row.reviewer = decision.reviewer
            self._detach(session, row)
            return row

    def list_decisions(self, batch_name: str) -> list[ApprovalDecisionModel]:
        with self._session() as session:
            decisions = list(
                session.scalars(
                    select(ApprovalDecisionModel)
                    .where(ApprovalDecisionModel.batch_name == batch_name)
                    .order_by(ApprovalDecisionModel.item_number)
                )
            )
            session.expunge_all()
            return decisions
