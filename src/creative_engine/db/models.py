"""SQLAlchemy ORM models."""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID as PyUUID
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    false,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScriptBatchModel(Base):
    """Script batch (one generation request) ORM model."""

    __tablename__ = "script_batches"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    batch_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    spreadsheet_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tab_name: Mapped[str] = mapped_column(String(255), server_default="New Scripts")
    voice_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    guidance_prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    background_video_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    script_count: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(50), server_default="generating", index=True)
    folder_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    market: Mapped[str | None] = mapped_column(String(10), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    scripts: Mapped[list["BatchScriptModel"]] = relationship(
        "BatchScriptModel",
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="BatchScriptModel.script_index",
    )


class BatchScriptModel(Base):
    """Script within a batch, with its derived audio/video artifacts."""

    __tablename__ = "batch_scripts"
    __table_args__ = (UniqueConstraint("batch_id", "script_index", name="uq_batch_script_index"),)

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    batch_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("script_batches.batch_id", ondelete="CASCADE"), index=True
    )
    script_index: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    content_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    reasoning: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_metrics: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    audio_file: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_duration_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    video_file: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_file_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    video_renders: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    video_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    batch: Mapped["ScriptBatchModel"] = relationship("ScriptBatchModel", back_populates="scripts")

    @property
    def has_video(self) -> bool:
        return bool(self.video_url or self.video_file_id or self.video_file)

    def rendered_base_ids(self) -> set[str]:
        return {r["base_id"] for r in self.video_renders or [] if r.get("video_file_id")}


class ApprovalDecisionModel(Base):
    """Reviewer decision on one approval item (one row per batch item)."""

    __tablename__ = "approval_decisions"
    __table_args__ = (
        UniqueConstraint("batch_name", "item_number", name="uq_approval_decision_item"),
    )

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    batch_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    item_number: Mapped[int] = mapped_column(Integer, nullable=False)
    file_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False)
    script_only: Mapped[bool] = mapped_column(Boolean, server_default=false())
    message_ts: Mapped[str | None] = mapped_column(String(64), nullable=True)
    channel_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reviewer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )


class ActivityLogModel(Base):
    """Audit trail entry."""

    __tablename__ = "activity_logs"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    batch_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True
    )
