"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Script batches table
    op.create_table(
        "script_batches",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("batch_id", sa.String(64), nullable=False),
        sa.Column("spreadsheet_id", sa.String(255), nullable=True),
        sa.Column("tab_name", sa.String(255), nullable=False, server_default="New Scripts"),
        sa.Column("voice_id", sa.String(100), nullable=True),
        sa.Column("guidance_prompt", sa.Text(), nullable=True),
        sa.Column("background_video_path", sa.Text(), nullable=True),
        sa.Column("script_count", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="generating"),
        sa.Column("folder_link", sa.Text(), nullable=True),
        sa.Column("market", sa.String(10), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("batch_id"),
    )
    op.create_index("ix_script_batches_batch_id", "script_batches", ["batch_id"])
    op.create_index("ix_script_batches_status", "script_batches", ["status"])
    op.create_index("ix_script_batches_created_at", "script_batches", ["created_at"])

    # Batch scripts table
    op.create_table(
        "batch_scripts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("batch_id", sa.String(64), nullable=False),
        sa.Column("script_index", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("content_hash", sa.String(64), nullable=False),
        sa.Column("reasoning", sa.Text(), nullable=True),
        sa.Column("target_metrics", sa.JSON(), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("audio_file", sa.Text(), nullable=True),
        sa.Column("audio_duration_seconds", sa.Float(), nullable=True),
        sa.Column("video_file", sa.Text(), nullable=True),
        sa.Column("video_url", sa.Text(), nullable=True),
        sa.Column("video_file_id", sa.String(255), nullable=True),
        sa.Column("video_renders", sa.JSON(), nullable=True),
        sa.Column("video_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["batch_id"], ["script_batches.batch_id"], ondelete="CASCADE"
        ),
        sa.UniqueConstraint("batch_id", "script_index", name="uq_batch_script_index"),
    )
    op.create_index("ix_batch_scripts_batch_id", "batch_scripts", ["batch_id"])

    # Approval decisions table
    op.create_table(
        "approval_decisions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("batch_name", sa.String(255), nullable=False),
        sa.Column("item_number", sa.Integer(), nullable=False),
        sa.Column("file_id", sa.String(255), nullable=True),
        sa.Column("approved", sa.Boolean(), nullable=False),
        sa.Column("script_only", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("message_ts", sa.String(64), nullable=True),
        sa.Column("channel_id", sa.String(64), nullable=True),
        sa.Column("reviewer", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("batch_name", "item_number", name="uq_approval_decision_item"),
    )
    op.create_index("ix_approval_decisions_batch_name", "approval_decisions", ["batch_name"])

    # Activity log table
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("batch_id", sa.String(64), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activity_logs_type", "activity_logs", ["type"])
    op.create_index("ix_activity_logs_batch_id", "activity_logs", ["batch_id"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("approval_decisions")
    op.drop_table("batch_scripts")
    op.drop_table("script_batches")
