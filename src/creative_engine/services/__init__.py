"""Business logic services."""

from creative_engine.services.approval import (
    ApprovalScheduler,
    ApprovalScheduleResult,
    InMemoryDispatcher,
    TaskDispatcher,
    build_approval_request,
    parse_interaction,
    verify_slack_signature,
)
from creative_engine.services.asset_pipeline import AssetPipeline
from creative_engine.services.batch_store import BatchStore
from creative_engine.services.integrity import IntegrityReport, validate_batch
from creative_engine.services.publish import PublishOrchestrator
from creative_engine.services.script_writer import ScriptWriter

__all__ = [
    "ApprovalScheduler",
    "ApprovalScheduleResult",
    "AssetPipeline",
    "BatchStore",
    "InMemoryDispatcher",
    "IntegrityReport",
    "PublishOrchestrator",
    "ScriptWriter",
    "TaskDispatcher",
    "build_approval_request",
    "parse_interaction",
    "validate_batch",
    "verify_slack_signature",
]
