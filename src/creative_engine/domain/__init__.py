"""Domain layer."""

from creative_engine.domain.enums import ActivityType, ApprovalAction, BatchStatus, MetaMarket
from creative_engine.domain.models import (
    NO_SCRIPT_ID,
    ApprovalDecision,
    ApprovalItem,
    ApprovalProgress,
    ApprovalRequest,
    BatchSummary,
    FootageRef,
    RenderItemResult,
    RenderOptions,
    RenderRunResult,
    ScriptDraft,
    UploadedAsset,
)

__all__ = [
    "ActivityType",
    "ApprovalAction",
    "BatchStatus",
    "MetaMarket",
    "NO_SCRIPT_ID",
    "ApprovalDecision",
    "ApprovalItem",
    "ApprovalProgress",
    "ApprovalRequest",
    "BatchSummary",
    "FootageRef",
    "RenderItemResult",
    "RenderOptions",
    "RenderRunResult",
    "ScriptDraft",
    "UploadedAsset",
]
