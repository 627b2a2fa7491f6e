"""Database layer."""

from creative_engine.db.models import (
    ActivityLogModel,
    ApprovalDecisionModel,
    Base,
    BatchScriptModel,
    ScriptBatchModel,
)
from creative_engine.db.session import (
    SessionLocal,
    check_connection,
    get_session_context,
)

__all__ = [
    "Base",
    "SessionLocal",
    "check_connection",
    "get_session_context",
    # Models
    "ActivityLogModel",
    "ApprovalDecisionModel",
    "BatchScriptModel",
    "ScriptBatchModel",
]
