"""Domain enumerations."""

from enum import StrEnum


class BatchStatus(StrEnum):
    """Lifecycle of a script batch.

    Statuses advance in declaration order; FAILED is terminal and reachable
    from any other status.
    """

    GENERATING = "generating"
    VIDEOS_GENERATED = "videos_generated"
    SLACK_SENT = "slack_sent"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    def can_transition_to(self, target: "BatchStatus") -> bool:
        """Whether moving from this status to ``target`` keeps the lifecycle monotonic."""
        if self == BatchStatus.FAILED:
            return target == BatchStatus.FAILED
        if target == BatchStatus.FAILED:
            return True
        return target.rank >= self.rank


_STATUS_RANK = {
    BatchStatus.GENERATING: 0,
    BatchStatus.VIDEOS_GENERATED: 1,
    BatchStatus.SLACK_SENT: 2,
    BatchStatus.FAILED: 3,
}


class ActivityType(StrEnum):
    """Audit trail event types."""

    BATCH_CREATED = "batch_created"
    VIDEOS_GENERATED = "videos_generated"
    RENDER_FAILED = "render_failed"
    SECURITY_ALERT = "security_alert"  # Fingerprint mismatch
    INTEGRITY_FAILURE = "integrity_failure"
    APPROVAL_SCHEDULED = "approval_scheduled"
    APPROVAL_SENT = "approval_sent"
    APPROVAL_SKIPPED = "approval_skipped"
    DECISION_RECORDED = "decision_recorded"


class ApprovalAction(StrEnum):
    """Button actions carried in approval interactions."""

    APPROVE = "approve"
    REJECT = "reject"
    APPROVE_SCRIPT = "approve_script"
    REJECT_SCRIPT = "reject_script"

    @property
    def approved(self) -> bool:
        return self in (ApprovalAction.APPROVE, ApprovalAction.APPROVE_SCRIPT)

    @property
    def script_only(self) -> bool:
        return self in (ApprovalAction.APPROVE_SCRIPT, ApprovalAction.REJECT_SCRIPT)


class MetaMarket(StrEnum):
    """Markets with campaign templates on the ads platform."""

    UK = "UK"
    IN = "IN"
    DE = "DE"
    US = "US"

    @classmethod
    def normalize(cls, value: str | None) -> "MetaMarket | None":
        """Parse a free-form market tag ("uk", " De ") or return None."""
        if not value:
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None
