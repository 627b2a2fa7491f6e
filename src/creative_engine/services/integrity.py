"""Content fingerprints and pre-dispatch batch checks."""

import hashlib
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from creative_engine.db.models import BatchScriptModel, ScriptBatchModel
from creative_engine.domain.enums import BatchStatus
from creative_engine.errors import ContentIntegrityError, IntegrityViolationError


def fingerprint(content: str) -> str:
    """SHA-256 hex digest of script content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def verify(content: str, stored_hash: str | None) -> bool:
    """Whether ``content`` still matches the fingerprint taken at creation."""
    if not stored_hash:
        return False
    return fingerprint(content) == stored_hash


@dataclass
class IntegrityReport:
    """Result of checking a batch and its scripts."""

    batch_id: str
    script_count: int
    actual_count: int
    scripts_with_audio: int = 0
    scripts_with_video: int = 0
    issues: list[str] = field(default_factory=list)
    tampered: list[str] = field(default_factory=list)
    duplicate_titles: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues

    @property
    def has_hash_mismatch(self) -> bool:
        return bool(self.tampered)

    def to_dict(self) -> dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "valid": self.valid,
            "script_count": self.script_count,
            "actual_count": self.actual_count,
            "scripts_with_audio": self.scripts_with_audio,
            "scripts_with_video": self.scripts_with_video,
            "issues": self.issues,
            "tampered": self.tampered,
            "duplicate_titles": self.duplicate_titles,
        }


def _claims_videos(batch: ScriptBatchModel) -> bool:
    return bool(batch.folder_link) or batch.status in (
        BatchStatus.VIDEOS_GENERATED,
        BatchStatus.SLACK_SENT,
    )


def validate_batch(
    batch: ScriptBatchModel,
    scripts: Sequence[BatchScriptModel],
    require_videos: bool | None = None,
) -> IntegrityReport:
    """Check a batch against its stored scripts without side effects.

    Args:
        batch: The batch record.
        scripts: The batch's scripts in index order.
        require_videos: Override for whether every script must carry a video.
            Defaults to whether the batch itself claims to contain videos.
    """
    report = IntegrityReport(
        batch_id=batch.batch_id,
        script_count=batch.script_count,
        actual_count=len(scripts),
    )

    if batch.status != BatchStatus.GENERATING and batch.script_count != len(scripts):
        report.issues.append(
            f"Script count mismatch: batch declares {batch.script_count}, found {len(scripts)}"
        )

    if require_videos is None:
        require_videos = _claims_videos(batch)

    for position, script in enumerate(scripts):
        label = f"script {script.script_index} ({script.title!r})"

        if script.script_index != position:
            report.issues.append(
                f"Index mismatch: {label} is at position {position}"
            )
        if not script.content or not script.content.strip():
            report.issues.append(f"Empty content: {label}")
        if not verify(script.content, script.content_hash):
            report.tampered.append(label)
            report.issues.append(f"Content integrity violation: {label}")

        if script.audio_file:
            report.scripts_with_audio += 1
        if script.has_video:
            report.scripts_with_video += 1
            if not script.audio_file:
                report.issues.append(f"Video without audio: {label}")
        elif require_videos:
            report.issues.append(f"Missing video: {label}")

    counts = Counter(s.title.strip().lower() for s in scripts)
    report.duplicate_titles = sorted(t for t, n in counts.items() if n > 1)
    for title in report.duplicate_titles:
        report.issues.append(f"Duplicate title: {title!r}")

    return report


def assert_dispatchable(
    batch: ScriptBatchModel,
    scripts: Sequence[BatchScriptModel],
    require_videos: bool | None = None,
) -> IntegrityReport:
    """Gate an approval dispatch on a clean integrity report.

    Raises:
        ContentIntegrityError: A script's content no longer matches its fingerprint.
        IntegrityViolationError: Any other check failed.
    """
    report = validate_batch(batch, scripts, require_videos=require_videos)

    if report.tampered:
        raise ContentIntegrityError(
            f"Content integrity violation in batch {batch.batch_id}: {report.tampered[0]}",
            issues=report.issues,
            item=report.tampered[0],
            details=report.to_dict(),
        )
    if not report.valid:
        raise IntegrityViolationError(
            f"Batch {batch.batch_id} failed integrity checks: {report.issues[0]}",
            issues=report.issues,
            details=report.to_dict(),
        )
    return report
