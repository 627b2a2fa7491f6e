"""Domain models - pure Python classes independent of database."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from creative_engine.domain.enums import ApprovalAction, BatchStatus

# Script id written to the asset ledger for footage uploaded without narration
NO_SCRIPT_ID = "s99999"
NO_SCRIPT_LABEL = "NoScript"


@dataclass
class ScriptDraft:
    """Script text accepted into a batch, before it is persisted."""

    title: str
    content: str
    reasoning: str = ""
    target_metrics: list[str] = field(default_factory=list)


@dataclass
class FootageRef:
    """Base footage a script is composited onto."""

    base_id: str
    file_link: str = ""
    title: str = ""
    file_id: str | None = None


@dataclass
class RenderOptions:
    """Options for one render run."""

    include_subtitles: bool = False
    market: str | None = None
    voice_id: str | None = None
    language: str = "en"
    spreadsheet_id: str | None = None
    force_rerender: bool = False


@dataclass
class RenderItemResult:
    """Outcome of one (script, footage) combination."""

    script_index: int
    script_id: str
    title: str
    base_id: str
    file_name: str
    video_file: str | None = None
    video_url: str | None = None
    video_file_id: str | None = None
    error: str | None = None
    skipped: bool = False
    footage_order: int = 0

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "script_index": self.script_index,
            "script_id": self.script_id,
            "title": self.title,
            "base_id": self.base_id,
            "file_name": self.file_name,
            "video_file": self.video_file,
            "video_url": self.video_url,
            "video_file_id": self.video_file_id,
            "error": self.error,
            "skipped": self.skipped,
        }


@dataclass
class RenderRunResult:
    """Outcome of a render run across scripts and footage."""

    batch_id: str | None
    items: list[RenderItemResult] = field(default_factory=list)
    folder_id: str | None = None
    folder_link: str | None = None
    footage_errors: list[dict[str, str]] = field(default_factory=list)
    skipped: bool = False

    @property
    def success_count(self) -> int:
        return sum(1 for item in self.items if item.success)

    @property
    def error_count(self) -> int:
        return sum(1 for item in self.items if not item.success)

    def assets_for_publish(self) -> list["UploadedAsset"]:
        """Uploaded assets in presentation order, ready for the publish stages."""
        return [
            UploadedAsset(
                file_name=item.file_name,
                video_file_id=item.video_file_id,
                drive_link=item.video_url,
            )
            for item in self.items
            if item.success and item.video_file_id
        ]


@dataclass
class UploadedAsset:
    """A finished asset in remote storage."""

    file_name: str
    video_file_id: str | None
    drive_link: str | None = None


@dataclass
class ApprovalItem:
    """One entry of an approval request."""

    item_number: int
    title: str
    file_name: str
    file_id: str
    drive_link: str | None = None
    content: str | None = None


@dataclass
class ApprovalRequest:
    """Full approval message for a batch."""

    batch_name: str
    items: list[ApprovalItem]
    folder_link: str | None = None
    script_only: bool = False
    spreadsheet_id: str | None = None


@dataclass
class ApprovalDecision:
    """A reviewer's decision on one item, as received from the chat webhook."""

    action: ApprovalAction
    batch_name: str
    item_number: int
    file_id: str
    spreadsheet_id: str | None = None
    message_ts: str | None = None
    channel_id: str | None = None
    reviewer: str | None = None
    original_text: str | None = None

    @property
    def approved(self) -> bool:
        return self.action.approved

    @property
    def script_only(self) -> bool:
        return self.action.script_only

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": str(self.action),
            "batch_name": self.batch_name,
            "item_number": self.item_number,
            "file_id": self.file_id,
            "spreadsheet_id": self.spreadsheet_id,
            "message_ts": self.message_ts,
            "channel_id": self.channel_id,
            "reviewer": self.reviewer,
            "original_text": self.original_text,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ApprovalDecision":
        return cls(
            action=ApprovalAction(data["action"]),
            batch_name=data["batch_name"],
            item_number=int(data["item_number"]),
            file_id=data.get("file_id") or "",
            spreadsheet_id=data.get("spreadsheet_id"),
            message_ts=data.get("message_ts"),
            channel_id=data.get("channel_id"),
            reviewer=data.get("reviewer"),
            original_text=data.get("original_text"),
        )


@dataclass
class ApprovalProgress:
    """Decision counts for a batch."""

    batch_name: str
    total: int
    approved: int = 0
    rejected: int = 0

    @property
    def pending(self) -> int:
        return max(self.total - self.approved - self.rejected, 0)

    @property
    def complete(self) -> bool:
        return self.total > 0 and self.pending == 0


@dataclass
class BatchSummary:
    """Recent batch listing entry."""

    batch_id: str
    status: BatchStatus
    script_count: int
    video_count: int
    folder_link: str | None = None
    market: str | None = None
    created_at: datetime | None = None
