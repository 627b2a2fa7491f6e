"""Base interface for the chat-ops notifier."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from creative_engine.domain.enums import ApprovalAction
from creative_engine.domain.models import ApprovalItem, ApprovalRequest

VALUE_SEPARATOR = "||"


@dataclass
class MessageRef:
    """Reference to a posted chat message."""

    channel_id: str
    ts: str


def encode_action_value(
    action: ApprovalAction,
    batch_name: str,
    item: ApprovalItem,
    spreadsheet_id: str | None = None,
) -> str:
    """Button payload: ``action||batch||item||file_id[||spreadsheet_id]``."""
    parts = [str(action), batch_name, str(item.item_number), item.file_id]
    if spreadsheet_id:
        parts.append(spreadsheet_id)
    return VALUE_SEPARATOR.join(parts)


class NotifierAdapter(ABC):
    """Abstract base class for chat notifications.

    Implementations:
    - SlackNotifier: Slack Web API
    - StubNotifier: Records messages for tests and local runs
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def send_message(self, text: str) -> MessageRef:
        """Post a plain text message to the approval channel."""
        ...

    @abstractmethod
    async def send_approval_request(self, request: ApprovalRequest) -> list[MessageRef]:
        """Post a batch header and one message with approve/reject controls per item."""
        ...

    @abstractmethod
    async def update_decision_message(
        self,
        channel_id: str,
        ts: str,
        original_text: str | None,
        status_text: str,
        reviewer: str | None,
    ) -> None:
        """Replace an item's controls with the recorded decision."""
        ...

    async def health_check(self) -> bool:
        return True
