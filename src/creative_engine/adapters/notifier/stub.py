"""Stub notifier for testing."""

import itertools

from creative_engine.adapters.notifier.base import MessageRef, NotifierAdapter
from creative_engine.domain.models import ApprovalRequest
from creative_engine.logging import get_logger

logger = get_logger(__name__)


class StubNotifier(NotifierAdapter):
    """Records every message instead of sending it."""

    def __init__(self, channel_id: str = "C_STUB") -> None:
        self.channel_id = channel_id
        self.messages: list[str] = []
        self.approval_requests: list[ApprovalRequest] = []
        self.updates: list[dict[str, str | None]] = []
        self._ts = itertools.count(1)

    @property
    def name(self) -> str:
        return "stub"

    def _ref(self) -> MessageRef:
        return MessageRef(channel_id=self.channel_id, ts=f"1700000000.{next(self._ts):06d}")

    async def send_message(self, text: str) -> MessageRef:
        self.messages.append(text)
        logger.info("stub_message_sent", text=text[:80])
        return self._ref()

    async def send_approval_request(self, request: ApprovalRequest) -> list[MessageRef]:
        self.approval_requests.append(request)
        logger.info("stub_approval_sent", batch=request.batch_name, items=len(request.items))
        return [self._ref() for _ in range(len(request.items) + 1)]

    async def update_decision_message(
        self,
        channel_id: str,
        ts: str,
        original_text: str | None,
        status_text: str,
        reviewer: str | None,
    ) -> None:
        self.updates.append(
            {"channel_id": channel_id, "ts": ts, "status": status_text, "reviewer": reviewer}
        )
