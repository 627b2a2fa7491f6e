"""Slack notifier using the Web API."""

from typing import Any

import httpx

from creative_engine.adapters.notifier.base import (
    MessageRef,
    NotifierAdapter,
    encode_action_value,
)
from creative_engine.config import settings
from creative_engine.domain.enums import ApprovalAction
from creative_engine.domain.models import ApprovalItem, ApprovalRequest
from creative_engine.errors import ConfigurationError, NotifierError, TransientExternalError
from creative_engine.logging import get_logger

logger = get_logger(__name__)

SLACK_API_URL = "https://slack.com/api"


class SlackNotifier(NotifierAdapter):
    """Posts approval requests with interactive buttons to one channel."""

    def __init__(
        self,
        bot_token: str | None = None,
        channel_id: str | None = None,
        base_url: str = SLACK_API_URL,
    ) -> None:
        self.bot_token = bot_token or settings.slack_bot_token
        self.channel_id = channel_id or settings.slack_channel_id
        self.base_url = base_url

    @property
    def name(self) -> str:
        return "slack"

    async def _call(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        if not self.bot_token or not self.channel_id:
            raise ConfigurationError("SLACK_BOT_TOKEN and SLACK_CHANNEL_ID must be configured")

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(
                    f"{self.base_url}/{method}",
                    headers={"Authorization": f"Bearer {self.bot_token}"},
                    json=payload,
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.TimeoutException, httpx.TransportError) as e:
            raise TransientExternalError(f"Slack {method} failed: {e}") from e
        except httpx.HTTPStatusError as e:
            raise NotifierError(f"Slack {method} returned {e.response.status_code}") from e

        if not data.get("ok"):
            logger.error("slack_api_error", method=method, error=data.get("error"))
            raise NotifierError(f"Slack {method} error: {data.get('error')}")
        return data

    async def _post(self, text: str, blocks: list[dict[str, Any]] | None = None) -> MessageRef:
        payload: dict[str, Any] = {"channel": self.channel_id, "text": text}
        if blocks:
            payload["blocks"] = blocks
        data = await self._call("chat.postMessage", payload)
        return MessageRef(channel_id=data.get("channel", self.channel_id), ts=data["ts"])

    async def send_message(self, text: str) -> MessageRef:
        return await self._post(text)

    @staticmethod
    def _item_blocks(request: ApprovalRequest, item: ApprovalItem) -> list[dict[str, Any]]:
        if request.script_only:
            approve, reject = ApprovalAction.APPROVE_SCRIPT, ApprovalAction.REJECT_SCRIPT
            body = f"*Script {item.item_number}: {item.title}*\n{item.content or ''}"
        else:
            approve, reject = ApprovalAction.APPROVE, ApprovalAction.REJECT
            link = f"<{item.drive_link}|Watch video>" if item.drive_link else "_no preview link_"
            body = f"*Ad {item.item_number}: {item.file_name}*\n{item.title}\n{link}"

        return [
            {"type": "section", "text": {"type": "mrkdwn", "text": body[:2900]}},
            {
                "type": "actions",
                "elements": [
                    {
                        "type": "button",
                        "style": "primary",
                        "text": {"type": "plain_text", "text": "Approve"},
                        "action_id": f"approve_{item.item_number}",
                        "value": encode_action_value(
                            approve, request.batch_name, item, request.spreadsheet_id
                        ),
                    },
                    {
                        "type": "button",
                        "style": "danger",
                        "text": {"type": "plain_text", "text": "Reject"},
                        "action_id": f"reject_{item.item_number}",
                        "value": encode_action_value(
                            reject, request.batch_name, item, request.spreadsheet_id
                        ),
                    },
                ],
            },
        ]

    async def send_approval_request(self, request: ApprovalRequest) -> list[MessageRef]:
        kind = "scripts" if request.script_only else "ads"
        header = f"*Batch {request.batch_name}*: {len(request.items)} {kind} ready for review"
        if request.folder_link:
            header += f"\n<{request.folder_link}|Open folder>"

        refs = [await self._post(header)]
        for item in request.items:
            refs.append(
                await self._post(
                    f"{request.batch_name} item {item.item_number}",
                    self._item_blocks(request, item),
                )
            )
        logger.info("slack_approval_sent", batch=request.batch_name, items=len(request.items))
        return refs

    async def update_decision_message(
        self,
        channel_id: str,
        ts: str,
        original_text: str | None,
        status_text: str,
        reviewer: str | None,
    ) -> None:
        summary = f"{status_text} by {reviewer}" if reviewer else status_text
        blocks: list[dict[str, Any]] = []
        if original_text:
            blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": original_text}})
        blocks.append({"type": "context", "elements": [{"type": "mrkdwn", "text": summary}]})
        await self._call(
            "chat.update",
            {"channel": channel_id, "ts": ts, "text": summary, "blocks": blocks},
        )

    async def health_check(self) -> bool:
        try:
            await self._call("auth.test", {})
        except (ConfigurationError, NotifierError, TransientExternalError) as e:
            logger.error("slack_health_check_failed", error=str(e))
            return False
        return True
