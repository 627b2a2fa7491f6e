"""Chat-ops approval endpoints."""

import json
from typing import Any
from urllib.parse import parse_qs

from fastapi import APIRouter, HTTPException, Request, status

from creative_engine.api.deps import ApprovalSchedulerDep
from creative_engine.config import settings
from creative_engine.errors import InteractionPayloadError
from creative_engine.logging import get_logger
from creative_engine.services.approval import parse_interaction, verify_slack_signature

router = APIRouter(tags=["Approvals"])
logger = get_logger(__name__)


def _decode_payload(body: bytes) -> dict[str, Any]:
    form = parse_qs(body.decode("utf-8"))
    raw = (form.get("payload") or [None])[0]
    if raw is None:
        raise InteractionPayloadError("Interaction body has no payload field")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InteractionPayloadError(f"Interaction payload is not JSON: {e}") from e
    if not isinstance(payload, dict):
        raise InteractionPayloadError("Interaction payload is not an object")
    return payload


@router.post(
    "/slack/interactions",
    summary="Approval button webhook",
    description=(
        "Receives approve/reject button clicks. The decision is queued for "
        "background processing and the request is acknowledged immediately."
    ),
)
async def slack_interactions(request: Request, scheduler: ApprovalSchedulerDep) -> dict[str, Any]:
    body = await request.body()

    if settings.slack_signing_secret and not verify_slack_signature(
        settings.slack_signing_secret,
        body,
        request.headers.get("X-Slack-Request-Timestamp"),
        request.headers.get("X-Slack-Signature"),
    ):
        logger.warning("slack_signature_invalid")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    payload = _decode_payload(body)
    if payload.get("type") != "block_actions":
        logger.info("slack_interaction_ignored", type=payload.get("type"))
        return {"ok": True, "message": "Event received but not processed"}

    decision = parse_interaction(payload)
    task_id = scheduler.accept_decision(decision)
    return {
        "ok": True,
        "task_id": task_id,
        "batch_name": decision.batch_name,
        "item_number": decision.item_number,
        "action": str(decision.action),
    }


@router.get(
    "/approvals/{batch_name}",
    summary="Approval progress",
    description="Approved, rejected and pending item counts for a batch.",
)
async def approval_progress(batch_name: str, scheduler: ApprovalSchedulerDep) -> dict[str, Any]:
    progress = scheduler.completion(batch_name)
    return {
        "batch_name": progress.batch_name,
        "total": progress.total,
        "approved": progress.approved,
        "rejected": progress.rejected,
        "pending": progress.pending,
        "complete": progress.complete,
    }
