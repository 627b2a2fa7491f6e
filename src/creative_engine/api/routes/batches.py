"""Script batch endpoints."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from creative_engine.api.deps import (
    ApprovalSchedulerDep,
    AssetPipelineDep,
    BatchStoreDep,
    ScriptWriterDep,
)
from creative_engine.db.models import BatchScriptModel, ScriptBatchModel
from creative_engine.domain.models import FootageRef, RenderOptions, RenderRunResult, ScriptDraft
from creative_engine.errors import CreativeEngineError
from creative_engine.logging import get_logger
from creative_engine.services.integrity import validate_batch
from creative_engine.services.script_writer import MAX_GUIDANCE_CHARS

router = APIRouter(prefix="/batches", tags=["Batches"])
logger = get_logger(__name__)


class ScriptInput(BaseModel):
    """A script supplied by the caller instead of generated."""

    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    reasoning: str = ""
    target_metrics: list[str] = Field(default_factory=list)


class FootageInput(BaseModel):
    """Base footage reference."""

    base_id: str = Field(..., min_length=1, max_length=100)
    file_link: str = ""
    title: str = ""
    file_id: str | None = None

    def to_ref(self) -> FootageRef:
        return FootageRef(
            base_id=self.base_id, file_link=self.file_link, title=self.title, file_id=self.file_id
        )


class CreateBatchRequest(BaseModel):
    """Request to create a batch, optionally rendering and sending it for approval."""

    scripts: list[ScriptInput] | None = Field(
        None, description="Scripts to store as-is; generated with the LLM when omitted"
    )
    script_count: int = Field(default=3, ge=1, le=50)
    guidance: str | None = Field(None, max_length=MAX_GUIDANCE_CHARS)
    language: str = Field(default="en", max_length=10)
    spreadsheet_id: str | None = None
    tab_name: str = Field(default="New Scripts", max_length=255)
    voice_id: str | None = None
    market: str | None = Field(None, max_length=10)
    footage: list[FootageInput] = Field(default_factory=list)
    include_subtitles: bool = False
    send_for_approval: bool = False
    approval_delay_minutes: int | None = Field(None, ge=0, le=1440)


class RenderRequest(BaseModel):
    """Request to render an existing batch against footage."""

    footage: list[FootageInput] = Field(..., min_length=1)
    include_subtitles: bool = False
    market: str | None = Field(None, max_length=10)
    voice_id: str | None = None
    language: str = Field(default="en", max_length=10)
    spreadsheet_id: str | None = None
    force_rerender: bool = False

    def to_options(self) -> RenderOptions:
        return RenderOptions(
            include_subtitles=self.include_subtitles,
            market=self.market,
            voice_id=self.voice_id,
            language=self.language,
            spreadsheet_id=self.spreadsheet_id,
            force_rerender=self.force_rerender,
        )


class ApprovalRequestBody(BaseModel):
    """Request to send a batch for review."""

    delay_minutes: int | None = Field(None, ge=0, le=1440)


class ScriptResponse(BaseModel):
    """Stored script."""

    id: str
    script_index: int
    title: str
    content: str
    reasoning: str | None
    target_metrics: list[str] | None
    file_name: str
    audio_file: str | None
    audio_duration_seconds: float | None
    video_url: str | None
    video_file_id: str | None
    video_renders: list[dict[str, Any]] | None
    video_error: str | None


class DecisionResponse(BaseModel):
    """Stored reviewer decision."""

    item_number: int
    file_id: str | None
    approved: bool
    reviewer: str | None


class RenderRunResponse(BaseModel):
    """Per-item outcome of a render run."""

    success: bool
    batch_id: str | None
    folder_link: str | None
    skipped: bool
    success_count: int
    error_count: int
    items: list[dict[str, Any]]
    footage_errors: list[dict[str, str]]


class BatchResponse(BaseModel):
    """Batch with its scripts in index order."""

    batch_id: str
    status: str
    script_count: int
    spreadsheet_id: str | None
    voice_id: str | None
    market: str | None
    folder_link: str | None
    error_message: str | None
    created_at: datetime | None
    scripts: list[ScriptResponse]
    decisions: list[DecisionResponse] = Field(default_factory=list)
    render: RenderRunResponse | None = None
    approval: dict[str, Any] | None = None


class BatchSummaryResponse(BaseModel):
    """Recent batch listing entry."""

    batch_id: str
    status: str
    script_count: int
    video_count: int
    folder_link: str | None
    market: str | None
    created_at: datetime | None


def _script_response(script: BatchScriptModel) -> ScriptResponse:
    return ScriptResponse(
        id=str(script.id),
        script_index=script.script_index,
        title=script.title,
        content=script.content,
        reasoning=script.reasoning,
        target_metrics=script.target_metrics,
        file_name=script.file_name,
        audio_file=script.audio_file,
        audio_duration_seconds=script.audio_duration_seconds,
        video_url=script.video_url,
        video_file_id=script.video_file_id,
        video_renders=script.video_renders,
        video_error=script.video_error,
    )


def _batch_response(
    batch: ScriptBatchModel, scripts: list[BatchScriptModel], **extra: Any
) -> BatchResponse:
    return BatchResponse(
        batch_id=batch.batch_id,
        status=batch.status,
        script_count=batch.script_count,
        spreadsheet_id=batch.spreadsheet_id,
        voice_id=batch.voice_id,
        market=batch.market,
        folder_link=batch.folder_link,
        error_message=batch.error_message,
        created_at=batch.created_at,
        scripts=[_script_response(s) for s in scripts],
        **extra,
    )


def render_response(result: RenderRunResult) -> RenderRunResponse:
    return RenderRunResponse(
        success=result.success_count > 0 or result.skipped,
        batch_id=result.batch_id,
        folder_link=result.folder_link,
        skipped=result.skipped,
        success_count=result.success_count,
        error_count=result.error_count,
        items=[item.to_dict() for item in result.items],
        footage_errors=result.footage_errors,
    )


@router.post(
    "",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create batch",
    description=(
        "Store caller-supplied scripts or generate them with the LLM, then optionally "
        "render them onto footage and send the batch for approval."
    ),
)
async def create_batch(
    request: CreateBatchRequest,
    store: BatchStoreDep,
    writer: ScriptWriterDep,
    pipeline: AssetPipelineDep,
    scheduler: ApprovalSchedulerDep,
) -> BatchResponse:
    """Create a batch and run the requested stages in order."""
    count = len(request.scripts) if request.scripts else request.script_count
    batch = store.create_batch(
        script_count=count,
        spreadsheet_id=request.spreadsheet_id,
        tab_name=request.tab_name,
        voice_id=request.voice_id,
        guidance_prompt=request.guidance,
        market=request.market,
    )
    logger.info("create_batch", batch_id=batch.batch_id, script_count=count)

    if request.scripts:
        drafts = [
            ScriptDraft(
                title=s.title,
                content=s.content,
                reasoning=s.reasoning,
                target_metrics=s.target_metrics,
            )
            for s in request.scripts
        ]
    else:
        try:
            drafts = await writer.generate(count, request.guidance, request.language)
        except CreativeEngineError as e:
            store.mark_failed(batch.batch_id, e.message)
            raise
    store.add_scripts(batch.batch_id, drafts)

    render = None
    if request.footage:
        options = RenderOptions(
            include_subtitles=request.include_subtitles,
            market=request.market,
            voice_id=request.voice_id,
            language=request.language,
            spreadsheet_id=request.spreadsheet_id,
        )
        try:
            result = await pipeline.render_batch(
                batch.batch_id, [f.to_ref() for f in request.footage], options
            )
        except CreativeEngineError as e:
            store.mark_failed(batch.batch_id, e.message)
            raise
        render = render_response(result)

    approval = None
    if request.send_for_approval:
        scheduled = await scheduler.schedule_approval(
            batch.batch_id, request.approval_delay_minutes
        )
        approval = scheduled.to_dict()

    return _batch_response(
        store.get_batch(batch.batch_id),
        store.list_scripts(batch.batch_id),
        render=render,
        approval=approval,
    )


@router.get(
    "/recent",
    response_model=list[BatchSummaryResponse],
    summary="Recent batches",
    description="Most recent batches with the number of scripts that have a video.",
)
async def recent_batches(
    store: BatchStoreDep,
    limit: int = Query(default=10, ge=1, le=100),
) -> list[BatchSummaryResponse]:
    return [
        BatchSummaryResponse(
            batch_id=s.batch_id,
            status=str(s.status),
            script_count=s.script_count,
            video_count=s.video_count,
            folder_link=s.folder_link,
            market=s.market,
            created_at=s.created_at,
        )
        for s in store.recent_batches(limit)
    ]


@router.get(
    "/{batch_id}",
    response_model=BatchResponse,
    summary="Get batch",
    description="Batch with its scripts in index order and any reviewer decisions.",
)
async def get_batch(batch_id: str, store: BatchStoreDep) -> BatchResponse:
    batch = store.get_batch(batch_id)
    decisions = [
        DecisionResponse(
            item_number=d.item_number,
            file_id=d.file_id,
            approved=d.approved,
            reviewer=d.reviewer,
        )
        for d in store.list_decisions(batch_id)
    ]
    return _batch_response(batch, store.list_scripts(batch_id), decisions=decisions)


@router.get(
    "/{batch_id}/validate",
    summary="Validate batch",
    description="Read-only integrity report for a batch.",
)
async def validate(batch_id: str, store: BatchStoreDep) -> dict[str, Any]:
    report = validate_batch(store.get_batch(batch_id), store.list_scripts(batch_id))
    return report.to_dict()


@router.post(
    "/{batch_id}/render",
    response_model=RenderRunResponse,
    summary="Render batch",
    description=(
        "Render every script onto every footage reference. Pairs already rendered "
        "are skipped unless force_rerender is set."
    ),
)
async def render_batch(
    batch_id: str, request: RenderRequest, pipeline: AssetPipelineDep
) -> RenderRunResponse:
    logger.info("render_batch_requested", batch_id=batch_id, footage=len(request.footage))
    result = await pipeline.render_batch(
        batch_id, [f.to_ref() for f in request.footage], request.to_options()
    )
    return render_response(result)


@router.post(
    "/{batch_id}/approval",
    summary="Send for approval",
    description="Send the batch for review now, or after delay_minutes.",
)
async def schedule_approval(
    batch_id: str, request: ApprovalRequestBody, scheduler: ApprovalSchedulerDep
) -> dict[str, Any]:
    result = await scheduler.schedule_approval(batch_id, request.delay_minutes)
    return {"success": result.sent or result.deferred, **result.to_dict()}
