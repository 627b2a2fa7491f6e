"""Render endpoints that are not tied to a script batch."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from creative_engine.api.deps import AssetPipelineDep
from creative_engine.api.routes.batches import FootageInput, RenderRunResponse, render_response
from creative_engine.domain.models import RenderOptions
from creative_engine.logging import get_logger

router = APIRouter(prefix="/renders", tags=["Renders"])
logger = get_logger(__name__)


class FootageOnlyRequest(BaseModel):
    """Upload base footage as-is, without narration."""

    footage: list[FootageInput] = Field(..., min_length=1)
    market: str | None = Field(None, max_length=10)
    spreadsheet_id: str | None = None


@router.post(
    "/footage-only",
    response_model=RenderRunResponse,
    summary="Upload footage without scripts",
    description=(
        "Rename each footage file from the asset ledger and upload it into its own "
        "run folder, without narration or captions."
    ),
)
async def footage_only(
    request: FootageOnlyRequest, pipeline: AssetPipelineDep
) -> RenderRunResponse:
    logger.info("footage_only_requested", footage=len(request.footage))
    result = await pipeline.upload_footage_only(
        [f.to_ref() for f in request.footage],
        RenderOptions(market=request.market, spreadsheet_id=request.spreadsheet_id),
    )
    return render_response(result)
