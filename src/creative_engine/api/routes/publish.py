"""Ads publishing endpoints."""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from creative_engine.api.deps import PublishOrchestratorDep
from creative_engine.domain.models import UploadedAsset
from creative_engine.logging import get_logger
from creative_engine.services.publish import CampaignAsset

router = APIRouter(prefix="/publish", tags=["Publish"])
logger = get_logger(__name__)


class AssetInput(BaseModel):
    """A finished video in remote storage."""

    file_name: str = Field(..., min_length=1, max_length=255)
    video_file_id: str | None = None
    drive_link: str | None = None

    def to_asset(self) -> UploadedAsset:
        return UploadedAsset(
            file_name=self.file_name,
            video_file_id=self.video_file_id,
            drive_link=self.drive_link,
        )


class UploadRequest(AssetInput):
    """Upload one asset to the ads media library."""

    resumable: bool = False


class UploadBatchRequest(BaseModel):
    assets: list[AssetInput] = Field(..., min_length=1)


class CampaignAssetInput(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    meta_video_id: str | None = None


class CampaignRequest(BaseModel):
    """Create one paused campaign from uploaded videos."""

    uploaded: list[CampaignAssetInput] = Field(..., min_length=1)
    market: str | None = Field(None, max_length=10)
    spreadsheet_id: str | None = None


@router.post(
    "/upload",
    summary="Upload one asset",
    description=(
        "Copy a stored video into the ad account. A timed-out upload is reported "
        "with retry_resumable so it can be retried with resumable=true."
    ),
)
async def upload(request: UploadRequest, orchestrator: PublishOrchestratorDep) -> dict[str, Any]:
    outcome = await orchestrator.upload_raw(request.to_asset(), resumable=request.resumable)
    return outcome.to_dict()


@router.post(
    "/upload-batch",
    summary="Upload assets",
    description=(
        "Upload each asset in turn; one failure never stops the rest. "
        "A batch where no asset uploads is a 502 with every result in details."
    ),
)
async def upload_batch(
    request: UploadBatchRequest, orchestrator: PublishOrchestratorDep
) -> dict[str, Any]:
    result = await orchestrator.upload_batch([a.to_asset() for a in request.assets])
    return {
        "success": result.success,
        "success_count": result.success_count,
        "total_count": result.total_count,
        "results": [o.to_dict() for o in result.outcomes],
    }


@router.post(
    "/campaign",
    summary="Create campaign",
    description="One paused campaign with an ad set, creative and ad per uploaded video.",
)
async def create_campaign(
    request: CampaignRequest, orchestrator: PublishOrchestratorDep
) -> dict[str, Any]:
    logger.info("create_campaign_requested", assets=len(request.uploaded), market=request.market)
    result = await orchestrator.create_campaign(
        [
            CampaignAsset(file_name=a.file_name, meta_video_id=a.meta_video_id)
            for a in request.uploaded
        ],
        market=request.market,
        spreadsheet_id=request.spreadsheet_id,
    )
    return {
        "success": result.success,
        "campaign_id": result.campaign_id,
        "campaign_name": result.campaign_name,
        "market": str(result.market),
        "success_count": result.success_count,
        "total_count": result.total_count,
        "report_written": result.report_written,
        "ads": [a.to_dict() for a in result.ads],
    }
