"""Publish approved assets to the ads platform.

Three stages, each callable on its own:

1. ``upload_raw``: one stored asset into the ad account media library
2. ``upload_batch``: stage 1 over a list, never stopping on a single failure
3. ``create_campaign``: one paused campaign with an ad set, creative and ad
   per uploaded video, cloned from the market's template objects
"""

import re
import shutil
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from creative_engine.adapters.ads.base import PAUSED, AdsPlatformAdapter
from creative_engine.adapters.ledger.base import CampaignReportRow, LedgerAdapter
from creative_engine.adapters.storage.base import StorageProvider
from creative_engine.config import Settings
from creative_engine.config import settings as default_settings
from creative_engine.domain.enums import MetaMarket
from creative_engine.domain.models import UploadedAsset
from creative_engine.errors import (
    BatchUploadFailedError,
    CreativeEngineError,
    PermanentUploadError,
    PublishPreconditionError,
    UploadTimeoutError,
)
from creative_engine.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MARKET = MetaMarket.UK


@dataclass
class RawUploadOutcome:
    """Result of uploading one asset to the ads platform."""

    file_name: str
    video_file_id: str | None
    success: bool
    meta_video_id: str | None = None
    error: str | None = None
    permanent: bool = False
    retry_resumable: bool = False
    resumable: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "video_file_id": self.video_file_id,
            "success": self.success,
            "meta_video_id": self.meta_video_id,
            "error": self.error,
            "permanent": self.permanent,
            "retry_resumable": self.retry_resumable,
            "resumable": self.resumable,
        }


@dataclass
class BatchUploadResult:
    outcomes: list[RawUploadOutcome] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def total_count(self) -> int:
        return len(self.outcomes)

    @property
    def success(self) -> bool:
        return self.success_count > 0


@dataclass
class AdResult:
    """One ad created (or not) within a campaign."""

    file_name: str
    meta_video_id: str | None
    success: bool
    ad_set_id: str | None = None
    creative_id: str | None = None
    ad_id: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "meta_video_id": self.meta_video_id,
            "success": self.success,
            "ad_set_id": self.ad_set_id,
            "creative_id": self.creative_id,
            "ad_id": self.ad_id,
            "error": self.error,
        }


@dataclass
class CampaignResult:
    campaign_id: str
    campaign_name: str
    market: MetaMarket
    ads: list[AdResult] = field(default_factory=list)
    report_written: bool = False

    @property
    def success_count(self) -> int:
        return sum(1 for a in self.ads if a.success)

    @property
    def total_count(self) -> int:
        return len(self.ads)

    @property
    def success(self) -> bool:
        return self.success_count > 0


@dataclass
class CampaignAsset:
    """An asset already in the ads media library."""

    file_name: str
    meta_video_id: str | None


def campaign_name_for(market: MetaMarket, now: datetime) -> str:
    """``Auto <market> <ISO timestamp>`` with ``:`` and ``.`` replaced by ``-``."""
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    stamp = re.sub(r"[:.]", "-", stamp.replace("+00:00", "Z"))
    return f"Auto {market} {stamp}"


class PublishOrchestrator:
    """Moves stored assets into ads and campaigns."""

    def __init__(
        self,
        storage: StorageProvider,
        ads: AdsPlatformAdapter,
        ledger: LedgerAdapter,
        settings: Settings | None = None,
    ) -> None:
        self.storage = storage
        self.ads = ads
        self.ledger = ledger
        self.settings = settings or default_settings

    # ------------------------------------------------------------------ stage 1

    async def upload_raw(self, asset: UploadedAsset, resumable: bool = False) -> RawUploadOutcome:
        """Copy one stored asset into the ad account.

        A timed-out single-request upload is reported with ``retry_resumable``
        so the caller can try again with ``resumable=True``.
        """
        outcome = RawUploadOutcome(
            file_name=asset.file_name,
            video_file_id=asset.video_file_id,
            success=False,
            resumable=resumable,
        )
        file_id = asset.video_file_id or self.storage.extract_file_id(asset.drive_link)
        if not file_id:
            outcome.error = "Asset has no stored video id"
            outcome.permanent = True
            return outcome

        work_dir = Path(tempfile.mkdtemp(prefix="publish_", dir=self._temp_root()))
        try:
            path = await self.storage.download_file(file_id, work_dir / f"{asset.file_name}.mp4")
            if resumable:
                video_id = await self.ads.upload_video_resumable(path, asset.file_name)
            else:
                timeout = self.settings.upload_timeout(path.stat().st_size)
                video_id = await self.ads.upload_video(path, asset.file_name, timeout)
        except UploadTimeoutError as e:
            logger.warning("ads_upload_timeout", file_name=asset.file_name, error=e.message)
            outcome.error = e.message
            outcome.retry_resumable = True
        except PermanentUploadError as e:
            logger.error("ads_upload_rejected", file_name=asset.file_name, error=e.message)
            outcome.error = e.message
            outcome.permanent = True
        except CreativeEngineError as e:
            logger.warning("ads_upload_failed", file_name=asset.file_name, error=e.message)
            outcome.error = e.message
        else:
            outcome.success = True
            outcome.meta_video_id = video_id
            logger.info("ads_upload_completed", file_name=asset.file_name, video_id=video_id)
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)
        return outcome

    def _temp_root(self) -> str:
        root = Path(self.settings.work_dir)
        root.mkdir(parents=True, exist_ok=True)
        return str(root)

    # ------------------------------------------------------------------ stage 2

    async def upload_batch(self, assets: list[UploadedAsset]) -> BatchUploadResult:
        """Upload assets one after another; a failure never stops the rest.

        Raises:
            BatchUploadFailedError: Not a single asset was uploaded.
        """
        result = BatchUploadResult()
        for asset in assets:
            result.outcomes.append(await self.upload_raw(asset))
        logger.info(
            "ads_batch_upload_completed",
            succeeded=result.success_count,
            total=result.total_count,
        )
        if result.outcomes and not result.success:
            raise BatchUploadFailedError(
                f"All {result.total_count} uploads failed",
                [o.to_dict() for o in result.outcomes],
            )
        return result

    # ------------------------------------------------------------------ stage 3

    def _templates(self, market: MetaMarket) -> dict[str, str]:
        templates = self.settings.market_templates().get(str(market), {})
        missing = [k for k in ("campaign_id", "ad_set_id", "ad_id") if not templates.get(k)]
        if missing:
            raise PublishPreconditionError(
                f"Missing ads template ids for market {market}",
                {"market": str(market), "missing": missing},
            )
        return templates

    async def create_campaign(
        self,
        uploaded: list[CampaignAsset],
        market: str | None = None,
        spreadsheet_id: str | None = None,
    ) -> CampaignResult:
        """Create one paused campaign with an ad per uploaded video.

        Raises:
            PublishPreconditionError: Nothing to publish or no templates for the market.
            AdsPlatformError: The campaign itself or its templates could not be read/created.
        """
        if not uploaded:
            raise PublishPreconditionError("At least one uploaded asset is required")
        normalized = MetaMarket.normalize(market) or DEFAULT_MARKET
        templates = self._templates(normalized)

        now = datetime.now(timezone.utc)
        end = now + timedelta(days=self.settings.campaign_run_days)
        name = campaign_name_for(normalized, now)

        campaign_id = await self.ads.create_campaign_from_template(
            templates["campaign_id"], name, now, end, PAUSED
        )
        ad_set_template = await self.ads.get_ad_set_template(templates["ad_set_id"])
        creative_template = await self.ads.get_creative_template(templates["ad_id"])
        logger.info("campaign_created", campaign_id=campaign_id, name=name, market=str(normalized))

        result = CampaignResult(campaign_id=campaign_id, campaign_name=name, market=normalized)
        for asset in uploaded:
            ad = AdResult(
                file_name=asset.file_name, meta_video_id=asset.meta_video_id, success=False
            )
            result.ads.append(ad)
            if not asset.meta_video_id:
                ad.error = "No ads platform video id"
                continue
            try:
                ad.ad_set_id = await self.ads.create_ad_set(
                    ad_set_template, campaign_id, f"Ad Set - {asset.file_name}", now, end, PAUSED
                )
                ad.creative_id = await self.ads.create_ad_creative(
                    creative_template, f"Creative - {asset.file_name}", asset.meta_video_id
                )
                ad.ad_id = await self.ads.create_ad(
                    asset.file_name, ad.ad_set_id, ad.creative_id, PAUSED
                )
            except CreativeEngineError as e:
                logger.warning("ad_create_failed", file_name=asset.file_name, error=e.message)
                ad.error = e.message
            else:
                ad.success = True

        successful = [a for a in result.ads if a.success]
        if successful and spreadsheet_id:
            try:
                await self.ledger.append_campaign_report(
                    spreadsheet_id,
                    [
                        CampaignReportRow(
                            campaign_name=name, ad_id=a.ad_id or "", ad_name=a.file_name
                        )
                        for a in successful
                    ],
                )
                result.report_written = True
            except CreativeEngineError as e:
                logger.warning("campaign_report_failed", error=e.message)

        logger.info(
            "campaign_ads_completed",
            campaign_id=campaign_id,
            succeeded=result.success_count,
            total=result.total_count,
        )
        return result
