"""Stub ads platform for testing."""

import itertools
from datetime import datetime
from pathlib import Path
from typing import Any

from creative_engine.adapters.ads.base import PAUSED, AdsPlatformAdapter
from creative_engine.errors import AdsPlatformError, PermanentUploadError, UploadTimeoutError
from creative_engine.logging import get_logger

logger = get_logger(__name__)


class StubAdsPlatform(AdsPlatformAdapter):
    """Records campaign objects in memory.

    Uploads of names in ``timeout_for`` time out on the single-request path,
    names in ``reject_uploads`` are rejected outright and ad names in
    ``fail_ads_for`` fail at ad creation.
    """

    def __init__(
        self,
        timeout_for: set[str] | None = None,
        reject_uploads: set[str] | None = None,
        fail_ads_for: set[str] | None = None,
    ) -> None:
        self.timeout_for = timeout_for or set()
        self.reject_uploads = reject_uploads or set()
        self.fail_ads_for = fail_ads_for or set()
        self.videos: dict[str, str] = {}
        self.resumable_uploads: list[str] = []
        self.campaigns: list[dict[str, Any]] = []
        self.ad_sets: list[dict[str, Any]] = []
        self.creatives: list[dict[str, Any]] = []
        self.ads: list[dict[str, Any]] = []
        self._ids = itertools.count(1000)

    @property
    def name(self) -> str:
        return "stub"

    def _id(self) -> str:
        return str(next(self._ids))

    async def upload_video(self, path: Path, name: str, timeout: float) -> str:
        if name in self.timeout_for:
            raise UploadTimeoutError(f"Upload of {name} timed out after {timeout:.0f}s")
        if name in self.reject_uploads:
            raise PermanentUploadError(f"Upload of {name} rejected")
        video_id = self._id()
        self.videos[video_id] = name
        logger.info("stub_video_uploaded", name=name, video_id=video_id)
        return video_id

    async def upload_video_resumable(self, path: Path, name: str) -> str:
        if name in self.reject_uploads:
            raise PermanentUploadError(f"Upload of {name} rejected")
        video_id = self._id()
        self.videos[video_id] = name
        self.resumable_uploads.append(name)
        return video_id

    async def create_campaign_from_template(
        self,
        template_campaign_id: str,
        name: str,
        start_time: datetime,
        end_time: datetime,
        status: str = PAUSED,
    ) -> str:
        campaign_id = self._id()
        self.campaigns.append(
            {
                "id": campaign_id,
                "template": template_campaign_id,
                "name": name,
                "start_time": start_time,
                "end_time": end_time,
                "status": status,
            }
        )
        return campaign_id

    async def get_ad_set_template(self, ad_set_id: str) -> dict[str, Any]:
        return {"template_id": ad_set_id, "optimization_goal": "THRUPLAY"}

    async def get_creative_template(self, ad_id: str) -> dict[str, Any]:
        return {"template_id": ad_id, "object_story_spec": {"page_id": "stub_page"}}

    async def create_ad_set(
        self,
        template: dict[str, Any],
        campaign_id: str,
        name: str,
        start_time: datetime,
        end_time: datetime,
        status: str = PAUSED,
    ) -> str:
        ad_set_id = self._id()
        self.ad_sets.append(
            {"id": ad_set_id, "campaign_id": campaign_id, "name": name, "status": status}
        )
        return ad_set_id

    async def create_ad_creative(self, template: dict[str, Any], name: str, video_id: str) -> str:
        creative_id = self._id()
        self.creatives.append({"id": creative_id, "name": name, "video_id": video_id})
        return creative_id

    async def create_ad(
        self, name: str, ad_set_id: str, creative_id: str, status: str = PAUSED
    ) -> str:
        if name in self.fail_ads_for:
            raise AdsPlatformError(f"Ad {name} rejected")
        ad_id = self._id()
        self.ads.append(
            {
                "id": ad_id,
                "name": name,
                "ad_set_id": ad_set_id,
                "creative_id": creative_id,
                "status": status,
            }
        )
        return ad_id
