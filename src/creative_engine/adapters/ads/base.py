"""Base interface for the ads platform."""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

PAUSED = "PAUSED"


class AdsPlatformAdapter(ABC):
    """Abstract base class for ads platforms.

    New campaigns, ad sets and creatives are cloned from per-market template
    objects that already exist in the ad account, so targeting, budgets and
    page identity are managed on the platform rather than here.

    Implementations:
    - MetaAdsPlatform: Meta Marketing (Graph) API
    - StubAdsPlatform: Records calls for tests and local runs

    Upload errors: UploadTimeoutError when a single-request upload times out,
    PermanentUploadError when the platform rejects the file,
    TransientExternalError for connection failures and 5xx responses.
    Campaign/ad calls raise AdsPlatformError.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def upload_video(self, path: Path, name: str, timeout: float) -> str:
        """Upload a video to the ad account media library in one request.

        Returns:
            The platform's video id.
        """
        ...

    @abstractmethod
    async def upload_video_resumable(self, path: Path, name: str) -> str:
        """Upload a video in chunks (start, transfer, finish). Returns the video id."""
        ...

    @abstractmethod
    async def create_campaign_from_template(
        self,
        template_campaign_id: str,
        name: str,
        start_time: datetime,
        end_time: datetime,
        status: str = PAUSED,
    ) -> str:
        """Create a campaign with the template's objective and settings."""
        ...

    @abstractmethod
    async def get_ad_set_template(self, ad_set_id: str) -> dict[str, Any]:
        """Fields of a template ad set that new ad sets copy."""
        ...

    @abstractmethod
    async def get_creative_template(self, ad_id: str) -> dict[str, Any]:
        """Creative spec of a template ad."""
        ...

    @abstractmethod
    async def create_ad_set(
        self,
        template: dict[str, Any],
        campaign_id: str,
        name: str,
        start_time: datetime,
        end_time: datetime,
        status: str = PAUSED,
    ) -> str:
        ...

    @abstractmethod
    async def create_ad_creative(self, template: dict[str, Any], name: str, video_id: str) -> str:
        ...

    @abstractmethod
    async def create_ad(
        self, name: str, ad_set_id: str, creative_id: str, status: str = PAUSED
    ) -> str:
        ...

    async def health_check(self) -> bool:
        return True
