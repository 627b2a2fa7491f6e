"""Meta Marketing API adapter."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx

from creative_engine.adapters.ads.base import PAUSED, AdsPlatformAdapter
from creative_engine.config import settings
from creative_engine.errors import (
    AdsPlatformError,
    ConfigurationError,
    PermanentUploadError,
    TransientExternalError,
    UploadTimeoutError,
)
from creative_engine.logging import get_logger

logger = get_logger(__name__)

GRAPH_API_HOST = "https://graph.facebook.com"

CAMPAIGN_TEMPLATE_FIELDS = "objective,special_ad_categories,buying_type,bid_strategy"
AD_SET_TEMPLATE_FIELDS = (
    "targeting,optimization_goal,billing_event,bid_strategy,bid_amount,"
    "daily_budget,lifetime_budget,promoted_object,destination_type,attribution_spec"
)
AD_CREATIVE_FIELDS = "creative{object_story_spec,call_to_action_type,url_tags}"


def _graph_error(response: httpx.Response) -> str:
    try:
        error = response.json().get("error", {})
    except ValueError:
        return response.text[:500]
    return error.get("error_user_msg") or error.get("message") or response.text[:500]


class MetaAdsPlatform(AdsPlatformAdapter):
    """Meta ad account client over the Graph API."""

    def __init__(
        self,
        access_token: str | None = None,
        ad_account_id: str | None = None,
        api_version: str | None = None,
    ) -> None:
        self.access_token = access_token or settings.meta_access_token
        account = ad_account_id or settings.meta_ad_account_id or ""
        if account and not account.startswith("act_"):
            account = f"act_{account}"
        self.ad_account_id = account
        self.base_url = f"{GRAPH_API_HOST}/{api_version or settings.meta_api_version}"

        if not self.access_token:
            logger.warning("Meta access token not configured")

    @property
    def name(self) -> str:
        return "meta"

    def _require_config(self) -> None:
        if not self.access_token or not self.ad_account_id:
            raise ConfigurationError("META_ACCESS_TOKEN and META_AD_ACCOUNT_ID must be configured")

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        timeout: float = 60.0,
        timeout_error: type[TransientExternalError] = TransientExternalError,
    ) -> dict[str, Any]:
        """Call the Graph API and map failures onto the error hierarchy."""
        self._require_config()
        params = {**(params or {}), "access_token": self.access_token}

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.request(
                    method, f"{self.base_url}/{path}", params=params, data=data, files=files
                )
        except httpx.TimeoutException as e:
            raise timeout_error(
                f"Meta {path} timed out after {timeout:.0f}s", {"timeout": timeout}
            ) from e
        except httpx.TransportError as e:
            raise TransientExternalError(f"Meta {path} connection failed: {e}") from e

        if response.status_code >= 500:
            raise TransientExternalError(
                f"Meta {path} returned {response.status_code}: {_graph_error(response)}"
            )
        if response.status_code >= 400:
            raise AdsPlatformError(
                f"Meta {path} rejected request: {_graph_error(response)}",
                {"status_code": response.status_code},
            )
        return response.json()

    # ------------------------------------------------------------------ media

    async def upload_video(self, path: Path, name: str, timeout: float) -> str:
        try:
            with path.open("rb") as fh:
                data = await self._request(
                    "POST",
                    f"{self.ad_account_id}/advideos",
                    data={"name": name},
                    files={"source": (path.name, fh, "video/mp4")},
                    timeout=timeout,
                    timeout_error=UploadTimeoutError,
                )
        except AdsPlatformError as e:
            raise PermanentUploadError(e.message, e.details) from e

        video_id = data.get("id")
        if not video_id:
            raise PermanentUploadError(f"Meta returned no video id for {name}", {"response": data})
        logger.info("meta_video_uploaded", name=name, video_id=video_id)
        return str(video_id)

    async def upload_video_resumable(self, path: Path, name: str) -> str:
        endpoint = f"{self.ad_account_id}/advideos"
        file_size = path.stat().st_size
        chunk_timeout = settings.upload_timeout(settings.upload_chunk_size_mb * 1024 * 1024)

        try:
            start = await self._request(
                "POST", endpoint, data={"upload_phase": "start", "file_size": file_size}
            )
            session_id = start["upload_session_id"]
            video_id = start["video_id"]
            start_offset = int(start["start_offset"])
            end_offset = int(start["end_offset"])

            with path.open("rb") as fh:
                while start_offset < end_offset:
                    fh.seek(start_offset)
                    chunk = fh.read(end_offset - start_offset)
                    transfer = await self._request(
                        "POST",
                        endpoint,
                        data={
                            "upload_phase": "transfer",
                            "upload_session_id": session_id,
                            "start_offset": start_offset,
                        },
                        files={"video_file_chunk": (path.name, chunk, "application/octet-stream")},
                        timeout=chunk_timeout,
                    )
                    start_offset = int(transfer["start_offset"])
                    end_offset = int(transfer["end_offset"])

            await self._request(
                "POST",
                endpoint,
                data={"upload_phase": "finish", "upload_session_id": session_id, "title": name},
            )
        except AdsPlatformError as e:
            raise PermanentUploadError(e.message, e.details) from e
        except KeyError as e:
            raise PermanentUploadError(f"Unexpected resumable upload response: missing {e}") from e

        logger.info("meta_video_uploaded_resumable", name=name, video_id=video_id, size=file_size)
        return str(video_id)

    # ------------------------------------------------------------------ campaigns

    async def create_campaign_from_template(
        self,
        template_campaign_id: str,
        name: str,
        start_time: datetime,
        end_time: datetime,
        status: str = PAUSED,
    ) -> str:
        template = await self._request(
            "GET", template_campaign_id, params={"fields": CAMPAIGN_TEMPLATE_FIELDS}
        )
        payload: dict[str, Any] = {
            "name": name,
            "objective": template.get("objective"),
            "status": status,
            "special_ad_categories": json.dumps(template.get("special_ad_categories") or []),
            "start_time": start_time.isoformat(),
            "stop_time": end_time.isoformat(),
        }
        if template.get("buying_type"):
            payload["buying_type"] = template["buying_type"]
        if template.get("bid_strategy"):
            payload["bid_strategy"] = template["bid_strategy"]

        data = await self._request("POST", f"{self.ad_account_id}/campaigns", data=payload)
        logger.info("meta_campaign_created", campaign_id=data.get("id"), name=name)
        return str(data["id"])

    async def get_ad_set_template(self, ad_set_id: str) -> dict[str, Any]:
        data = await self._request("GET", ad_set_id, params={"fields": AD_SET_TEMPLATE_FIELDS})
        data.pop("id", None)
        return data

    async def get_creative_template(self, ad_id: str) -> dict[str, Any]:
        data = await self._request("GET", ad_id, params={"fields": AD_CREATIVE_FIELDS})
        creative = data.get("creative")
        if not creative or "object_story_spec" not in creative:
            raise AdsPlatformError(f"Template ad {ad_id} has no creative spec")
        creative.pop("id", None)
        return creative

    async def create_ad_set(
        self,
        template: dict[str, Any],
        campaign_id: str,
        name: str,
        start_time: datetime,
        end_time: datetime,
        status: str = PAUSED,
    ) -> str:
        payload = {
            key: json.dumps(value) if isinstance(value, (dict, list)) else value
            for key, value in template.items()
            if value is not None
        }
        payload.update(
            {
                "campaign_id": campaign_id,
                "name": name,
                "status": status,
                "start_time": start_time.isoformat(),
                "end_time": end_time.isoformat(),
            }
        )
        data = await self._request("POST", f"{self.ad_account_id}/adsets", data=payload)
        return str(data["id"])

    async def create_ad_creative(self, template: dict[str, Any], name: str, video_id: str) -> str:
        story = json.loads(json.dumps(template["object_story_spec"]))
        video_data = story.setdefault("video_data", {})
        video_data["video_id"] = video_id
        # Template thumbnails belong to the template video
        video_data.pop("image_hash", None)
        video_data.pop("image_url", None)

        payload: dict[str, Any] = {"name": name, "object_story_spec": json.dumps(story)}
        if template.get("url_tags"):
            payload["url_tags"] = template["url_tags"]

        data = await self._request("POST", f"{self.ad_account_id}/adcreatives", data=payload)
        return str(data["id"])

    async def create_ad(
        self, name: str, ad_set_id: str, creative_id: str, status: str = PAUSED
    ) -> str:
        data = await self._request(
            "POST",
            f"{self.ad_account_id}/ads",
            data={
                "name": name,
                "adset_id": ad_set_id,
                "creative": json.dumps({"creative_id": creative_id}),
                "status": status,
            },
        )
        logger.info("meta_ad_created", ad_id=data.get("id"), name=name)
        return str(data["id"])

    async def health_check(self) -> bool:
        try:
            await self._request("GET", self.ad_account_id, params={"fields": "id"})
        except (ConfigurationError, AdsPlatformError, TransientExternalError) as e:
            logger.error("meta_health_check_failed", error=str(e))
            return False
        return True
