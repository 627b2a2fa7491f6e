"""Google Drive storage provider."""

import asyncio
import io
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload, MediaIoBaseDownload

from creative_engine.adapters.google_auth import build_service, get_google_credentials
from creative_engine.adapters.storage.base import StorageProvider, StoredFile, StoredFolder
from creative_engine.config import settings
from creative_engine.errors import (
    ConfigurationError,
    StorageError,
    TransientExternalError,
    UploadTimeoutError,
)
from creative_engine.logging import get_logger

logger = get_logger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


class GoogleDriveStorage(StorageProvider):
    """Drive v3 storage; blocking client calls run in worker threads."""

    def __init__(
        self,
        parent_folder_id: str | None = None,
        credentials: Any = None,
        chunk_size_mb: int | None = None,
    ) -> None:
        self.parent_folder_id = parent_folder_id or settings.drive_parent_folder_id
        self._credentials = credentials
        self.chunk_size = (chunk_size_mb or settings.upload_chunk_size_mb) * 1024 * 1024

    @property
    def name(self) -> str:
        return "google_drive"

    def _drive(self) -> Any:
        if self._credentials is None:
            self._credentials = get_google_credentials()
        return build_service("drive", "v3", self._credentials)

    # Blocking helpers

    def _create_folder_sync(self, name: str) -> StoredFolder:
        drive = self._drive()
        body: dict[str, Any] = {"name": name, "mimeType": FOLDER_MIME_TYPE}
        if self.parent_folder_id:
            body["parents"] = [self.parent_folder_id]
        try:
            folder = (
                drive.files()
                .create(body=body, fields="id,webViewLink", supportsAllDrives=True)
                .execute()
            )
            drive.permissions().create(
                fileId=folder["id"],
                body={"role": "reader", "type": "anyone"},
                supportsAllDrives=True,
            ).execute()
        except HttpError as exc:
            raise StorageError(f"Failed to create Drive folder {name!r}: {exc}") from exc

        folder_id = folder["id"]
        link = folder.get("webViewLink") or f"https://drive.google.com/drive/folders/{folder_id}"
        return StoredFolder(folder_id=folder_id, link=link)

    def _download_sync(self, file_id: str, destination: Path) -> Path:
        drive = self._drive()
        destination.parent.mkdir(parents=True, exist_ok=True)
        request = drive.files().get_media(fileId=file_id, supportsAllDrives=True)
        try:
            with io.FileIO(destination, "wb") as fh:
                downloader = MediaIoBaseDownload(fh, request, chunksize=self.chunk_size)
                done = False
                while not done:
                    _, done = downloader.next_chunk()
        except HttpError as exc:
            destination.unlink(missing_ok=True)
            raise StorageError(f"Failed to download Drive file {file_id}: {exc}") from exc
        except (ConnectionError, TimeoutError, OSError) as exc:
            destination.unlink(missing_ok=True)
            raise TransientExternalError(
                f"Drive download interrupted for {file_id}: {exc}"
            ) from exc
        return destination

    def _upload_sync(self, path: Path, name: str, folder_id: str | None) -> StoredFile:
        drive = self._drive()
        body: dict[str, Any] = {"name": name}
        if folder_id:
            body["parents"] = [folder_id]
        media = MediaFileUpload(
            str(path), mimetype="video/mp4", resumable=True, chunksize=self.chunk_size
        )
        try:
            created = (
                drive.files()
                .create(
                    body=body,
                    media_body=media,
                    fields="id,name,webViewLink,size",
                    supportsAllDrives=True,
                )
                .execute()
            )
        except HttpError as exc:
            raise StorageError(f"Failed to upload {name!r} to Drive: {exc}") from exc
        except (ConnectionError, TimeoutError, OSError) as exc:
            raise TransientExternalError(f"Drive upload of {name!r} interrupted: {exc}") from exc

        file_id = created["id"]
        return StoredFile(
            file_id=file_id,
            name=created.get("name", name),
            link=created.get("webViewLink") or f"https://drive.google.com/file/d/{file_id}/view",
            size_bytes=int(created["size"]) if created.get("size") else None,
        )

    # Async interface

    async def create_batch_folder(self, label: str, market: str | None = None) -> StoredFolder:
        if not self.parent_folder_id:
            raise ConfigurationError("DRIVE_PARENT_FOLDER_ID is not configured")
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S")
        name = "_".join(part for part in (label, market, stamp) if part)
        folder = await asyncio.to_thread(self._create_folder_sync, name)
        logger.info("drive_folder_created", name=name, folder_id=folder.folder_id)
        return folder

    async def download_file(self, file_id: str, destination: Path) -> Path:
        logger.info("drive_download_started", file_id=file_id)
        path = await asyncio.to_thread(self._download_sync, file_id, destination)
        logger.info("drive_download_completed", file_id=file_id, size=path.stat().st_size)
        return path

    async def upload_file(
        self,
        path: Path,
        name: str,
        folder_id: str | None,
        timeout: float | None = None,
    ) -> StoredFile:
        timeout = timeout or settings.upload_timeout(path.stat().st_size)
        try:
            stored = await asyncio.wait_for(
                asyncio.to_thread(self._upload_sync, path, name, folder_id), timeout=timeout
            )
        except asyncio.TimeoutError as exc:
            logger.error("drive_upload_timeout", name=name, timeout=timeout)
            raise UploadTimeoutError(
                f"Drive upload of {name!r} timed out after {timeout:.0f}s"
            ) from exc
        logger.info("drive_upload_completed", name=name, file_id=stored.file_id)
        return stored

    async def health_check(self) -> bool:
        try:
            await asyncio.to_thread(lambda: self._drive().about().get(fields="user").execute())
        except (HttpError, ConfigurationError) as e:
            logger.error("drive_health_check_failed", error=str(e))
            return False
        return True
