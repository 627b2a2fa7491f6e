"""Stub storage for testing."""

import itertools
from pathlib import Path

from creative_engine.adapters.storage.base import StorageProvider, StoredFile, StoredFolder
from creative_engine.errors import StorageError
from creative_engine.logging import get_logger

logger = get_logger(__name__)


class StubStorage(StorageProvider):
    """In-memory storage.

    Any file id can be downloaded unless listed in ``missing``; uploads are
    kept so they can be downloaded again.
    """

    def __init__(self, missing: set[str] | None = None) -> None:
        self.missing = missing or set()
        self.files: dict[str, bytes] = {}
        self.folders: list[StoredFolder] = []
        self.uploads: list[StoredFile] = []
        self.downloads: list[str] = []
        self._ids = itertools.count(1)

    @property
    def name(self) -> str:
        return "stub"

    async def create_batch_folder(self, label: str, market: str | None = None) -> StoredFolder:
        folder_id = f"stub_folder_{next(self._ids)}"
        folder = StoredFolder(folder_id=folder_id, link=f"https://stub.local/folders/{folder_id}")
        self.folders.append(folder)
        logger.info("stub_folder_created", label=label, market=market, folder_id=folder_id)
        return folder

    async def download_file(self, file_id: str, destination: Path) -> Path:
        self.downloads.append(file_id)
        if file_id in self.missing:
            raise StorageError(f"File not found: {file_id}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(self.files.get(file_id, f"STUB_FILE {file_id}".encode()))
        return destination

    async def upload_file(
        self,
        path: Path,
        name: str,
        folder_id: str | None,
        timeout: float | None = None,
    ) -> StoredFile:
        file_id = f"stub_file_{next(self._ids)}"
        data = path.read_bytes()
        self.files[file_id] = data
        stored = StoredFile(
            file_id=file_id,
            name=name,
            link=f"https://stub.local/file/d/{file_id}/view",
            size_bytes=len(data),
        )
        self.uploads.append(stored)
        logger.info("stub_file_uploaded", name=name, folder_id=folder_id, file_id=file_id)
        return stored
