"""Base interface for remote file storage."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

_FILE_ID_PATTERNS = (
    re.compile(r"/file/d/([A-Za-z0-9_-]+)"),
    re.compile(r"/folders/([A-Za-z0-9_-]+)"),
    re.compile(r"[?&]id=([A-Za-z0-9_-]+)"),
    re.compile(r"/d/([A-Za-z0-9_-]+)"),
)
_BARE_ID = re.compile(r"^[A-Za-z0-9_-]{10,}$")


def extract_file_id(link: str | None) -> str | None:
    """File id from a share link, or the value itself when it already is an id."""
    if not link:
        return None
    link = link.strip()
    for pattern in _FILE_ID_PATTERNS:
        match = pattern.search(link)
        if match:
            return match.group(1)
    return link if _BARE_ID.match(link) else None


@dataclass
class StoredFolder:
    """A folder created for one render run."""

    folder_id: str
    link: str


@dataclass
class StoredFile:
    """A file in remote storage."""

    file_id: str
    name: str
    link: str
    size_bytes: int | None = None


class StorageProvider(ABC):
    """Abstract base class for remote storage.

    Implementations:
    - GoogleDriveStorage: Google Drive v3 API
    - StubStorage: In-memory store for tests and local runs

    Transport timeouts raise TransientExternalError (UploadTimeoutError for
    uploads); missing files and rejected requests raise StorageError.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def create_batch_folder(self, label: str, market: str | None = None) -> StoredFolder:
        """Create a timestamped, link-shareable folder for a render run."""
        ...

    @abstractmethod
    async def download_file(self, file_id: str, destination: Path) -> Path:
        """Download a file to ``destination`` and return the path."""
        ...

    @abstractmethod
    async def upload_file(
        self,
        path: Path,
        name: str,
        folder_id: str | None,
        timeout: float | None = None,
    ) -> StoredFile:
        """Upload a local file into a folder."""
        ...

    def extract_file_id(self, link: str | None) -> str | None:
        return extract_file_id(link)

    async def health_check(self) -> bool:
        return True
