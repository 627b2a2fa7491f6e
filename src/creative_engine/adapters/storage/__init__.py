"""Remote storage adapters."""

from creative_engine.adapters.storage.base import (
    StorageProvider,
    StoredFile,
    StoredFolder,
    extract_file_id,
)
from creative_engine.adapters.storage.google_drive import GoogleDriveStorage
from creative_engine.adapters.storage.stub import StubStorage

__all__ = [
    "StorageProvider",
    "StoredFile",
    "StoredFolder",
    "extract_file_id",
    "GoogleDriveStorage",
    "StubStorage",
]
