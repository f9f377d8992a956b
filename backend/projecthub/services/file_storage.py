"""Blob storage for uploaded file bytes. Local filesystem only for now."""
import logging
import os
import uuid
from pathlib import Path
from typing import AsyncIterator

import aiofiles

from projecthub.config import settings
from projecthub.services.exceptions import StorageWriteError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class FileStorageService:
    """Handles blob write/read on local disk.

    Every write gets a fresh name, so two revisions of the same document
    never share a storage path.
    """

    def __init__(self, base_path: str | Path | None = None, storage_type: str | None = None):
        self.storage_type = storage_type or settings.FILE_STORAGE_TYPE
        if self.storage_type != "local":
            raise ValueError(f"Unknown storage type: {self.storage_type}")
        self.base_path = Path(base_path or settings.FILE_STORAGE_PATH)
        self.base_path.mkdir(parents=True, exist_ok=True)

    async def write(self, file_bytes: bytes, original_name: str) -> str:
        """Save file bytes. Returns the storage path."""
        ext = Path(original_name).suffix
        file_path = self.base_path / f"{uuid.uuid4()}{ext}"
        try:
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(file_bytes)
        except OSError as e:
            logger.error(f"Blob write failed for {original_name}: {e}")
            raise StorageWriteError(f"Failed to store {original_name}") from e
        return str(file_path)

    async def read(self, storage_path: str, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
        """Stream file bytes from storage path."""
        async with aiofiles.open(storage_path, "rb") as f:
            while True:
                chunk = await f.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    async def exists(self, storage_path: str) -> bool:
        return Path(storage_path).is_file()

    async def delete(self, storage_path: str) -> None:
        """Remove a blob, e.g. when its catalog row could not be written."""
        path = Path(storage_path)
        if path.exists():
            os.remove(path)


_file_storage: FileStorageService | None = None


def get_file_storage() -> FileStorageService:
    """FastAPI dependency returning the process-wide storage service."""
    global _file_storage
    if _file_storage is None:
        _file_storage = FileStorageService()
    return _file_storage
