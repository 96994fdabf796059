"""Blob storage for attachment payloads.

Files are addressed by a disk (bucket) name plus a path relative to that
disk. ``LocalBlobStore`` keeps one directory per disk under a root folder.
"""

import asyncio
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from app.core.config import settings
from app.exceptions.attachment import StorageError

logger = logging.getLogger(__name__)


@runtime_checkable
class BlobStore(Protocol):
    """Contract every blob store backend fulfils."""

    async def put(self, disk: str, path: str, data: bytes) -> None: ...

    async def get(self, disk: str, path: str) -> bytes | None: ...

    async def delete(self, disk: str, path: str) -> bool: ...

    def url(self, disk: str, path: str) -> str: ...


class LocalBlobStore:
    """
    Filesystem backed blob store.

    :ivar root: Directory holding one sub-directory per disk.
    :ivar base_url: Public URL prefix files are served from.
    """

    def __init__(self, root: str | Path, base_url: str = "/storage"):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")

    def _resolve(self, disk: str, path: str) -> Path:
        disk_root = (self.root / disk).resolve()
        target = (disk_root / path).resolve()
        if disk_root not in target.parents:
            raise StorageError(
                "Storage path escapes its disk", details={"disk": disk, "path": path}
            )
        return target

    async def put(self, disk: str, path: str, data: bytes) -> None:
        target = self._resolve(disk, path)

        def _write():
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            logger.error(f"Failed to store {disk}:{path}: {str(e)}")
            raise StorageError(
                f"Failed to store file '{path}'", details={"disk": disk, "path": path}
            ) from e

    async def get(self, disk: str, path: str) -> bytes | None:
        """Return the stored bytes, or None when nothing is stored at ``path``."""
        target = self._resolve(disk, path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(
                f"Failed to read file '{path}'", details={"disk": disk, "path": path}
            ) from e

    async def delete(self, disk: str, path: str) -> bool:
        """Remove a file. Returns False when it was already missing."""
        target = self._resolve(disk, path)
        try:
            await asyncio.to_thread(target.unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(
                f"Failed to delete file '{path}'", details={"disk": disk, "path": path}
            ) from e
        return True

    async def exists(self, disk: str, path: str) -> bool:
        return await asyncio.to_thread(self._resolve(disk, path).is_file)

    def url(self, disk: str, path: str) -> str:
        return f"{self.base_url}/{disk}/{path}"


def get_blob_store() -> BlobStore:
    """FastAPI dependency returning the configured blob store."""
    return LocalBlobStore(settings.storage_root, settings.storage_url)
