"""Attachment manager.

Binds uploaded files to any owning record through a polymorphic
``OwnerRef``. The manager never needs to know which entity type owns a
file; owners only expose ``owner_ref()``.

Lifecycle rules:

* ``attach`` writes the file first and the record second. A failed record
  write removes the file again; a failed file write creates no record.
* ``delete`` always removes the record, even when the file is already gone.
* ``cascade_delete`` is fail-closed: if any file cannot be removed, files
  removed so far are restored and neither attachments nor owner are deleted.
"""

import logging
import re
import secrets
import unicodedata
from collections.abc import Awaitable, Callable, Iterable, Sequence
from datetime import datetime, timezone
from io import BytesIO
from pathlib import PurePath
from typing import Any

from PIL import Image, UnidentifiedImageError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.domains.attachment.repository import AttachmentRepository
from app.domains.attachment.storage import BlobStore
from app.domains.attachment.uploads import UploadedFile
from app.exceptions.attachment import PartialCascadeFailureError, StorageError
from app.exceptions.base import PersistenceError
from app.shared.repository import WriteContext
from models import Attachment, OwnerRef
from models.attachment import DOCUMENT_MIME_TYPES

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
)

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def _slug(value: str) -> str:
    ascii_value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _SLUG_PATTERN.sub("-", ascii_value.lower()).strip("-")


class AttachmentService:
    """Entity-agnostic manager for file attachments."""

    def __init__(self, db: AsyncSession, storage: BlobStore, default_disk: str | None = None):
        self.db = db
        self.storage = storage
        self.repository = AttachmentRepository(db)
        self.default_disk = default_disk or settings.default_disk

    # ----- pure helpers ------------------------------------------------------

    @staticmethod
    def generate_file_name(original_name: str, now: datetime | None = None) -> str:
        """Build ``<slug>_<timestamp>_<random>.<ext>`` for a stored file.

        The random part carries 64 bits, so names stay distinct even for
        thousands of uploads of the same file within one second.
        """
        path = PurePath(original_name or "")
        stem = _slug(path.stem)[:100] or "file"
        extension = _slug(path.suffix.lstrip("."))
        timestamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d_%H-%M-%S")
        name = f"{stem}_{timestamp}_{secrets.token_hex(8)}"
        return f"{name}.{extension}" if extension else name

    @staticmethod
    def extract_metadata(file: UploadedFile) -> dict[str, Any]:
        """Collect metadata; images get width, height and aspect ratio when decodable."""
        metadata: dict[str, Any] = {"original_extension": file.extension}

        if not (file.content_type or "").startswith("image/"):
            return metadata

        try:
            with Image.open(BytesIO(file.content)) as image:
                width, height = image.size
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
            logger.debug(f"No decodable dimensions for {file.filename}")
            return metadata

        if width and height:
            metadata.update(width=width, height=height, aspect_ratio=round(width / height, 2))
        return metadata

    @staticmethod
    def validate(
        file: UploadedFile,
        allowed_mime_types: Sequence[str] = (),
        max_size_bytes: int | None = None,
    ) -> bool:
        """Check size and declared MIME type. Has no side effects."""
        max_size = settings.max_upload_size if max_size_bytes is None else max_size_bytes
        if file.size > max_size:
            return False
        if allowed_mime_types and file.content_type not in allowed_mime_types:
            return False
        return True

    @staticmethod
    def allowed_image_mime_types() -> tuple[str, ...]:
        return IMAGE_MIME_TYPES

    @staticmethod
    def allowed_document_mime_types() -> tuple[str, ...]:
        return DOCUMENT_MIME_TYPES

    def url(self, attachment: Attachment) -> str:
        return self.storage.url(attachment.disk, attachment.file_path)

    # ----- queries -----------------------------------------------------------

    async def list_for_owner(self, owner: OwnerRef, type_tag: str | None = None) -> list[Attachment]:
        return await self.repository.for_owner(owner, type_tag)

    # ----- writes ------------------------------------------------------------

    async def attach(
        self,
        file: UploadedFile,
        owner: OwnerRef,
        type_tag: str = "file",
        disk: str | None = None,
        directory: str = "attachments",
        context: WriteContext | None = None,
    ) -> Attachment:
        """Store ``file`` and record it as an attachment of ``owner``."""
        disk = disk or self.default_disk
        file_name = self.generate_file_name(file.filename)
        directory = directory.strip("/")
        file_path = f"{directory}/{file_name}" if directory else file_name

        await self.storage.put(disk, file_path, file.content)

        try:
            attachment = await self.repository.create(
                {
                    "attachable_type": owner.owner_type,
                    "attachable_id": owner.owner_id,
                    "original_name": file.filename,
                    "file_name": file_name,
                    "file_path": file_path,
                    "disk": disk,
                    "mime_type": file.content_type,
                    "file_size": file.size,
                    "type": type_tag,
                    "meta": self.extract_metadata(file),
                },
                context,
            )
        except Exception:
            await self._discard(disk, file_path)
            raise

        logger.info(
            f"Attached {file.filename} to {owner.owner_type}:{owner.owner_id}",
            extra={"attachment_id": attachment.id, "disk": disk, "path": file_path},
        )
        return attachment

    async def attach_many(
        self,
        files: Iterable[UploadedFile],
        owner: OwnerRef,
        type_tag: str = "file",
        disk: str | None = None,
        directory: str = "attachments",
        context: WriteContext | None = None,
    ) -> list[Attachment]:
        """Attach each file independently.

        Successful attachments are kept when a later file fails. Failures are
        reported together once every file has been tried.
        """
        files = list(files)
        attached: list[Attachment] = []
        failed: list[dict[str, str]] = []

        for file in files:
            try:
                attached.append(await self.attach(file, owner, type_tag, disk, directory, context))
            except (StorageError, PersistenceError) as e:
                logger.warning(f"Could not attach {file.filename}: {e.message}")
                failed.append({"filename": file.filename, "error_code": e.error_code})

        if failed:
            raise StorageError(
                f"{len(failed)} of {len(files)} files could not be attached",
                details={"attached_ids": [a.id for a in attached], "failed": failed},
            )
        return attached

    async def replace(
        self,
        owner: OwnerRef,
        type_tag: str,
        files: Iterable[UploadedFile],
        disk: str | None = None,
        directory: str = "attachments",
        context: WriteContext | None = None,
    ) -> list[Attachment]:
        """Drop every ``type_tag`` attachment of ``owner`` then attach ``files``."""
        for attachment in await self.repository.for_owner(owner, type_tag):
            await self.delete(attachment)
        return await self.attach_many(files, owner, type_tag, disk, directory, context)

    async def delete(self, attachment: Attachment) -> bool:
        """Remove an attachment's file and record.

        The record is removed even when the file cannot be. Returns False in
        that case so callers can report the failure.
        """
        file_removed = True
        try:
            if not await self.storage.delete(attachment.disk, attachment.file_path):
                logger.warning(
                    f"File for attachment {attachment.id} was already missing",
                    extra={"disk": attachment.disk, "path": attachment.file_path},
                )
        except StorageError as e:
            file_removed = False
            logger.error(
                f"Could not remove file for attachment {attachment.id}: {e.message}",
                extra={"disk": attachment.disk, "path": attachment.file_path},
            )

        await self.repository.delete(attachment.id)
        return file_removed

    async def delete_many(self, attachment_ids: Iterable[int]) -> int:
        """Delete attachments by id; returns how many records were removed.

        Files that could not be removed are logged and do not reduce the count.
        """
        attachments = await self.repository.list_matching(
            in_sets={"id": list(attachment_ids)}, order_field="id", order_direction="asc"
        )
        file_failures = []
        for attachment in attachments:
            attachment_id = attachment.id
            if not await self.delete(attachment):
                file_failures.append(attachment_id)
        if file_failures:
            logger.warning(
                f"Deleted {len(attachments)} attachments, {len(file_failures)} files left on disk",
                extra={"file_failures": file_failures},
            )
        return len(attachments)

    async def cascade_delete(
        self, owner: OwnerRef, delete_owner: Callable[[], Awaitable[Any]]
    ) -> int:
        """Delete ``owner`` together with all of its attachments.

        ``delete_owner`` must remove the owner without committing; the
        attachment records and the owner are committed together once every
        file is gone. Returns the number of attachments removed.
        """
        attachments = await self.repository.for_owner(owner)
        removed: list[tuple[int, str, str, bytes | None]] = []

        for attachment in attachments:
            try:
                snapshot = await self.storage.get(attachment.disk, attachment.file_path)
                await self.storage.delete(attachment.disk, attachment.file_path)
            except StorageError as e:
                logger.error(
                    f"Cascade delete of {owner.owner_type}:{owner.owner_id} stopped at "
                    f"attachment {attachment.id}: {e.message}",
                    extra={"owner_type": owner.owner_type, "owner_id": owner.owner_id},
                )
                restore_failed = await self._restore(removed)
                raise PartialCascadeFailureError(
                    details={
                        "owner_type": owner.owner_type,
                        "owner_id": owner.owner_id,
                        "failed_attachment_id": attachment.id,
                        "restore_failed_ids": restore_failed,
                    }
                ) from e
            removed.append((attachment.id, attachment.disk, attachment.file_path, snapshot))

        try:
            await self.repository.delete_where_id_in([a.id for a in attachments], commit=False)
            await delete_owner()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            await self._restore(removed)
            raise

        logger.info(
            f"Deleted {owner.owner_type}:{owner.owner_id} with {len(attachments)} attachments"
        )
        return len(attachments)

    async def _restore(self, removed: list[tuple[int, str, str, bytes | None]]) -> list[int]:
        # Plain values only; a rollback expires the ORM instances
        failed = []
        for attachment_id, disk, path, data in removed:
            if data is None:
                continue
            try:
                await self.storage.put(disk, path, data)
            except StorageError as e:
                logger.critical(
                    f"Could not restore file for attachment {attachment_id}: {e.message}",
                    extra={"disk": disk, "path": path},
                )
                failed.append(attachment_id)
        return failed

    async def _discard(self, disk: str, path: str) -> None:
        try:
            await self.storage.delete(disk, path)
        except StorageError as e:
            logger.error(f"Orphaned file {disk}:{path} could not be removed: {e.message}")
