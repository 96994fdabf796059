"""
Attachment model for files bound to arbitrary owning records.

Ownership is a tagged back-reference (``attachable_type`` + ``attachable_id``)
so a single table serves every entity type without per-type foreign keys.
"""

from typing import NamedTuple, Protocol, runtime_checkable

from sqlalchemy import JSON, Column, Index, Integer, String

from .base import AuditMixin, BaseModel

DOCUMENT_MIME_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
)


class OwnerRef(NamedTuple):
    """Polymorphic reference to the record owning an attachment."""

    owner_type: str
    owner_id: int


@runtime_checkable
class HasAttachments(Protocol):
    """Capability of entities that can own attachments."""

    ATTACHMENT_OWNER_TYPE: str

    def owner_ref(self) -> OwnerRef: ...


class Attachment(AuditMixin, BaseModel):
    """
    Represents a stored file and its metadata.

    :ivar attachable_type: Owner type tag, e.g. ``recipe``.
    :ivar attachable_id: Identifier of the owning record.
    :ivar original_name: File name as uploaded by the client.
    :ivar file_name: Generated, collision resistant storage file name.
    :ivar file_path: Path of the file relative to its disk.
    :ivar disk: Blob store disk (bucket) the file lives on.
    :ivar mime_type: Declared MIME type.
    :ivar file_size: Size in bytes.
    :ivar type: Free-form type tag such as ``image`` or ``document``.
    :ivar meta: Extracted metadata (image dimensions, extension).
    """

    __tablename__ = "attachments"
    __table_args__ = (Index("ix_attachments_owner", "attachable_type", "attachable_id"),)

    attachable_type = Column(String(100), nullable=False)
    attachable_id = Column(Integer, nullable=False)
    original_name = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False, unique=True)
    file_path = Column(String(500), nullable=False)
    disk = Column(String(50), nullable=False, default="public")
    mime_type = Column(String(100))
    file_size = Column(Integer, nullable=False, default=0)
    type = Column(String(50), nullable=False, default="file", index=True)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=False, default=dict)

    @property
    def owner(self) -> OwnerRef:
        return OwnerRef(self.attachable_type, self.attachable_id)

    @property
    def is_image(self) -> bool:
        return bool(self.mime_type) and self.mime_type.startswith("image/")

    @property
    def is_document(self) -> bool:
        return self.mime_type in DOCUMENT_MIME_TYPES

    @property
    def formatted_size(self) -> str:
        size = float(self.file_size or 0)
        units = ("B", "KB", "MB", "GB")
        index = 0
        while size >= 1024 and index < len(units) - 1:
            size /= 1024
            index += 1
        return f"{size:.2f} {units[index]}"
