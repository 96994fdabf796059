"""Attachment schemas."""

from typing import Any

from pydantic import Field

from .base import BaseSchema


class AttachmentResponse(BaseSchema):
    """Schema for an attachment as shown to clients."""

    id: int
    type: str
    original_name: str
    file_name: str
    mime_type: str | None = None
    file_size: int
    formatted_size: str
    url: str
    is_image: bool
    is_document: bool
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_attachment(cls, attachment, url: str) -> "AttachmentResponse":
        return cls(
            id=attachment.id,
            type=attachment.type,
            original_name=attachment.original_name,
            file_name=attachment.file_name,
            mime_type=attachment.mime_type,
            file_size=attachment.file_size,
            formatted_size=attachment.formatted_size,
            url=url,
            is_image=attachment.is_image,
            is_document=attachment.is_document,
            metadata=attachment.meta or {},
        )
