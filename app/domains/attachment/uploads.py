"""In-memory representation of an uploaded file."""

from dataclasses import dataclass
from pathlib import PurePath

from fastapi import UploadFile


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return PurePath(self.filename).suffix.lstrip(".").lower()

    @property
    def stem(self) -> str:
        return PurePath(self.filename).stem

    @classmethod
    async def from_upload(cls, upload: UploadFile) -> "UploadedFile":
        content = await upload.read()
        return cls(
            filename=upload.filename or "upload",
            content=content,
            content_type=upload.content_type,
        )
