"""Attachment repository."""

from app.shared.repository import BaseRepository
from models import Attachment, OwnerRef


class AttachmentRepository(BaseRepository[Attachment]):
    model = Attachment

    @staticmethod
    def owner_criteria(owner: OwnerRef, type_tag: str | None = None) -> dict:
        criteria = {"attachable_type": owner.owner_type, "attachable_id": owner.owner_id}
        if type_tag is not None:
            criteria["type"] = type_tag
        return criteria

    async def for_owner(self, owner: OwnerRef, type_tag: str | None = None) -> list[Attachment]:
        return await self.list_matching(
            self.owner_criteria(owner, type_tag), order_field="id", order_direction="asc"
        )
