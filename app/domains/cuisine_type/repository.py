"""Cuisine type repository."""

from app.shared.repository import BaseRepository
from models import CuisineType


class CuisineTypeRepository(BaseRepository[CuisineType]):
    model = CuisineType

    async def active_for_dropdown(self) -> list[CuisineType]:
        """Active cuisine types ordered by name."""
        return await self.list_matching(
            {"is_active": True}, order_field="name", order_direction="asc"
        )
