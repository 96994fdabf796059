"""Cuisine type service layer."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import CallerContext, authorize
from app.domains.cuisine_type.policy import CuisineTypePolicy
from app.domains.cuisine_type.repository import CuisineTypeRepository
from app.domains.recipe.repository import RecipeRepository
from app.exceptions.base import ValidationError
from app.schemas.cuisine_type import CuisineTypeCreate, CuisineTypeUpdate
from models import CuisineType

logger = logging.getLogger(__name__)


class CuisineTypeService:
    """Service class for cuisine type business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = CuisineTypeRepository(db)
        self.recipes = RecipeRepository(db)

    async def dropdown(self) -> list[CuisineType]:
        return await self.repository.active_for_dropdown()

    async def get_cuisine_type(self, cuisine_type_id: int) -> CuisineType:
        return await self.repository.find_or_fail(cuisine_type_id)

    async def create_cuisine_type(
        self, caller: CallerContext, data: CuisineTypeCreate
    ) -> CuisineType:
        authorize(CuisineTypePolicy.can_manage(caller), "You are not allowed to manage cuisine types")
        await self._ensure_unique_name(data.name)
        return await self.repository.create(data.model_dump(), caller.write_context())

    async def update_cuisine_type(
        self, caller: CallerContext, cuisine_type_id: int, data: CuisineTypeUpdate
    ) -> CuisineType:
        """Update a cuisine type. Deactivating never touches existing recipes."""
        authorize(CuisineTypePolicy.can_manage(caller), "You are not allowed to manage cuisine types")
        cuisine_type = await self.repository.find_or_fail(cuisine_type_id)

        attributes = data.model_dump(exclude_unset=True)
        if attributes.get("name") and attributes["name"] != cuisine_type.name:
            await self._ensure_unique_name(attributes["name"], exclude_id=cuisine_type.id)
        if not attributes:
            return cuisine_type
        return await self.repository.update(cuisine_type.id, attributes, caller.write_context())

    async def delete_cuisine_type(self, caller: CallerContext, cuisine_type_id: int) -> bool:
        """Delete a cuisine type that no recipe references."""
        authorize(CuisineTypePolicy.can_manage(caller), "You are not allowed to manage cuisine types")
        await self.repository.find_or_fail(cuisine_type_id)

        in_use = await self.recipes.count({"cuisine_type_id": cuisine_type_id})
        if in_use:
            raise ValidationError(
                "This cuisine type is used by existing recipes and cannot be deleted.",
                details={"cuisine_type_id": cuisine_type_id, "recipes": in_use},
            )
        return await self.repository.delete(cuisine_type_id)

    async def _ensure_unique_name(self, name: str, exclude_id: int | None = None) -> None:
        criteria = {"name": name}
        if exclude_id is not None:
            criteria["id"] = ("!=", exclude_id)
        if await self.repository.exists(criteria):
            raise ValidationError(
                "A cuisine type with this name already exists", details={"name": name}
            )
