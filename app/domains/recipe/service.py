"""Recipe service layer with business logic."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.permissions import CallerContext, authorize
from app.domains.attachment.service import AttachmentService
from app.domains.attachment.storage import BlobStore
from app.domains.attachment.uploads import UploadedFile
from app.domains.cuisine_type.repository import CuisineTypeRepository
from app.domains.recipe.policy import RecipePolicy
from app.domains.recipe.query import RecipeQueryService
from app.domains.recipe.repository import RecipeRepository
from app.exceptions.base import ValidationError
from app.schemas.recipe import RecipeCreate, RecipeFilter, RecipeUpdate
from app.shared.pagination import Page
from models import Recipe

logger = logging.getLogger(__name__)

IMAGE_TYPE = "image"
IMAGE_DISK = "public"
IMAGE_DIRECTORY = "recipes"


class RecipeService:
    """Service class for recipe business logic."""

    def __init__(self, db: AsyncSession, storage: BlobStore):
        self.db = db
        self.repository = RecipeRepository(db)
        self.cuisine_types = CuisineTypeRepository(db)
        self.attachments = AttachmentService(db, storage)
        self.queries = RecipeQueryService(self.repository)

    async def list_recipes(self, caller: CallerContext, filters: RecipeFilter) -> Page[Recipe]:
        """Get the page of recipes visible to ``caller``."""
        authorize(RecipePolicy.can_view_any(caller), "You are not allowed to list recipes")
        return await self.queries.paginate(caller, filters)

    async def get_recipe(self, caller: CallerContext, recipe_id: int) -> Recipe:
        recipe = await self.repository.find_or_fail(recipe_id, RecipeRepository.DEFAULT_RELATIONS)
        authorize(RecipePolicy.can_view(caller, recipe), "You are not allowed to view this recipe")
        return recipe

    async def create_recipe(
        self, caller: CallerContext, data: RecipeCreate, image: UploadedFile | None = None
    ) -> Recipe:
        """Create a recipe owned by ``caller``, optionally with its image.

        The recipe row and the image attachment are committed together; a
        failed upload leaves no recipe behind.
        """
        authorize(RecipePolicy.can_create(caller), "You are not allowed to create recipes")

        attributes = data.model_dump()
        self._validate_fields(attributes)
        await self._validate_cuisine_type(attributes["cuisine_type_id"])
        if image is not None:
            self._validate_image(image)

        attributes["user_id"] = caller.id
        context = caller.write_context()

        try:
            recipe = await self.repository.create(attributes, context, commit=image is None)
            if image is not None:
                await self.attachments.attach(
                    image, recipe.owner_ref(), IMAGE_TYPE, IMAGE_DISK, IMAGE_DIRECTORY, context
                )
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Recipe {recipe.id} created", extra={"user_id": caller.id})
        return await self.repository.find_or_fail(recipe.id, RecipeRepository.DEFAULT_RELATIONS)

    async def update_recipe(
        self,
        caller: CallerContext,
        recipe_id: int,
        data: RecipeUpdate,
        image: UploadedFile | None = None,
    ) -> Recipe:
        """Update a recipe; a new image replaces the current one."""
        recipe = await self.repository.find_or_fail(recipe_id)
        authorize(RecipePolicy.can_update(caller, recipe), "You are not allowed to update this recipe")

        attributes = data.model_dump(exclude_unset=True)
        if "user_id" in attributes:
            raise ValidationError("The recipe owner cannot be changed", details={"field": "user_id"})
        self._validate_fields(attributes, partial=True)
        if attributes.get("cuisine_type_id", recipe.cuisine_type_id) != recipe.cuisine_type_id:
            await self._validate_cuisine_type(attributes["cuisine_type_id"])
        if image is not None:
            self._validate_image(image)

        context = caller.write_context()
        if attributes:
            await self.repository.update(recipe.id, attributes, context)

        if image is not None:
            await self.attachments.replace(
                recipe.owner_ref(), IMAGE_TYPE, [image], IMAGE_DISK, IMAGE_DIRECTORY, context
            )

        return await self.repository.find_or_fail(recipe.id, RecipeRepository.DEFAULT_RELATIONS)

    async def delete_recipe(self, caller: CallerContext, recipe_id: int) -> int:
        """Delete a recipe together with every attachment it owns."""
        recipe = await self.repository.find_or_fail(recipe_id)
        authorize(RecipePolicy.can_delete(caller, recipe), "You are not allowed to delete this recipe")

        removed = await self.attachments.cascade_delete(
            recipe.owner_ref(), lambda: self.repository.delete(recipe.id, commit=False)
        )
        logger.info(
            f"Recipe {recipe_id} deleted", extra={"user_id": caller.id, "attachments": removed}
        )
        return removed

    def image_url(self, recipe: Recipe) -> str | None:
        image = recipe.first_image
        return self.attachments.url(image) if image else None

    # ----- invariants --------------------------------------------------------

    @staticmethod
    def _validate_fields(attributes: dict[str, Any], partial: bool = False) -> None:
        errors: dict[str, str] = {}

        if not partial or "name" in attributes:
            name = attributes.get("name")
            if not name or not str(name).strip():
                errors["name"] = "Recipe name is required."

        for field, label in (("ingredients", "ingredient"), ("steps", "step")):
            if partial and field not in attributes:
                continue
            items = attributes.get(field)
            if not items:
                errors[field] = f"At least one {label} is required."
            elif any(not isinstance(item, str) or not item.strip() for item in items):
                errors[field] = f"{label.capitalize()} cannot be empty."

        if partial and "description" in attributes and attributes["description"] is None:
            errors["description"] = "Recipe description cannot be null."

        if partial and "cuisine_type_id" in attributes and attributes["cuisine_type_id"] is None:
            errors["cuisine_type_id"] = "Please select a cuisine type."

        if errors:
            raise ValidationError("Recipe validation failed", details=errors)

    async def _validate_cuisine_type(self, cuisine_type_id: int) -> None:
        if not await self.cuisine_types.exists({"id": cuisine_type_id, "is_active": True}):
            raise ValidationError(
                "Selected cuisine type is invalid.", details={"cuisine_type_id": cuisine_type_id}
            )

    def _validate_image(self, image: UploadedFile) -> None:
        if not self.attachments.validate(
            image, settings.allowed_image_mime_types, settings.max_upload_size
        ):
            raise ValidationError(
                "The image must be a supported image type within the size limit.",
                details={"image": image.filename, "size": image.size},
            )
