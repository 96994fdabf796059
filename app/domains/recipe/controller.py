"""Recipe API controller with FastAPI endpoints."""

import logging

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_blob_store, get_caller, get_db, validate_token
from app.core.permissions import CallerContext
from app.domains.attachment.storage import BlobStore
from app.domains.attachment.uploads import UploadedFile
from app.domains.recipe.policy import RecipePolicy
from app.domains.recipe.service import RecipeService
from app.exceptions.base import InvalidCriteriaError
from app.schemas.attachment import AttachmentResponse
from app.schemas.base import ResponseSchema
from app.schemas.recipe import (
    CuisineTypeSummary,
    RecipeCreate,
    RecipeFilter,
    RecipeResponse,
    RecipeUpdate,
    UserSummary,
)
from app.shared.pagination import PaginatedResponse, PaginationMeta
from models import Recipe

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/recipes",
    tags=["recipes"],
    dependencies=[Depends(validate_token)],  # Global token validation for all routes
)


def present_recipe(recipe: Recipe, caller: CallerContext, service: RecipeService) -> RecipeResponse:
    """Build the client representation of a fully loaded recipe."""
    return RecipeResponse(
        id=recipe.id,
        created_at=recipe.created_at,
        updated_at=recipe.updated_at,
        name=recipe.name,
        description=recipe.description,
        ingredients=recipe.ingredients,
        steps=recipe.steps,
        image=service.image_url(recipe),
        user=UserSummary.model_validate(recipe.user),
        cuisine_type=CuisineTypeSummary.model_validate(recipe.cuisine_type),
        attachments=[
            AttachmentResponse.from_attachment(attachment, service.attachments.url(attachment))
            for attachment in recipe.attachments
        ],
        can_edit=RecipePolicy.can_update(caller, recipe),
        can_delete=RecipePolicy.can_delete(caller, recipe),
    )


async def _read_image(image: UploadFile | None) -> UploadedFile | None:
    if image is None or not image.filename:
        return None
    return await UploadedFile.from_upload(image)


@router.get("/", response_model=ResponseSchema)
async def list_recipes(
    search: str | None = Query(None, description="Search in name or description"),
    cuisine_type_id: str | None = Query(None),
    user_id: str | None = Query(None, description="Owner filter (view-all callers only)"),
    column: str | None = Query(None, description="One of id, name, created_at"),
    dir: str | None = Query(None, description="asc or desc"),
    length: int | None = Query(None, description="Page size"),
    page: int | None = Query(None, ge=1),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    storage: BlobStore = Depends(get_blob_store),
):
    """Get a page of recipes scoped to the caller's role."""

    try:
        filters = RecipeFilter(
            search=search,
            cuisine_type_id=cuisine_type_id,
            user_id=user_id,
            column=column,
            dir=dir,
            length=length,
            page=page,
        )
    except PydanticValidationError as e:
        raise InvalidCriteriaError(
            "Invalid recipe filters", details={"errors": e.errors(include_url=False, include_context=False)}
        ) from e

    service = RecipeService(db, storage)
    result = await service.list_recipes(caller, filters)

    payload = PaginatedResponse[RecipeResponse](
        items=[present_recipe(recipe, caller, service) for recipe in result.items],
        pagination=PaginationMeta.from_page(result),
    )
    return ResponseSchema(status="success", message="Success", data=payload.model_dump())


@router.post("/", response_model=ResponseSchema, status_code=201)
async def create_recipe(
    name: str = Form(...),
    description: str = Form(""),
    ingredients: list[str] = Form(...),
    steps: list[str] = Form(...),
    cuisine_type_id: int = Form(...),
    image: UploadFile | None = File(None),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    storage: BlobStore = Depends(get_blob_store),
):
    """Create a new recipe owned by the caller."""

    data = RecipeCreate(
        name=name,
        description=description,
        ingredients=ingredients,
        steps=steps,
        cuisine_type_id=cuisine_type_id,
    )
    service = RecipeService(db, storage)
    recipe = await service.create_recipe(caller, data, await _read_image(image))

    return ResponseSchema(
        status="success",
        message="Recipe created successfully",
        data=present_recipe(recipe, caller, service).model_dump(),
    )


@router.get("/{recipe_id}", response_model=ResponseSchema)
async def get_recipe(
    recipe_id: int = Path(..., description="Recipe ID"),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    storage: BlobStore = Depends(get_blob_store),
):
    """Get a specific recipe by ID."""

    service = RecipeService(db, storage)
    recipe = await service.get_recipe(caller, recipe_id)

    return ResponseSchema(
        status="success",
        message="Success",
        data=present_recipe(recipe, caller, service).model_dump(),
    )


@router.put("/{recipe_id}", response_model=ResponseSchema)
async def update_recipe(
    recipe_id: int = Path(..., description="Recipe ID"),
    name: str | None = Form(None),
    description: str | None = Form(None),
    ingredients: list[str] | None = Form(None),
    steps: list[str] | None = Form(None),
    cuisine_type_id: int | None = Form(None),
    image: UploadFile | None = File(None),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    storage: BlobStore = Depends(get_blob_store),
):
    """Update a recipe; an uploaded image replaces the current one."""

    provided = {
        "name": name,
        "description": description,
        "ingredients": ingredients,
        "steps": steps,
        "cuisine_type_id": cuisine_type_id,
    }
    data = RecipeUpdate(**{key: value for key, value in provided.items() if value is not None})

    service = RecipeService(db, storage)
    recipe = await service.update_recipe(caller, recipe_id, data, await _read_image(image))

    return ResponseSchema(
        status="success",
        message="Recipe updated successfully",
        data=present_recipe(recipe, caller, service).model_dump(),
    )


@router.delete("/{recipe_id}", response_model=ResponseSchema)
async def delete_recipe(
    recipe_id: int = Path(..., description="Recipe ID"),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    storage: BlobStore = Depends(get_blob_store),
):
    """Delete a recipe and all of its attachments."""

    service = RecipeService(db, storage)
    removed = await service.delete_recipe(caller, recipe_id)

    return ResponseSchema(
        status="success",
        message="Recipe deleted successfully",
        data={"id": recipe_id, "attachments_removed": removed},
    )
