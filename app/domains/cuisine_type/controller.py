"""Cuisine type API controller."""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_caller, get_db
from app.core.permissions import CallerContext
from app.domains.cuisine_type.service import CuisineTypeService
from app.schemas.base import ResponseSchema
from app.schemas.cuisine_type import (
    CuisineTypeCreate,
    CuisineTypeOption,
    CuisineTypeResponse,
    CuisineTypeUpdate,
)

router = APIRouter(prefix="/api/cuisine-types", tags=["cuisine-types"])


@router.get("/dropdown", response_model=ResponseSchema)
async def cuisine_type_dropdown(db: AsyncSession = Depends(get_db)):
    """List active cuisine types for selection inputs. No authentication required."""

    service = CuisineTypeService(db)
    options = await service.dropdown()

    return ResponseSchema(
        status="success",
        message="Success",
        data={"items": [CuisineTypeOption.model_validate(option).model_dump() for option in options]},
    )


@router.get("/{cuisine_type_id}", response_model=ResponseSchema)
async def get_cuisine_type(
    cuisine_type_id: int = Path(..., description="Cuisine type ID"),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Get a specific cuisine type by ID."""

    cuisine_type = await CuisineTypeService(db).get_cuisine_type(cuisine_type_id)

    return ResponseSchema(
        status="success",
        message="Success",
        data=CuisineTypeResponse.model_validate(cuisine_type).model_dump(),
    )


@router.post("/", response_model=ResponseSchema, status_code=status.HTTP_201_CREATED)
async def create_cuisine_type(
    data: CuisineTypeCreate,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Create a new cuisine type."""

    cuisine_type = await CuisineTypeService(db).create_cuisine_type(caller, data)

    return ResponseSchema(
        status="success",
        message="Cuisine type created successfully",
        data=CuisineTypeResponse.model_validate(cuisine_type).model_dump(),
    )


@router.put("/{cuisine_type_id}", response_model=ResponseSchema)
async def update_cuisine_type(
    data: CuisineTypeUpdate,
    cuisine_type_id: int = Path(..., description="Cuisine type ID"),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Update a cuisine type."""

    cuisine_type = await CuisineTypeService(db).update_cuisine_type(caller, cuisine_type_id, data)

    return ResponseSchema(
        status="success",
        message="Cuisine type updated successfully",
        data=CuisineTypeResponse.model_validate(cuisine_type).model_dump(),
    )


@router.delete("/{cuisine_type_id}", response_model=ResponseSchema)
async def delete_cuisine_type(
    cuisine_type_id: int = Path(..., description="Cuisine type ID"),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Delete a cuisine type that no recipe references."""

    await CuisineTypeService(db).delete_cuisine_type(caller, cuisine_type_id)

    return ResponseSchema(
        status="success", message="Cuisine type deleted successfully", data={"id": cuisine_type_id}
    )
