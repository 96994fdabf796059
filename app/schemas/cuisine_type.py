"""Cuisine type schemas."""

from pydantic import Field, field_validator

from .base import BaseModelSchema, BaseSchema


class CuisineTypeCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Cuisine type name cannot be empty or only whitespace")
        return v


class CuisineTypeUpdate(BaseSchema):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    is_active: bool | None = None


class CuisineTypeOption(BaseSchema):
    """Entry of the cuisine type dropdown."""

    id: int
    name: str


class CuisineTypeResponse(BaseModelSchema):
    name: str
    description: str | None = None
    is_active: bool
