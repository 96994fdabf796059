"""Recipe schemas for request/response serialization.

Request schemas only coerce types; domain rules (non-empty name, at least
one ingredient and step) are enforced by ``RecipeService``.
"""

from __future__ import annotations

from pydantic import field_validator

from .attachment import AttachmentResponse
from .base import BaseModelSchema, BaseSchema


def _strip(v: str | None) -> str | None:
    return v.strip() if isinstance(v, str) else v


class RecipeCreate(BaseSchema):
    """Schema for creating a new recipe."""

    name: str
    description: str = ""
    ingredients: list[str]
    steps: list[str]
    cuisine_type_id: int

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Trim surrounding whitespace from the recipe name."""
        return _strip(v)


class RecipeUpdate(BaseSchema):
    """Schema for updating a recipe. Unset fields are left untouched."""

    name: str | None = None
    description: str | None = None
    ingredients: list[str] | None = None
    steps: list[str] | None = None
    cuisine_type_id: int | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return _strip(v)


class RecipeFilter(BaseSchema):
    """Raw list parameters; anything outside the allowed values is ignored."""

    search: str | None = None
    cuisine_type_id: int | None = None
    user_id: int | None = None
    column: str | None = None
    dir: str | None = None
    length: int | None = None
    page: int | None = None

    @field_validator("cuisine_type_id", "user_id", "length", "page", mode="before")
    @classmethod
    def blank_as_missing(cls, v):
        """Query strings send empty values for unselected filters."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class UserSummary(BaseSchema):
    id: int
    name: str
    email: str


class CuisineTypeSummary(BaseSchema):
    id: int
    name: str


class RecipeResponse(BaseModelSchema):
    """Schema for recipe response."""

    name: str
    description: str
    ingredients: list[str]
    steps: list[str]
    image: str | None = None
    user: UserSummary
    cuisine_type: CuisineTypeSummary
    attachments: list[AttachmentResponse] = []
    can_edit: bool = False
    can_delete: bool = False
