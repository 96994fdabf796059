"""User-related Pydantic schemas."""

from .base import BaseModelSchema


class UserResponse(BaseModelSchema):
    """Schema for the authenticated user's profile."""

    name: str
    email: str
    is_active: bool
    roles: list[str] = []
    permissions: list[str] = []
