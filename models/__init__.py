"""
Models package initialization.
"""

from .attachment import Attachment, HasAttachments, OwnerRef
from .base import Base, BaseModel
from .cuisine_type import CuisineType
from .recipe import Recipe
from .user import Permission, Role, User

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "Role",
    "Permission",
    "CuisineType",
    "Recipe",
    "Attachment",
    "OwnerRef",
    "HasAttachments",
]
