"""
Cuisine classification model.
"""

from sqlalchemy import Boolean, Column, String, Text
from sqlalchemy.orm import relationship

from .base import AuditMixin, BaseModel


class CuisineType(AuditMixin, BaseModel):
    """
    Represents a cuisine classification a recipe belongs to.

    Only active types are offered for selection. Deactivating a type keeps
    it valid for recipes that already reference it.
    """

    __tablename__ = "cuisine_types"

    name = Column(String(255), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    recipes = relationship("Recipe", back_populates="cuisine_type", passive_deletes="all")
