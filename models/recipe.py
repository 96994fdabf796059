"""
Recipe model.
"""

from sqlalchemy import JSON, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .attachment import OwnerRef
from .base import AuditMixin, BaseModel


class Recipe(AuditMixin, BaseModel):
    """
    Represents a recipe owned by a user.

    Ingredients and steps are ordered lists stored verbatim. The owner is
    fixed at creation. Files are bound through the polymorphic attachment
    table using ``ATTACHMENT_OWNER_TYPE`` as the owner tag.
    """

    __tablename__ = "recipes"

    ATTACHMENT_OWNER_TYPE = "recipe"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    ingredients = Column(JSON, nullable=False)
    steps = Column(JSON, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    cuisine_type_id = Column(
        Integer, ForeignKey("cuisine_types.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # Relationships
    user = relationship("User", back_populates="recipes", foreign_keys=[user_id])
    cuisine_type = relationship("CuisineType", back_populates="recipes")
    # No FK on the attachment side; the attachment manager keeps it consistent
    attachments = relationship(
        "Attachment",
        primaryjoin=(
            "and_(Recipe.id == foreign(Attachment.attachable_id), "
            "Attachment.attachable_type == 'recipe')"
        ),
        viewonly=True,
        order_by="Attachment.id",
    )

    def owner_ref(self) -> OwnerRef:
        return OwnerRef(self.ATTACHMENT_OWNER_TYPE, self.id)

    @property
    def images(self) -> list:
        return [attachment for attachment in self.attachments if attachment.type == "image"]

    @property
    def first_image(self):
        images = self.images
        return images[0] if images else None

    @property
    def has_attachments(self) -> bool:
        return bool(self.attachments)
