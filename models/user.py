"""
Provides the User, Role and Permission models for the application's schema.

A user holds zero or more roles and every role is a fixed bundle of
permission tokens. Authorization decisions only ever look at the flattened
permission set, never at role names.

Attributes
----------
name : sqlalchemy.Column
    Display name of the user.
email : sqlalchemy.Column
    The email address of the user, which must be unique.
is_active : sqlalchemy.Column
    A boolean indicating if the user is active. Defaults to `True`.

Relationships
-------------
roles : sqlalchemy.orm.relationship
    Many-to-many relationship with `Role`, eagerly loaded so the permission
    set can be resolved without further queries.
recipes : sqlalchemy.orm.relationship
    One-to-many relationship with `Recipe`. Recipes are removed together
    with their owner.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from .base import Base, BaseModel

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "permission_id",
        Integer,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Permission(BaseModel):
    """A single permission token such as ``edit-recipe``."""

    __tablename__ = "permissions"

    name = Column(String(100), nullable=False, unique=True)


class Role(BaseModel):
    """A named bundle of permissions."""

    __tablename__ = "roles"

    name = Column(String(100), nullable=False, unique=True)

    permissions = relationship("Permission", secondary=role_permissions, lazy="selectin")


class User(BaseModel):
    """
    Represents a user entity in the application.

    :ivar name: Display name of the user.
    :type name: str
    :ivar email: Email address of the user. It must be unique.
    :type email: str
    :ivar is_active: Indicates whether the user account is active.
    :type is_active: bool
    """

    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    roles = relationship("Role", secondary=user_roles, lazy="selectin")
    # Deleting a user cascades to their recipes in the database only; those
    # recipes' attachment rows and files are not removed.
    recipes = relationship(
        "Recipe",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        foreign_keys="Recipe.user_id",
    )

    @property
    def role_names(self) -> list[str]:
        return sorted(role.name for role in self.roles)
