"""Role-based access control.

Roles are bundles of permission tokens. They are resolved to a flat
permission set exactly once per caller; everything downstream consults that
set and never a role name.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from app.exceptions.base import ForbiddenError
from app.shared.repository import WriteContext

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    """Permission tokens granted by roles."""

    LIST_RECIPES = "list-recipes"
    VIEW_ALL_RECIPES = "view-all-recipes"
    ADD_RECIPE = "add-recipe"
    EDIT_RECIPE = "edit-recipe"
    EDIT_ANY_RECIPE = "edit-any-recipe"
    DELETE_RECIPE = "delete-recipe"
    DELETE_ANY_RECIPE = "delete-any-recipe"
    MANAGE_CUISINE_TYPES = "manage-cuisine-types"
    MANAGE_USERS = "manage-users"


class AccessTier(str, Enum):
    OWNER = "owner"
    ELEVATED = "elevated"


# Default role bundles
DEFAULT_ROLE_PERMISSIONS: dict[str, frozenset[Permission]] = {
    "admin": frozenset(Permission),
    "sub-admin": frozenset({Permission.LIST_RECIPES, Permission.VIEW_ALL_RECIPES}),
    "owner": frozenset(
        {
            Permission.LIST_RECIPES,
            Permission.ADD_RECIPE,
            Permission.EDIT_RECIPE,
            Permission.DELETE_RECIPE,
        }
    ),
}


def resolve_permissions(user) -> frozenset[str]:
    """Flatten a user's roles into the set of permission tokens they grant."""
    return frozenset(
        permission.name for role in (user.roles or []) for permission in role.permissions
    )


@dataclass(frozen=True)
class CallerContext:
    """Identity of the caller of a core operation."""

    id: int
    permissions: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_user(cls, user) -> "CallerContext":
        return cls(id=user.id, permissions=resolve_permissions(user))

    @classmethod
    def with_permissions(cls, user_id: int, *permissions: Permission | str) -> "CallerContext":
        return cls(id=user_id, permissions=frozenset(Permission(p).value for p in permissions))

    def has(self, permission: Permission | str) -> bool:
        return Permission(permission).value in self.permissions

    @property
    def tier(self) -> AccessTier:
        if self.has(Permission.VIEW_ALL_RECIPES):
            return AccessTier.ELEVATED
        return AccessTier.OWNER

    def write_context(self) -> WriteContext:
        return WriteContext(actor_id=self.id)


def authorize(allowed: bool, message: str = "This action is unauthorized") -> None:
    """Raise ``ForbiddenError`` unless a policy decision allowed the operation."""
    if not allowed:
        logger.info(f"Authorization denied: {message}")
        raise ForbiddenError(message)
