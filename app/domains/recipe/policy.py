"""Recipe authorization policy.

Pure decisions over the caller's resolved permission set. Ownership only
matters together with a permission: an ``edit-recipe`` holder may edit
their own recipes, an ``edit-any-recipe`` holder may edit every recipe.
"""

from app.core.permissions import CallerContext, Permission
from models import Recipe


class RecipePolicy:
    @staticmethod
    def can_view_any(caller: CallerContext) -> bool:
        return caller.has(Permission.LIST_RECIPES)

    @staticmethod
    def can_view_all(caller: CallerContext) -> bool:
        return caller.has(Permission.VIEW_ALL_RECIPES)

    @staticmethod
    def can_view(caller: CallerContext, recipe: Recipe) -> bool:
        if not caller.has(Permission.LIST_RECIPES):
            return False
        return caller.has(Permission.VIEW_ALL_RECIPES) or recipe.user_id == caller.id

    @staticmethod
    def can_create(caller: CallerContext) -> bool:
        return caller.has(Permission.ADD_RECIPE)

    @staticmethod
    def can_update(caller: CallerContext, recipe: Recipe) -> bool:
        if caller.has(Permission.EDIT_ANY_RECIPE):
            return True
        return caller.has(Permission.EDIT_RECIPE) and recipe.user_id == caller.id

    @staticmethod
    def can_delete(caller: CallerContext, recipe: Recipe) -> bool:
        if caller.has(Permission.DELETE_ANY_RECIPE):
            return True
        return caller.has(Permission.DELETE_RECIPE) and recipe.user_id == caller.id
