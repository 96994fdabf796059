"""Cuisine type authorization policy."""

from app.core.permissions import CallerContext, Permission


class CuisineTypePolicy:
    @staticmethod
    def can_manage(caller: CallerContext) -> bool:
        return caller.has(Permission.MANAGE_CUISINE_TYPES)
