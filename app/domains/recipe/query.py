"""Role-scoped recipe listing.

Turns a caller and raw list parameters into criteria for
``RecipeRepository.paginate``. Every predicate is expressed in the
repository's criteria vocabulary so ownership scoping lives in one place.
"""

from dataclasses import dataclass, field
from typing import Any

from app.core.config import settings
from app.core.permissions import CallerContext
from app.domains.recipe.policy import RecipePolicy
from app.domains.recipe.repository import RecipeRepository
from app.schemas.recipe import RecipeFilter
from app.shared.pagination import Page
from models import Recipe

SORTABLE_COLUMNS = ("id", "name", "created_at")
SORT_DIRECTIONS = ("asc", "desc")
DEFAULT_SORT = ("created_at", "desc")


@dataclass
class RecipeQuery:
    criteria: dict[Any, Any] = field(default_factory=dict)
    in_sets: dict[str, Any] = field(default_factory=dict)
    order_field: str = DEFAULT_SORT[0]
    order_direction: str = DEFAULT_SORT[1]
    page_size: int = 10
    page: int = 1


class RecipeQueryService:
    def __init__(self, repository: RecipeRepository):
        self.repository = repository

    @staticmethod
    def build(caller: CallerContext, filters: RecipeFilter) -> RecipeQuery:
        query = RecipeQuery(page_size=settings.default_page_size)
        view_all = RecipePolicy.can_view_all(caller)

        if not view_all:
            query.criteria["user_id"] = caller.id

        if filters.search:
            query.criteria[("name", "description")] = ("contains", filters.search)

        if filters.cuisine_type_id:
            query.criteria["cuisine_type_id"] = filters.cuisine_type_id

        # Owner filter only applies to callers who can already see every row
        if filters.user_id and view_all:
            query.criteria["user_id"] = filters.user_id

        if filters.column in SORTABLE_COLUMNS and filters.dir in SORT_DIRECTIONS:
            query.order_field, query.order_direction = filters.column, filters.dir

        if filters.length:
            query.page_size = min(filters.length, settings.max_page_size)

        if filters.page:
            query.page = filters.page

        return query

    async def paginate(self, caller: CallerContext, filters: RecipeFilter) -> Page[Recipe]:
        query = self.build(caller, filters)
        return await self.repository.paginate(
            query.page_size,
            criteria=query.criteria,
            in_sets=query.in_sets,
            order_field=query.order_field,
            order_direction=query.order_direction,
            page=query.page,
            relations=RecipeRepository.DEFAULT_RELATIONS,
        )
