"""Pagination utilities."""

from dataclasses import dataclass, field
from typing import Any, Generic, Sequence, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.sql import Select

from app.exceptions.base import InvalidCriteriaError

T = TypeVar("T")


class PaginationParams(BaseModel):
    """Pagination parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-based)")
    size: int = Field(default=15, ge=1, description="Page size")


@dataclass
class Page(Generic[T]):
    """One page of query results plus the totals needed to navigate."""

    items: list[T]
    total: int
    per_page: int
    current_page: int
    total_pages: int = field(init=False)

    def __post_init__(self):
        self.total_pages = (self.total + self.per_page - 1) // self.per_page  # Ceiling division

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.current_page > 1


class PaginationMeta(BaseModel):
    """Pagination block returned to API clients."""

    total: int
    count: int
    per_page: int
    current_page: int
    total_pages: int

    @classmethod
    def from_page(cls, page: Page) -> "PaginationMeta":
        return cls(
            total=page.total,
            count=page.count,
            per_page=page.per_page,
            current_page=page.current_page,
            total_pages=page.total_pages,
        )


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response."""

    items: Sequence[T]
    pagination: PaginationMeta


async def paginate(
    db: AsyncSession,
    query: Select,
    pagination: PaginationParams,
    options: Sequence[Any] = (),
) -> Page:
    """
    Paginate a SQLAlchemy query.

    Args:
        db: Database session
        query: SQLAlchemy select query, already filtered and ordered
        pagination: Pagination parameters
        options: Loader options applied to the item query only

    Returns:
        Page with the requested slice and totals
    """
    if pagination.page < 1 or pagination.size < 1:
        raise InvalidCriteriaError("Page and page size must be at least 1")

    # Get total count by creating a count query from the original query's subquery
    subquery = query.order_by(None).subquery()
    count_query = select(func.count()).select_from(subquery)
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Apply pagination to query
    offset = (pagination.page - 1) * pagination.size
    paginated_query = query.offset(offset).limit(pagination.size)
    if options:
        paginated_query = paginated_query.options(*options).execution_options(
            populate_existing=True
        )

    # Execute query
    result = await db.execute(paginated_query)
    items = list(result.scalars().all())

    return Page(items=items, total=total, per_page=pagination.size, current_page=pagination.page)
