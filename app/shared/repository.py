"""Generic criteria-driven repository.

``BaseRepository`` gives every entity type the same CRUD and query surface
over its table. Filters are expressed in one small vocabulary and compiled
in exactly one place (``_conditions``), so ``first``, ``list``, ``count``,
``exists`` and ``paginate`` always agree on which rows match.

Criteria vocabulary::

    {"user_id": 5}                                   # equality (None -> IS NULL)
    {"created_at": (">=", since)}                    # (operator, value) pair
    {"name": ("contains", "past")}                   # case-insensitive substring
    {("name", "description"): ("contains", "past")}  # OR over several fields

``in_sets`` maps a field to the collection its value must belong to and is
AND-ed with the criteria.
"""

import logging
import operator
from collections.abc import Iterable, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import String, delete, func, inspect, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from app.exceptions.base import (
    InvalidCriteriaError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.shared.pagination import Page, PaginationParams, paginate
from models.base import SERVER_MANAGED_FIELDS, BaseModel

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

Criteria = Mapping[str | tuple[str, ...], Any]
InSets = Mapping[str, Iterable[Any]]


def _contains(column, value):
    return func.lower(column, type_=String).contains(str(value).lower(), autoescape=True)


OPERATORS = {
    "=": operator.eq,
    "==": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "like": lambda column, value: column.like(value),
    "ilike": lambda column, value: column.ilike(value),
    "not like": lambda column, value: column.not_like(value),
    "contains": _contains,
}

ORDER_DIRECTIONS = ("asc", "desc")
DEFAULT_ORDER_FIELD = "created_at"


@dataclass(frozen=True)
class WriteContext:
    """Who is performing a write; used to stamp audit columns."""

    actor_id: int | None = None


class BaseRepository(Generic[ModelT]):
    """CRUD and criteria queries for a single model."""

    model: type[ModelT]

    def __init__(self, db: AsyncSession):
        self.db = db

    # ----- query composition -------------------------------------------------

    @property
    def model_name(self) -> str:
        return self.model.__name__

    def _field_names(self) -> set[str]:
        return set(inspect(self.model).column_attrs.keys())

    def _column(self, field: str):
        if not isinstance(field, str) or field not in self._field_names():
            raise InvalidCriteriaError(
                f"Unknown field '{field}' for {self.model_name}", details={"field": str(field)}
            )
        return getattr(self.model, field)

    def _condition(self, field: str | tuple[str, ...], value: Any):
        if isinstance(field, tuple):
            if not field:
                raise InvalidCriteriaError("An any-of criteria group needs at least one field")
            return or_(*(self._condition(name, value) for name in field))

        column = self._column(field)
        if isinstance(value, tuple):
            if len(value) != 2:
                raise InvalidCriteriaError(
                    f"Criteria for '{field}' must be a value or an (operator, value) pair",
                    details={"field": field},
                )
            op, operand = value
            compare = OPERATORS.get(str(op).lower())
            if compare is None:
                raise InvalidCriteriaError(
                    f"Unsupported operator '{op}'", details={"field": field, "operator": str(op)}
                )
            return compare(column, operand)
        return column == value

    def _conditions(self, criteria: Criteria | None, in_sets: InSets | None) -> list:
        conditions = [self._condition(field, value) for field, value in (criteria or {}).items()]
        for field, values in (in_sets or {}).items():
            conditions.append(self._column(field).in_(list(values)))
        return conditions

    def _query(self, criteria: Criteria | None = None, in_sets: InSets | None = None) -> Select:
        return select(self.model).where(*self._conditions(criteria, in_sets))

    def _ordered(self, query: Select, order_field: str | None, order_direction: str | None) -> Select:
        if order_field is None:
            order_field, order_direction = DEFAULT_ORDER_FIELD, "desc"
        direction = (order_direction or "desc").lower()
        if direction not in ORDER_DIRECTIONS:
            raise InvalidCriteriaError(
                f"Unsupported order direction '{order_direction}'",
                details={"direction": order_direction},
            )
        column = self._column(order_field)
        ordering = [column.asc() if direction == "asc" else column.desc()]
        if order_field != "id":
            # Stable tie-breaker so pages never overlap
            ordering.append(self.model.id.asc() if direction == "asc" else self.model.id.desc())
        return query.order_by(*ordering)

    def _loader_options(self, relations: Sequence[str] | None) -> list:
        available = inspect(self.model).relationships.keys()
        options = []
        for name in relations or ():
            if name not in available:
                raise InvalidCriteriaError(
                    f"Unknown relation '{name}' for {self.model_name}", details={"relation": name}
                )
            options.append(selectinload(getattr(self.model, name)))
        return options

    async def _fetch(self, query: Select, relations: Sequence[str] | None):
        options = self._loader_options(relations)
        if options:
            query = query.options(*options).execution_options(populate_existing=True)
        return await self.db.execute(query)

    # ----- reads -------------------------------------------------------------

    async def find(self, entity_id: int, relations: Sequence[str] | None = None) -> ModelT | None:
        result = await self._fetch(select(self.model).where(self.model.id == entity_id), relations)
        return result.scalar_one_or_none()

    async def find_or_fail(self, entity_id: int, relations: Sequence[str] | None = None) -> ModelT:
        entity = await self.find(entity_id, relations)
        if entity is None:
            raise NotFoundError(
                f"{self.model_name} {entity_id} not found",
                details={"model": self.model_name, "id": entity_id},
            )
        return entity

    async def all(self, relations: Sequence[str] | None = None) -> list[ModelT]:
        return await self.list_matching(relations=relations)

    async def first(self, relations: Sequence[str] | None = None) -> ModelT | None:
        """Most recently created entity, if any."""
        return await self.find_one_matching(relations=relations)

    async def find_one_matching(
        self,
        criteria: Criteria | None = None,
        in_sets: InSets | None = None,
        relations: Sequence[str] | None = None,
        order_field: str | None = None,
        order_direction: str = "desc",
    ) -> ModelT | None:
        query = self._ordered(self._query(criteria, in_sets), order_field, order_direction)
        result = await self._fetch(query.limit(1), relations)
        return result.scalars().first()

    async def find_by(
        self, attribute: str, value: Any, relations: Sequence[str] | None = None
    ) -> ModelT | None:
        return await self.find_one_matching({attribute: value}, relations=relations)

    async def list_matching(
        self,
        criteria: Criteria | None = None,
        in_sets: InSets | None = None,
        relations: Sequence[str] | None = None,
        order_field: str | None = None,
        order_direction: str = "desc",
    ) -> list[ModelT]:
        query = self._ordered(self._query(criteria, in_sets), order_field, order_direction)
        result = await self._fetch(query, relations)
        return list(result.scalars().all())

    async def paginate(
        self,
        page_size: int = 15,
        criteria: Criteria | None = None,
        in_sets: InSets | None = None,
        order_field: str | None = None,
        order_direction: str = "desc",
        page: int = 1,
        relations: Sequence[str] | None = None,
    ) -> Page[ModelT]:
        if page_size < 1:
            raise InvalidCriteriaError(
                "Page size must be at least 1", details={"page_size": page_size}
            )
        if page < 1:
            raise InvalidCriteriaError("Page must be at least 1", details={"page": page})

        query = self._ordered(self._query(criteria, in_sets), order_field, order_direction)
        return await paginate(
            self.db,
            query,
            PaginationParams(page=page, size=page_size),
            options=self._loader_options(relations),
        )

    async def count(self, criteria: Criteria | None = None, in_sets: InSets | None = None) -> int:
        query = select(func.count()).select_from(self.model).where(
            *self._conditions(criteria, in_sets)
        )
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def exists(self, criteria: Criteria | None = None, in_sets: InSets | None = None) -> bool:
        result = await self.db.execute(select(self._query(criteria, in_sets).exists()))
        return bool(result.scalar())

    # ----- writes ------------------------------------------------------------

    @asynccontextmanager
    async def _writing(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Failed to {action} {self.model_name}: {str(e)}",
                extra={"model": self.model_name, "action": action},
            )
            raise PersistenceError(f"Failed to {action} {self.model_name}") from e

    async def _finish(self, commit: bool) -> None:
        if commit:
            await self.db.commit()
        else:
            await self.db.flush()

    def _check_attributes(self, attributes: Mapping[str, Any]) -> None:
        fields = self._field_names()
        for key in attributes:
            if key in SERVER_MANAGED_FIELDS:
                raise ValidationError(
                    f"Field '{key}' is managed by the server", details={"field": key}
                )
            if key not in fields:
                raise ValidationError(
                    f"Unknown field '{key}' for {self.model_name}", details={"field": key}
                )

    @staticmethod
    def _stamp(entity: ModelT, context: WriteContext | None, creating: bool) -> None:
        if context is None or context.actor_id is None:
            return
        if creating and hasattr(entity, "created_by"):
            entity.created_by = context.actor_id
        if hasattr(entity, "updated_by"):
            entity.updated_by = context.actor_id

    async def create(
        self,
        attributes: Mapping[str, Any],
        context: WriteContext | None = None,
        commit: bool = True,
    ) -> ModelT:
        self._check_attributes(attributes)
        entity = self.model(**attributes)
        self._stamp(entity, context, creating=True)

        async with self._writing("create"):
            self.db.add(entity)
            await self._finish(commit)
            await self.db.refresh(entity)
        return entity

    async def create_many(
        self,
        items: Iterable[Mapping[str, Any]],
        context: WriteContext | None = None,
        commit: bool = True,
    ) -> list[ModelT]:
        entities = [await self.create(attributes, context, commit=False) for attributes in items]
        async with self._writing("create"):
            await self._finish(commit)
        return entities

    async def update(
        self,
        entity_id: int,
        attributes: Mapping[str, Any],
        context: WriteContext | None = None,
        commit: bool = True,
    ) -> ModelT:
        self._check_attributes(attributes)
        entity = await self.find_or_fail(entity_id)
        for key, value in attributes.items():
            setattr(entity, key, value)
        self._stamp(entity, context, creating=False)

        async with self._writing("update"):
            await self._finish(commit)
            await self.db.refresh(entity)
        return entity

    async def update_or_create(
        self,
        match: Mapping[str, Any],
        values: Mapping[str, Any] | None = None,
        context: WriteContext | None = None,
    ) -> ModelT:
        entity = await self.find_one_matching(dict(match))
        if entity is None:
            return await self.create({**match, **(values or {})}, context)
        return await self.update(entity.id, dict(values or {}), context)

    async def delete(self, entity_id: int, commit: bool = True) -> bool:
        entity = await self.find_or_fail(entity_id)
        async with self._writing("delete"):
            await self.db.delete(entity)
            await self._finish(commit)
        return True

    async def delete_where_id_in(self, ids: Iterable[int], commit: bool = True) -> int:
        ids = list(ids)
        if not ids:
            return 0
        async with self._writing("delete"):
            result = await self.db.execute(delete(self.model).where(self.model.id.in_(ids)))
            await self._finish(commit)
        return result.rowcount or 0
