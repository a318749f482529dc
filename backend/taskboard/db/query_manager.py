"""Chainable query helpers exposed on models as ``Model.objects``."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlmodel import SQLModel, col, select

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

ModelT = TypeVar("ModelT", bound=SQLModel)


@dataclass(frozen=True)
class QuerySet(Generic[ModelT]):
    """Immutable wrapper around a select statement; each call returns a new set."""

    model: type[ModelT]
    statement: SelectOfScalar[ModelT]

    def filter(self, *criteria: Any) -> QuerySet[ModelT]:
        return replace(self, statement=self.statement.where(*criteria))

    def order_by(self, *columns: Any) -> QuerySet[ModelT]:
        return replace(self, statement=self.statement.order_by(*columns))

    async def all(self, session: AsyncSession) -> list[ModelT]:
        result = await session.exec(self.statement)
        return list(result.all())

    async def first(self, session: AsyncSession) -> ModelT | None:
        result = await session.exec(self.statement)
        return result.first()


class ModelManager(Generic[ModelT]):
    """Entry point for building query sets against one model."""

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    def all(self) -> QuerySet[ModelT]:
        return QuerySet(self.model, select(self.model))

    def filter(self, *criteria: Any) -> QuerySet[ModelT]:
        return self.all().filter(*criteria)

    def by_id(self, obj_id: object) -> QuerySet[ModelT]:
        return self.filter(col(self.model.id) == obj_id)  # type: ignore[attr-defined]


class ManagerDescriptor:
    """Class-level descriptor returning a manager bound to the owning model."""

    def __get__(self, instance: object, owner: type[ModelT]) -> ModelManager[ModelT]:
        return ModelManager(owner)
