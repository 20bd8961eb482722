"""
Collection-style data access over an async SQLAlchemy session.

Each `Collection` wraps one ORM model and exposes the small verb set the
rest of the service is written against:

  list(order_by=..., descending=..., **filters)
  get(id) / create(**values) / update(id, **values) / delete(id)
  in_(ids)   — single "WHERE id IN (...)" batch fetch

Driver errors never leak: reads raise FetchError, writes raise
PersistenceError, both carrying the driver message.
"""
from __future__ import annotations

import logging
from typing import Any, Generic, Iterable, Optional, TypeVar

from sqlalchemy import inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamfeed.database import Base
from teamfeed.errors import FetchError, PersistenceError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


def row_to_dict(row: Base) -> dict[str, Any]:
    """Column values of an ORM row as a plain dict (relationships excluded)."""
    return {attr.key: getattr(row, attr.key) for attr in inspect(row).mapper.column_attrs}


class Collection(Generic[ModelT]):
    def __init__(self, session: AsyncSession, model: type[ModelT]) -> None:
        self.session = session
        self.model = model
        self.name = model.__tablename__

    async def list(
        self,
        order_by: Optional[str] = "created_at",
        descending: bool = False,
        **filters: Any,
    ) -> list[ModelT]:
        stmt = select(self.model)
        for column, value in filters.items():
            stmt = stmt.where(getattr(self.model, column) == value)
        if order_by:
            col = getattr(self.model, order_by)
            stmt = stmt.order_by(col.desc() if descending else col.asc())
        try:
            rows = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("List %s failed (%s): %s", self.name, filters, exc)
            raise FetchError(f"Failed to list {self.name}: {exc}") from exc
        return list(rows.scalars().all())

    async def get(self, id: str) -> Optional[ModelT]:
        try:
            return await self.session.get(self.model, id)
        except SQLAlchemyError as exc:
            logger.error("Get %s %s failed: %s", self.name, id, exc)
            raise FetchError(f"Failed to load {self.name} {id}: {exc}") from exc

    async def in_(self, ids: Iterable[str], column: str = "id") -> list[ModelT]:
        ids = list(ids)
        if not ids:
            return []
        stmt = select(self.model).where(getattr(self.model, column).in_(ids))
        try:
            rows = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Batch fetch of %d %s rows failed: %s", len(ids), self.name, exc)
            raise FetchError(f"Failed to batch-fetch {self.name}: {exc}") from exc
        return list(rows.scalars().all())

    async def create(self, **values: Any) -> ModelT:
        row = self.model(**values)
        self.session.add(row)
        try:
            await self.session.flush()      # materialise defaults (id, created_at)
            await self.session.refresh(row)
        except SQLAlchemyError as exc:
            logger.error("Create %s failed: %s", self.name, exc)
            raise PersistenceError(f"Failed to create {self.name}: {exc}") from exc
        return row

    async def update(self, id: str, **values: Any) -> Optional[ModelT]:
        row = await self.get(id)
        if row is None:
            return None
        for column, value in values.items():
            setattr(row, column, value)
        try:
            await self.session.flush()
            await self.session.refresh(row)
        except SQLAlchemyError as exc:
            logger.error("Update %s %s failed: %s", self.name, id, exc)
            raise PersistenceError(f"Failed to update {self.name} {id}: {exc}") from exc
        return row

    async def delete(self, id: str) -> bool:
        row = await self.get(id)
        if row is None:
            return False
        try:
            await self.session.delete(row)
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.error("Delete %s %s failed: %s", self.name, id, exc)
            raise PersistenceError(f"Failed to delete {self.name} {id}: {exc}") from exc
        return True

