"""
SQLAlchemy implementation of the record store.
"""

import logging
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Iterator
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from linkos.core.config import settings
from linkos.core.exceptions import NotFoundError, StoreError
from linkos.models.base import RecordModel, utcnow
from linkos.models.promotion import Promotion
from linkos.models.quote import Quote, QuoteItem, QuotePromotion, QuoteNumberSequence
from linkos.store.base import Collection, RecordStore, split_fields, split_lookup


logger = logging.getLogger(__name__)


@contextmanager
def translate_errors(action: str, table: str) -> Iterator[None]:
    """Re-raise driver and ORM failures as StoreError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(f"Store failure during {action} on {table}: {exc}")
        raise StoreError(
            f"Could not {action} {table}",
            context={"table": table, "action": action},
        ) from exc


class SQLAlchemyCollection(Collection):
    """Collection backed by one mapped table."""

    def __init__(self, session: AsyncSession, model: type[RecordModel]):
        self.session = session
        self.model = model
        self.table = model.__tablename__

    async def insert(self, values: dict[str, Any]) -> RecordModel:
        record = self.model(**values)
        with translate_errors("insert into", self.table):
            self.session.add(record)
            await self.session.flush()
            await self.session.refresh(record)
        return record

    async def update(self, record_id: int, values: dict[str, Any]) -> RecordModel:
        record = await self.get(record_id)
        with translate_errors("update", self.table):
            for field, value in values.items():
                setattr(record, field, value)
            await self.session.flush()
            await self.session.refresh(record)
        return record

    async def delete(self, record_id: int) -> None:
        record = await self.get(record_id)
        with translate_errors("delete from", self.table):
            await self.session.delete(record)
            await self.session.flush()

    async def get(self, record_id: int) -> RecordModel:
        with translate_errors("read", self.table):
            record = await self.session.get(self.model, record_id)
        if record is None:
            raise NotFoundError(
                f"{self.model.__name__} {record_id} not found",
                context={"table": self.table, "id": record_id},
            )
        return record

    def _conditions(self, filters: dict[str, Any]) -> list[Any]:
        conditions = []
        for key, value in filters.items():
            field, lookup = split_lookup(key)
            clauses = [
                self._condition(getattr(self.model, name), lookup, value)
                for name in split_fields(field)
            ]
            conditions.append(clauses[0] if len(clauses) == 1 else or_(*clauses))
        return conditions

    @staticmethod
    def _condition(column: Any, lookup: str, value: Any) -> Any:
        if lookup == "ilike":
            return column.ilike(value)
        if lookup == "lt":
            return column < value
        if lookup == "lte":
            return column <= value
        if lookup == "gte":
            return column >= value
        if value is None:
            return column.is_(None)
        return column == value

    async def query(
        self,
        order_by: str | None = None,
        descending: bool = False,
        offset: int = 0,
        limit: int | None = None,
        **filters: Any,
    ) -> list[RecordModel]:
        statement = select(self.model)
        for condition in self._conditions(filters):
            statement = statement.where(condition)

        if order_by:
            column = getattr(self.model, order_by)
            statement = statement.order_by(column.desc() if descending else column.asc())
        statement = statement.order_by(self.model.id.desc() if descending else self.model.id.asc())

        if offset:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)

        with translate_errors("query", self.table):
            result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def count(self, **filters: Any) -> int:
        statement = select(func.count()).select_from(self.model)
        for condition in self._conditions(filters):
            statement = statement.where(condition)
        with translate_errors("count", self.table):
            result = await self.session.execute(statement)
        return result.scalar_one()

    async def sum(self, field: str, **filters: Any) -> Decimal:
        statement = select(func.coalesce(func.sum(getattr(self.model, field)), 0))
        for condition in self._conditions(filters):
            statement = statement.where(condition)
        with translate_errors("sum", self.table):
            result = await self.session.execute(statement)
        return Decimal(str(result.scalar_one()))


class SQLAlchemyRecordStore(RecordStore):
    """Record store sharing one AsyncSession, so one request is one transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.quotes = SQLAlchemyCollection(session, Quote)
        self.quote_items = SQLAlchemyCollection(session, QuoteItem)
        self.quote_promotions = SQLAlchemyCollection(session, QuotePromotion)
        self.promotions = SQLAlchemyCollection(session, Promotion)

    async def generate_quote_number(self) -> str:
        """
        Allocate a quote number.
        Format: {prefix}-{year}-{sequence}, sequence from an autoincrement id.
        """
        allocation = QuoteNumberSequence(allocated_at=utcnow())
        with translate_errors("allocate", QuoteNumberSequence.__tablename__):
            self.session.add(allocation)
            await self.session.flush()

        prefix = f"{settings.QUOTE_NUMBER_PREFIX}-{date.today().year}-"
        return f"{prefix}{str(allocation.id).zfill(5)}"
