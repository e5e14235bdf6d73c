"""
Persistence port.
The quote core only talks to storage through these interfaces, so services
can run against the SQLAlchemy store in production and an in-memory fake in tests.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Generic, TypeVar


RecordT = TypeVar("RecordT")

LOOKUP_SEPARATOR = "__"
LOOKUPS = ("eq", "ilike", "lt", "lte", "gte")
ANY_FIELD_SEPARATOR = "|"


def split_lookup(key: str) -> tuple[str, str]:
    """
    Split a filter key into field name and lookup.

    ``status`` -> ("status", "eq"), ``quote_number__ilike`` -> ("quote_number", "ilike")
    """
    field, sep, lookup = key.rpartition(LOOKUP_SEPARATOR)
    if not sep or lookup not in LOOKUPS:
        return key, "eq"
    return field, lookup


def split_fields(field: str) -> list[str]:
    """``name|code`` -> ["name", "code"]"""
    return field.split(ANY_FIELD_SEPARATOR)


class Collection(ABC, Generic[RecordT]):
    """One entity collection of the record store."""

    @abstractmethod
    async def insert(self, values: dict[str, Any]) -> RecordT:
        """Store a new record and return it with its id assigned."""

    @abstractmethod
    async def update(self, record_id: int, values: dict[str, Any]) -> RecordT:
        """Apply a partial update in a single write and return the record."""

    @abstractmethod
    async def delete(self, record_id: int) -> None:
        """Delete a record by id."""

    @abstractmethod
    async def get(self, record_id: int) -> RecordT:
        """Return a record by id or raise NotFoundError."""

    @abstractmethod
    async def query(
        self,
        order_by: str | None = None,
        descending: bool = False,
        offset: int = 0,
        limit: int | None = None,
        **filters: Any,
    ) -> list[RecordT]:
        """
        Return one page of the records matching every filter.

        Filters are ``field=value`` equality checks or ``field__ilike``,
        ``field__lt``, ``field__lte`` and ``field__gte`` lookups. Fields
        joined with ``|`` (``name|code__ilike``) match when any of them does.
        Ties in ``order_by`` are broken by id in the same direction.
        """

    @abstractmethod
    async def count(self, **filters: Any) -> int:
        """Number of records matching every filter, same filters as query."""

    @abstractmethod
    async def sum(self, field: str, **filters: Any) -> Decimal:
        """Sum of ``field`` over the matching records, zero when none match."""


class RecordStore(ABC):
    """Collections used by the quote core plus the numbering service."""

    quotes: Collection
    quote_items: Collection
    quote_promotions: Collection
    promotions: Collection

    @abstractmethod
    async def generate_quote_number(self) -> str:
        """Return a quote number no other quote has or will get."""
