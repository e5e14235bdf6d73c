"""
Pytest configuration and fixtures.
"""

import re
from decimal import Decimal
from typing import Any, AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from linkos.core.database import Base, get_db
from linkos.core.exceptions import NotFoundError, StoreError
from linkos.core.security import issue_token
from linkos.main import app
from linkos.models import Promotion, Quote, QuoteItem, QuotePromotion
from linkos.models.base import utcnow
from linkos.store.base import Collection, RecordStore, split_fields, split_lookup


# Test database URL (in-memory SQLite shared by every connection of the pool)
TEST_DATABASE_URL = "sqlite+aiosqlite://"

TEST_USER_ID = "user-123"


def like_to_regex(pattern: str) -> re.Pattern:
    """Translate a SQL LIKE pattern into a case-insensitive regex."""
    parts = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


class InMemoryCollection(Collection):
    """Collection keeping model instances in a dict."""

    def __init__(self, store: "InMemoryRecordStore", name: str, model: type):
        self.store = store
        self.name = name
        self.model = model
        self.rows: dict[int, Any] = {}
        self.next_id = 1

    def _check(self, action: str) -> None:
        if f"{self.name}.{action}" in self.store.fail_on:
            raise StoreError(f"Injected failure on {self.name}.{action}")

    async def insert(self, values: dict[str, Any]) -> Any:
        self._check("insert")
        now = utcnow()
        record = self.model(**values)
        record.id = self.next_id
        record.created_at = now
        record.updated_at = now
        self.rows[record.id] = record
        self.next_id += 1
        return record

    async def update(self, record_id: int, values: dict[str, Any]) -> Any:
        record = await self.get(record_id)
        self._check("update")
        for field, value in values.items():
            setattr(record, field, value)
        record.updated_at = utcnow()
        return record

    async def delete(self, record_id: int) -> None:
        await self.get(record_id)
        self._check("delete")
        del self.rows[record_id]

    async def get(self, record_id: int) -> Any:
        self._check("get")
        if record_id not in self.rows:
            raise NotFoundError(f"{self.model.__name__} {record_id} not found")
        return self.rows[record_id]

    def _matches(self, record: Any, filters: dict[str, Any]) -> bool:
        for key, value in filters.items():
            field, lookup = split_lookup(key)
            if not any(
                self._match(getattr(record, name), lookup, value)
                for name in split_fields(field)
            ):
                return False
        return True

    @staticmethod
    def _match(current: Any, lookup: str, value: Any) -> bool:
        if lookup == "ilike":
            return current is not None and like_to_regex(value).fullmatch(current) is not None
        if lookup in ("lt", "lte", "gte"):
            if current is None:
                return False
            if lookup == "lt":
                return current < value
            return current <= value if lookup == "lte" else current >= value
        return current == value

    async def query(
        self,
        order_by: str | None = None,
        descending: bool = False,
        offset: int = 0,
        limit: int | None = None,
        **filters: Any,
    ) -> list[Any]:
        self._check("query")
        records = [r for r in self.rows.values() if self._matches(r, filters)]

        records.sort(key=lambda r: r.id, reverse=descending)
        if order_by:
            records.sort(key=lambda r: getattr(r, order_by), reverse=descending)
        end = None if limit is None else offset + limit
        return records[offset:end]

    async def count(self, **filters: Any) -> int:
        self._check("count")
        return sum(1 for r in self.rows.values() if self._matches(r, filters))

    async def sum(self, field: str, **filters: Any) -> Decimal:
        self._check("sum")
        values = [getattr(r, field) for r in self.rows.values() if self._matches(r, filters)]
        return sum((v for v in values if v is not None), Decimal("0"))


class InMemoryRecordStore(RecordStore):
    """
    Record store fake for service tests.

    Add ``"<collection>.<action>"`` to ``fail_on`` to make that call raise
    StoreError.
    """

    def __init__(self):
        self.fail_on: set[str] = set()
        self.quotes = InMemoryCollection(self, "quotes", Quote)
        self.quote_items = InMemoryCollection(self, "quote_items", QuoteItem)
        self.quote_promotions = InMemoryCollection(self, "quote_promotions", QuotePromotion)
        self.promotions = InMemoryCollection(self, "promotions", Promotion)
        self._sequence = 0

    async def generate_quote_number(self) -> str:
        self._sequence += 1
        return f"Q-TEST-{self._sequence:05d}"


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    """Fresh in-memory record store."""
    return InMemoryRecordStore()


@pytest.fixture
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database session override."""

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Bearer header for a token issued to the test user."""
    token = issue_token(TEST_USER_ID)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def auth_client(
    client: AsyncClient,
    auth_headers: dict[str, str],
) -> AsyncClient:
    """Create authenticated test client."""
    client.headers.update(auth_headers)
    return client
