"""
SQLAlchemy record store tests.
"""

from datetime import date, timedelta
from decimal import Decimal
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from linkos.core.config import settings
from linkos.core.exceptions import NotFoundError, StoreError
from linkos.models.quote import QuoteStatus
from linkos.store import SQLAlchemyRecordStore, split_lookup


def quote_values(number: str, **overrides) -> dict:
    values = {
        "quote_number": number,
        "status": QuoteStatus.DRAFT,
        "customer_id": "cust-1",
        "expires_at": date.today() + timedelta(days=30),
        "subtotal": Decimal("0.00"),
        "discount_total": Decimal("0.00"),
        "tax_total": Decimal("0.00"),
        "total": Decimal("0.00"),
    }
    values.update(overrides)
    return values


def test_split_lookup():
    """Known suffixes are lookups, anything else is a plain field."""
    assert split_lookup("status") == ("status", "eq")
    assert split_lookup("quote_number__ilike") == ("quote_number", "ilike")
    assert split_lookup("expires_at__gte") == ("expires_at", "gte")
    assert split_lookup("expires_at__lt") == ("expires_at", "lt")
    assert split_lookup("notes|terms__ilike") == ("notes|terms", "ilike")
    assert split_lookup("weird__name") == ("weird__name", "eq")


@pytest.mark.asyncio
async def test_quote_numbers_are_sequential(db_session: AsyncSession):
    """Numbers carry the prefix, the year and a padded sequence."""
    store = SQLAlchemyRecordStore(db_session)

    first = await store.generate_quote_number()
    second = await store.generate_quote_number()

    prefix = f"{settings.QUOTE_NUMBER_PREFIX}-{date.today().year}-"
    assert first == f"{prefix}00001"
    assert second == f"{prefix}00002"


@pytest.mark.asyncio
async def test_query_lookups(db_session: AsyncSession):
    """Equality, None, ilike and range lookups all narrow the result."""
    quotes = SQLAlchemyRecordStore(db_session).quotes
    soon = await quotes.insert(quote_values("Q-2026-00001", expires_at=date.today() + timedelta(days=2)))
    later = await quotes.insert(quote_values("Q-2026-00002", customer_id=None, lead_id="lead-1"))

    assert [q.id for q in await quotes.query(lead_id=None)] == [soon.id]
    assert [q.id for q in await quotes.query(quote_number__ilike="%00002")] == [later.id]
    assert [q.id for q in await quotes.query(expires_at__lte=date.today() + timedelta(days=5))] == [soon.id]
    assert [q.id for q in await quotes.query(expires_at__gte=date.today() + timedelta(days=5))] == [later.id]
    assert [q.id for q in await quotes.query(order_by="quote_number", descending=True)] == [later.id, soon.id]


@pytest.mark.asyncio
async def test_update_and_delete(db_session: AsyncSession):
    """Updates are partial and deleted records are gone."""
    quotes = SQLAlchemyRecordStore(db_session).quotes
    quote = await quotes.insert(quote_values("Q-2026-00001"))

    updated = await quotes.update(quote.id, {"notes": "Priority"})
    assert updated.notes == "Priority"
    assert updated.quote_number == "Q-2026-00001"

    await quotes.delete(quote.id)
    with pytest.raises(NotFoundError):
        await quotes.get(quote.id)


@pytest.mark.asyncio
async def test_constraint_violation_becomes_store_error(db_session: AsyncSession):
    """Database integrity errors surface as StoreError."""
    quotes = SQLAlchemyRecordStore(db_session).quotes
    await quotes.insert(quote_values("Q-2026-00001"))

    with pytest.raises(StoreError):
        await quotes.insert(quote_values("Q-2026-00001"))


@pytest.mark.asyncio
async def test_query_pages_in_sql(db_session: AsyncSession):
    """Offset and limit are applied after ordering."""
    quotes = SQLAlchemyRecordStore(db_session).quotes
    for n in range(1, 6):
        await quotes.insert(quote_values(f"Q-2026-0000{n}"))

    page = await quotes.query(order_by="quote_number", offset=1, limit=2)
    assert [q.quote_number for q in page] == ["Q-2026-00002", "Q-2026-00003"]

    page = await quotes.query(order_by="quote_number", descending=True, offset=3)
    assert [q.quote_number for q in page] == ["Q-2026-00002", "Q-2026-00001"]


@pytest.mark.asyncio
async def test_count_and_sum(db_session: AsyncSession):
    """Counts and sums honour the same filters as query."""
    quotes = SQLAlchemyRecordStore(db_session).quotes
    await quotes.insert(quote_values("Q-2026-00001", status=QuoteStatus.ACCEPTED, total=Decimal("10.25")))
    await quotes.insert(quote_values("Q-2026-00002", status=QuoteStatus.ACCEPTED, total=Decimal("4.50")))
    await quotes.insert(quote_values(
        "Q-2026-00003",
        status=QuoteStatus.SENT,
        total=Decimal("99.00"),
        expires_at=date.today() - timedelta(days=1),
    ))

    assert await quotes.count() == 3
    assert await quotes.count(status=QuoteStatus.ACCEPTED) == 2
    assert await quotes.count(expires_at__lt=date.today()) == 1
    assert await quotes.sum("total", status=QuoteStatus.ACCEPTED) == Decimal("14.75")
    assert await quotes.sum("total", status=QuoteStatus.DECLINED) == Decimal("0")


@pytest.mark.asyncio
async def test_query_matches_any_of_several_fields(db_session: AsyncSession):
    """Fields joined with | match when any one of them does."""
    quotes = SQLAlchemyRecordStore(db_session).quotes
    by_notes = await quotes.insert(quote_values("Q-2026-00001", notes="VIP customer"))
    by_terms = await quotes.insert(quote_values("Q-2026-00002", terms="Net 30, vip rate"))
    await quotes.insert(quote_values("Q-2026-00003", notes="Standard"))

    matches = await quotes.query(**{"notes|terms__ilike": "%vip%"})
    assert [q.id for q in matches] == [by_notes.id, by_terms.id]
    assert await quotes.count(**{"notes|terms__ilike": "%vip%"}) == 2
