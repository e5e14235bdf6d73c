"""
Quote line-item tests.
"""

from decimal import Decimal
import pytest

from linkos.core.exceptions import NotFoundError, QuoteLockedError, ValidationError
from linkos.models.quote import QuoteItemType
from linkos.schemas.quote import QuoteBase, QuoteItemCreate
from linkos.services.quote import QuoteService
from linkos.services.quote_item import QuoteItemService


def inventory_item(**overrides) -> QuoteItemCreate:
    values = {
        "item_type": QuoteItemType.INVENTORY,
        "inventory_id": "sim-card",
        "item_name": "SIM card",
        "quantity": 1,
        "unit_price": Decimal("5.00"),
    }
    values.update(overrides)
    return QuoteItemCreate(**values)


@pytest.fixture
async def draft(memory_store):
    return await QuoteService(memory_store).create(QuoteBase(customer_id="cust-1"))


@pytest.mark.asyncio
async def test_add_item_stores_line_subtotal(memory_store, draft):
    """The line subtotal is quantity times unit price."""
    item = await QuoteItemService(memory_store).add_item(
        draft.id,
        inventory_item(quantity=3, unit_price=Decimal("4.99")),
    )

    assert item.quote_id == draft.id
    assert item.unit_price == Decimal("4.99")
    assert item.subtotal == Decimal("14.97")
    assert item.item_name == "SIM card"


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"quantity": 0},
    {"unit_price": Decimal("-1.00")},
    {"inventory_id": None},
    {"plan_id": "plan-1"},
    {"item_type": QuoteItemType.PLAN},
])
async def test_add_item_rejects_invalid_lines(memory_store, draft, overrides):
    """Bad quantities, prices or references are rejected before any write."""
    with pytest.raises(ValidationError):
        await QuoteItemService(memory_store).add_item(draft.id, inventory_item(**overrides))

    assert memory_store.quote_items.rows == {}


@pytest.mark.asyncio
async def test_add_item_to_unknown_quote(memory_store):
    """Lines need an existing quote."""
    with pytest.raises(NotFoundError):
        await QuoteItemService(memory_store).add_item(99, inventory_item())


@pytest.mark.asyncio
async def test_lines_locked_once_sent(memory_store, draft):
    """Sent quotes cannot gain or lose lines."""
    items = QuoteItemService(memory_store)
    item = await items.add_item(draft.id, inventory_item())
    await QuoteService(memory_store).send(draft.id)

    with pytest.raises(QuoteLockedError):
        await items.add_item(draft.id, inventory_item())

    with pytest.raises(QuoteLockedError):
        await items.remove_item(item.id)

    assert list(memory_store.quote_items.rows) == [item.id]


@pytest.mark.asyncio
async def test_remove_item_checks_owner(memory_store, draft):
    """A line cannot be removed through another quote."""
    other = await QuoteService(memory_store).create(QuoteBase(lead_id="lead-1"))
    items = QuoteItemService(memory_store)
    item = await items.add_item(draft.id, inventory_item())

    with pytest.raises(NotFoundError):
        await items.remove_item(item.id, quote_id=other.id)

    removed = await items.remove_item(item.id, quote_id=draft.id)
    assert removed.id == item.id
    assert await items.list_items(draft.id) == []


@pytest.mark.asyncio
async def test_list_items_in_insertion_order(memory_store, draft):
    """Lines come back in the order they were added."""
    items = QuoteItemService(memory_store)
    first = await items.add_item(draft.id, inventory_item())
    second = await items.add_item(draft.id, inventory_item(
        item_type=QuoteItemType.PLAN,
        inventory_id=None,
        plan_id="plan-5g",
    ))

    assert [i.id for i in await items.list_items(draft.id)] == [first.id, second.id]
