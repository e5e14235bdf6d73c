"""
Quote line-item service.
Adds and removes priced lines on draft quotes. Totals are not recomputed
here; callers batch their edits and then call the pricing engine once.
"""

import logging
from decimal import Decimal

from linkos.core.exceptions import NotFoundError, QuoteLockedError, ValidationError
from linkos.models.quote import Quote, QuoteItem, QuoteItemType, QuoteStatus
from linkos.schemas.quote import QuoteItemCreate
from linkos.services.pricing import line_subtotal, to_money
from linkos.store.base import RecordStore


logger = logging.getLogger(__name__)


def validate_item(data: QuoteItemCreate) -> None:
    """Check a line before anything is written."""
    try:
        item_type = QuoteItemType(data.item_type)
    except ValueError:
        raise ValidationError(f"Unknown item type '{data.item_type}'")

    if item_type == QuoteItemType.INVENTORY:
        if not data.inventory_id or data.plan_id:
            raise ValidationError("Inventory lines reference an inventory item and no plan")
    else:
        if not data.plan_id or data.inventory_id:
            raise ValidationError("Plan lines reference a plan and no inventory item")

    if data.quantity < 1:
        raise ValidationError(
            "Quantity must be at least 1",
            context={"quantity": data.quantity},
        )
    if data.unit_price < 0:
        raise ValidationError(
            "Unit price cannot be negative",
            context={"unit_price": str(data.unit_price)},
        )


def ensure_draft(quote: Quote) -> None:
    """Lines and promotions only change while the quote is a draft."""
    if quote.status != QuoteStatus.DRAFT:
        raise QuoteLockedError(
            f"Quote {quote.quote_number} is {QuoteStatus(quote.status).value}; only drafts can be edited",
            context={"status": QuoteStatus(quote.status).value},
        )


class QuoteItemService:
    """Service for quote line operations."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def add_item(self, quote_id: int, data: QuoteItemCreate) -> QuoteItem:
        """
        Add a line to a draft quote.

        The unit price is stored as given, so later catalogue price changes
        do not affect existing lines.
        """
        validate_item(data)

        quote = await self.store.quotes.get(quote_id)
        ensure_draft(quote)

        unit_price = to_money(Decimal(data.unit_price))
        item = await self.store.quote_items.insert({
            "quote_id": quote_id,
            "item_type": QuoteItemType(data.item_type),
            "inventory_id": data.inventory_id,
            "plan_id": data.plan_id,
            "item_name": data.item_name,
            "item_description": data.item_description,
            "quantity": data.quantity,
            "unit_price": unit_price,
            "subtotal": line_subtotal(data.quantity, unit_price),
        })

        logger.info(f"Line {item.id} added to quote {quote.quote_number}")
        return item

    async def remove_item(self, item_id: int, quote_id: int | None = None) -> QuoteItem:
        """
        Remove a line from its draft quote.

        Args:
            item_id: Line to remove
            quote_id: When given, the line must belong to this quote

        Returns:
            The removed line
        """
        item = await self.store.quote_items.get(item_id)
        if quote_id is not None and item.quote_id != quote_id:
            raise NotFoundError(
                f"Line {item_id} not found on quote {quote_id}",
                context={"item_id": item_id, "quote_id": quote_id},
            )

        quote = await self.store.quotes.get(item.quote_id)
        ensure_draft(quote)

        await self.store.quote_items.delete(item_id)
        logger.info(f"Line {item_id} removed from quote {quote.quote_number}")
        return item

    async def list_items(self, quote_id: int) -> list[QuoteItem]:
        """List the lines of a quote in the order they were added."""
        await self.store.quotes.get(quote_id)
        return await self.store.quote_items.query(quote_id=quote_id, order_by="created_at")
