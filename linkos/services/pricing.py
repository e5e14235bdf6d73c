"""
Quote pricing engine.
Recomputes a quote's subtotal, discount, tax and total from its stored
lines and promotion snapshots.
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from linkos.core.exceptions import PricingError
from linkos.models.promotion import DiscountType
from linkos.models.quote import Quote
from linkos.schemas.quote import QuoteTotals
from linkos.store.base import RecordStore


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """Round a numeric value to cents, half up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def line_subtotal(quantity: int, unit_price: Decimal) -> Decimal:
    """Subtotal of one quote line."""
    return to_money(Decimal(quantity) * unit_price)


def promotion_discount(
    discount_type: DiscountType | str,
    discount_amount: Decimal | None,
    subtotal: Decimal,
) -> Decimal:
    """
    Discount contributed by one applied promotion.

    Dollar promotions take their amount off as-is. Percent promotions take
    a percentage of the whole subtotal, so several percent promotions add
    up instead of compounding.
    """
    if discount_amount is None:
        raise PricingError("Applied promotion has no discount amount")

    try:
        kind = DiscountType(discount_type)
    except ValueError:
        raise PricingError(
            f"Unsupported discount type '{discount_type}'",
            context={"discount_type": str(discount_type)},
        )

    try:
        amount = Decimal(str(discount_amount))
    except InvalidOperation:
        raise PricingError(
            f"Invalid discount amount '{discount_amount}'",
            context={"discount_amount": str(discount_amount)},
        )

    if kind == DiscountType.DOLLAR:
        return to_money(amount)
    return to_money(subtotal * amount / 100)


def compute_totals(items: Iterable[Any], promotions: Iterable[Any]) -> QuoteTotals:
    """
    Compute the four monetary fields of a quote.

    Args:
        items: Objects with a ``subtotal`` attribute
        promotions: Objects with ``discount_type`` and ``discount_amount``

    Returns:
        QuoteTotals. The total is not floored and can be negative when
        discounts exceed the subtotal.
    """
    subtotal = sum((to_money(item.subtotal) for item in items), ZERO)

    discount_total = ZERO
    for promotion in promotions:
        discount_total += promotion_discount(
            promotion.discount_type,
            promotion.discount_amount,
            subtotal,
        )

    # No tax rules exist yet.
    tax_total = ZERO

    return QuoteTotals(
        subtotal=subtotal,
        discount_total=discount_total,
        tax_total=tax_total,
        total=subtotal - discount_total + tax_total,
    )


class PricingService:
    """Service recomputing quote totals."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def recalculate(self, quote_id: int) -> Quote:
        """
        Recompute and persist the totals of a quote.

        Every read happens before the single write of all four fields, so a
        failure at any step leaves the stored totals untouched.
        """
        await self.store.quotes.get(quote_id)
        items = await self.store.quote_items.query(quote_id=quote_id)
        promotions = await self.store.quote_promotions.query(quote_id=quote_id)

        totals = compute_totals(items, promotions)
        quote = await self.store.quotes.update(quote_id, totals.model_dump())

        logger.info(
            f"Quote {quote.quote_number} recalculated: subtotal={totals.subtotal} "
            f"discount={totals.discount_total} total={totals.total}"
        )
        return quote
