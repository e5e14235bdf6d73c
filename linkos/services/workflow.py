"""
Quote workflow.
Composes line and promotion edits with a recompute so callers get
up-to-date totals from a single call. With the SQLAlchemy store all steps
share one session, and the request commits or rolls back as a whole.
"""

from linkos.core.exceptions import ValidationError
from linkos.models.quote import Quote
from linkos.schemas.quote import QuoteCreate, QuoteItemCreate
from linkos.services.pricing import PricingService
from linkos.services.promotion import PromotionService
from linkos.services.quote import QuoteService
from linkos.services.quote_item import QuoteItemService, validate_item
from linkos.store.base import RecordStore


class QuoteWorkflow:
    """Mutate-then-recalculate operations on quotes."""

    def __init__(self, store: RecordStore):
        self.quotes = QuoteService(store)
        self.items = QuoteItemService(store)
        self.promotions = PromotionService(store)
        self.pricing = PricingService(store)

    async def create_quote(self, data: QuoteCreate, created_by: str | None = None) -> Quote:
        """Create a draft quote, attach its lines and promotions, and price it."""
        # Lines and promotions are checked up front so bad input fails before anything is stored.
        for item_data in data.items:
            validate_item(item_data)

        duplicates = sorted({pid for pid in data.promotion_ids if data.promotion_ids.count(pid) > 1})
        if duplicates:
            raise ValidationError(
                "A promotion can only be applied once per quote",
                context={"promotion_ids": duplicates},
            )
        for promotion_id in data.promotion_ids:
            await self.promotions.get_applicable(promotion_id)

        quote = await self.quotes.create(data, created_by=created_by)
        for item_data in data.items:
            await self.items.add_item(quote.id, item_data)
        for promotion_id in data.promotion_ids:
            await self.promotions.apply_to_quote(quote.id, promotion_id)

        return await self.pricing.recalculate(quote.id)

    async def add_item(self, quote_id: int, data: QuoteItemCreate) -> Quote:
        await self.items.add_item(quote_id, data)
        return await self.pricing.recalculate(quote_id)

    async def remove_item(self, quote_id: int, item_id: int) -> Quote:
        await self.items.remove_item(item_id, quote_id=quote_id)
        return await self.pricing.recalculate(quote_id)

    async def apply_promotion(self, quote_id: int, promotion_id: int) -> Quote:
        await self.promotions.apply_to_quote(quote_id, promotion_id)
        return await self.pricing.recalculate(quote_id)

    async def remove_promotion(self, quote_id: int, promotion_id: int) -> Quote:
        await self.promotions.remove_from_quote(quote_id, promotion_id)
        return await self.pricing.recalculate(quote_id)
