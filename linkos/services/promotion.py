"""
Promotion service.
Handles the promotion catalogue and applying promotions to draft quotes.
"""

import logging
from decimal import Decimal
from typing import Any, List

from linkos.core.exceptions import NotFoundError, ValidationError
from linkos.models.base import utcnow
from linkos.models.promotion import Promotion, PromotionStatus, DiscountType, DiscountDuration
from linkos.models.quote import QuotePromotion
from linkos.schemas.promotion import PromotionCreate, PromotionUpdate
from linkos.services.quote_item import ensure_draft
from linkos.store.base import RecordStore


logger = logging.getLogger(__name__)


def validate_promotion(values: dict[str, Any]) -> None:
    """Check the merged promotion fields before they are stored."""
    amount = values.get("discount_amount")
    if amount is None or amount < 0:
        raise ValidationError("Discount amount must be zero or more")
    if values.get("discount_type") == DiscountType.PERCENT and amount > 100:
        raise ValidationError(
            "A percent discount cannot exceed 100",
            context={"discount_amount": str(amount)},
        )

    if values.get("discount_duration") == DiscountDuration.RECURRING:
        months = values.get("recurring_months")
        if not months or months < 1:
            raise ValidationError("Recurring promotions need a number of months")

    valid_from = values.get("valid_from")
    valid_until = values.get("valid_until")
    if valid_from and valid_until and valid_from > valid_until:
        raise ValidationError(
            "Promotion validity ends before it starts",
            context={"valid_from": valid_from.isoformat(), "valid_until": valid_until.isoformat()},
        )


class PromotionService:
    """Service for promotion operations."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def create(self, data: PromotionCreate) -> Promotion:
        """Create a promotion."""
        values = data.model_dump()
        validate_promotion(values)

        if data.promotion_code:
            await self._ensure_code_free(data.promotion_code)

        promotion = await self.store.promotions.insert(values)
        logger.info(f"Promotion '{promotion.promotion_name}' created (id={promotion.id})")
        return promotion

    async def get(self, promotion_id: int) -> Promotion:
        """Get promotion by ID or raise NotFoundError."""
        return await self.store.promotions.get(promotion_id)

    async def get_by_code(self, code: str) -> Promotion:
        """Get promotion by its code."""
        promotions = await self.store.promotions.query(promotion_code=code)
        if not promotions:
            raise NotFoundError(
                f"Promotion code '{code}' not found",
                context={"promotion_code": code},
            )
        return promotions[0]

    async def list(
        self,
        status: PromotionStatus | None = None,
        search: str | None = None,
    ) -> list[Promotion]:
        """List promotions, newest first. Search covers name, description and code."""
        filters: dict[str, Any] = {}
        if status:
            filters["status"] = status
        if search:
            filters["promotion_name|promotion_description|promotion_code__ilike"] = f"%{search}%"

        return await self.store.promotions.query(order_by="created_at", descending=True, **filters)

    async def list_active(self) -> List[Promotion]:
        """List promotions that can be applied today, by name."""
        promotions = await self.store.promotions.query(
            status=PromotionStatus.ACTIVE,
            order_by="promotion_name",
        )
        return [p for p in promotions if p.is_currently_valid]

    async def validate_code(self, code: str) -> Promotion:
        """
        Return the promotion behind a code if it can be used today.

        Raises:
            NotFoundError: Unknown code
            ValidationError: Promotion is inactive or outside its window
        """
        promotion = await self.get_by_code(code)
        if not promotion.is_currently_valid:
            raise ValidationError(
                f"Promotion code '{code}' is not currently valid",
                context={"promotion_code": code, "status": PromotionStatus(promotion.status).value},
            )
        return promotion

    async def update(self, promotion_id: int, data: PromotionUpdate) -> Promotion:
        """Update a promotion. Quotes keep the snapshot they were priced with."""
        promotion = await self.get(promotion_id)
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return promotion

        merged = {
            "discount_type": promotion.discount_type,
            "discount_amount": promotion.discount_amount,
            "discount_duration": promotion.discount_duration,
            "recurring_months": promotion.recurring_months,
            "valid_from": promotion.valid_from,
            "valid_until": promotion.valid_until,
            **update_data,
        }
        validate_promotion(merged)

        code = update_data.get("promotion_code")
        if code and code != promotion.promotion_code:
            await self._ensure_code_free(code)

        return await self.store.promotions.update(promotion_id, update_data)

    async def approve(self, promotion_id: int, acting_user_id: str) -> Promotion:
        """Approve a promotion and make it active."""
        if not acting_user_id:
            raise ValidationError("Approving a promotion requires the acting user")

        await self.get(promotion_id)
        promotion = await self.store.promotions.update(promotion_id, {
            "approved_by": acting_user_id,
            "approved_at": utcnow(),
            "status": PromotionStatus.ACTIVE,
        })
        logger.info(f"Promotion '{promotion.promotion_name}' approved by {acting_user_id}")
        return promotion

    async def delete(self, promotion_id: int) -> None:
        """Delete a promotion that is not applied to any quote."""
        promotion = await self.get(promotion_id)
        applied = await self.store.quote_promotions.count(promotion_id=promotion_id)
        if applied:
            raise ValidationError(
                f"Promotion '{promotion.promotion_name}' is applied to {applied} quote(s)",
                context={"promotion_id": promotion_id, "quotes": applied},
            )
        await self.store.promotions.delete(promotion_id)

    async def get_applicable(self, promotion_id: int) -> Promotion:
        """Get a promotion that can be applied to a quote today."""
        promotion = await self.get(promotion_id)
        if not promotion.is_currently_valid:
            raise ValidationError(
                f"Promotion '{promotion.promotion_name}' is not currently valid",
                context={"promotion_id": promotion_id},
            )
        return promotion

    async def apply_to_quote(self, quote_id: int, promotion_id: int) -> QuotePromotion:
        """
        Apply a promotion to a draft quote.
        The discount type and amount are copied onto the quote.
        """
        quote = await self.store.quotes.get(quote_id)
        ensure_draft(quote)

        promotion = await self.get_applicable(promotion_id)

        existing = await self.store.quote_promotions.query(
            quote_id=quote_id,
            promotion_id=promotion_id,
        )
        if existing:
            raise ValidationError(
                f"Promotion '{promotion.promotion_name}' is already applied to quote {quote.quote_number}",
                context={"quote_id": quote_id, "promotion_id": promotion_id},
            )

        applied = await self.store.quote_promotions.insert({
            "quote_id": quote_id,
            "promotion_id": promotion_id,
            "discount_type": DiscountType(promotion.discount_type),
            "discount_amount": Decimal(promotion.discount_amount),
        })
        logger.info(f"Promotion {promotion_id} applied to quote {quote.quote_number}")
        return applied

    async def remove_from_quote(self, quote_id: int, promotion_id: int) -> None:
        """Remove a promotion from a draft quote."""
        quote = await self.store.quotes.get(quote_id)
        ensure_draft(quote)

        applied = await self.store.quote_promotions.query(
            quote_id=quote_id,
            promotion_id=promotion_id,
        )
        if not applied:
            raise NotFoundError(
                f"Promotion {promotion_id} is not applied to quote {quote.quote_number}",
                context={"quote_id": quote_id, "promotion_id": promotion_id},
            )

        for row in applied:
            await self.store.quote_promotions.delete(row.id)
        logger.info(f"Promotion {promotion_id} removed from quote {quote.quote_number}")

    async def list_for_quote(self, quote_id: int) -> List[QuotePromotion]:
        """List promotions applied to a quote."""
        await self.store.quotes.get(quote_id)
        return await self.store.quote_promotions.query(quote_id=quote_id, order_by="created_at")

    async def _ensure_code_free(self, code: str) -> None:
        if await self.store.promotions.query(promotion_code=code):
            raise ValidationError(
                f"Promotion code '{code}' is already in use",
                context={"promotion_code": code},
            )
