"""
Quote schemas for request/response validation.
Business rules (subject exclusivity, expiry, quantities) are checked by the
services so direct callers and HTTP callers get the same errors.
"""

from datetime import date, datetime
from decimal import Decimal
from pydantic import Field, field_validator

from linkos.schemas.base import BaseSchema, PageMeta, blank_to_none
from linkos.models.promotion import DiscountType
from linkos.models.quote import QuoteItemType, QuoteStatus


class QuoteItemCreate(BaseSchema):
    """Schema for adding a line to a quote."""

    item_type: QuoteItemType
    inventory_id: str | None = None
    plan_id: str | None = None
    item_name: str | None = Field(None, max_length=255)
    item_description: str | None = None
    quantity: int = 1
    unit_price: Decimal


class QuoteItemResponse(BaseSchema):
    """Quote item response schema."""

    id: int
    quote_id: int
    item_type: QuoteItemType
    inventory_id: str | None
    plan_id: str | None
    item_name: str | None
    item_description: str | None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    created_at: datetime


class QuotePromotionApply(BaseSchema):
    """Schema for applying a promotion to a quote."""

    promotion_id: int


class QuotePromotionResponse(BaseSchema):
    """Applied promotion snapshot."""

    id: int
    quote_id: int
    promotion_id: int
    discount_type: DiscountType
    discount_amount: Decimal
    created_at: datetime


class QuoteBase(BaseSchema):
    """Base quote schema."""

    customer_id: str | None = None
    lead_id: str | None = None
    expires_at: date | None = None
    notes: str | None = None
    terms: str | None = None

    @field_validator("customer_id", "lead_id")
    @classmethod
    def blank_id_is_none(cls, v):
        return blank_to_none(v)


class QuoteCreate(QuoteBase):
    """
    Schema for creating a quote.
    Items and promotions are attached by the quote workflow after creation.
    """

    items: list[QuoteItemCreate] = Field(default_factory=list)
    promotion_ids: list[int] = Field(default_factory=list)


class QuoteUpdate(BaseSchema):
    """Schema for patching a quote. Status and totals are not patchable."""

    customer_id: str | None = None
    lead_id: str | None = None
    expires_at: date | None = None
    notes: str | None = None
    terms: str | None = None
    declined_reason: str | None = None

    @field_validator("customer_id", "lead_id")
    @classmethod
    def blank_id_is_none(cls, v):
        return blank_to_none(v)


class QuoteDecline(BaseSchema):
    """Schema for declining a quote."""

    reason: str | None = None


class QuoteStatusOverride(BaseSchema):
    """Schema for an administrative status override."""

    status: QuoteStatus


class QuoteTotals(BaseSchema):
    """The four monetary fields produced by the pricing engine."""

    subtotal: Decimal
    discount_total: Decimal
    tax_total: Decimal
    total: Decimal


class QuoteResponse(BaseSchema):
    """Quote response schema."""

    id: int
    quote_number: str
    status: QuoteStatus
    display_status: str
    is_expired: bool
    customer_id: str | None
    lead_id: str | None
    subtotal: Decimal
    discount_total: Decimal
    tax_total: Decimal
    total: Decimal
    expires_at: date
    sent_at: datetime | None
    accepted_at: datetime | None
    accepted_by: str | None
    declined_at: datetime | None
    declined_reason: str | None
    notes: str | None
    terms: str | None
    created_by: str | None
    created_at: datetime
    updated_at: datetime


class QuoteDetailResponse(QuoteResponse):
    """Quote with its lines and applied promotions."""

    items: list[QuoteItemResponse] = Field(default_factory=list)
    promotions: list[QuotePromotionResponse] = Field(default_factory=list)


class QuoteListResponse(PageMeta):
    """Paginated quote list response."""

    items: list[QuoteResponse]


class QuoteStats(BaseSchema):
    """Quote statistics."""

    status_counts: dict[str, int]
    expired_count: int
    total_accepted_value: Decimal
    acceptance_rate: float
