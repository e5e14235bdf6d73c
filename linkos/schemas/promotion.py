"""
Promotion schemas.
"""

from datetime import date, datetime
from decimal import Decimal
from pydantic import Field

from linkos.schemas.base import BaseSchema
from linkos.models.promotion import PromotionStatus, DiscountType, DiscountDuration


class PromotionBase(BaseSchema):
    """Base promotion schema."""

    promotion_name: str = Field(..., min_length=1, max_length=255)
    promotion_description: str | None = None
    promotion_code: str | None = Field(None, max_length=100)
    discount_type: DiscountType
    discount_amount: Decimal
    discount_duration: DiscountDuration = DiscountDuration.ONE_TIME
    recurring_months: int | None = None
    approval_required: bool = False
    valid_from: date | None = None
    valid_until: date | None = None


class PromotionCreate(PromotionBase):
    """Schema for creating a promotion."""

    status: PromotionStatus = PromotionStatus.DRAFT


class PromotionUpdate(BaseSchema):
    """Schema for updating a promotion."""

    status: PromotionStatus | None = None
    promotion_name: str | None = Field(None, min_length=1, max_length=255)
    promotion_description: str | None = None
    promotion_code: str | None = Field(None, max_length=100)
    discount_type: DiscountType | None = None
    discount_amount: Decimal | None = None
    discount_duration: DiscountDuration | None = None
    recurring_months: int | None = None
    approval_required: bool | None = None
    valid_from: date | None = None
    valid_until: date | None = None


class PromotionResponse(PromotionBase):
    """Promotion response schema."""

    id: int
    status: PromotionStatus
    approved_by: str | None
    approved_at: datetime | None
    is_currently_valid: bool
    created_at: datetime
    updated_at: datetime


class PromotionCodeValidation(BaseSchema):
    """Result of checking a promotion code."""

    valid: bool
    promotion: PromotionResponse | None = None
    message: str | None = None
