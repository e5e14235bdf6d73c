"""
Promotion model for discounts that can be applied to quotes.
"""

from typing import Optional
from decimal import Decimal
from datetime import date, datetime
from enum import Enum
from sqlalchemy import String, Text, Integer, Numeric, Boolean, Date, DateTime, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from linkos.models.base import RecordModel


class PromotionStatus(str, Enum):
    """Promotion status enumeration."""
    DRAFT = "draft"
    PLANNED = "planned"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class DiscountType(str, Enum):
    """How a promotion's discount_amount is interpreted."""
    PERCENT = "percent"
    DOLLAR = "dollar"


class DiscountDuration(str, Enum):
    """Whether the discount applies once or for several billing months."""
    ONE_TIME = "one_time"
    RECURRING = "recurring"


class Promotion(RecordModel):
    """
    Promotion model.

    Attributes:
        status: Lifecycle status
        promotion_name: Display name
        promotion_description: Longer description
        promotion_code: Optional unique code customers can quote
        discount_type: percent or dollar
        discount_amount: Percentage points or dollar amount
        discount_duration: one_time or recurring
        recurring_months: Number of months for recurring discounts
        approval_required: Whether the promotion needs approval before use
        approved_by / approved_at: Who approved it and when
        valid_from / valid_until: Optional validity window (inclusive)
    """

    __tablename__ = "promotions"

    status: Mapped[PromotionStatus] = mapped_column(
        SQLEnum(PromotionStatus),
        default=PromotionStatus.DRAFT,
        nullable=False,
        index=True,
    )
    promotion_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    promotion_description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    promotion_code: Mapped[Optional[str]] = mapped_column(
        String(100),
        unique=True,
        nullable=True,
        index=True,
    )

    # Discount
    discount_type: Mapped[DiscountType] = mapped_column(
        SQLEnum(DiscountType),
        nullable=False,
    )
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
    )
    discount_duration: Mapped[DiscountDuration] = mapped_column(
        SQLEnum(DiscountDuration),
        default=DiscountDuration.ONE_TIME,
        nullable=False,
    )
    recurring_months: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )

    # Approval
    approval_required: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    approved_by: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Validity window
    valid_from: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    valid_until: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )

    def is_valid_on(self, day: date) -> bool:
        """Check if the promotion is active and inside its window on day."""
        if self.status != PromotionStatus.ACTIVE:
            return False
        if self.valid_from is not None and day < self.valid_from:
            return False
        if self.valid_until is not None and day > self.valid_until:
            return False
        return True

    @property
    def is_currently_valid(self) -> bool:
        """Check if the promotion can be applied today."""
        return self.is_valid_on(date.today())

    def __repr__(self) -> str:
        return f"<Promotion(id={self.id}, name='{self.promotion_name}', {self.discount_type}={self.discount_amount})>"
