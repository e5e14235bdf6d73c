"""
Quote model for priced offers made to a customer or a lead.
Owns its line items and promotion snapshots.
"""

from typing import Optional
from decimal import Decimal
from datetime import date, datetime
from enum import Enum
from sqlalchemy import CheckConstraint, String, Text, ForeignKey, Integer, Numeric, Date, DateTime, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from linkos.core.database import Base
from linkos.models.base import RecordModel
from linkos.models.promotion import DiscountType


class QuoteStatus(str, Enum):
    """Quote status enumeration."""
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"
    CONVERTED = "converted"


# Guarded transitions of the normal flow. Anything else needs an override.
QUOTE_TRANSITIONS: dict[QuoteStatus, frozenset[QuoteStatus]] = {
    QuoteStatus.DRAFT: frozenset({QuoteStatus.SENT}),
    QuoteStatus.SENT: frozenset({
        QuoteStatus.SENT,
        QuoteStatus.ACCEPTED,
        QuoteStatus.DECLINED,
    }),
    QuoteStatus.ACCEPTED: frozenset({QuoteStatus.CONVERTED}),
    QuoteStatus.DECLINED: frozenset(),
    QuoteStatus.EXPIRED: frozenset(),
    QuoteStatus.CONVERTED: frozenset(),
}


def can_transition(current: QuoteStatus, target: QuoteStatus) -> bool:
    """Check whether the normal flow allows moving from current to target."""
    return target in QUOTE_TRANSITIONS[QuoteStatus(current)]


class QuoteItemType(str, Enum):
    """Kind of entity a quote line references."""
    INVENTORY = "inventory"
    PLAN = "plan"


class Quote(RecordModel):
    """
    Quote model.

    Attributes:
        quote_number: Unique human-facing number from the numbering sequence
        customer_id: Customer account the quote is for (xor lead_id)
        lead_id: Lead the quote is for (xor customer_id)
        status: Stored quote status
        subtotal: Sum of line subtotals
        discount_total: Sum of promotion contributions
        tax_total: Tax amount (always zero, no tax rules yet)
        total: subtotal - discount_total + tax_total, not floored
        expires_at: Last day the offer is valid
        sent_at / accepted_at / declined_at: Set once by their transition
        accepted_by: Acting user who recorded the acceptance
        declined_reason: Free text, meaningful when declined
        notes: Internal notes
        terms: Customer-facing terms
        created_by: Acting user who created the quote
    """

    __tablename__ = "quotes"
    __table_args__ = (
        CheckConstraint(
            "(customer_id IS NULL) <> (lead_id IS NULL)",
            name="ck_quotes_single_subject",
        ),
    )

    quote_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    status: Mapped[QuoteStatus] = mapped_column(
        SQLEnum(QuoteStatus),
        default=QuoteStatus.DRAFT,
        nullable=False,
        index=True,
    )

    # Subject (exactly one is set)
    customer_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    lead_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )

    # Totals (written only by the pricing engine)
    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    discount_total: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    tax_total: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    total: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )

    # Lifecycle dates
    expires_at: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    accepted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    accepted_by: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    declined_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    declined_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Notes and terms
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    terms: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    created_by: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )

    @property
    def is_expired(self) -> bool:
        """A sent quote past its expiry date. Read-time only, never stored."""
        return self.status == QuoteStatus.SENT and date.today() > self.expires_at

    @property
    def display_status(self) -> str:
        """Status as shown to users."""
        if self.is_expired:
            return QuoteStatus.EXPIRED.value
        return QuoteStatus(self.status).value

    def __repr__(self) -> str:
        return f"<Quote(id={self.id}, number='{self.quote_number}', total={self.total})>"


class QuoteItem(RecordModel):
    """
    Quote line item.

    Attributes:
        quote_id: Owning quote
        item_type: inventory or plan
        inventory_id: Referenced inventory record (inventory lines only)
        plan_id: Referenced service plan (plan lines only)
        item_name: Display name captured when the line was added
        quantity: Number of units, at least 1
        unit_price: Price per unit captured when the line was added
        subtotal: quantity * unit_price
    """

    __tablename__ = "quote_items"

    quote_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_type: Mapped[QuoteItemType] = mapped_column(
        SQLEnum(QuoteItemType),
        nullable=False,
    )
    inventory_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    plan_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    item_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    item_description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    quantity: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
    )
    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<QuoteItem(id={self.id}, quote_id={self.quote_id}, subtotal={self.subtotal})>"


class QuotePromotion(RecordModel):
    """
    Promotion applied to a quote.

    The discount type and amount are copied from the promotion when it is
    applied, so later edits to the promotion do not reprice the quote.
    """

    __tablename__ = "quote_promotions"
    __table_args__ = (
        UniqueConstraint("quote_id", "promotion_id", name="uq_quote_promotions_quote_promotion"),
    )

    quote_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    promotion_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("promotions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    discount_type: Mapped[DiscountType] = mapped_column(
        SQLEnum(DiscountType),
        nullable=False,
    )
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<QuotePromotion(quote_id={self.quote_id}, promotion_id={self.promotion_id}, "
            f"{self.discount_type}={self.discount_amount})>"
        )


class QuoteNumberSequence(Base):
    """
    Allocation table for quote numbers.
    Each insert yields a database-unique id that is formatted into a number.
    """

    __tablename__ = "quote_number_sequence"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    allocated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
