"""
Database models module.
All SQLAlchemy models are exported from here for easy imports.
"""

from linkos.models.promotion import (
    Promotion,
    PromotionStatus,
    DiscountType,
    DiscountDuration,
)
from linkos.models.quote import (
    Quote,
    QuoteItem,
    QuoteItemType,
    QuotePromotion,
    QuoteNumberSequence,
    QuoteStatus,
)


__all__ = [
    "Promotion",
    "PromotionStatus",
    "DiscountType",
    "DiscountDuration",
    "Quote",
    "QuoteItem",
    "QuoteItemType",
    "QuotePromotion",
    "QuoteNumberSequence",
    "QuoteStatus",
]
