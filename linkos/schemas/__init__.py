"""
Pydantic schemas for request/response validation.
"""

from linkos.schemas.quote import (
    QuoteCreate,
    QuoteUpdate,
    QuoteDecline,
    QuoteStatusOverride,
    QuoteTotals,
    QuoteResponse,
    QuoteDetailResponse,
    QuoteListResponse,
    QuoteStats,
    QuoteItemCreate,
    QuoteItemResponse,
    QuotePromotionApply,
    QuotePromotionResponse,
)
from linkos.schemas.promotion import (
    PromotionCreate,
    PromotionUpdate,
    PromotionResponse,
    PromotionCodeValidation,
)

__all__ = [
    # Quote
    "QuoteCreate",
    "QuoteUpdate",
    "QuoteDecline",
    "QuoteStatusOverride",
    "QuoteTotals",
    "QuoteResponse",
    "QuoteDetailResponse",
    "QuoteListResponse",
    "QuoteStats",
    # Quote lines
    "QuoteItemCreate",
    "QuoteItemResponse",
    "QuotePromotionApply",
    "QuotePromotionResponse",
    # Promotion
    "PromotionCreate",
    "PromotionUpdate",
    "PromotionResponse",
    "PromotionCodeValidation",
]
