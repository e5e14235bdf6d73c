"""
Quote core services.
"""

from linkos.services.pricing import PricingService, compute_totals
from linkos.services.promotion import PromotionService
from linkos.services.quote import QuoteService
from linkos.services.quote_item import QuoteItemService
from linkos.services.workflow import QuoteWorkflow


__all__ = [
    "PricingService",
    "compute_totals",
    "PromotionService",
    "QuoteService",
    "QuoteItemService",
    "QuoteWorkflow",
]
