"""
Quote service.
Handles quote creation, updates, lookups, and the status state machine.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from linkos.core.config import settings
from linkos.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from linkos.models.base import utcnow
from linkos.models.quote import Quote, QuoteStatus, can_transition
from linkos.schemas.base import blank_to_none
from linkos.schemas.quote import QuoteBase, QuoteUpdate
from linkos.services.pricing import to_money
from linkos.store.base import RecordStore


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("customer_id", "lead_id", "expires_at", "notes", "terms", "declined_reason")


def validate_subject(customer_id: str | None, lead_id: str | None) -> None:
    """A quote is for exactly one customer or exactly one lead. Blank ids count as absent."""
    customer_id = blank_to_none(customer_id)
    lead_id = blank_to_none(lead_id)
    if customer_id is not None and lead_id is not None:
        raise ValidationError(
            "A quote cannot be for both a customer and a lead",
            context={"customer_id": customer_id, "lead_id": lead_id},
        )
    if customer_id is None and lead_id is None:
        raise ValidationError("A quote needs either a customer or a lead")


def validate_expiry(expires_at: date) -> None:
    """Expiry must be a future date."""
    if expires_at <= date.today():
        raise ValidationError(
            "Expiration date must be in the future",
            context={"expires_at": expires_at.isoformat()},
        )


class QuoteService:
    """Service for quote operations."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def create(self, data: QuoteBase, created_by: str | None = None) -> Quote:
        """
        Create a draft quote with zero totals.

        Args:
            data: Subject, expiry, notes and terms. Lines on a QuoteCreate
                are ignored here; QuoteWorkflow attaches them.
            created_by: Acting user id from the identity provider

        Raises:
            ValidationError: Subject is not exactly one of customer/lead,
                or the expiry date is not in the future
        """
        validate_subject(data.customer_id, data.lead_id)

        expires_at = data.expires_at or date.today() + timedelta(days=settings.QUOTE_VALIDITY_DAYS)
        validate_expiry(expires_at)

        quote_number = await self.store.generate_quote_number()

        quote = await self.store.quotes.insert({
            "quote_number": quote_number,
            "status": QuoteStatus.DRAFT,
            "customer_id": blank_to_none(data.customer_id),
            "lead_id": blank_to_none(data.lead_id),
            "expires_at": expires_at,
            "notes": data.notes,
            "terms": data.terms,
            "created_by": created_by,
            "subtotal": Decimal("0.00"),
            "discount_total": Decimal("0.00"),
            "tax_total": Decimal("0.00"),
            "total": Decimal("0.00"),
        })

        logger.info(f"Quote {quote.quote_number} created (id={quote.id})")
        return quote

    async def get(self, quote_id: int) -> Quote:
        """Get quote by ID or raise NotFoundError."""
        return await self.store.quotes.get(quote_id)

    async def get_by_number(self, quote_number: str) -> Quote:
        """Get quote by its human-facing number."""
        quotes = await self.store.quotes.query(quote_number=quote_number)
        if not quotes:
            raise NotFoundError(
                f"Quote {quote_number} not found",
                context={"quote_number": quote_number},
            )
        return quotes[0]

    async def get_detail(self, quote_id: int) -> tuple[Quote, list, list]:
        """Get a quote with its lines and applied promotions."""
        quote = await self.get(quote_id)
        items = await self.store.quote_items.query(quote_id=quote_id, order_by="created_at")
        promotions = await self.store.quote_promotions.query(quote_id=quote_id, order_by="created_at")
        return quote, items, promotions

    async def list(
        self,
        skip: int = 0,
        limit: int = 20,
        status: QuoteStatus | None = None,
        customer_id: str | None = None,
        lead_id: str | None = None,
        search: str | None = None,
    ) -> tuple[list[Quote], int]:
        """List quotes, newest first, with filters and pagination."""
        filters: dict[str, Any] = {}
        if status:
            filters["status"] = status
        if customer_id:
            filters["customer_id"] = customer_id
        if lead_id:
            filters["lead_id"] = lead_id
        if search:
            filters["quote_number__ilike"] = f"%{search}%"

        quotes = await self.store.quotes.query(
            order_by="created_at",
            descending=True,
            offset=skip,
            limit=limit,
            **filters,
        )
        total = await self.store.quotes.count(**filters)
        return quotes, total

    async def update(self, quote_id: int, data: QuoteUpdate) -> Quote:
        """
        Patch quote fields.
        Totals are not recomputed; the subject stays exclusive after the merge.
        """
        quote = await self.get(quote_id)
        update_data = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if field in UPDATABLE_FIELDS
        }
        if not update_data:
            return quote

        for field in ("customer_id", "lead_id"):
            if field in update_data:
                update_data[field] = blank_to_none(update_data[field])

        if "customer_id" in update_data or "lead_id" in update_data:
            validate_subject(
                update_data.get("customer_id", quote.customer_id),
                update_data.get("lead_id", quote.lead_id),
            )

        if "expires_at" in update_data:
            if update_data["expires_at"] is None:
                raise ValidationError("Expiration date is required")
            validate_expiry(update_data["expires_at"])

        if "declined_reason" in update_data and quote.status != QuoteStatus.DECLINED:
            raise ValidationError(
                "Only a declined quote has a decline reason",
                context={"status": QuoteStatus(quote.status).value},
            )

        return await self.store.quotes.update(quote_id, update_data)

    async def delete(self, quote_id: int) -> None:
        """Delete a quote together with its lines and promotion snapshots."""
        quote = await self.get(quote_id)

        for item in await self.store.quote_items.query(quote_id=quote_id):
            await self.store.quote_items.delete(item.id)
        for applied in await self.store.quote_promotions.query(quote_id=quote_id):
            await self.store.quote_promotions.delete(applied.id)

        await self.store.quotes.delete(quote_id)
        logger.info(f"Quote {quote.quote_number} deleted")

    async def _transition(
        self,
        quote_id: int,
        target: QuoteStatus,
        **fields: Any,
    ) -> Quote:
        """Apply a guarded transition with its side fields in one write."""
        quote = await self.get(quote_id)
        current = QuoteStatus(quote.status)

        if not can_transition(current, target):
            raise InvalidTransitionError(
                f"Cannot move quote {quote.quote_number} from {current.value} to {target.value}",
                context={"from": current.value, "to": target.value},
            )

        quote = await self.store.quotes.update(quote_id, {"status": target, **fields})
        logger.info(f"Quote {quote.quote_number}: {current.value} -> {target.value}")
        return quote

    async def send(self, quote_id: int) -> Quote:
        """
        Mark a draft quote as sent. Sending again is a no-op.

        ``sent_at`` is set by the first send only, so a quote overridden
        back to draft keeps its original send time.
        """
        quote = await self.get(quote_id)
        if quote.status == QuoteStatus.SENT:
            return quote
        fields = {"sent_at": utcnow()} if quote.sent_at is None else {}
        return await self._transition(quote_id, QuoteStatus.SENT, **fields)

    async def accept(self, quote_id: int, acting_user_id: str) -> Quote:
        """Record the acceptance of a sent quote. The first acceptance is kept."""
        if not acting_user_id:
            raise ValidationError("Accepting a quote requires the acting user")
        quote = await self.get(quote_id)
        fields = {}
        if quote.accepted_at is None:
            fields = {"accepted_at": utcnow(), "accepted_by": acting_user_id}
        return await self._transition(quote_id, QuoteStatus.ACCEPTED, **fields)

    async def decline(self, quote_id: int, reason: str | None = None) -> Quote:
        """
        Record that the customer declined a sent quote.

        ``declined_at`` keeps the first decline. A later decline only
        replaces the reason when it gives one.
        """
        quote = await self.get(quote_id)
        fields: dict[str, Any] = {}
        if quote.declined_at is None:
            fields = {"declined_at": utcnow(), "declined_reason": reason}
        elif reason is not None:
            fields["declined_reason"] = reason
        return await self._transition(quote_id, QuoteStatus.DECLINED, **fields)

    async def convert(self, quote_id: int) -> Quote:
        """Mark an accepted quote as converted."""
        return await self._transition(quote_id, QuoteStatus.CONVERTED)

    async def override_status(
        self,
        quote_id: int,
        status: QuoteStatus,
        acting_user_id: str | None = None,
    ) -> Quote:
        """
        Force a quote into any status.

        Administrative path with no transition guard. Totals and lifecycle
        timestamps are left as they are.
        """
        quote = await self.get(quote_id)
        previous = QuoteStatus(quote.status)

        quote = await self.store.quotes.update(quote_id, {"status": QuoteStatus(status)})
        logger.warning(
            f"Quote {quote.quote_number} status overridden {previous.value} -> "
            f"{QuoteStatus(status).value} by {acting_user_id or 'unknown user'}"
        )
        return quote

    async def get_stats(self) -> dict:
        """Get quote statistics, aggregated by the store."""
        quotes = self.store.quotes

        status_counts = {s.value: await quotes.count(status=s) for s in QuoteStatus}
        total_accepted = await quotes.sum("total", status=QuoteStatus.ACCEPTED)
        expired_count = await quotes.count(status=QuoteStatus.SENT, expires_at__lt=date.today())

        # Acceptance rate over quotes the customer has answered
        accepted_count = status_counts["accepted"] + status_counts["converted"]
        decided_count = accepted_count + status_counts["declined"]
        acceptance_rate = (accepted_count / decided_count * 100) if decided_count > 0 else 0

        return {
            "status_counts": status_counts,
            "expired_count": expired_count,
            "total_accepted_value": to_money(total_accepted),
            "acceptance_rate": round(acceptance_rate, 2),
        }
