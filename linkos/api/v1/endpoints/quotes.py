"""
Quote management endpoints.
Quote CRUD, lines, promotions, pricing and status transitions.
"""

from fastapi import APIRouter, Query, status

from linkos.api.deps import CurrentUserId, Store
from linkos.schemas.base import MessageResponse, PageMeta
from linkos.schemas.quote import (
    QuoteCreate,
    QuoteUpdate,
    QuoteDecline,
    QuoteStatusOverride,
    QuoteResponse,
    QuoteDetailResponse,
    QuoteListResponse,
    QuoteStats,
    QuoteItemCreate,
    QuoteItemResponse,
    QuotePromotionApply,
    QuotePromotionResponse,
)
from linkos.models.quote import QuoteStatus
from linkos.services.pricing import PricingService
from linkos.services.quote import QuoteService
from linkos.services.workflow import QuoteWorkflow


router = APIRouter()


async def _detail(service: QuoteService, quote_id: int) -> QuoteDetailResponse:
    quote, items, promotions = await service.get_detail(quote_id)
    return QuoteDetailResponse.model_validate(quote).model_copy(update={
        "items": [QuoteItemResponse.model_validate(i) for i in items],
        "promotions": [QuotePromotionResponse.model_validate(p) for p in promotions],
    })


@router.post(
    "",
    response_model=QuoteDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a quote",
    description="Create a draft quote, optionally with lines and promotions",
)
async def create_quote(
    data: QuoteCreate,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteDetailResponse:
    """Create a new quote."""
    workflow = QuoteWorkflow(store)
    quote = await workflow.create_quote(data, created_by=current_user_id)
    return await _detail(workflow.quotes, quote.id)


@router.get(
    "",
    response_model=QuoteListResponse,
    summary="List quotes",
    description="Paginated list of quotes, newest first",
)
async def list_quotes(
    current_user_id: CurrentUserId,
    store: Store,
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page"),
    status_filter: QuoteStatus | None = Query(None, alias="status", description="Filter by status"),
    customer_id: str | None = Query(None, description="Filter by customer"),
    lead_id: str | None = Query(None, description="Filter by lead"),
    search: str | None = Query(None, description="Search by quote number"),
) -> QuoteListResponse:
    """List quotes with pagination."""
    service = QuoteService(store)
    skip = PageMeta.offset(page, per_page)

    quotes, total = await service.list(
        skip=skip,
        limit=per_page,
        status=status_filter,
        customer_id=customer_id,
        lead_id=lead_id,
        search=search,
    )

    return QuoteListResponse(
        items=[QuoteResponse.model_validate(q) for q in quotes],
        total=total,
        page=page,
        per_page=per_page,
        pages=PageMeta.page_count(total, per_page),
    )


@router.get(
    "/stats",
    response_model=QuoteStats,
    summary="Quote statistics",
)
async def get_quote_stats(
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteStats:
    """Counts per status, accepted value and acceptance rate."""
    service = QuoteService(store)
    return QuoteStats(**await service.get_stats())


@router.get(
    "/by-number/{quote_number}",
    response_model=QuoteDetailResponse,
    summary="Find a quote by number",
)
async def get_quote_by_number(
    quote_number: str,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteDetailResponse:
    """Get a quote by its human-facing number."""
    service = QuoteService(store)
    quote = await service.get_by_number(quote_number)
    return await _detail(service, quote.id)


@router.get(
    "/{quote_id}",
    response_model=QuoteDetailResponse,
    summary="Quote details",
)
async def get_quote(
    quote_id: int,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteDetailResponse:
    """Get a quote with its lines and promotions."""
    return await _detail(QuoteService(store), quote_id)


@router.patch(
    "/{quote_id}",
    response_model=QuoteResponse,
    summary="Update a quote",
    description="Patch subject, expiry, notes and terms. Totals are not recomputed.",
)
async def update_quote(
    quote_id: int,
    data: QuoteUpdate,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteResponse:
    """Update a quote."""
    service = QuoteService(store)
    quote = await service.update(quote_id, data)
    return QuoteResponse.model_validate(quote)


@router.delete(
    "/{quote_id}",
    response_model=MessageResponse,
    summary="Delete a quote",
)
async def delete_quote(
    quote_id: int,
    current_user_id: CurrentUserId,
    store: Store,
) -> MessageResponse:
    """Delete a quote with its lines and applied promotions."""
    service = QuoteService(store)
    await service.delete(quote_id)
    return MessageResponse(message="Quote deleted")


@router.post(
    "/{quote_id}/items",
    response_model=QuoteDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a line",
    description="Add a line to a draft quote and recompute its totals",
)
async def add_quote_item(
    quote_id: int,
    data: QuoteItemCreate,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteDetailResponse:
    """Add a line to the quote."""
    workflow = QuoteWorkflow(store)
    await workflow.add_item(quote_id, data)
    return await _detail(workflow.quotes, quote_id)


@router.delete(
    "/{quote_id}/items/{item_id}",
    response_model=QuoteDetailResponse,
    summary="Remove a line",
    description="Remove a line from a draft quote and recompute its totals",
)
async def remove_quote_item(
    quote_id: int,
    item_id: int,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteDetailResponse:
    """Remove a line from the quote."""
    workflow = QuoteWorkflow(store)
    await workflow.remove_item(quote_id, item_id)
    return await _detail(workflow.quotes, quote_id)


@router.post(
    "/{quote_id}/promotions",
    response_model=QuoteDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply a promotion",
)
async def apply_quote_promotion(
    quote_id: int,
    data: QuotePromotionApply,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteDetailResponse:
    """Apply a promotion to the quote and recompute its totals."""
    workflow = QuoteWorkflow(store)
    await workflow.apply_promotion(quote_id, data.promotion_id)
    return await _detail(workflow.quotes, quote_id)


@router.delete(
    "/{quote_id}/promotions/{promotion_id}",
    response_model=QuoteDetailResponse,
    summary="Remove a promotion",
)
async def remove_quote_promotion(
    quote_id: int,
    promotion_id: int,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteDetailResponse:
    """Remove a promotion from the quote and recompute its totals."""
    workflow = QuoteWorkflow(store)
    await workflow.remove_promotion(quote_id, promotion_id)
    return await _detail(workflow.quotes, quote_id)


@router.post(
    "/{quote_id}/recalculate",
    response_model=QuoteResponse,
    summary="Recompute totals",
)
async def recalculate_quote(
    quote_id: int,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteResponse:
    """Recompute subtotal, discount, tax and total."""
    service = PricingService(store)
    quote = await service.recalculate(quote_id)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/send",
    response_model=QuoteResponse,
    summary="Send the quote",
)
async def send_quote(
    quote_id: int,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteResponse:
    """Mark the quote as sent."""
    service = QuoteService(store)
    quote = await service.send(quote_id)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/accept",
    response_model=QuoteResponse,
    summary="Accept the quote",
    description="Record the customer's acceptance on behalf of the acting user",
)
async def accept_quote(
    quote_id: int,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteResponse:
    """Accept the quote."""
    service = QuoteService(store)
    quote = await service.accept(quote_id, current_user_id)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/decline",
    response_model=QuoteResponse,
    summary="Decline the quote",
)
async def decline_quote(
    quote_id: int,
    current_user_id: CurrentUserId,
    store: Store,
    data: QuoteDecline | None = None,
) -> QuoteResponse:
    """Decline the quote with an optional reason."""
    service = QuoteService(store)
    quote = await service.decline(quote_id, data.reason if data else None)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/convert",
    response_model=QuoteResponse,
    summary="Convert the quote",
)
async def convert_quote(
    quote_id: int,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteResponse:
    """Mark an accepted quote as converted."""
    service = QuoteService(store)
    quote = await service.convert(quote_id)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/status",
    response_model=QuoteResponse,
    summary="Override the status",
    description="Administrative override that bypasses transition rules",
)
async def override_quote_status(
    quote_id: int,
    data: QuoteStatusOverride,
    current_user_id: CurrentUserId,
    store: Store,
) -> QuoteResponse:
    """Force the quote into any status."""
    service = QuoteService(store)
    quote = await service.override_status(quote_id, data.status, acting_user_id=current_user_id)
    return QuoteResponse.model_validate(quote)
