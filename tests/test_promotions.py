"""
Promotion catalogue tests.
"""

from datetime import date, timedelta
from decimal import Decimal
import pytest

from linkos.core.exceptions import NotFoundError, QuoteLockedError, ValidationError
from linkos.models.promotion import DiscountDuration, DiscountType, PromotionStatus
from linkos.schemas.promotion import PromotionCreate, PromotionUpdate
from linkos.schemas.quote import QuoteBase
from linkos.services.promotion import PromotionService
from linkos.services.quote import QuoteService
from linkos.store.sql import SQLAlchemyRecordStore


def promotion_data(**overrides) -> PromotionCreate:
    values = {
        "promotion_name": "Summer deal",
        "promotion_description": "Ten percent off the first bill",
        "promotion_code": "SUMMER10",
        "discount_type": DiscountType.PERCENT,
        "discount_amount": Decimal("10"),
        "status": PromotionStatus.ACTIVE,
    }
    values.update(overrides)
    return PromotionCreate(**values)


@pytest.mark.asyncio
async def test_create_and_lookup_by_code(memory_store):
    """Promotions are found by id and by code."""
    service = PromotionService(memory_store)
    promotion = await service.create(promotion_data())

    assert (await service.get(promotion.id)).promotion_name == "Summer deal"
    assert (await service.get_by_code("SUMMER10")).id == promotion.id

    with pytest.raises(NotFoundError):
        await service.get_by_code("WINTER")


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"discount_amount": Decimal("-1")},
    {"discount_amount": Decimal("120")},
    {"discount_duration": DiscountDuration.RECURRING},
    {"valid_from": date(2030, 2, 1), "valid_until": date(2030, 1, 1)},
])
async def test_create_rejects_invalid_promotions(memory_store, overrides):
    """Amounts, recurring months and windows are validated."""
    with pytest.raises(ValidationError):
        await PromotionService(memory_store).create(promotion_data(**overrides))


@pytest.mark.asyncio
async def test_codes_are_unique(memory_store):
    """Two promotions cannot share a code."""
    service = PromotionService(memory_store)
    await service.create(promotion_data())
    other = await service.create(promotion_data(promotion_code="OTHER"))

    with pytest.raises(ValidationError):
        await service.create(promotion_data())

    with pytest.raises(ValidationError):
        await service.update(other.id, PromotionUpdate(promotion_code="SUMMER10"))


@pytest.mark.asyncio
async def test_update_validates_merged_fields(memory_store):
    """Switching a 150 dollar promotion to percent keeps the amount check."""
    service = PromotionService(memory_store)
    promotion = await service.create(promotion_data(
        discount_type=DiscountType.DOLLAR,
        discount_amount=Decimal("150"),
    ))

    with pytest.raises(ValidationError):
        await service.update(promotion.id, PromotionUpdate(discount_type=DiscountType.PERCENT))

    promotion = await service.update(promotion.id, PromotionUpdate(promotion_name="Big saver"))
    assert promotion.promotion_name == "Big saver"


@pytest.mark.asyncio
async def test_list_search_and_active(memory_store):
    """Search covers name, description and code; active respects the window."""
    service = PromotionService(memory_store)
    current = await service.create(promotion_data())
    await service.create(promotion_data(
        promotion_name="Old deal",
        promotion_code="OLD",
        promotion_description=None,
        valid_until=date.today() - timedelta(days=1),
    ))
    await service.create(promotion_data(
        promotion_name="Planned deal",
        promotion_code="LATER",
        promotion_description="Next quarter",
        status=PromotionStatus.PLANNED,
    ))

    assert [p.id for p in await service.list(search="first bill")] == [current.id]
    assert len(await service.list(search="deal")) == 3
    assert len(await service.list(status=PromotionStatus.PLANNED)) == 1
    assert [p.id for p in await service.list_active()] == [current.id]


@pytest.mark.asyncio
async def test_validate_code(memory_store):
    """Only currently valid codes validate."""
    service = PromotionService(memory_store)
    await service.create(promotion_data())
    await service.create(promotion_data(promotion_code="DRAFTY", status=PromotionStatus.DRAFT))

    assert (await service.validate_code("SUMMER10")).promotion_code == "SUMMER10"

    with pytest.raises(ValidationError):
        await service.validate_code("DRAFTY")

    with pytest.raises(NotFoundError):
        await service.validate_code("NOPE")


@pytest.mark.asyncio
async def test_approve_activates(memory_store):
    """Approval records the approver and activates the promotion."""
    service = PromotionService(memory_store)
    promotion = await service.create(promotion_data(status=PromotionStatus.DRAFT, approval_required=True))

    promotion = await service.approve(promotion.id, "manager-1")

    assert promotion.status == PromotionStatus.ACTIVE
    assert promotion.approved_by == "manager-1"
    assert promotion.approved_at is not None


@pytest.mark.asyncio
async def test_apply_snapshots_discount(memory_store):
    """The quote keeps the discount it was priced with."""
    service = PromotionService(memory_store)
    quote = await QuoteService(memory_store).create(QuoteBase(customer_id="cust-1"))
    promotion = await service.create(promotion_data())

    applied = await service.apply_to_quote(quote.id, promotion.id)
    await service.update(promotion.id, PromotionUpdate(discount_amount=Decimal("25")))

    assert applied.discount_type == DiscountType.PERCENT
    assert applied.discount_amount == Decimal("10")
    assert [p.discount_amount for p in await service.list_for_quote(quote.id)] == [Decimal("10")]


@pytest.mark.asyncio
async def test_apply_rules(memory_store):
    """Applied once, only when valid, only on drafts."""
    service = PromotionService(memory_store)
    quotes = QuoteService(memory_store)
    quote = await quotes.create(QuoteBase(customer_id="cust-1"))
    promotion = await service.create(promotion_data())
    inactive = await service.create(promotion_data(promotion_code="OFF", status=PromotionStatus.CANCELLED))

    await service.apply_to_quote(quote.id, promotion.id)

    with pytest.raises(ValidationError):
        await service.apply_to_quote(quote.id, promotion.id)

    with pytest.raises(ValidationError):
        await service.apply_to_quote(quote.id, inactive.id)

    await quotes.send(quote.id)
    with pytest.raises(QuoteLockedError):
        await service.remove_from_quote(quote.id, promotion.id)


@pytest.mark.asyncio
async def test_remove_from_quote(memory_store):
    """Removing an applied promotion deletes the snapshot."""
    service = PromotionService(memory_store)
    quote = await QuoteService(memory_store).create(QuoteBase(customer_id="cust-1"))
    promotion = await service.create(promotion_data())
    await service.apply_to_quote(quote.id, promotion.id)

    await service.remove_from_quote(quote.id, promotion.id)
    assert await service.list_for_quote(quote.id) == []

    with pytest.raises(NotFoundError):
        await service.remove_from_quote(quote.id, promotion.id)


@pytest.mark.asyncio
async def test_delete_refused_while_applied(memory_store):
    """A promotion in use by a quote cannot be deleted."""
    service = PromotionService(memory_store)
    quote = await QuoteService(memory_store).create(QuoteBase(customer_id="cust-1"))
    promotion = await service.create(promotion_data())
    await service.apply_to_quote(quote.id, promotion.id)

    with pytest.raises(ValidationError):
        await service.delete(promotion.id)

    await service.remove_from_quote(quote.id, promotion.id)
    await service.delete(promotion.id)

    with pytest.raises(NotFoundError):
        await service.get(promotion.id)


@pytest.mark.asyncio
async def test_search_runs_in_sql(db_session):
    """Search matches name, description or code in the database, case-insensitively."""
    service = PromotionService(SQLAlchemyRecordStore(db_session))
    by_description = await service.create(promotion_data())
    by_code = await service.create(promotion_data(
        promotion_name="Winter",
        promotion_code="FIRSTBILL",
        promotion_description=None,
    ))
    await service.create(promotion_data(
        promotion_name="Spring",
        promotion_code="SPRING",
        promotion_description="Half price",
    ))

    found = await service.list(search="FIRST")
    assert {p.id for p in found} == {by_description.id, by_code.id}

    found = await service.list(search="first", status=PromotionStatus.PLANNED)
    assert found == []
