"""
Promotion endpoints.
Promotion catalogue, approval and code validation.
"""

from fastapi import APIRouter, Query, status

from linkos.api.deps import CurrentUserId, Store
from linkos.core.exceptions import ValidationError
from linkos.models.promotion import PromotionStatus
from linkos.schemas.base import MessageResponse
from linkos.schemas.promotion import (
    PromotionCreate,
    PromotionUpdate,
    PromotionResponse,
    PromotionCodeValidation,
)
from linkos.services.promotion import PromotionService


router = APIRouter()


@router.post(
    "",
    response_model=PromotionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a promotion",
)
async def create_promotion(
    data: PromotionCreate,
    current_user_id: CurrentUserId,
    store: Store,
) -> PromotionResponse:
    """Create a new promotion."""
    service = PromotionService(store)
    promotion = await service.create(data)
    return PromotionResponse.model_validate(promotion)


@router.get(
    "",
    response_model=list[PromotionResponse],
    summary="List promotions",
)
async def list_promotions(
    current_user_id: CurrentUserId,
    store: Store,
    status_filter: PromotionStatus | None = Query(None, alias="status", description="Filter by status"),
    search: str | None = Query(None, description="Search name, description and code"),
) -> list[PromotionResponse]:
    """List promotions."""
    service = PromotionService(store)
    promotions = await service.list(status=status_filter, search=search)
    return [PromotionResponse.model_validate(p) for p in promotions]


@router.get(
    "/active",
    response_model=list[PromotionResponse],
    summary="Active promotions",
    description="Promotions that can be applied to a quote today",
)
async def list_active_promotions(
    current_user_id: CurrentUserId,
    store: Store,
) -> list[PromotionResponse]:
    """List promotions valid today."""
    service = PromotionService(store)
    promotions = await service.list_active()
    return [PromotionResponse.model_validate(p) for p in promotions]


@router.get(
    "/validate/{code}",
    response_model=PromotionCodeValidation,
    summary="Validate a promotion code",
)
async def validate_promotion_code(
    code: str,
    current_user_id: CurrentUserId,
    store: Store,
) -> PromotionCodeValidation:
    """Check whether a promotion code can be used today."""
    service = PromotionService(store)
    try:
        promotion = await service.validate_code(code)
    except ValidationError as exc:
        return PromotionCodeValidation(valid=False, message=exc.message)
    return PromotionCodeValidation(
        valid=True,
        promotion=PromotionResponse.model_validate(promotion),
    )


@router.get(
    "/{promotion_id}",
    response_model=PromotionResponse,
    summary="Promotion details",
)
async def get_promotion(
    promotion_id: int,
    current_user_id: CurrentUserId,
    store: Store,
) -> PromotionResponse:
    """Get a promotion by ID."""
    service = PromotionService(store)
    promotion = await service.get(promotion_id)
    return PromotionResponse.model_validate(promotion)


@router.patch(
    "/{promotion_id}",
    response_model=PromotionResponse,
    summary="Update a promotion",
)
async def update_promotion(
    promotion_id: int,
    data: PromotionUpdate,
    current_user_id: CurrentUserId,
    store: Store,
) -> PromotionResponse:
    """Update a promotion."""
    service = PromotionService(store)
    promotion = await service.update(promotion_id, data)
    return PromotionResponse.model_validate(promotion)


@router.post(
    "/{promotion_id}/approve",
    response_model=PromotionResponse,
    summary="Approve a promotion",
)
async def approve_promotion(
    promotion_id: int,
    current_user_id: CurrentUserId,
    store: Store,
) -> PromotionResponse:
    """Approve a promotion and make it active."""
    service = PromotionService(store)
    promotion = await service.approve(promotion_id, current_user_id)
    return PromotionResponse.model_validate(promotion)


@router.delete(
    "/{promotion_id}",
    response_model=MessageResponse,
    summary="Delete a promotion",
)
async def delete_promotion(
    promotion_id: int,
    current_user_id: CurrentUserId,
    store: Store,
) -> MessageResponse:
    """Delete a promotion that no quote uses."""
    service = PromotionService(store)
    await service.delete(promotion_id)
    return MessageResponse(message="Promotion deleted")
