"""
API v1 router - aggregates all endpoint routers.
"""

from fastapi import APIRouter

from linkos.api.v1.endpoints import (
    quotes,
    promotions,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    quotes.router,
    prefix="/quotes",
    tags=["Quotes"],
)

api_router.include_router(
    promotions.router,
    prefix="/promotions",
    tags=["Promotions"],
)
