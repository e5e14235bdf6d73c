"""
API Dependencies.
Acting user from the identity provider token, and the record store bound
to the request's database session.
"""

import logging
from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from linkos.core.database import get_db
from linkos.core.security import Identity, read_identity
from linkos.store.base import RecordStore
from linkos.store.sql import SQLAlchemyRecordStore


# Logger
logger = logging.getLogger(__name__)

# Bearer token issued by the identity provider
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """
    Resolve the caller from the bearer JWT.

    Users live in the identity provider, so nothing is looked up locally.

    Raises:
        HTTPException: 401 if the token is missing, invalid or not an access token
    """
    if not credentials:
        logger.warning("Request without bearer token")
        raise _unauthorized("Authentication required")

    identity = read_identity(credentials.credentials)
    if identity is None:
        raise _unauthorized("Invalid or expired authentication token")

    if identity.token_type != "access":
        logger.warning(f"Token of type '{identity.token_type}' used for user {identity.user_id}")
        raise _unauthorized("Invalid token type")

    return identity


async def get_current_user_id(
    identity: Identity = Depends(get_identity),
) -> str:
    """Opaque id of the acting user."""
    logger.debug(f"Authenticated user: {identity.user_id}")
    return identity.user_id


def get_store(db: AsyncSession = Depends(get_db)) -> RecordStore:
    """Record store bound to the request's session."""
    return SQLAlchemyRecordStore(db)


# Type aliases for cleaner route signatures
CurrentUserId = Annotated[str, Depends(get_current_user_id)]
Store = Annotated[RecordStore, Depends(get_store)]
