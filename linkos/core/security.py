"""
Identity provider tokens.
Users sign in with an external identity provider; this module verifies the
bearer JWT it issues and extracts the acting user id from the ``sub`` claim.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel

from linkos.core.config import settings


logger = logging.getLogger(__name__)


class Identity(BaseModel):
    """Acting user carried by a verified token."""
    user_id: str
    email: Optional[str] = None
    token_type: str = "access"


def issue_token(
    user_id: str,
    expires_delta: Optional[timedelta] = None,
    **claims,
) -> str:
    """
    Sign an access token for a user.

    End users receive their tokens from the identity provider. This is for
    service-to-service callers and tests sharing the signing secret.

    Args:
        user_id: Opaque user id, stored as ``sub``
        expires_delta: Lifetime, ACCESS_TOKEN_EXPIRE_MINUTES by default
        **claims: Extra claims such as ``email``
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = {
        **claims,
        "sub": user_id,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "type": "access",
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def read_identity(token: str) -> Optional[Identity]:
    """
    Verify a bearer token and return the identity it carries.

    Returns:
        Identity, or None when the token is expired, tampered with or has
        no subject
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Rejected expired token")
        return None
    except JWTError as exc:
        logger.warning(f"Rejected token: {exc}")
        return None

    subject = payload.get("sub")
    if not subject:
        return None

    return Identity(
        user_id=str(subject),
        email=payload.get("email"),
        token_type=payload.get("type", "access"),
    )
