"""
Domain exceptions.
Every error raised by the quote core derives from LinkOSError and carries
the HTTP status the API layer renders it with.
"""

from typing import Any, Dict, Optional
from fastapi import status


class LinkOSError(Exception):
    """Base class for all LinkOS domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ValidationError(LinkOSError):
    """Malformed input to an operation. Nothing was written."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFoundError(LinkOSError):
    """A referenced record does not exist in the store."""

    status_code = status.HTTP_404_NOT_FOUND


class StateError(LinkOSError):
    """The record's current status does not allow the operation."""

    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionError(StateError):
    """Guarded status transition not permitted from the current status."""


class QuoteLockedError(StateError):
    """Items and promotions can only change while a quote is a draft."""


class StoreError(LinkOSError):
    """Persistence or transport failure. Never retried by the core."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class PricingError(LinkOSError):
    """Stored pricing data could not be aggregated."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
