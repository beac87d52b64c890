"""Access-control error taxonomy."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

RateLimitReason = Literal["cooldown", "pending_limit", "monthly_limit"]

GENERIC_DENIAL = "You do not have permission to perform this action."


class AccessError(Exception):
    """Base class for access-control failures."""


class AccessDeniedError(AccessError):
    """Caller may not act on the resource.

    ``NotFoundError`` and ``UnauthorizedError`` both derive from this class and
    are reported identically so callers cannot tell whether a document exists.
    """

    def __init__(self, message: str = GENERIC_DENIAL) -> None:
        super().__init__(message)


class NotFoundError(AccessDeniedError):
    """Referenced resource does not exist."""


class UnauthorizedError(AccessDeniedError):
    """Resolved role is insufficient for the requested transition."""


class InvalidTransitionError(AccessError):
    """Requested state change is not valid from the current state."""


class InvalidInputError(AccessError):
    """Caller-supplied value failed validation."""


class RateLimitedError(AccessError):
    """Editor request blocked by the cooldown timer or a request cap."""

    def __init__(
        self,
        reason: RateLimitReason,
        *,
        retry_at: datetime | None = None,
        limit: int | None = None,
    ) -> None:
        self.reason = reason
        self.retry_at = retry_at
        self.limit = limit
        if reason == "cooldown":
            message = "Editor requests are on cooldown"
            if retry_at is not None:
                message = f"{message} until {retry_at.isoformat()}"
        elif reason == "pending_limit":
            message = f"Maximum of {limit} pending editor requests reached"
        else:
            message = f"Maximum of {limit} editor requests per month reached"
        super().__init__(message)


class StoreUnavailableError(AccessError):
    """The document store could not complete a read or write."""

    def __init__(self, message: str = "Document store unavailable") -> None:
        super().__init__(message)


__all__ = [
    "AccessDeniedError",
    "AccessError",
    "GENERIC_DENIAL",
    "InvalidInputError",
    "InvalidTransitionError",
    "NotFoundError",
    "RateLimitReason",
    "RateLimitedError",
    "StoreUnavailableError",
    "UnauthorizedError",
]
