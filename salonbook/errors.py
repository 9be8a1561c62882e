"""Typed errors raised by the SalonBook core operations.

Every error carries a stable machine-readable ``code`` plus a human readable
``message``. ``category`` tells callers whether retrying the same request can
ever help: ``rejected`` errors will fail again unchanged, ``resource_changed``
errors depend on data that may be different on the next attempt.
"""
from __future__ import annotations

REJECTED = "rejected"
RESOURCE_CHANGED = "resource_changed"


class SalonBookError(Exception):
    status_code = 500
    default_code = "error"
    category = REJECTED

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_dict(self) -> dict[str, str]:
        return {
            "error": self.code,
            "message": self.message,
            "category": self.category,
        }


class NotFoundError(SalonBookError):
    """A referenced entity does not exist."""

    status_code = 404
    default_code = "not_found"
    category = RESOURCE_CHANGED


class ConflictError(SalonBookError):
    """A uniqueness rule or a concurrent change prevented the write."""

    status_code = 409
    default_code = "conflict"
    category = RESOURCE_CHANGED


class ForbiddenError(SalonBookError):
    status_code = 403
    default_code = "forbidden"


class InvalidTransitionError(SalonBookError):
    """The booking cannot move from its current status to the requested one."""

    status_code = 400
    default_code = "invalid_transition"


class ValidationError(SalonBookError):
    status_code = 400
    default_code = "invalid_payload"


class AuthenticationError(SalonBookError):
    status_code = 401
    default_code = "unauthorized"
