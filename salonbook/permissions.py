"""Ownership checks shared by every mutating operation."""
from __future__ import annotations

from .auth import Caller
from .errors import ForbiddenError
from .models import Booking, Review, Salon, Service
from .storage import storage

# Actions understood by :func:`authorize`.
MANAGE_SALON = "manage_salon"
MANAGE_SERVICE = "manage_service"
EDIT_REVIEW = "edit_review"
VIEW_BOOKING = "view_booking"
CHANGE_BOOKING_STATUS = "change_booking_status"
CREATE_SALON = "create_salon"


def owns_salon(caller: Caller, salon: Salon | None) -> bool:
    return salon is not None and salon.owner_id == caller.id


def booking_roles(caller: Caller, booking: Booking) -> tuple[bool, bool]:
    """Return ``(is_customer, is_owner)`` for the caller on a booking."""
    salon = booking.salon or storage.get_salon(booking.salon_id)
    return booking.user_id == caller.id, owns_salon(caller, salon)


def authorize(caller: Caller, resource: object, action: str) -> None:
    """Raise ForbiddenError unless ``caller`` may perform ``action`` on ``resource``."""
    if action == CREATE_SALON:
        if not caller.is_salon_owner:
            raise ForbiddenError("only salon owners can create salons")
        return

    if action == MANAGE_SALON and isinstance(resource, Salon):
        allowed = owns_salon(caller, resource)
    elif action == MANAGE_SERVICE and isinstance(resource, Service):
        allowed = owns_salon(caller, resource.salon or storage.get_salon(resource.salon_id))
    elif action == EDIT_REVIEW and isinstance(resource, Review):
        allowed = resource.user_id == caller.id
    elif action in (VIEW_BOOKING, CHANGE_BOOKING_STATUS) and isinstance(resource, Booking):
        allowed = any(booking_roles(caller, resource))
    else:
        raise ValueError(f"unknown action {action!r} for {type(resource).__name__}")

    if not allowed:
        raise ForbiddenError(f"caller may not {action.replace('_', ' ')}")
