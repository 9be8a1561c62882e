"""Booking lifecycle: creation, status transitions and who may trigger them.

Statuses move ``pending -> confirmed | cancelled`` and
``confirmed -> completed | cancelled``; ``completed`` and ``cancelled`` are
terminal. The salon owner may request any status; a customer who does not own
the salon may only cancel.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from flask import current_app

from .auth import Caller
from .errors import ConflictError, ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError
from .models import BOOKING_STATUSES, Booking
from .permissions import CHANGE_BOOKING_STATUS, VIEW_BOOKING, authorize, booking_roles
from .storage import atomic, storage

TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"completed", "cancelled"}),
    "cancelled": frozenset(),
    "completed": frozenset(),
}
TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)
CUSTOMER_STATUSES = frozenset({"cancelled"})


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def validate_status(status: Any) -> str:
    if not isinstance(status, str) or status not in BOOKING_STATUSES:
        raise ValidationError(
            f"Status must be one of: {', '.join(BOOKING_STATUSES)}",
            code="invalid_status",
        )
    return status


def parse_booking_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("date must be a valid ISO format datetime", code="invalid_date")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError("date must be a valid ISO format datetime", code="invalid_date") from None


def _require_id(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer", code="invalid_payload")
    return value


def create_booking(caller: Caller, salon_id: Any, service_id: Any, date: Any) -> Booking:
    """Book a service for the caller.

    The booking starts as ``pending`` and keeps the service's effective price
    from this moment, whatever later happens to the service's pricing.
    """
    salon_id = _require_id(salon_id, "salon_id")
    service_id = _require_id(service_id, "service_id")
    appointment_at = parse_booking_date(date)

    salon = storage.get_salon(salon_id)
    if salon is None:
        raise NotFoundError("Salon not found", code="salon_not_found")

    service = storage.get_service(service_id)
    if service is None:
        raise NotFoundError("Service not found", code="service_not_found")
    if service.salon_id != salon.salon_id:
        raise ValidationError("service does not belong to this salon", code="service_salon_mismatch")

    with atomic():
        booking = storage.create_booking(
            {
                "user_id": caller.id,
                "salon_id": salon.salon_id,
                "service_id": service.service_id,
                "date": appointment_at,
                "total_price": service.effective_price,
            }
        )

    current_app.logger.info(
        "Booking %s created by user %s at salon %s for %s",
        booking.booking_id,
        caller.id,
        salon.salon_id,
        booking.total_price,
    )
    return booking


def update_booking_status(caller: Caller, booking_id: int, status: Any) -> Booking:
    status = validate_status(status)

    booking = storage.get_booking(booking_id)
    if booking is None:
        raise NotFoundError("Booking not found", code="booking_not_found")

    authorize(caller, booking, CHANGE_BOOKING_STATUS)
    _, is_owner = booking_roles(caller, booking)

    current = booking.status
    if current in TERMINAL_STATUSES:
        current_app.logger.warning(
            "Rejected status change on %s booking %s to %s", current, booking_id, status
        )
        raise InvalidTransitionError(f"Cannot change status of a {current} booking")

    if not is_owner and status not in CUSTOMER_STATUSES:
        raise ForbiddenError("Customers may only cancel bookings", code="customers_may_only_cancel")

    if not can_transition(current, status):
        current_app.logger.warning(
            "Rejected status change on booking %s from %s to %s", booking_id, current, status
        )
        raise InvalidTransitionError(f"Cannot change booking status from {current} to {status}")

    with atomic():
        updated = storage.update_booking_status(booking_id, current, status)
        if updated is None:
            raise ConflictError(
                "Booking status changed while this request was processed",
                code="booking_status_changed",
            )

    current_app.logger.info(
        "Booking %s moved from %s to %s by user %s", booking_id, current, status, caller.id
    )
    return updated


def get_booking(caller: Caller, booking_id: int) -> Booking:
    booking = storage.get_booking(booking_id)
    if booking is None:
        raise NotFoundError("Booking not found", code="booking_not_found")
    authorize(caller, booking, VIEW_BOOKING)
    return booking


def list_customer_bookings(caller: Caller) -> list[Booking]:
    return storage.get_bookings_by_user_id(caller.id)


def list_owner_bookings(caller: Caller) -> list[Booking]:
    """All bookings across the salons the caller owns, newest appointment first."""
    bookings: list[Booking] = []
    for salon in storage.get_salons_by_owner_id(caller.id):
        bookings.extend(storage.get_bookings_by_salon_id(salon.salon_id))
    return sorted(bookings, key=lambda b: (b.date, b.booking_id), reverse=True)


def booking_details(booking: Booking, include_customer: bool = False) -> dict[str, object]:
    data = booking.to_dict()
    salon = booking.salon
    service = booking.service
    data["salon"] = (
        {"id": salon.salon_id, "name": salon.name, "location": salon.location} if salon else None
    )
    data["service"] = (
        {"id": service.service_id, "name": service.name, "duration_minutes": service.duration_minutes}
        if service
        else None
    )
    if include_customer:
        customer = booking.customer
        data["user"] = (
            {
                "id": customer.user_id,
                "name": customer.name,
                "email": customer.email,
                "phone": customer.phone,
            }
            if customer
            else None
        )
    return data

