"""Tests for booking status transitions and who may request them."""
from __future__ import annotations

import pytest
from sqlalchemy import update

from salonbook import bookings
from salonbook.errors import ConflictError, ForbiddenError, InvalidTransitionError, ValidationError
from salonbook.extensions import db
from salonbook.models import Booking


@pytest.fixture
def booking_id(app, marketplace):
    with app.app_context():
        booking = Booking(
            booking_id=101,
            user_id=marketplace["alice"],
            salon_id=marketplace["salon"],
            service_id=marketplace["service"],
            date=bookings.parse_booking_date("2025-03-14T10:30:00"),
            total_price=350,
        )
        db.session.add(booking)
        db.session.commit()
    return 101


def _status(booking_id: int) -> str:
    booking = db.session.get(Booking, booking_id)
    db.session.refresh(booking)
    return booking.status


def _put_status(client, booking_id, headers, status):
    return client.put(f"/bookings/{booking_id}/status", headers=headers, json={"status": status})


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        ("pending", "confirmed", True),
        ("pending", "cancelled", True),
        ("pending", "completed", False),
        ("pending", "pending", False),
        ("confirmed", "completed", True),
        ("confirmed", "cancelled", True),
        ("confirmed", "pending", False),
        ("completed", "cancelled", False),
        ("cancelled", "confirmed", False),
    ],
)
def test_transition_table(current, target, allowed) -> None:
    assert bookings.can_transition(current, target) is allowed


def test_booking_scenario_owner_confirms_then_completes(client, marketplace, booking_id, auth_headers) -> None:
    owner = auth_headers(marketplace["owner"])
    customer = auth_headers(marketplace["alice"])

    confirmed = _put_status(client, booking_id, owner, "confirmed")
    assert confirmed.status_code == 200
    assert confirmed.get_json()["booking"]["status"] == "confirmed"

    rejected = _put_status(client, booking_id, customer, "completed")
    assert rejected.status_code == 403
    assert rejected.get_json()["error"] == "customers_may_only_cancel"

    booking = client.get(f"/bookings/{booking_id}", headers=customer).get_json()["booking"]
    assert booking["status"] == "confirmed"

    completed = _put_status(client, booking_id, owner, "completed")
    assert completed.status_code == 200
    assert completed.get_json()["booking"]["status"] == "completed"


def test_customer_cannot_confirm(ctx, callers, booking_id) -> None:
    with pytest.raises(ForbiddenError):
        bookings.update_booking_status(callers["alice"], booking_id, "confirmed")

    assert _status(booking_id) == "pending"


def test_customer_can_cancel(ctx, callers, booking_id) -> None:
    booking = bookings.update_booking_status(callers["alice"], booking_id, "cancelled")

    assert booking.status == "cancelled"
    assert _status(booking_id) == "cancelled"


def test_stranger_is_forbidden(client, marketplace, booking_id, auth_headers) -> None:
    response = _put_status(client, booking_id, auth_headers(marketplace["bob"]), "cancelled")

    assert response.status_code == 403
    assert response.get_json()["error"] == "forbidden"


@pytest.mark.parametrize("target", ["pending", "confirmed", "cancelled", "completed"])
def test_completed_booking_is_terminal(ctx, callers, booking_id, target) -> None:
    bookings.update_booking_status(callers["owner"], booking_id, "confirmed")
    bookings.update_booking_status(callers["owner"], booking_id, "completed")

    with pytest.raises(InvalidTransitionError):
        bookings.update_booking_status(callers["owner"], booking_id, target)

    assert _status(booking_id) == "completed"


def test_customer_cancel_of_completed_booking_is_invalid_transition(ctx, callers, booking_id) -> None:
    bookings.update_booking_status(callers["owner"], booking_id, "confirmed")
    bookings.update_booking_status(callers["owner"], booking_id, "completed")

    with pytest.raises(InvalidTransitionError):
        bookings.update_booking_status(callers["alice"], booking_id, "cancelled")


def test_cancelled_booking_is_terminal_400(client, marketplace, booking_id, auth_headers) -> None:
    owner = auth_headers(marketplace["owner"])
    _put_status(client, booking_id, owner, "cancelled")

    response = _put_status(client, booking_id, owner, "confirmed")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_transition"
    assert response.get_json()["category"] == "rejected"


def test_owner_cannot_skip_confirmation(ctx, callers, booking_id) -> None:
    with pytest.raises(InvalidTransitionError):
        bookings.update_booking_status(callers["owner"], booking_id, "completed")


def test_owner_booking_own_salon_has_owner_rights(ctx, marketplace, callers) -> None:
    booking = bookings.create_booking(
        callers["owner"], marketplace["salon"], marketplace["service"], "2025-04-01T09:00:00"
    )

    updated = bookings.update_booking_status(callers["owner"], booking.booking_id, "confirmed")

    assert updated.status == "confirmed"


@pytest.mark.parametrize("status", ["in_progress", "CONFIRMED", "", None, 3])
def test_unknown_status_is_validation_error(ctx, callers, booking_id, status) -> None:
    with pytest.raises(ValidationError) as excinfo:
        bookings.update_booking_status(callers["owner"], booking_id, status)

    assert excinfo.value.code == "invalid_status"
    assert _status(booking_id) == "pending"


def test_missing_status_400(client, marketplace, booking_id, auth_headers) -> None:
    response = client.put(
        f"/bookings/{booking_id}/status", headers=auth_headers(marketplace["owner"]), json={}
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_input"


def test_unknown_booking_404(client, marketplace, auth_headers) -> None:
    response = _put_status(client, 999, auth_headers(marketplace["owner"]), "confirmed")

    assert response.status_code == 404
    assert response.get_json()["error"] == "booking_not_found"
    assert response.get_json()["category"] == "resource_changed"


def test_concurrent_status_change_is_conflict(ctx, callers, booking_id, monkeypatch) -> None:
    original = bookings.storage.update_booking_status

    def change_first(booking_id_, expected, status):
        # Another writer cancels the booking between the read and the write.
        db.session.execute(
            update(Booking).where(Booking.booking_id == booking_id_).values(status="cancelled")
        )
        return original(booking_id_, expected, status)

    monkeypatch.setattr(bookings.storage, "update_booking_status", change_first)

    with pytest.raises(ConflictError) as excinfo:
        bookings.update_booking_status(callers["owner"], booking_id, "confirmed")

    assert excinfo.value.code == "booking_status_changed"
    assert _status(booking_id) == "pending"


def test_unauthenticated_caller_401(client, booking_id) -> None:
    response = client.put(f"/bookings/{booking_id}/status", json={"status": "cancelled"})

    assert response.status_code == 401

