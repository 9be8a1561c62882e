"""HTTP routes for the SalonBook backend."""
from __future__ import annotations

from flask import Blueprint, Flask, current_app, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from . import accounts, bookings, favorites, reviews, salons
from .auth import build_token, require_caller
from .errors import SalonBookError, ValidationError
from .extensions import db

bp = Blueprint("api", __name__)


def _payload() -> dict[str, object]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


@bp.get("/health")
def health_check() -> tuple[dict[str, str], int]:
    """
    Expose a simple uptime check endpoint.
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is healthy and running.
    """
    return jsonify({"status": "ok"}), 200


@bp.get("/db-health")
def database_health() -> tuple[dict[str, str], int]:
    """Check connectivity to the configured database."""
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.exception("Database connectivity check failed", exc_info=exc)
        return jsonify({"database": "unavailable"}), 500

    return jsonify({"database": "ok"}), 200


# ============================================================================
# Accounts
# ============================================================================

@bp.post("/auth/register")
def register_user() -> tuple[dict[str, object], int]:
    """Register a new customer or salon owner.
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            username:
              type: string
            name:
              type: string
            email:
              type: string
            password:
              type: string
            phone:
              type: string
            is_salon_owner:
              type: boolean
          required:
            - username
            - name
            - email
            - password
    responses:
      201:
        description: User registered, returns an access token
      400:
        description: Invalid payload
      409:
        description: Username or email already in use
    """
    user = accounts.register_user(_payload())
    return jsonify({"token": build_token(user), "user": user.to_dict_basic()}), 201


@bp.post("/auth/login")
def login() -> tuple[dict[str, object], int]:
    """Authenticate by username or email and password.
    ---
    tags:
      - Authentication
    responses:
      200:
        description: Login successful, returns access token
      400:
        description: Missing credentials
      401:
        description: Invalid username or password
    """
    user = accounts.login_user(_payload())
    return jsonify({"token": build_token(user), "user": user.to_dict_basic()}), 200


@bp.get("/user")
def get_current_user() -> tuple[dict[str, object], int]:
    caller = require_caller()
    return jsonify({"user": accounts.get_profile(caller).to_dict_basic()}), 200


@bp.put("/user")
def update_current_user() -> tuple[dict[str, object], int]:
    """Update the caller's profile (name, phone, email, new_password)."""
    caller = require_caller()
    user = accounts.update_profile(caller, _payload())
    return jsonify({"message": "Profile updated successfully", "user": user.to_dict_basic()}), 200


# ============================================================================
# Salons & services
# ============================================================================

@bp.get("/salons")
def list_salons() -> tuple[dict[str, object], int]:
    """Return salons, optionally filtered.
    ---
    tags:
      - Salons
    parameters:
      - name: category
        in: query
        type: string
        description: Case-insensitive match against the salon's categories
      - name: location
        in: query
        type: string
        description: Case-insensitive partial match on location
      - name: featured
        in: query
        type: boolean
    responses:
      200:
        description: List of salons
    """
    category = request.args.get("category", "").strip() or None
    location = request.args.get("location", "").strip() or None
    featured_arg = request.args.get("featured", "").strip().lower()
    featured = featured_arg == "true" if featured_arg else None

    results = salons.list_salons(category=category, location=location, featured=featured)
    return jsonify({"salons": [salon.to_dict() for salon in results]}), 200


@bp.get("/salons/<int:salon_id>")
def get_salon_details(salon_id: int) -> tuple[dict[str, object], int]:
    return jsonify({"salon": salons.get_salon(salon_id).to_dict()}), 200


@bp.post("/salons")
def create_salon() -> tuple[dict[str, object], int]:
    """Create a salon owned by the caller.
    ---
    tags:
      - Salons
    responses:
      201:
        description: Salon created
      400:
        description: Invalid payload
      401:
        description: Not authenticated
      403:
        description: Caller is not a salon owner
    """
    caller = require_caller()
    salon = salons.create_salon(caller, _payload())
    return jsonify({"salon": salon.to_dict()}), 201


@bp.put("/salons/<int:salon_id>")
def update_salon_details(salon_id: int) -> tuple[dict[str, object], int]:
    """Partially update a salon. Rating fields are derived and ignored here.
    ---
    tags:
      - Salons
    responses:
      200:
        description: Salon updated
      403:
        description: Caller does not own the salon
      404:
        description: Salon not found
    """
    caller = require_caller()
    salon = salons.update_salon(caller, salon_id, _payload())
    return jsonify({"salon": salon.to_dict()}), 200


@bp.get("/user/salons")
def list_owned_salons() -> tuple[dict[str, object], int]:
    caller = require_caller()
    return jsonify({"salons": [s.to_dict() for s in salons.list_owned_salons(caller)]}), 200


@bp.get("/salons/<int:salon_id>/services")
def list_services(salon_id: int) -> tuple[dict[str, list[dict[str, object]]], int]:
    return jsonify({"services": [s.to_dict() for s in salons.list_services(salon_id)]}), 200


@bp.post("/salons/<int:salon_id>/services")
def create_service(salon_id: int) -> tuple[dict[str, object], int]:
    """Add a service to a salon the caller owns.
    ---
    tags:
      - Services
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            name:
              type: string
            price:
              type: integer
            discounted_price:
              type: integer
            duration_minutes:
              type: integer
            category:
              type: string
    responses:
      201:
        description: Service created
      400:
        description: Invalid payload
      403:
        description: Caller does not own the salon
      404:
        description: Salon not found
    """
    caller = require_caller()
    service = salons.create_service(caller, salon_id, _payload())
    return jsonify({"service": service.to_dict()}), 201


@bp.put("/services/<int:service_id>")
def update_service(service_id: int) -> tuple[dict[str, object], int]:
    caller = require_caller()
    service = salons.update_service(caller, service_id, _payload())
    return jsonify({"service": service.to_dict()}), 200


@bp.delete("/services/<int:service_id>")
def delete_service(service_id: int):
    caller = require_caller()
    salons.delete_service(caller, service_id)
    return "", 204


# ============================================================================
# Reviews
# ============================================================================

@bp.get("/salons/<int:salon_id>/reviews")
def get_salon_reviews(salon_id: int) -> tuple[dict[str, object], int]:
    """Reviews for a salon, newest first, each with its author's name."""
    results = reviews.list_salon_reviews(salon_id)
    return jsonify({"reviews": [review.to_dict() for review in results]}), 200


@bp.get("/user/reviews")
def get_user_reviews() -> tuple[dict[str, object], int]:
    caller = require_caller()
    return jsonify({"reviews": [r.to_dict() for r in reviews.list_user_reviews(caller)]}), 200


@bp.post("/salons/<int:salon_id>/reviews")
def create_review(salon_id: int) -> tuple[dict[str, object], int]:
    """Review a salon. The salon's rating and review count update with it.
    ---
    tags:
      - Reviews
    parameters:
      - in: path
        name: salon_id
        required: true
        schema:
          type: integer
      - in: body
        name: body
        required: true
        schema:
          properties:
            rating:
              type: integer
              minimum: 1
              maximum: 5
            comment:
              type: string
    responses:
      201:
        description: Review created
      400:
        description: Invalid rating
      404:
        description: Salon not found
    """
    caller = require_caller()
    payload = _payload()
    review = reviews.create_review(caller, salon_id, payload.get("rating"), payload.get("comment"))
    return jsonify({"review": review.to_dict()}), 201


@bp.put("/reviews/<int:review_id>")
def update_review(review_id: int) -> tuple[dict[str, object], int]:
    """Edit one of the caller's reviews.
        ---
        tags:
          - Reviews
        responses:
          200:
            description: Success
          400:
            description: Invalid input
          403:
            description: Review belongs to someone else
          404:
            description: Not found
        """
    caller = require_caller()
    review = reviews.update_review(caller, review_id, _payload())
    return jsonify({"review": review.to_dict()}), 200


@bp.delete("/reviews/<int:review_id>")
def delete_review(review_id: int):
    caller = require_caller()
    reviews.delete_review(caller, review_id)
    return "", 204


# ============================================================================
# Bookings
# ============================================================================

@bp.get("/user/bookings")
def list_user_bookings() -> tuple[dict[str, object], int]:
    """Bookings made by the caller, with salon and service summaries."""
    caller = require_caller()
    results = bookings.list_customer_bookings(caller)
    return jsonify({"bookings": [bookings.booking_details(b) for b in results]}), 200


@bp.get("/salon/bookings")
def list_salon_bookings() -> tuple[dict[str, object], int]:
    """Bookings across every salon the caller owns, including customer contact details."""
    caller = require_caller()
    results = bookings.list_owner_bookings(caller)
    return (
        jsonify({"bookings": [bookings.booking_details(b, include_customer=True) for b in results]}),
        200,
    )


@bp.post("/bookings")
def create_booking() -> tuple[dict[str, object], int]:
    """Book a service.
    ---
    tags:
      - Bookings
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            salon_id:
              type: integer
            service_id:
              type: integer
            date:
              type: string
              format: date-time
          required:
            - salon_id
            - service_id
            - date
    responses:
      201:
        description: Booking created with status pending
      400:
        description: Invalid payload
      404:
        description: Salon or service not found
    """
    caller = require_caller()
    payload = _payload()
    booking = bookings.create_booking(
        caller, payload.get("salon_id"), payload.get("service_id"), payload.get("date")
    )
    return jsonify({"message": "Booking created successfully", "booking": booking.to_dict()}), 201


@bp.get("/bookings/<int:booking_id>")
def get_booking(booking_id: int) -> tuple[dict[str, dict[str, object]], int]:
    caller = require_caller()
    booking = bookings.get_booking(caller, booking_id)
    is_owner = booking.salon is not None and booking.salon.owner_id == caller.id
    return jsonify({"booking": bookings.booking_details(booking, include_customer=is_owner)}), 200


@bp.put("/bookings/<int:booking_id>/status")
def update_booking_status(booking_id: int) -> tuple[dict[str, object], int]:
    """Move a booking to a new status.

    Salon owners may confirm, complete or cancel; customers may only cancel.
    ---
    tags:
      - Bookings
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            status:
              type: string
              enum: [pending, confirmed, cancelled, completed]
    responses:
      200:
        description: Booking status updated
      400:
        description: Invalid status or illegal transition
      403:
        description: Caller may not make this change
      404:
        description: Booking not found
      409:
        description: Booking changed concurrently
    """
    caller = require_caller()
    payload = _payload()
    if "status" not in payload:
        raise ValidationError("status is required", code="invalid_input")
    booking = bookings.update_booking_status(caller, booking_id, payload["status"])
    return jsonify({"booking": booking.to_dict()}), 200


# ============================================================================
# Favorites
# ============================================================================

@bp.get("/user/favorites")
def get_favorite_salons() -> tuple[dict[str, object], int]:
    caller = require_caller()
    return jsonify({"salons": [s.to_dict() for s in favorites.list_favorites(caller)]}), 200


@bp.post("/favorites")
def add_favorite_salon() -> tuple[dict[str, object], int]:
    """Add a salon to the caller's favorites.
        ---
        tags:
          - Favorites
        responses:
          201:
            description: Created successfully
          400:
            description: Missing salon_id
          404:
            description: Salon not found
          409:
            description: Salon already in favorites
        """
    caller = require_caller()
    salon_id = _payload().get("salon_id")
    if isinstance(salon_id, bool) or not isinstance(salon_id, int):
        raise ValidationError("salon_id is required", code="salon_id_required")

    favorite = favorites.add_favorite(caller, salon_id)
    return jsonify({"message": "Salon added to favorites", "favorite": favorite.to_dict()}), 201


@bp.delete("/favorites/<int:salon_id>")
def remove_favorite_salon(salon_id: int):
    caller = require_caller()
    salons.get_salon(salon_id)

    if not favorites.remove_favorite(caller, salon_id):
        return jsonify({"error": "not_favorited", "message": "Salon not found in favorites"}), 404
    return "", 204


@bp.get("/favorites/check/<int:salon_id>")
def check_if_favorite(salon_id: int) -> tuple[dict[str, object], int]:
    caller = require_caller()
    return jsonify({"salon_id": salon_id, "is_favorite": favorites.is_favorite(caller, salon_id)}), 200


# ============================================================================
# Error handling
# ============================================================================

def handle_salonbook_error(exc: SalonBookError):
    return jsonify(exc.to_dict()), exc.status_code


def handle_database_error(exc: SQLAlchemyError):
    db.session.rollback()
    current_app.logger.exception("Database error while handling %s %s", request.method, request.path, exc_info=exc)
    return jsonify({"error": "database_error"}), 500


def register_routes(app: Flask) -> None:
    app.register_blueprint(bp)
    app.register_error_handler(SalonBookError, handle_salonbook_error)
    app.register_error_handler(SQLAlchemyError, handle_database_error)
