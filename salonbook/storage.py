"""Entity store for users, salons, services, reviews, bookings and favorites.

``DatabaseStorage`` wraps the SQLAlchemy session. Lookups by id return
``None`` on a miss and list filters return an empty list; nothing here raises
for a missing row. Writes are flushed but never committed: the operation that
called the store decides when its unit of work ends, normally through
:func:`atomic`.
"""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from .errors import ConflictError
from .extensions import db
from .models import AuthAccount, Booking, Favorite, Review, Salon, Service, User, utc_now


@contextmanager
def atomic() -> Iterator[None]:
    """Commit the session when the block succeeds, roll back when it raises."""
    try:
        yield
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def _merge(instance: Any, data: dict[str, Any], fields: tuple[str, ...]) -> None:
    for field in fields:
        if field in data:
            setattr(instance, field, data[field])


def _flush_user() -> None:
    """Flush a user write, turning a lost uniqueness race into a ConflictError.

    The session is left failed; the surrounding :func:`atomic` rolls it back.
    """
    try:
        db.session.flush()
    except IntegrityError as exc:
        if "email" in str(exc.orig).lower():
            raise ConflictError("email address is already in use", code="email_taken") from None
        raise ConflictError("username is already in use", code="username_taken") from None


USER_FIELDS = ("username", "email", "name", "phone", "is_salon_owner")
SALON_FIELDS = (
    "name",
    "description",
    "location",
    "address",
    "phone",
    "email",
    "images",
    "categories",
    "featured",
    "price_range",
    "rating",
    "review_count",
)
SERVICE_FIELDS = (
    "name",
    "description",
    "price",
    "duration_minutes",
    "category",
    "image",
    "is_popular",
    "discounted_price",
)
REVIEW_FIELDS = ("rating", "comment")


class DatabaseStorage:
    # Users

    def get_user(self, user_id: int) -> User | None:
        return db.session.get(User, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return User.query.filter(func.lower(User.username) == username.strip().lower()).first()

    def get_user_by_email(self, email: str) -> User | None:
        return User.query.filter(func.lower(User.email) == email.strip().lower()).first()

    def create_user(self, data: dict[str, Any], password_hash: str) -> User:
        """Insert a user and its auth account.

        Raises ConflictError when the username or email is already taken,
        compared case-insensitively.
        """
        if self.get_user_by_username(data["username"]):
            raise ConflictError("username is already in use", code="username_taken")
        if self.get_user_by_email(data["email"]):
            raise ConflictError("email address is already in use", code="email_taken")

        user = User(
            username=data["username"].strip(),
            email=data["email"].strip().lower(),
            name=data["name"],
            phone=data.get("phone"),
            is_salon_owner=bool(data.get("is_salon_owner", False)),
        )
        db.session.add(user)
        _flush_user()

        db.session.add(AuthAccount(user_id=user.user_id, password_hash=password_hash))
        db.session.flush()
        return user

    def update_user(self, user_id: int, data: dict[str, Any]) -> User | None:
        user = self.get_user(user_id)
        if user is None:
            return None
        _merge(user, data, USER_FIELDS)
        _flush_user()
        return user

    def get_auth_account(self, user_id: int) -> AuthAccount | None:
        return db.session.get(AuthAccount, user_id)

    # Salons

    def get_salon(self, salon_id: int) -> Salon | None:
        return db.session.get(Salon, salon_id)

    def lock_salon(self, salon_id: int) -> Salon | None:
        """Load the salon row with ``SELECT ... FOR UPDATE``."""
        return (
            Salon.query.filter(Salon.salon_id == salon_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_salons(
        self,
        category: str | None = None,
        location: str | None = None,
        featured: bool | None = None,
    ) -> list[Salon]:
        query = Salon.query
        if location:
            query = query.filter(Salon.location.ilike(f"%{location}%"))
        if featured is not None:
            query = query.filter(Salon.featured.is_(featured))
        salons = query.order_by(Salon.salon_id).all()

        # Categories are a JSON list, so the substring match runs here.
        if category:
            needle = category.lower()
            salons = [
                salon
                for salon in salons
                if any(needle in (c or "").lower() for c in (salon.categories or []))
            ]
        return salons

    def get_salons_by_owner_id(self, owner_id: int) -> list[Salon]:
        return Salon.query.filter_by(owner_id=owner_id).order_by(Salon.salon_id).all()

    def create_salon(self, data: dict[str, Any]) -> Salon:
        salon = Salon(owner_id=data["owner_id"])
        _merge(salon, data, SALON_FIELDS)
        db.session.add(salon)
        db.session.flush()
        return salon

    def update_salon(self, salon_id: int, data: dict[str, Any]) -> Salon | None:
        salon = self.get_salon(salon_id)
        if salon is None:
            return None
        _merge(salon, data, SALON_FIELDS)
        db.session.flush()
        return salon

    # Services

    def get_service(self, service_id: int) -> Service | None:
        return db.session.get(Service, service_id)

    def get_services_by_salon_id(self, salon_id: int) -> list[Service]:
        return Service.query.filter_by(salon_id=salon_id).order_by(Service.service_id).all()

    def create_service(self, data: dict[str, Any]) -> Service:
        service = Service(salon_id=data["salon_id"])
        _merge(service, data, SERVICE_FIELDS)
        db.session.add(service)
        db.session.flush()
        return service

    def update_service(self, service_id: int, data: dict[str, Any]) -> Service | None:
        service = self.get_service(service_id)
        if service is None:
            return None
        _merge(service, data, SERVICE_FIELDS)
        db.session.flush()
        return service

    def delete_service(self, service_id: int) -> bool:
        """Delete a service. Its bookings stay, detached from it, at their booked price."""
        service = self.get_service(service_id)
        if service is None:
            return False
        db.session.execute(
            update(Booking).where(Booking.service_id == service_id).values(service_id=None)
        )
        db.session.delete(service)
        db.session.flush()
        return True

    # Reviews

    def get_review(self, review_id: int) -> Review | None:
        return db.session.get(Review, review_id)

    def get_reviews_by_salon_id(self, salon_id: int) -> list[Review]:
        return (
            Review.query.filter_by(salon_id=salon_id)
            .order_by(Review.date.desc(), Review.review_id.desc())
            .all()
        )

    def get_reviews_by_user_id(self, user_id: int) -> list[Review]:
        return (
            Review.query.filter_by(user_id=user_id)
            .order_by(Review.date.desc(), Review.review_id.desc())
            .all()
        )

    def review_stats(self, salon_id: int) -> tuple[int, int]:
        """Return ``(count, sum of ratings)`` for a salon in one statement."""
        count, total = (
            db.session.query(func.count(Review.review_id), func.coalesce(func.sum(Review.rating), 0))
            .filter(Review.salon_id == salon_id)
            .one()
        )
        return int(count), int(total)

    def create_review(self, data: dict[str, Any]) -> Review:
        review = Review(
            user_id=data["user_id"],
            salon_id=data["salon_id"],
            rating=data["rating"],
            comment=data.get("comment") or "",
        )
        if data.get("date") is not None:
            review.date = data["date"]
        db.session.add(review)
        db.session.flush()
        return review

    def update_review(self, review_id: int, data: dict[str, Any]) -> Review | None:
        review = self.get_review(review_id)
        if review is None:
            return None
        _merge(review, data, REVIEW_FIELDS)
        db.session.flush()
        return review

    def delete_review(self, review_id: int) -> bool:
        review = self.get_review(review_id)
        if review is None:
            return False
        db.session.delete(review)
        db.session.flush()
        return True

    # Bookings

    def get_booking(self, booking_id: int) -> Booking | None:
        return db.session.get(Booking, booking_id)

    def get_bookings_by_user_id(self, user_id: int) -> list[Booking]:
        return (
            Booking.query.filter_by(user_id=user_id)
            .order_by(Booking.date.desc(), Booking.booking_id.desc())
            .all()
        )

    def get_bookings_by_salon_id(self, salon_id: int) -> list[Booking]:
        return (
            Booking.query.filter_by(salon_id=salon_id)
            .order_by(Booking.date.desc(), Booking.booking_id.desc())
            .all()
        )

    def create_booking(self, data: dict[str, Any]) -> Booking:
        booking = Booking(
            user_id=data["user_id"],
            salon_id=data["salon_id"],
            service_id=data["service_id"],
            date=data["date"],
            total_price=data["total_price"],
            status=data.get("status") or "pending",
        )
        db.session.add(booking)
        db.session.flush()
        return booking

    def update_booking_status(self, booking_id: int, expected: str, status: str) -> Booking | None:
        """Set ``status`` only if the row still holds ``expected``.

        Returns the refreshed booking, or ``None`` when another writer changed
        the status first (or the booking is gone).
        """
        result = db.session.execute(
            update(Booking)
            .where(Booking.booking_id == booking_id, Booking.status == expected)
            .values(status=status, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        booking = self.get_booking(booking_id)
        if booking is not None:
            db.session.refresh(booking)
        return booking

    # Favorites

    def add_favorite(self, user_id: int, salon_id: int) -> Favorite:
        favorite = Favorite(user_id=user_id, salon_id=salon_id)
        db.session.add(favorite)
        db.session.flush()
        return favorite

    def remove_favorite(self, user_id: int, salon_id: int) -> bool:
        deleted = Favorite.query.filter_by(user_id=user_id, salon_id=salon_id).delete(
            synchronize_session="fetch"
        )
        db.session.flush()
        return deleted > 0

    def get_favorites_by_user_id(self, user_id: int) -> list[Favorite]:
        return Favorite.query.filter_by(user_id=user_id).order_by(Favorite.salon_id).all()

    def is_favorite(self, user_id: int, salon_id: int) -> bool:
        return db.session.get(Favorite, (user_id, salon_id)) is not None


storage = DatabaseStorage()
