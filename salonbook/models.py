"""Database models for the SalonBook backend."""
from __future__ import annotations

from datetime import datetime, timezone

from .extensions import db


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed")


class User(db.Model):
    __tablename__ = "users"

    user_id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(30))
    is_salon_owner = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    salons = db.relationship("Salon", back_populates="owner", lazy="dynamic")
    auth_account = db.relationship("AuthAccount", back_populates="user", uselist=False)

    def to_dict_basic(self) -> dict[str, object]:
        return {
            "id": self.user_id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "is_salon_owner": bool(self.is_salon_owner),
        }

    def to_summary(self) -> dict[str, object]:
        return {"id": self.user_id, "name": self.name}


# Usernames are unique regardless of case.
db.Index("uq_users_username_lower", db.func.lower(User.username), unique=True)


class AuthAccount(db.Model):
    __tablename__ = "auth_accounts"

    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), primary_key=True)
    password_hash = db.Column(db.String(255), nullable=False)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    user = db.relationship("User", back_populates="auth_account")


class Salon(db.Model):
    __tablename__ = "salons"

    salon_id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    location = db.Column(db.String(100), nullable=False, default="")
    address = db.Column(db.String(255), nullable=False, default="")
    phone = db.Column(db.String(30), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False, default="")
    images = db.Column(db.JSON, nullable=False, default=list)
    categories = db.Column(db.JSON, nullable=False, default=list)
    featured = db.Column(db.Boolean, nullable=False, default=False)
    price_range = db.Column(db.JSON, nullable=False, default=lambda: {"min": 0, "max": 0})
    # Derived from the salon's reviews; only the rating aggregator writes these.
    rating = db.Column(db.Float, nullable=False, default=0)
    review_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    owner = db.relationship("User", back_populates="salons")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.salon_id,
            "owner_id": self.owner_id,
            "name": self.name,
            "description": self.description,
            "location": self.location,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "images": list(self.images or []),
            "categories": list(self.categories or []),
            "featured": bool(self.featured),
            "price_range": self.price_range or {"min": 0, "max": 0},
            "rating": self.rating,
            "review_count": self.review_count,
        }


class Service(db.Model):
    __tablename__ = "services"

    service_id = db.Column(db.Integer, primary_key=True)
    salon_id = db.Column(db.Integer, db.ForeignKey("salons.salon_id"), nullable=False)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    price = db.Column(db.Integer, nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(100), nullable=False, default="")
    image = db.Column(db.String(500))
    is_popular = db.Column(db.Boolean, nullable=False, default=False)
    discounted_price = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    salon = db.relationship("Salon")

    @property
    def effective_price(self) -> int:
        """Discounted price when one is set, otherwise the list price."""
        if self.discounted_price is not None:
            return self.discounted_price
        return self.price

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.service_id,
            "salon_id": self.salon_id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "discounted_price": self.discounted_price,
            "effective_price": self.effective_price,
            "duration_minutes": self.duration_minutes,
            "category": self.category,
            "image": self.image,
            "is_popular": bool(self.is_popular),
        }


class Review(db.Model):
    __tablename__ = "reviews"

    review_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    salon_id = db.Column(db.Integer, db.ForeignKey("salons.salon_id"), nullable=False, index=True)
    rating = db.Column(db.Integer, nullable=False)  # 1-5 stars
    comment = db.Column(db.Text, nullable=False, default="")
    date = db.Column(db.DateTime, nullable=False, default=utc_now)

    author = db.relationship("User")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.review_id,
            "user_id": self.user_id,
            "salon_id": self.salon_id,
            "rating": self.rating,
            "comment": self.comment,
            "date": self.date.isoformat() if self.date else None,
            "user": self.author.to_summary() if self.author else None,
        }


class Booking(db.Model):
    __tablename__ = "bookings"

    booking_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False, index=True)
    salon_id = db.Column(db.Integer, db.ForeignKey("salons.salon_id"), nullable=False, index=True)
    # Cleared when the service is deleted; total_price keeps what was charged.
    service_id = db.Column(
        db.Integer, db.ForeignKey("services.service_id", ondelete="SET NULL"), nullable=True
    )
    date = db.Column(db.DateTime, nullable=False)
    status = db.Column(
        db.Enum(
            *BOOKING_STATUSES,
            name="booking_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default="pending",
        server_default="pending",
    )
    # Snapshot of the service's effective price when the booking was made.
    total_price = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    salon = db.relationship("Salon")
    service = db.relationship("Service")
    customer = db.relationship("User")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.booking_id,
            "user_id": self.user_id,
            "salon_id": self.salon_id,
            "service_id": self.service_id,
            "date": self.date.isoformat() if self.date else None,
            "status": self.status,
            "total_price": self.total_price,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Favorite(db.Model):
    __tablename__ = "favorites"

    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), primary_key=True)
    salon_id = db.Column(db.Integer, db.ForeignKey("salons.salon_id"), primary_key=True)

    def to_dict(self) -> dict[str, object]:
        return {"user_id": self.user_id, "salon_id": self.salon_id}
