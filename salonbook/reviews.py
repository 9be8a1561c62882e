"""Review operations. Every write also refreshes the salon's aggregate rating."""
from __future__ import annotations

from typing import Any

from flask import current_app

from .auth import Caller
from .errors import NotFoundError, ValidationError
from .models import Review
from .permissions import EDIT_REVIEW, authorize
from .ratings import recompute_salon_rating, salon_rating_guard
from .storage import storage


def validate_rating(rating: Any) -> int:
    # bool is an int subclass; True must not count as a 1-star rating.
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer between 1 and 5", code="invalid_rating")
    return rating


def _clean_comment(comment: Any) -> str:
    if comment is None:
        return ""
    if not isinstance(comment, str):
        raise ValidationError("comment must be a string", code="invalid_comment")
    return comment.strip()


def create_review(caller: Caller, salon_id: int, rating: Any, comment: Any = "") -> Review:
    rating = validate_rating(rating)
    comment = _clean_comment(comment)

    with salon_rating_guard(salon_id) as salon:
        if salon is None:
            raise NotFoundError("Salon not found", code="salon_not_found")

        review = storage.create_review(
            {"user_id": caller.id, "salon_id": salon_id, "rating": rating, "comment": comment}
        )
        recompute_salon_rating(salon_id)

    current_app.logger.info("User %s reviewed salon %s (%d stars)", caller.id, salon_id, rating)
    return review


def update_review(caller: Caller, review_id: int, data: dict[str, Any]) -> Review:
    """Edit the caller's own review; a rating change refreshes the salon aggregate."""
    review = storage.get_review(review_id)
    if review is None:
        raise NotFoundError("Review not found", code="review_not_found")
    authorize(caller, review, EDIT_REVIEW)

    changes: dict[str, Any] = {}
    if "rating" in data:
        changes["rating"] = validate_rating(data["rating"])
    if "comment" in data:
        changes["comment"] = _clean_comment(data["comment"])

    with salon_rating_guard(review.salon_id):
        updated = storage.update_review(review_id, changes)
        if updated is None:
            raise NotFoundError("Review not found", code="review_not_found")
        if "rating" in changes:
            recompute_salon_rating(updated.salon_id)

    return updated


def delete_review(caller: Caller, review_id: int) -> bool:
    review = storage.get_review(review_id)
    if review is None:
        raise NotFoundError("Review not found", code="review_not_found")
    authorize(caller, review, EDIT_REVIEW)

    salon_id = review.salon_id
    with salon_rating_guard(salon_id):
        deleted = storage.delete_review(review_id)
        if not deleted:
            raise NotFoundError("Review not found", code="review_not_found")
        recompute_salon_rating(salon_id)

    current_app.logger.info("User %s deleted review %s", caller.id, review_id)
    return deleted


def list_salon_reviews(salon_id: int) -> list[Review]:
    return storage.get_reviews_by_salon_id(salon_id)


def list_user_reviews(caller: Caller) -> list[Review]:
    return storage.get_reviews_by_user_id(caller.id)
