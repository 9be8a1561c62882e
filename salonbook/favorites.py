"""Per-user set of favorite salons."""
from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from .auth import Caller
from .errors import ConflictError, NotFoundError
from .models import Favorite, Salon
from .storage import atomic, storage


def add_favorite(caller: Caller, salon_id: int) -> Favorite:
    """Favorite a salon. Adding the same salon twice is a ConflictError."""
    if storage.get_salon(salon_id) is None:
        raise NotFoundError("Salon not found", code="salon_not_found")

    if storage.is_favorite(caller.id, salon_id):
        raise ConflictError("Salon already in favorites", code="already_favorited")

    try:
        with atomic():
            favorite = storage.add_favorite(caller.id, salon_id)
    except IntegrityError:
        # A concurrent request inserted the same pair first.
        raise ConflictError("Salon already in favorites", code="already_favorited") from None

    current_app.logger.info("User %s favorited salon %s", caller.id, salon_id)
    return favorite


def remove_favorite(caller: Caller, salon_id: int) -> bool:
    with atomic():
        removed = storage.remove_favorite(caller.id, salon_id)
    return removed


def is_favorite(caller: Caller, salon_id: int) -> bool:
    return storage.is_favorite(caller.id, salon_id)


def list_favorites(caller: Caller) -> list[Salon]:
    """Salons the caller has favorited, skipping any salon that no longer exists."""
    salons = []
    for favorite in storage.get_favorites_by_user_id(caller.id):
        salon = storage.get_salon(favorite.salon_id)
        if salon is None:
            current_app.logger.info(
                "Skipping favorite of user %s on missing salon %s", caller.id, favorite.salon_id
            )
            continue
        salons.append(salon)
    return salons
