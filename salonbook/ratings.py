"""Salon rating aggregation.

``Salon.rating`` and ``Salon.review_count`` are derived from the salon's
reviews. Any code that inserts, re-rates or deletes a review must do so inside
:func:`salon_rating_guard` and call :func:`recompute_salon_rating` before the
guard exits, so the review change and its effect on the aggregate commit
together and never interleave with another writer on the same salon.
"""
from __future__ import annotations

import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app

from .models import Salon
from .storage import atomic, storage

_registry_lock = threading.Lock()
# Entries disappear once no guard holds the salon's lock.
_salon_locks: weakref.WeakValueDictionary[int, threading.Lock] = weakref.WeakValueDictionary()


def _lock_for(salon_id: int) -> threading.Lock:
    with _registry_lock:
        lock = _salon_locks.get(salon_id)
        if lock is None:
            lock = _salon_locks[salon_id] = threading.Lock()
        return lock


def round_half_up(value: Decimal, places: int = 1) -> float:
    """Round half away from zero, e.g. 4.25 -> 4.3 and 4.35 -> 4.4."""
    quantum = Decimal(1).scaleb(-places)
    return float(value.quantize(quantum, rounding=ROUND_HALF_UP))


def mean_rating(total: int, count: int) -> float:
    if count == 0:
        return 0.0
    return round_half_up(Decimal(total) / Decimal(count))


@contextmanager
def salon_rating_guard(salon_id: int) -> Iterator[Salon | None]:
    """Serialize review writes for one salon and run them in one transaction.

    Holds a per-process lock for the salon and the salon row lock
    (``SELECT ... FOR UPDATE``) until the transaction commits or rolls back.
    Yields the locked salon, or None if it does not exist.
    """
    with _lock_for(salon_id):
        with atomic():
            yield storage.lock_salon(salon_id)


def recompute_salon_rating(salon_id: int) -> Salon | None:
    """Rewrite the salon's rating and review count from its current reviews."""
    count, total = storage.review_stats(salon_id)
    rating = mean_rating(total, count)

    salon = storage.update_salon(salon_id, {"rating": rating, "review_count": count})
    if salon is not None:
        current_app.logger.info(
            "Recomputed rating for salon %s: %.1f over %d reviews", salon_id, rating, count
        )
    return salon
