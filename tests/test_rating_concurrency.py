"""Concurrent review writes against one salon, on a file-backed database."""
from __future__ import annotations

import threading

import pytest

from salonbook import create_app, reviews
from salonbook.auth import Caller
from salonbook.config import TestingConfig
from salonbook.extensions import db
from salonbook.models import Review, Salon
from salonbook.ratings import mean_rating, salon_rating_guard


@pytest.fixture
def app(tmp_path):
    class FileDatabaseConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'salonbook.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False, "timeout": 30}}

    app = create_app(FileDatabaseConfig)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def _run_in_threads(app, work, count: int) -> list[Exception]:
    """Run ``work(index)`` in ``count`` threads, each inside its own app context."""
    barrier = threading.Barrier(count, timeout=10)
    errors: list[Exception] = []

    def run(index: int) -> None:
        try:
            with app.app_context():
                barrier.wait()
                work(index)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=run, args=(index,)) for index in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    assert not any(thread.is_alive() for thread in threads)
    return errors


def test_concurrent_reviews_all_count(app, marketplace) -> None:
    salon_id = marketplace["salon"]
    ratings = [5, 4, 4, 5, 3, 4, 5, 4]
    authors = [Caller(id=marketplace["alice"]), Caller(id=marketplace["bob"])]

    errors = _run_in_threads(
        app,
        lambda i: reviews.create_review(authors[i % 2], salon_id, ratings[i], f"visit {i}"),
        len(ratings),
    )

    assert errors == []
    with app.app_context():
        salon = db.session.get(Salon, salon_id)
        assert Review.query.filter_by(salon_id=salon_id).count() == len(ratings)
        assert salon.review_count == len(ratings)
        assert salon.rating == mean_rating(sum(ratings), len(ratings)) == 4.3


def test_concurrent_rerates_all_apply(app, marketplace) -> None:
    salon_id = marketplace["salon"]
    alice = Caller(id=marketplace["alice"])
    with app.app_context():
        review_ids = [reviews.create_review(alice, salon_id, 5).review_id for _ in range(6)]

    errors = _run_in_threads(
        app,
        lambda i: reviews.update_review(alice, review_ids[i], {"rating": 1 if i % 2 else 2}),
        len(review_ids),
    )

    assert errors == []
    with app.app_context():
        salon = db.session.get(Salon, salon_id)
        assert salon.review_count == 6
        assert salon.rating == mean_rating(9, 6) == 1.5


def test_guard_blocks_second_writer_until_first_exits(app, marketplace) -> None:
    salon_id = marketplace["salon"]
    entered = threading.Event()

    def second_writer() -> None:
        with app.app_context():
            with salon_rating_guard(salon_id):
                entered.set()

    worker = threading.Thread(target=second_writer)
    with app.app_context():
        with salon_rating_guard(salon_id) as salon:
            assert salon.salon_id == salon_id
            worker.start()
            assert not entered.wait(timeout=0.2)

    worker.join(timeout=10)
    assert entered.is_set()
