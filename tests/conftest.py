"""Shared pytest fixtures for the SalonBook test suite."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure the project root is available on sys.path so tests can import the salonbook package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salonbook import create_app  # noqa: E402
from salonbook.auth import Caller, build_token  # noqa: E402
from salonbook.config import TestingConfig  # noqa: E402
from salonbook.extensions import db  # noqa: E402
from salonbook.models import Salon, Service, User  # noqa: E402


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    """Run the test body inside an application context."""
    with app.app_context():
        yield


@pytest.fixture
def auth_headers(app):
    def _headers(user_id: int) -> dict[str, str]:
        with app.app_context():
            user = db.session.get(User, user_id)
            return {"Authorization": f"Bearer {build_token(user)}"}

    return _headers


@pytest.fixture
def marketplace(app):
    """One owner with one salon and two services, plus two customers.

    Returns the ids as a dict: owner, alice, bob, salon, service, discounted_service.
    """
    with app.app_context():
        owner = User(user_id=1, username="owner", name="Salon Owner", email="owner@example.com", is_salon_owner=True)
        alice = User(user_id=2, username="alice", name="Alice", email="alice@example.com")
        bob = User(user_id=3, username="bob", name="Bob", email="bob@example.com")

        salon = Salon(
            salon_id=7,
            owner_id=1,
            name="Modern Beauty Center",
            description="Contemporary beauty center",
            location="Casablanca",
            address="456 Avenue Mohammed V",
            categories=["Hair", "Nails"],
        )
        haircut = Service(service_id=1, salon_id=7, name="Hair Cut & Style", price=350, duration_minutes=45)
        manicure = Service(
            service_id=2,
            salon_id=7,
            name="Gel Manicure",
            price=200,
            discounted_price=180,
            duration_minutes=60,
        )

        db.session.add_all([owner, alice, bob, salon, haircut, manicure])
        db.session.commit()

    return {
        "owner": 1,
        "alice": 2,
        "bob": 3,
        "salon": 7,
        "service": 1,
        "discounted_service": 2,
    }


@pytest.fixture
def callers(marketplace):
    return {
        "owner": Caller(id=marketplace["owner"], is_salon_owner=True),
        "alice": Caller(id=marketplace["alice"]),
        "bob": Caller(id=marketplace["bob"]),
    }
