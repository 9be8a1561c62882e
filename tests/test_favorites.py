"""Tests for favorite salons."""
from __future__ import annotations

import pytest
from sqlalchemy import text

from salonbook import favorites
from salonbook.errors import ConflictError, NotFoundError
from salonbook.extensions import db
from salonbook.models import Favorite


def test_add_favorite_twice_conflicts(ctx, marketplace, callers) -> None:
    alice, salon_id = callers["alice"], marketplace["salon"]

    favorite = favorites.add_favorite(alice, salon_id)
    assert favorite.to_dict() == {"user_id": alice.id, "salon_id": salon_id}
    assert favorites.is_favorite(alice, salon_id) is True

    with pytest.raises(ConflictError) as excinfo:
        favorites.add_favorite(alice, salon_id)

    assert excinfo.value.code == "already_favorited"
    assert favorites.is_favorite(alice, salon_id) is True
    assert Favorite.query.count() == 1


def test_remove_favorite_twice(ctx, marketplace, callers) -> None:
    alice, salon_id = callers["alice"], marketplace["salon"]
    favorites.add_favorite(alice, salon_id)

    assert favorites.remove_favorite(alice, salon_id) is True
    assert favorites.remove_favorite(alice, salon_id) is False
    assert favorites.is_favorite(alice, salon_id) is False


def test_add_favorite_unknown_salon(ctx, callers) -> None:
    with pytest.raises(NotFoundError):
        favorites.add_favorite(callers["alice"], 999)


def test_is_favorite_never_fails(ctx, callers) -> None:
    assert favorites.is_favorite(callers["alice"], 999) is False


def test_favorites_are_per_user(ctx, marketplace, callers) -> None:
    favorites.add_favorite(callers["alice"], marketplace["salon"])

    assert favorites.is_favorite(callers["bob"], marketplace["salon"]) is False
    assert favorites.list_favorites(callers["bob"]) == []


def test_list_favorites_skips_missing_salons(ctx, marketplace, callers) -> None:
    alice = callers["alice"]
    favorites.add_favorite(alice, marketplace["salon"])

    # A row left behind by a database that does not enforce the salon reference.
    db.session.execute(text("PRAGMA foreign_keys=OFF"))
    db.session.add(Favorite(user_id=alice.id, salon_id=999))
    db.session.commit()
    db.session.execute(text("PRAGMA foreign_keys=ON"))

    listed = favorites.list_favorites(alice)

    assert [salon.salon_id for salon in listed] == [marketplace["salon"]]
    assert Favorite.query.filter_by(user_id=alice.id).count() == 2


def test_add_favorite_endpoint_201_then_409(client, marketplace, auth_headers) -> None:
    headers = auth_headers(marketplace["alice"])

    first = client.post("/favorites", headers=headers, json={"salon_id": marketplace["salon"]})
    second = client.post("/favorites", headers=headers, json={"salon_id": marketplace["salon"]})
    check = client.get(f"/favorites/check/{marketplace['salon']}", headers=headers)

    assert first.status_code == 201
    assert first.get_json()["favorite"]["salon_id"] == marketplace["salon"]
    assert second.status_code == 409
    assert second.get_json()["error"] == "already_favorited"
    assert check.get_json() == {"salon_id": marketplace["salon"], "is_favorite": True}


def test_add_favorite_endpoint_requires_salon_id(client, marketplace, auth_headers) -> None:
    response = client.post("/favorites", headers=auth_headers(marketplace["alice"]), json={})

    assert response.status_code == 400
    assert response.get_json()["error"] == "salon_id_required"


def test_add_favorite_endpoint_unknown_salon_404(client, marketplace, auth_headers) -> None:
    response = client.post("/favorites", headers=auth_headers(marketplace["alice"]), json={"salon_id": 999})

    assert response.status_code == 404
    assert response.get_json()["error"] == "salon_not_found"


def test_remove_favorite_endpoint(client, marketplace, auth_headers) -> None:
    headers = auth_headers(marketplace["alice"])
    client.post("/favorites", headers=headers, json={"salon_id": marketplace["salon"]})

    removed = client.delete(f"/favorites/{marketplace['salon']}", headers=headers)
    again = client.delete(f"/favorites/{marketplace['salon']}", headers=headers)

    assert removed.status_code == 204
    assert again.status_code == 404
    assert again.get_json()["error"] == "not_favorited"


def test_user_favorites_endpoint_returns_salons(client, marketplace, auth_headers) -> None:
    headers = auth_headers(marketplace["alice"])
    client.post("/favorites", headers=headers, json={"salon_id": marketplace["salon"]})

    response = client.get("/user/favorites", headers=headers)

    assert response.status_code == 200
    assert [salon["name"] for salon in response.get_json()["salons"]] == ["Modern Beauty Center"]
