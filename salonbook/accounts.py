"""Registration, login and profile updates."""
from __future__ import annotations

from typing import Any

from flask import current_app

from .auth import Caller, authenticate, hash_password
from .errors import ConflictError, NotFoundError, ValidationError
from .models import User
from .storage import atomic, storage


def _required(payload: dict[str, Any], field: str) -> str:
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def _email(payload: dict[str, Any]) -> str:
    email = _required(payload, "email").lower()
    if "@" not in email:
        raise ValidationError("email address is invalid", code="invalid_email")
    return email


def register_user(payload: dict[str, Any]) -> User:
    username = _required(payload, "username")
    email = _email(payload)
    name = _required(payload, "name")
    password = payload.get("password")
    if not isinstance(password, str) or not password:
        raise ValidationError("password is required")

    phone = payload.get("phone")
    phone = (phone.strip() or None) if isinstance(phone, str) else None

    with atomic():
        user = storage.create_user(
            {
                "username": username,
                "email": email,
                "name": name,
                "phone": phone,
                "is_salon_owner": bool(payload.get("is_salon_owner", False)),
            },
            hash_password(password),
        )

    current_app.logger.info("Registered user %s (%s)", user.user_id, user.username)
    return user


def login_user(payload: dict[str, Any]) -> User:
    login = payload.get("username") or payload.get("email")
    password = payload.get("password")
    if not isinstance(login, str) or not login.strip() or not isinstance(password, str) or not password:
        raise ValidationError("username (or email) and password are required")

    with atomic():
        user = authenticate(login, password)
    return user


def get_profile(caller: Caller) -> User:
    user = storage.get_user(caller.id)
    if user is None:
        raise NotFoundError("User not found", code="user_not_found")
    return user


def update_profile(caller: Caller, payload: dict[str, Any]) -> User:
    """Partially update the caller's profile; email stays unique."""
    changes: dict[str, Any] = {}

    if "name" in payload:
        changes["name"] = _required(payload, "name")
    if "phone" in payload:
        phone = payload.get("phone")
        changes["phone"] = (phone.strip() or None) if isinstance(phone, str) else None
    if "email" in payload:
        email = _email(payload)
        existing = storage.get_user_by_email(email)
        if existing is not None and existing.user_id != caller.id:
            raise ConflictError("email address is already in use", code="email_taken")
        changes["email"] = email

    new_password = payload.get("new_password")

    with atomic():
        user = storage.update_user(caller.id, changes)
        if user is None:
            raise NotFoundError("User not found", code="user_not_found")
        if new_password is not None:
            if not isinstance(new_password, str):
                raise ValidationError("new_password must be a string", code="invalid_password")
            account = storage.get_auth_account(caller.id)
            if account is None:
                raise NotFoundError("auth account not found", code="auth_account_not_found")
            account.password_hash = hash_password(new_password)

    return user
