"""Caller identity for incoming requests.

Credentials are checked only at login. Every other request carries a signed
bearer token which is turned into a :class:`Caller`; the core operations only
ever see that identity.
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AuthenticationError, ValidationError
from .models import User, utc_now
from .storage import storage

TOKEN_SALT = "auth-token"
MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class Caller:
    id: int
    is_salon_owner: bool = False

    @classmethod
    def from_user(cls, user: User) -> "Caller":
        return cls(id=user.user_id, is_salon_owner=bool(user.is_salon_owner))


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def build_token(user: User) -> str:
    return _serializer().dumps({"user_id": user.user_id})


def get_token_identity() -> int | None:
    """Extract the user id from the Authorization header, or None."""
    auth_header = request.headers.get("Authorization", "")

    if not auth_header.startswith("Bearer "):
        return None

    token = auth_header[7:]
    max_age = current_app.config.get("TOKEN_MAX_AGE", 86400)

    try:
        payload = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        current_app.logger.info("Rejected expired bearer token")
        return None
    except BadSignature:
        return None

    user_id = payload.get("user_id") if isinstance(payload, dict) else None
    return user_id if isinstance(user_id, int) else None


def current_caller() -> Caller | None:
    user_id = get_token_identity()
    if user_id is None:
        return None
    user = storage.get_user(user_id)
    if user is None:
        return None
    return Caller.from_user(user)


def require_caller() -> Caller:
    caller = current_caller()
    if caller is None:
        raise AuthenticationError("authentication required")
    return caller


def hash_password(password: str) -> str:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters",
            code="invalid_password",
        )
    return generate_password_hash(password)


def authenticate(login: str, password: str) -> User:
    """Return the user matching ``login`` (username or email) and ``password``."""
    login = login.strip()
    user = storage.get_user_by_email(login) if "@" in login else storage.get_user_by_username(login)
    account = storage.get_auth_account(user.user_id) if user else None

    if user is None or account is None or not check_password_hash(account.password_hash, password):
        raise AuthenticationError("invalid username or password")

    account.last_login_at = utc_now()
    return user
