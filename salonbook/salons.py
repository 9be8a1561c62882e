"""Salon and service management for salon owners."""
from __future__ import annotations

from typing import Any

from flask import current_app

from .auth import Caller
from .errors import NotFoundError, ValidationError
from .models import Salon, Service
from .permissions import CREATE_SALON, MANAGE_SALON, MANAGE_SERVICE, authorize
from .storage import atomic, storage

SALON_TEXT_FIELDS = ("name", "description", "location", "address", "phone", "email")
SERVICE_TEXT_FIELDS = ("name", "description", "category", "image")


def _text(payload: dict[str, Any], field: str, required: bool = False) -> str:
    value = payload.get(field)
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if required and not value:
        raise ValidationError(f"{field} is required")
    return value


def _string_list(payload: dict[str, Any], field: str) -> list[str]:
    value = payload.get(field) or []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError(f"{field} must be a list of strings")
    return [item.strip() for item in value if item.strip()]


def _price_range(value: Any) -> dict[str, int]:
    if not isinstance(value, dict):
        raise ValidationError("price_range must be an object with min and max")
    low, high = value.get("min", 0), value.get("max", 0)
    for bound in (low, high):
        if isinstance(bound, bool) or not isinstance(bound, int) or bound < 0:
            raise ValidationError("price_range bounds must be non-negative integers")
    if low > high:
        raise ValidationError("price_range min cannot exceed max")
    return {"min": low, "max": high}


def _price(value: Any, field: str, nullable: bool = False) -> int | None:
    if value is None and nullable:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field} must be a non-negative integer", code="invalid_price")
    return value


def _salon_fields(payload: dict[str, Any], partial: bool) -> dict[str, Any]:
    """Validate client-supplied salon fields; derived and ownership fields are dropped."""
    data: dict[str, Any] = {}
    for field in SALON_TEXT_FIELDS:
        if field in payload or not partial:
            data[field] = _text(payload, field, required=field == "name")
    for field in ("images", "categories"):
        if field in payload or not partial:
            data[field] = _string_list(payload, field)
    if "featured" in payload:
        if not isinstance(payload["featured"], bool):
            raise ValidationError("featured must be a boolean")
        data["featured"] = payload["featured"]
    if "price_range" in payload:
        data["price_range"] = _price_range(payload["price_range"])
    return data


def get_salon(salon_id: int) -> Salon:
    salon = storage.get_salon(salon_id)
    if salon is None:
        raise NotFoundError("Salon not found", code="salon_not_found")
    return salon


def list_salons(
    category: str | None = None,
    location: str | None = None,
    featured: bool | None = None,
) -> list[Salon]:
    return storage.get_salons(category=category, location=location, featured=featured)


def list_owned_salons(caller: Caller) -> list[Salon]:
    return storage.get_salons_by_owner_id(caller.id)


def create_salon(caller: Caller, payload: dict[str, Any]) -> Salon:
    authorize(caller, None, CREATE_SALON)
    data = _salon_fields(payload, partial=False)
    data["owner_id"] = caller.id

    with atomic():
        salon = storage.create_salon(data)

    current_app.logger.info("User %s created salon %s", caller.id, salon.salon_id)
    return salon


def update_salon(caller: Caller, salon_id: int, payload: dict[str, Any]) -> Salon:
    salon = get_salon(salon_id)
    authorize(caller, salon, MANAGE_SALON)
    data = _salon_fields(payload, partial=True)

    with atomic():
        updated = storage.update_salon(salon_id, data)
    return updated


def list_services(salon_id: int) -> list[Service]:
    return storage.get_services_by_salon_id(salon_id)


def _service_fields(payload: dict[str, Any], partial: bool) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for field in SERVICE_TEXT_FIELDS:
        if field in payload or not partial:
            data[field] = _text(payload, field, required=field == "name")
    if data.get("image") == "":
        data["image"] = None
    if "price" in payload or not partial:
        data["price"] = _price(payload.get("price"), "price")
    if "discounted_price" in payload:
        data["discounted_price"] = _price(payload["discounted_price"], "discounted_price", nullable=True)
    if "duration_minutes" in payload or not partial:
        duration = payload.get("duration_minutes")
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise ValidationError("duration_minutes must be a positive integer", code="invalid_duration")
        data["duration_minutes"] = duration
    if "is_popular" in payload:
        if not isinstance(payload["is_popular"], bool):
            raise ValidationError("is_popular must be a boolean")
        data["is_popular"] = payload["is_popular"]
    return data


def create_service(caller: Caller, salon_id: int, payload: dict[str, Any]) -> Service:
    salon = get_salon(salon_id)
    authorize(caller, salon, MANAGE_SALON)
    data = _service_fields(payload, partial=False)
    data["salon_id"] = salon.salon_id

    with atomic():
        service = storage.create_service(data)

    current_app.logger.info("Salon %s added service %s", salon_id, service.service_id)
    return service


def _owned_service(caller: Caller, service_id: int) -> Service:
    service = storage.get_service(service_id)
    if service is None:
        raise NotFoundError("Service not found", code="service_not_found")
    authorize(caller, service, MANAGE_SERVICE)
    return service


def update_service(caller: Caller, service_id: int, payload: dict[str, Any]) -> Service:
    """Partially update a service. Existing bookings keep their snapshotted price."""
    _owned_service(caller, service_id)
    data = _service_fields(payload, partial=True)

    with atomic():
        service = storage.update_service(service_id, data)
    return service


def delete_service(caller: Caller, service_id: int) -> bool:
    _owned_service(caller, service_id)

    with atomic():
        deleted = storage.delete_service(service_id)

    current_app.logger.info("Service %s deleted by user %s", service_id, caller.id)
    return deleted
