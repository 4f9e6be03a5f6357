"""
Boundary normalization from loosely-shaped external payloads to typed models.

External lot, service and user payloads arrive in several shapes (Mongo-style
``_id`` vs ``id``, nested ``pricing.hourly`` vs ``pricePerHour.day/night``,
``capacity.available`` vs flat ``availableSlots``). Each entity has exactly
one normalization function here; everything past this boundary works with
validated pydantic models only.
"""

import logging
from typing import Any, Optional

from parkspot.schemas.lot_schema import ParkingLot
from parkspot.schemas.service_schema import Service
from parkspot.schemas.user_schema import User

logger = logging.getLogger(__name__)


def _first(*values: Any) -> Any:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def _ref_id(value: Any) -> Optional[str]:
    """Resolve a reference that may be a bare id or an embedded document."""
    if isinstance(value, dict):
        value = _first(value.get("_id"), value.get("id"))
    return str(value) if value is not None else None


def normalize_lot(payload: dict[str, Any]) -> ParkingLot:
    """Map a raw lot payload into a ParkingLot.

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    pricing = payload.get("pricing") or {}
    per_hour = payload.get("pricePerHour") or {}
    capacity = payload.get("capacity") or {}
    address = (payload.get("location") or {}).get("address") or {}

    total = _first(capacity.get("total"), payload.get("totalSlots"))
    available = _first(capacity.get("available"), payload.get("availableSlots"), total)

    data = {
        "id": _ref_id(payload),
        "name": payload.get("name"),
        "owner_id": _ref_id(_first(payload.get("owner"), payload.get("ownerId"))),
        "city": _first(address.get("city"), payload.get("city"), ""),
        "rate": {
            "day": _first(pricing.get("hourly"), per_hour.get("day")),
            "night": per_hour.get("night"),
        },
        "vehicle_types": _first(payload.get("vehicleTypes"), payload.get("vehicle_types")),
        "capacity": {
            "total": total,
            "available": available,
            "reserved": _first(capacity.get("reserved"), 0),
        },
        "slots": payload.get("slots") or [],
        "status": _first(payload.get("status"), "active"),
        "occupancy_rate": _first(
            (payload.get("liveStatus") or {}).get("occupancyRate"), 0.0
        ),
    }
    if pricing.get("currency"):
        data["currency"] = pricing["currency"]
    if data["vehicle_types"] is None:
        del data["vehicle_types"]

    lot = ParkingLot.model_validate(data)
    logger.debug("Normalized lot %s (%s)", lot.id, lot.name)
    return lot


def normalize_service(payload: dict[str, Any]) -> Service:
    """Map a raw service payload into a Service.

    Accepts either ``pricing.basePrice`` or a flat ``price``, and
    ``availableAt`` entries referencing lots by id or embedded document.
    """
    pricing = payload.get("pricing") or {}
    availability = payload.get("availability") or {}

    data = {
        "id": _ref_id(payload),
        "name": payload.get("name"),
        "category": payload.get("category"),
        "description": payload.get("description") or "",
        "base_price": _first(pricing.get("basePrice"), payload.get("price")),
        "is_active": _first(availability.get("isActive"), payload.get("isActive"), True),
        "available_at": [
            {
                "lot_id": _ref_id(_first(entry.get("parkingLot"), entry.get("lotId"))),
                "custom_price": entry.get("customPricing"),
                "is_active": _first(entry.get("isActive"), True),
            }
            for entry in payload.get("availableAt") or []
        ],
    }
    if pricing.get("currency"):
        data["currency"] = pricing["currency"]
    return Service.model_validate(data)


def normalize_user(payload: dict[str, Any]) -> User:
    """Map a raw user payload into a User."""
    return User.model_validate(
        {
            "id": _ref_id(payload),
            "name": payload.get("name"),
            "email": payload.get("email"),
            "phone": payload.get("phone"),
            "role": _first(payload.get("role"), "user"),
            "total_bookings": _first(payload.get("totalBookings"), 0),
            "total_spent": _first(payload.get("totalSpent"), 0.0),
        }
    )
