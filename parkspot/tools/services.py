"""Add-on service catalog with per-lot pricing."""

import logging
from typing import Any, Optional, Union

from parkspot.errors import UnknownServiceError
from parkspot.schemas.normalize import normalize_service
from parkspot.schemas.service_schema import Service, ServiceCategory

logger = logging.getLogger(__name__)

_SEED_SERVICES: list[dict[str, Any]] = [
    {
        "_id": "svc-wash-basic",
        "name": "Basic Car Wash",
        "category": "car-wash",
        "description": "Exterior wash and dry while you are parked.",
        "pricing": {"basePrice": 150},
        "availableAt": [
            {"parkingLot": {"_id": "lot-001"}},
            {"parkingLot": "lot-002", "customPricing": 120},
        ],
    },
    {
        "_id": "svc-wash-premium",
        "name": "Premium Detailing",
        "category": "car-wash",
        "description": "Interior vacuum, exterior wash and wax.",
        "pricing": {"basePrice": 1200},
        "availableAt": [{"parkingLot": "lot-001"}],
    },
    {
        "id": "svc-valet",
        "name": "Valet Parking",
        "category": "valet",
        "description": "Drop-off and pick-up at the lot entrance.",
        "price": 100,
        "availableAt": [{"lotId": "lot-001"}, {"lotId": "lot-002"}],
    },
    {
        "id": "svc-ev-charge",
        "name": "EV Charging",
        "category": "charging",
        "description": "Level 2 charging for the duration of the stay.",
        "price": 200,
        "availableAt": [{"lotId": "lot-002"}, {"lotId": "lot-003", "isActive": False}],
    },
    {
        "id": "svc-tyre-check",
        "name": "Tyre Pressure Check",
        "category": "maintenance",
        "description": "Pressure check and top-up for all tyres.",
        "price": 50,
        "availability": {"isActive": False},
        "availableAt": [{"lotId": "lot-001"}],
    },
]

_services: dict[str, Service] = {}


def get_service(service_id: str) -> Service:
    """Look up a service by id.

    Raises:
        UnknownServiceError: If the service is not in the catalog.
    """
    service = _services.get(service_id)
    if service is None:
        raise UnknownServiceError(service_id)
    return service


def get_all_services(category: Optional[ServiceCategory] = None) -> list[Service]:
    """Return active services, optionally filtered by category."""
    return [
        svc
        for svc in _services.values()
        if svc.is_active and (category is None or svc.category == category)
    ]


def get_services_for_lot(lot_id: str) -> list[dict]:
    """Return services bookable at a lot with their lot-specific price."""
    return [
        {"id": svc.id, "name": svc.name, "price": svc.price_at(lot_id)}
        for svc in _services.values()
        if svc.is_available_at(lot_id)
    ]


def add_service(service: Union[Service, dict[str, Any]]) -> Service:
    """Register or replace a catalog entry, normalizing raw payloads first."""
    if not isinstance(service, Service):
        service = normalize_service(service)
    _services[service.id] = service
    logger.info("Service registered: %s (%s)", service.id, service.name)
    return service


def reset() -> None:
    """Restore the seeded catalog. Used by test fixtures for isolation."""
    _services.clear()
    for payload in _SEED_SERVICES:
        service = normalize_service(payload)
        _services[service.id] = service


reset()
