"""
Mock parking lot lookup and inventory.

In production, this would query the lots collection of the document
database. Here lots live in an in-memory dict seeded with sample documents,
which go through the same normalization as any external payload.
"""

import logging
from typing import Any, Optional, Union

from parkspot.errors import BookingError, UnknownLotError
from parkspot.schemas.booking_schema import VehicleType
from parkspot.schemas.lot_schema import LotStatus, ParkingLot, Slot, SlotStatus
from parkspot.schemas.normalize import normalize_lot

logger = logging.getLogger(__name__)


class NoCapacityError(BookingError):
    """Raised when a lot has no spot left to reserve."""

    kind = "no_capacity"

    def __init__(self, lot_id: str) -> None:
        super().__init__(f"No parking spots available at lot '{lot_id}'.")
        self.lot_id = lot_id


# Raw documents in the shapes the lots collection has accumulated over time.
_SEED_LOTS: list[dict[str, Any]] = [
    {
        "_id": "lot-001",
        "name": "Central Mall Parking",
        "owner": {"_id": "user-landlord-1", "name": "Rohan Mehta"},
        "location": {"address": {"city": "New Delhi"}},
        "pricing": {"hourly": 40},
        "vehicleTypes": ["car", "bike"],
        "totalSlots": 120,
        "availableSlots": 35,
    },
    {
        "_id": "lot-002",
        "name": "Downtown Plaza Parking",
        "ownerId": "user-landlord-1",
        "city": "New Delhi",
        "pricePerHour": {"day": 30, "night": 20},
        "vehicleTypes": ["car", "bike"],
        "capacity": {"total": 150, "available": 45},
    },
    {
        "id": "lot-003",
        "name": "Metro Station Parking",
        "ownerId": "user-landlord-2",
        "location": {"address": {"city": "Mumbai"}},
        "pricePerHour": {"day": 25, "night": 15},
        "vehicleTypes": ["car", "bike", "bicycle"],
        "capacity": {"total": 200, "available": 80},
    },
    {
        "id": "lot-004",
        "name": "Logistics Hub Yard",
        "owner": {"_id": "user-landlord-2"},
        "city": "Mumbai",
        "pricePerHour": {"day": 50, "night": 35},
        "vehicleTypes": ["truck", "van"],
        "capacity": {"total": 20, "available": 1, "reserved": 19},
    },
]

_lots: dict[str, ParkingLot] = {}


def _update_occupancy(lot: ParkingLot) -> None:
    cap = lot.capacity
    lot.occupancy_rate = round((cap.total - cap.available) / cap.total * 100, 2)


def get_lot(lot_id: str) -> ParkingLot:
    """Look up a parking lot by id.

    Raises:
        UnknownLotError: If no lot exists with that id.
    """
    lot = _lots.get(lot_id)
    if lot is None:
        raise UnknownLotError(lot_id)
    return lot


def add_lot(lot: Union[ParkingLot, dict[str, Any]]) -> ParkingLot:
    """Register or replace a lot, normalizing raw payloads first."""
    if not isinstance(lot, ParkingLot):
        lot = normalize_lot(lot)
    _update_occupancy(lot)
    _lots[lot.id] = lot
    logger.info("Lot registered: %s (%s)", lot.id, lot.name)
    return lot


def search_lots(
    city: Optional[str] = None,
    vehicle_type: Optional[VehicleType] = None,
    available_only: bool = False,
) -> list[ParkingLot]:
    """Return active lots matching the optional filters, most available first."""
    results = []
    for lot in _lots.values():
        if lot.status in (LotStatus.INACTIVE, LotStatus.MAINTENANCE):
            continue
        if city and lot.city.lower() != city.lower().strip():
            continue
        if vehicle_type and not lot.supports(vehicle_type):
            continue
        if available_only and lot.capacity.available <= 0:
            continue
        results.append(lot)
    return sorted(results, key=lambda lot: lot.capacity.available, reverse=True)


def reserve_spot(lot_id: str) -> ParkingLot:
    """Take one spot out of the lot's available capacity.

    Raises:
        UnknownLotError: If the lot does not exist.
        NoCapacityError: If no spot is available.
    """
    lot = get_lot(lot_id)
    if lot.capacity.available <= 0:
        raise NoCapacityError(lot_id)
    lot.capacity.available -= 1
    lot.capacity.reserved += 1
    if lot.capacity.available == 0:
        lot.status = LotStatus.FULL
    _update_occupancy(lot)
    logger.debug("Spot reserved at %s (%d left)", lot_id, lot.capacity.available)
    return lot


def release_spot(lot_id: str) -> ParkingLot:
    """Return one spot to the lot's available capacity."""
    lot = get_lot(lot_id)
    lot.capacity.available = min(lot.capacity.total, lot.capacity.available + 1)
    lot.capacity.reserved = max(0, lot.capacity.reserved - 1)
    if lot.status == LotStatus.FULL:
        lot.status = LotStatus.ACTIVE
    _update_occupancy(lot)
    logger.debug("Spot released at %s (%d left)", lot_id, lot.capacity.available)
    return lot


def generate_slots(
    lot_id: str,
    levels: int = 1,
    rows: int = 5,
    cols: int = 10,
    vehicle_type: VehicleType = VehicleType.CAR,
) -> list[Slot]:
    """Replace the lot's slot layout with a levels x rows x cols grid."""
    lot = get_lot(lot_id)
    lot.slots = [
        Slot(
            code=f"L{level}-R{row:02d}-C{col:02d}",
            type=vehicle_type,
            level=level,
            status=SlotStatus.AVAILABLE,
        )
        for level in range(1, levels + 1)
        for row in range(1, rows + 1)
        for col in range(1, cols + 1)
    ]
    return lot.slots


def reset() -> None:
    """Restore the seeded lots. Used by test fixtures for isolation."""
    _lots.clear()
    for payload in _SEED_LOTS:
        lot = normalize_lot(payload)
        _update_occupancy(lot)
        _lots[lot.id] = lot


reset()
