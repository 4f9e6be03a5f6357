"""Parking lot data models consumed by the pricing core."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from parkspot.config import settings
from parkspot.schemas.booking_schema import VehicleType


class LotStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    FULL = "full"


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class HourlyRate(BaseModel):
    """Day rate, with an optional night rate."""
    day: float = Field(ge=0)
    night: Optional[float] = Field(default=None, ge=0)


class Capacity(BaseModel):
    total: int = Field(ge=1)
    available: int = Field(ge=0)
    reserved: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "Capacity":
        if self.available > self.total:
            raise ValueError("available capacity cannot exceed total")
        return self


class Slot(BaseModel):
    """An individually addressable space, e.g. L1-R01-C01."""
    code: str
    type: VehicleType = VehicleType.CAR
    level: int = 1
    status: SlotStatus = SlotStatus.AVAILABLE


class ParkingLot(BaseModel):
    id: str
    name: str
    owner_id: str
    city: str = ""
    rate: HourlyRate
    currency: str = settings.pricing.currency
    vehicle_types: list[VehicleType] = Field(default_factory=lambda: [VehicleType.CAR])
    capacity: Capacity
    slots: list[Slot] = Field(default_factory=list)
    status: LotStatus = LotStatus.ACTIVE
    occupancy_rate: float = 0.0

    def supports(self, vehicle_type: VehicleType) -> bool:
        return vehicle_type in self.vehicle_types
