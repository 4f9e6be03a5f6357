"""Add-on service catalog models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from parkspot.config import settings


class ServiceCategory(str, Enum):
    CAR_WASH = "car-wash"
    MAINTENANCE = "maintenance"
    FUEL = "fuel"
    FOOD_BEVERAGE = "food-beverage"
    VALET = "valet"
    CHARGING = "charging"
    INSURANCE = "insurance"
    EMERGENCY = "emergency"


class LotAvailability(BaseModel):
    """Per-lot offer of a service, optionally with its own price."""
    lot_id: str
    custom_price: Optional[float] = Field(default=None, ge=0)
    is_active: bool = True


class Service(BaseModel):
    id: str
    name: str
    category: ServiceCategory
    description: str = ""
    base_price: float = Field(ge=0)
    currency: str = settings.pricing.currency
    is_active: bool = True
    available_at: list[LotAvailability] = Field(default_factory=list)

    def _offer_for(self, lot_id: str) -> Optional[LotAvailability]:
        for offer in self.available_at:
            if offer.lot_id == lot_id:
                return offer
        return None

    def is_available_at(self, lot_id: str) -> bool:
        """True if the service is active and offered at the given lot."""
        if not self.is_active:
            return False
        offer = self._offer_for(lot_id)
        return offer.is_active if offer else False

    def price_at(self, lot_id: str) -> float:
        """Lot-specific price when one is set, otherwise the base price."""
        offer = self._offer_for(lot_id)
        if offer and offer.custom_price is not None:
            return offer.custom_price
        return self.base_price
