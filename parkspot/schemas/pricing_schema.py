"""Price quote models returned by the pricing calculator."""

from pydantic import BaseModel, Field

from parkspot.config import settings


class ServiceSelection(BaseModel):
    """A service requested for a booking, by reference."""
    service_id: str
    quantity: int = Field(default=1, ge=1)


class PriceBreakdown(BaseModel):
    hours: int
    rate_per_hour: float
    is_night_rate: bool = False


class PriceQuote(BaseModel):
    """Deterministic price breakdown for one time window."""
    parking_cost: float
    services_cost: float
    discount: float = 0.0
    subtotal: float
    tax: float
    total: float
    currency: str = settings.pricing.currency
    breakdown: PriceBreakdown


class ExtensionQuote(BaseModel):
    """Additional charge for pushing a booking's end time out."""
    additional_hours: int
    rate_per_hour: float
    additional_cost: float
    tax: float
    total: float


class OvertimeCharge(BaseModel):
    """Charge for time spent past the booked end time."""
    overtime_hours: int
    charge: float
    tax: float
    total: float
