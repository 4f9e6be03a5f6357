"""Booking record and its sub-records."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import AwareDatetime, BaseModel, Field, field_validator, model_validator

from parkspot.config import settings
from parkspot.utils import normalize_license_plate


class VehicleType(str, Enum):
    CAR = "car"
    BIKE = "bike"
    TRUCK = "truck"
    VAN = "van"
    BICYCLE = "bicycle"


class BookingStatus(str, Enum):
    """All states a booking can be in."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"
    EXTENDED = "extended"


class PaymentMethod(str, Enum):
    CARD = "card"
    UPI = "upi"
    WALLET = "wallet"
    CASH = "cash"
    RAZORPAY = "razorpay"
    STRIPE = "stripe"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class NotificationType(str, Enum):
    BOOKING_CONFIRMED = "booking-confirmed"
    REMINDER = "reminder"
    EXTENSION_OFFER = "extension-offer"
    CHECKOUT_REMINDER = "checkout-reminder"


class NotificationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    IN_APP = "in-app"


class Vehicle(BaseModel):
    """Vehicle parked under a booking."""
    type: VehicleType
    license_plate: str
    model: Optional[str] = None
    color: Optional[str] = None

    @field_validator("license_plate")
    @classmethod
    def _normalize_plate(cls, value: str) -> str:
        plate = normalize_license_plate(value)
        if not plate:
            raise ValueError("license plate is required")
        return plate


class Duration(BaseModel):
    hours: int = 0
    minutes: int = 0


class BookingDetails(BaseModel):
    """Reserved time window and optional slot assignment."""
    start_time: AwareDatetime
    end_time: AwareDatetime
    duration: Duration = Field(default_factory=Duration)
    spot_number: Optional[str] = None
    floor: Optional[str] = None

    @model_validator(mode="after")
    def _check_window(self) -> "BookingDetails":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class Pricing(BaseModel):
    """Stored price breakdown. Written once at creation, adjusted on extension."""
    base_price: float
    service_fees: float = 0.0
    taxes: float = 0.0
    discounts: float = 0.0
    total_amount: float
    currency: str = settings.pricing.currency

    def recomputed_total(self) -> float:
        """Total derived from the components; not enforced at write time."""
        return self.base_price + self.service_fees + self.taxes - self.discounts


class BookedService(BaseModel):
    """Snapshot of an add-on service at booking time."""
    service_id: str
    name: str
    price: float
    quantity: int = Field(default=1, ge=1)


class Payment(BaseModel):
    method: PaymentMethod
    transaction_id: Optional[str] = None
    payment_id: Optional[str] = None
    order_id: Optional[str] = None
    status: PaymentStatus = PaymentStatus.PENDING
    paid_at: Optional[datetime] = None
    refund_amount: Optional[float] = None
    refunded_at: Optional[datetime] = None


class EntryLog(BaseModel):
    time: datetime
    gate: Optional[str] = None
    verified_by: Optional[str] = None


class ExitLog(BaseModel):
    time: datetime
    gate: Optional[str] = None
    verified_by: Optional[str] = None
    actual_duration: Optional[Duration] = None
    overtime_charges: float = 0.0


class Cancellation(BaseModel):
    reason: str
    cancelled_at: datetime
    cancelled_by: Optional[str] = None
    refund_eligible: bool = False
    refund_amount: float = 0.0


class Rating(BaseModel):
    score: int = Field(ge=1, le=5)
    review: Optional[str] = None
    review_date: Optional[datetime] = None


class Notification(BaseModel):
    type: NotificationType
    message: str
    sent_at: datetime
    channel: NotificationChannel = NotificationChannel.IN_APP


class Booking(BaseModel):
    """One reservation of a parking slot for a time window."""
    id: str
    reference: str
    user_id: str
    lot_id: str
    vehicle: Vehicle
    details: BookingDetails
    pricing: Pricing
    services: list[BookedService] = Field(default_factory=list)
    status: BookingStatus = BookingStatus.PENDING
    payment: Payment
    entry_log: Optional[EntryLog] = None
    exit_log: Optional[ExitLog] = None
    cancellation: Optional[Cancellation] = None
    rating: Optional[Rating] = None
    notifications: list[Notification] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
