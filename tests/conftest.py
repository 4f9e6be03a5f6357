"""Shared test fixtures and helpers."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from parkspot.lifecycle.state_machine import BookingStateMachine
from parkspot import logging_context
from parkspot.realtime import connections, hub
from parkspot.schemas.booking_schema import (
    Booking,
    BookingDetails,
    BookingStatus,
    Payment,
    PaymentMethod,
    Pricing,
    Vehicle,
    VehicleType,
)
from parkspot.schemas.lot_schema import Capacity, HourlyRate, ParkingLot
from parkspot.tools import booking, lots, payments, services, users

NOW = datetime(2026, 3, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_stores():
    """Give every test a fresh copy of the seeded in-memory stores."""
    lots.reset()
    services.reset()
    users.reset()
    payments.reset()
    booking.reset()
    hub.reset()
    connections.reset()
    token = logging_context._request_id.set(logging_context.NO_REQUEST_ID)
    yield
    logging_context._request_id.reset(token)


@pytest.fixture
def state_machine():
    return BookingStateMachine()


def make_lot(
    day: float = 40,
    night: Optional[float] = None,
    lot_id: str = "lot-test",
    available: int = 10,
) -> ParkingLot:
    """Helper to create a ParkingLot with sensible defaults."""
    return ParkingLot(
        id=lot_id,
        name="Test Lot",
        owner_id="user-landlord-1",
        rate=HourlyRate(day=day, night=night),
        vehicle_types=[VehicleType.CAR, VehicleType.BIKE],
        capacity=Capacity(total=10, available=available),
    )


def make_booking(
    total: float = 1000,
    status: BookingStatus = BookingStatus.CONFIRMED,
    starts_in: timedelta = timedelta(hours=30),
    length: timedelta = timedelta(hours=2),
    now: datetime = NOW,
) -> Booking:
    """Helper to create a Booking starting ``starts_in`` after ``now``."""
    start = now + starts_in
    return Booking(
        id="bk-test",
        reference="PBTEST",
        user_id="user-001",
        lot_id="lot-001",
        vehicle=Vehicle(type=VehicleType.CAR, license_plate="KA01AB1234"),
        details=BookingDetails(start_time=start, end_time=start + length),
        pricing=Pricing(base_price=total, total_amount=total),
        status=status,
        payment=Payment(method=PaymentMethod.CARD),
    )
