"""
Duration and price calculation for a booking time window.

All functions are pure: they read the lot and service records they are
given and return new values, so the UI can call them on every change to
the time window without touching persisted state. Lookups of lots and
services by id go through ``quote_booking`` / ``resolve_services``, which
propagate the collaborators' UnknownLotError / UnknownServiceError.

Usage:
    quote = quote_booking("lot-001", start, end, [ServiceSelection(service_id="svc-valet")])
    print(quote.total)
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

from parkspot.config import settings
from parkspot.errors import InvalidWindowError, NaiveTimestampError, ServiceUnavailableError
from parkspot.schemas.booking_schema import BookedService, Duration
from parkspot.schemas.lot_schema import HourlyRate, ParkingLot
from parkspot.schemas.pricing_schema import (
    ExtensionQuote,
    OvertimeCharge,
    PriceBreakdown,
    PriceQuote,
    ServiceSelection,
)
from parkspot.tools.lots import get_lot
from parkspot.tools.services import get_service
from parkspot.utils import round_currency

logger = logging.getLogger(__name__)

ONE_HOUR = timedelta(hours=1)
ONE_MINUTE = timedelta(minutes=1)


def require_aware(value: datetime, name: str) -> None:
    """Reject timestamps without a timezone offset.

    Raises:
        NaiveTimestampError: If the value is naive.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        raise NaiveTimestampError(
            f"{name} {value.isoformat()} must include a timezone offset."
        )


def validate_window(start: datetime, end: datetime) -> None:
    """Reject naive timestamps and windows whose end is not strictly after the start.

    Raises:
        NaiveTimestampError: If start or end has no timezone offset.
        InvalidWindowError: If end <= start.
    """
    require_aware(start, "Start time")
    require_aware(end, "End time")
    if end <= start:
        raise InvalidWindowError(
            f"End time {end.isoformat()} must be after start time {start.isoformat()}."
        )


def compute_duration(start: datetime, end: datetime) -> Duration:
    """Split the window into whole hours and leftover minutes."""
    validate_window(start, end)
    total_minutes = (end - start) // ONE_MINUTE
    return Duration(hours=total_minutes // 60, minutes=total_minutes % 60)


def _ceil_hours(elapsed: timedelta) -> int:
    return -(-elapsed // ONE_HOUR)


def billable_hours(start: datetime, end: datetime) -> int:
    """Elapsed hours rounded up, never below the configured minimum."""
    validate_window(start, end)
    return max(settings.pricing.min_billable_hours, _ceil_hours(end - start))


def is_night_hour(hour: int) -> bool:
    """True if the hour of day falls in the configured night window."""
    start = settings.pricing.night_start_hour
    end = settings.pricing.night_end_hour
    if start == end:
        return False
    if start > end:
        return hour >= start or hour < end
    return start <= hour < end


def select_hourly_rate(rate: HourlyRate, start: datetime) -> tuple[float, bool]:
    """Pick the rate by the start hour of day.

    Returns:
        (rate per hour, whether the night rate was applied)
    """
    if rate.night is not None and rate.night != rate.day and is_night_hour(start.hour):
        return rate.night, True
    return rate.day, False


def compute_price(
    lot: ParkingLot,
    start: datetime,
    end: datetime,
    services: Sequence[BookedService] = (),
    discount: float = 0.0,
) -> PriceQuote:
    """
    Price a time window at a lot plus a set of already-priced services.

    Discounts are taken off before tax. Tax is rounded half-up to the whole
    currency unit.

    Raises:
        InvalidWindowError: If end <= start.
        ValueError: If the discount is negative.
    """
    if discount < 0:
        raise ValueError(f"Discount cannot be negative, got {discount}")

    hours = billable_hours(start, end)
    rate, is_night = select_hourly_rate(lot.rate, start)

    parking_cost = round_currency(hours * rate, 2)
    services_cost = round_currency(sum(s.price * s.quantity for s in services), 2)
    subtotal = round_currency(max(0.0, parking_cost + services_cost - discount), 2)
    tax = round_currency(subtotal * settings.pricing.tax_rate)

    return PriceQuote(
        parking_cost=parking_cost,
        services_cost=services_cost,
        discount=discount,
        subtotal=subtotal,
        tax=tax,
        total=round_currency(subtotal + tax, 2),
        currency=lot.currency,
        breakdown=PriceBreakdown(hours=hours, rate_per_hour=rate, is_night_rate=is_night),
    )


def resolve_services(
    lot: ParkingLot, selections: Sequence[ServiceSelection]
) -> list[BookedService]:
    """Snapshot name and lot-specific price for each selected service.

    Raises:
        UnknownServiceError: If a service id is not in the catalog.
        ServiceUnavailableError: If a service is not offered at the lot.
    """
    booked = []
    for selection in selections:
        service = get_service(selection.service_id)
        if not service.is_available_at(lot.id):
            raise ServiceUnavailableError(service.id, lot.id)
        booked.append(
            BookedService(
                service_id=service.id,
                name=service.name,
                price=service.price_at(lot.id),
                quantity=selection.quantity,
            )
        )
    return booked


def quote_booking(
    lot_id: str,
    start: datetime,
    end: datetime,
    selections: Sequence[ServiceSelection] = (),
    discount: float = 0.0,
) -> PriceQuote:
    """Resolve the lot and services by id and price the window.

    The window is validated before any lookup happens.
    """
    validate_window(start, end)
    lot = get_lot(lot_id)
    services = resolve_services(lot, selections)
    quote = compute_price(lot, start, end, services, discount)
    logger.debug(
        "Quoted %s for lot %s: %d h at %s/h, total %s",
        start.isoformat(), lot_id, quote.breakdown.hours,
        quote.breakdown.rate_per_hour, quote.total,
    )
    return quote


def compute_extension_cost(
    lot: ParkingLot, extension_start: datetime, additional_hours: int
) -> ExtensionQuote:
    """Price pushing a booking's end time out by whole hours."""
    if additional_hours < 1:
        raise ValueError(f"additional_hours must be >= 1, got {additional_hours}")
    rate, _ = select_hourly_rate(lot.rate, extension_start)
    additional_cost = round_currency(additional_hours * rate, 2)
    tax = round_currency(additional_cost * settings.pricing.tax_rate)
    return ExtensionQuote(
        additional_hours=additional_hours,
        rate_per_hour=rate,
        additional_cost=additional_cost,
        tax=tax,
        total=round_currency(additional_cost + tax, 2),
    )


def compute_overtime(lot: ParkingLot, booked_end: datetime, exit_time: datetime) -> OvertimeCharge:
    """Charge whole hours past the booked end at the rate in force at the end time."""
    require_aware(exit_time, "Exit time")
    if exit_time <= booked_end:
        return OvertimeCharge(overtime_hours=0, charge=0.0, tax=0.0, total=0.0)
    hours = _ceil_hours(exit_time - booked_end)
    rate, _ = select_hourly_rate(lot.rate, booked_end)
    charge = round_currency(hours * rate, 2)
    tax = round_currency(charge * settings.pricing.tax_rate)
    return OvertimeCharge(
        overtime_hours=hours,
        charge=charge,
        tax=tax,
        total=round_currency(charge + tax, 2),
    )
