"""
Cancellation eligibility and refund amount for a booking.

Both functions are advisory and side-effect free: they look at the
booking's status, start time and total, compared to ``now``. Issuing the
refund and changing the status is done by the booking and payment tools.
"""

from datetime import datetime

from parkspot.config import settings
from parkspot.pricing.calculator import ONE_HOUR, require_aware
from parkspot.schemas.booking_schema import Booking, BookingStatus

CANCELLABLE_STATES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)


def hours_until_start(booking: Booking, now: datetime) -> float:
    """Hours from now until the booking starts; negative once it has started."""
    require_aware(now, "Current time")
    return (booking.details.start_time - now) / ONE_HOUR


def can_be_cancelled(booking: Booking, now: datetime) -> bool:
    """True if the booking is pending/confirmed and starts more than the minimum notice away."""
    if booking.status not in CANCELLABLE_STATES:
        return False
    return hours_until_start(booking, now) > settings.cancellation.min_notice_hours


def calculate_refund(booking: Booking, now: datetime) -> float:
    """
    Refund owed if the booking were cancelled at ``now``.

    Full refund more than 24 hours ahead, half between the minimum notice
    and 24 hours, nothing otherwise. Never negative, never above the total.
    """
    if not can_be_cancelled(booking, now):
        return 0.0

    total = booking.pricing.total_amount
    hours = hours_until_start(booking, now)
    policy = settings.cancellation

    if hours > policy.full_refund_hours:
        refund = total
    elif hours > policy.min_notice_hours:
        refund = total * policy.partial_refund_ratio
    else:
        refund = 0.0

    return min(max(refund, 0.0), total)
