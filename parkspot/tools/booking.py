"""
Mock booking store and booking operations.

In production, this would persist to the bookings collection of the
document database. Every operation here returns a BookingResult dict:
failures raised by the pricing, refund and lifecycle core are caught and
turned into ``success=False`` with a machine-readable ``error`` kind and a
user-facing ``message``.

There is no slot-level conflict check: two bookings for the same spot and
window are both accepted as long as the lot has capacity.
"""

import functools
import time
import uuid
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, TypedDict, Union

from pydantic import ValidationError

from parkspot.config import settings
from parkspot.errors import BookingError
from parkspot.lifecycle.state_machine import (
    TERMINAL_STATES,
    BookingEvent,
    BookingStateMachine,
    event_for,
)
from parkspot.logging_context import get_request_logger, request_scope
from parkspot.pricing.calculator import (
    compute_duration,
    compute_extension_cost,
    compute_overtime,
    compute_price,
    quote_booking,
    require_aware,
    resolve_services,
    validate_window,
)
from parkspot.pricing.refund import calculate_refund, can_be_cancelled
from parkspot.realtime import hub
from parkspot.schemas.booking_schema import (
    Booking,
    BookingDetails,
    BookingStatus,
    Cancellation,
    Duration,
    EntryLog,
    ExitLog,
    Notification,
    NotificationChannel,
    NotificationType,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Pricing,
    Rating,
    Vehicle,
)
from parkspot.schemas.pricing_schema import PriceQuote, ServiceSelection
from parkspot.tools import payments
from parkspot.tools.lots import NoCapacityError, get_lot, release_spot, reserve_spot
from parkspot.tools.users import is_admin, record_booking_spend
from parkspot.utils import round_currency

logger = get_request_logger(__name__)


class Pagination(TypedDict):
    current: int
    total: int
    total_bookings: int


class BookingResult(TypedDict, total=False):
    """Result from any booking operation."""

    success: bool
    message: str
    error: str
    booking: Booking
    bookings: list[Booking]
    pagination: Pagination
    quote: PriceQuote
    order: payments.OrderRecord
    refund_amount: float
    additional_cost: float
    notification: Notification


_bookings: dict[str, Booking] = {}

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    digits = ""
    while value:
        value, rem = divmod(value, 36)
        digits = _BASE36[rem] + digits
    return digits or "0"


def generate_reference() -> str:
    """Human-facing booking reference, e.g. PBLXK3Q2M1A9F3C2."""
    stamp = _base36(time.time_ns() // 1_000_000)
    return f"PB{stamp}{uuid.uuid4().hex[:6]}".upper()


def _now(now: Optional[datetime]) -> datetime:
    """Current time in UTC, or the caller's timestamp if it carries an offset.

    Raises:
        NaiveTimestampError: If ``now`` is naive.
    """
    if now is None:
        return datetime.now(timezone.utc)
    require_aware(now, "Current time")
    return now


def _fail(error: BookingError) -> BookingResult:
    logger.warning("Booking operation rejected (%s): %s", error.kind, error)
    return {"success": False, "error": error.kind, "message": str(error)}


def _operation(func: Callable[..., BookingResult]) -> Callable[..., BookingResult]:
    """Run a booking operation under one request ID, turning core failures into results."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> BookingResult:
        with request_scope():
            try:
                return func(*args, **kwargs)
            except BookingError as exc:
                return _fail(exc)

    return wrapper


def _reject(kind: str, message: str) -> BookingResult:
    logger.warning("Booking operation rejected (%s): %s", kind, message)
    return {"success": False, "error": kind, "message": message}


def _not_found(booking_id: str) -> BookingResult:
    return _reject("not_found", f"Booking {booking_id} not found.")


def _reason_too_long(reason: Optional[str]) -> bool:
    return reason is not None and len(reason) > settings.booking.max_reason_length


def _can_manage(booking: Booking, actor_id: str) -> bool:
    """Booking owner, the lot's landlord, or an admin."""
    if booking.user_id == actor_id or is_admin(actor_id):
        return True
    return get_lot(booking.lot_id).owner_id == actor_id


def _apply_event(booking: Booking, event: BookingEvent, now: datetime) -> BookingStatus:
    """Run the event through the lifecycle and free the spot on terminal states.

    Raises:
        InvalidTransitionError: If the event is not valid from the current status.
    """
    machine = BookingStateMachine(initial=booking.status)
    booking.status = machine.transition(event)
    booking.updated_at = now
    if booking.status in TERMINAL_STATES:
        release_spot(booking.lot_id)
    hub.publish(
        f"booking-{booking.id}",
        "status-update",
        {"booking_id": booking.id, "status": booking.status.value, "timestamp": now.isoformat()},
    )
    return booking.status


# ---------------------------------------------------------------------- #
# Quote and create
# ---------------------------------------------------------------------- #

@_operation
def quote_price(
    lot_id: str,
    start: datetime,
    end: datetime,
    services: Sequence[ServiceSelection] = (),
    discount: float = 0.0,
) -> BookingResult:
    """Live price preview; never touches stored state."""
    quote = quote_booking(lot_id, start, end, services, discount)
    return {"success": True, "message": f"Total {quote.total} {quote.currency}.", "quote": quote}


@_operation
def create_booking(
    user_id: str,
    lot_id: str,
    vehicle: Union[Vehicle, dict[str, Any]],
    start: datetime,
    end: datetime,
    payment_method: PaymentMethod,
    services: Sequence[ServiceSelection] = (),
    spot_number: Optional[str] = None,
    floor: Optional[str] = None,
    discount: float = 0.0,
    now: Optional[datetime] = None,
) -> BookingResult:
    """Validate the request, price it, reserve a spot and store a pending booking."""
    now = _now(now)
    try:
        if not isinstance(vehicle, Vehicle):
            vehicle = Vehicle.model_validate(vehicle)
    except ValidationError as exc:
        return _reject("validation_error", f"Invalid vehicle: {exc.errors()[0]['msg']}")
    try:
        payment = Payment(method=payment_method)
    except ValidationError:
        return _reject("validation_error", f"Invalid payment method: {payment_method}.")

    validate_window(start, end)
    if start < now:
        return _reject("start_in_past", "Start time cannot be in the past.")

    lot = get_lot(lot_id)
    if lot.capacity.available <= 0:
        raise NoCapacityError(lot_id)
    if not lot.supports(vehicle.type):
        return _reject(
            "unsupported_vehicle",
            f"Vehicle type {vehicle.type.value} not supported at this location.",
        )

    booked_services = resolve_services(lot, services)
    quote = compute_price(lot, start, end, booked_services, discount)
    duration = compute_duration(start, end)
    # Reserve last: nothing below rejects the booking.
    reserve_spot(lot_id)

    booking = Booking(
        id=uuid.uuid4().hex,
        reference=generate_reference(),
        user_id=user_id,
        lot_id=lot_id,
        vehicle=vehicle,
        details=BookingDetails(
            start_time=start,
            end_time=end,
            duration=duration,
            spot_number=spot_number,
            floor=floor,
        ),
        pricing=Pricing(
            base_price=quote.parking_cost,
            service_fees=quote.services_cost,
            taxes=quote.tax,
            discounts=discount,
            total_amount=quote.total,
            currency=quote.currency,
        ),
        services=booked_services,
        payment=payment,
        created_at=now,
        updated_at=now,
    )
    _bookings[booking.id] = booking
    record_booking_spend(user_id, quote.total)

    hub.publish(
        f"lot-{lot_id}",
        "booking-created",
        {"lot_id": lot_id, "available_spots": lot.capacity.available},
    )
    logger.info(
        "Booking created: %s for %s at %s from %s to %s",
        booking.reference, user_id, lot_id, start.isoformat(), end.isoformat(),
    )
    return {
        "success": True,
        "message": f"Booking created. Reference number: {booking.reference}.",
        "booking": booking,
    }


# ---------------------------------------------------------------------- #
# Lookup
# ---------------------------------------------------------------------- #

def get_booking(booking_id: str) -> Optional[Booking]:
    """Retrieve a booking by id."""
    return _bookings.get(booking_id)


@_operation
def list_bookings(
    user_id: str,
    status: Optional[BookingStatus] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> BookingResult:
    """A user's bookings, newest first, one page at a time."""
    limit = limit or settings.booking.default_page_size
    if page < 1:
        return _reject("validation_error", "page must be >= 1.")
    if not 1 <= limit <= settings.booking.max_page_size:
        return _reject(
            "validation_error",
            f"limit must be between 1 and {settings.booking.max_page_size}.",
        )

    matching = [
        b for b in _bookings.values()
        if b.user_id == user_id and (status is None or b.status == status)
    ]
    matching.sort(key=lambda b: b.created_at or datetime.min.replace(tzinfo=timezone.utc),
                  reverse=True)
    offset = (page - 1) * limit
    total_pages = -(-len(matching) // limit)
    return {
        "success": True,
        "message": f"{len(matching)} bookings found.",
        "bookings": matching[offset:offset + limit],
        "pagination": {"current": page, "total": total_pages, "total_bookings": len(matching)},
    }


# ---------------------------------------------------------------------- #
# Payment
# ---------------------------------------------------------------------- #

@_operation
def start_payment(booking_id: str) -> BookingResult:
    """Open a gateway order for a pending booking."""
    booking = _bookings.get(booking_id)
    if booking is None:
        return _not_found(booking_id)
    if booking.status != BookingStatus.PENDING:
        return _reject("invalid_state", f"Booking {booking.reference} is not awaiting payment.")
    order = payments.create_order(booking)
    return {"success": True, "message": "Payment order created.", "order": order, "booking": booking}


@_operation
def confirm_payment(
    booking_id: str,
    payment_id: str,
    signature: str,
    now: Optional[datetime] = None,
) -> BookingResult:
    """Capture the payment and move the booking from pending to confirmed."""
    now = _now(now)
    booking = _bookings.get(booking_id)
    if booking is None:
        return _not_found(booking_id)

    machine = BookingStateMachine(initial=booking.status)
    if not machine.can_transition(BookingEvent.CONFIRM):
        return _reject("invalid_transition", f"Booking {booking.reference} cannot be confirmed.")

    captured = payments.capture_payment(booking, payment_id, signature, now)
    if not captured["success"]:
        return _reject("payment_failed", captured["message"])

    _apply_event(booking, BookingEvent.CONFIRM, now)
    booking.notifications.append(Notification(
        type=NotificationType.BOOKING_CONFIRMED,
        message=f"Booking {booking.reference} confirmed.",
        sent_at=now,
        channel=NotificationChannel.EMAIL,
    ))
    logger.info("Booking confirmed: %s (%s)", booking.reference, captured["transaction_id"])
    return {"success": True, "message": f"Booking {booking.reference} confirmed.", "booking": booking}


# ---------------------------------------------------------------------- #
# Status changes
# ---------------------------------------------------------------------- #

def _cancel(
    booking: Booking, actor_id: str, reason: Optional[str], now: datetime
) -> float:
    refund_amount = round_currency(calculate_refund(booking, now), 2)
    _apply_event(booking, BookingEvent.CANCEL, now)
    booking.cancellation = Cancellation(
        reason=reason or "Cancelled by user",
        cancelled_at=now,
        cancelled_by=actor_id,
        refund_eligible=refund_amount > 0,
        refund_amount=refund_amount,
    )
    if refund_amount > 0 and booking.payment.status == PaymentStatus.COMPLETED:
        payments.refund_payment(booking, refund_amount, now)

    hub.publish(
        f"lot-{booking.lot_id}",
        "booking-cancelled",
        {"lot_id": booking.lot_id, "booking_id": booking.id},
    )
    logger.info("Booking cancelled: %s (refund %s)", booking.reference, refund_amount)
    return refund_amount


@_operation
def cancel_booking(
    booking_id: str,
    user_id: str,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BookingResult:
    """Owner-initiated cancellation with the refund policy applied."""
    now = _now(now)
    booking = _bookings.get(booking_id)
    if booking is None:
        return _not_found(booking_id)
    if booking.user_id != user_id:
        return _reject("forbidden", "Not authorized to cancel this booking.")
    if _reason_too_long(reason):
        return _reject("validation_error", "Reason too long.")
    if not can_be_cancelled(booking, now):
        return _reject("not_cancellable", "Booking cannot be cancelled at this time.")

    refund_amount = _cancel(booking, user_id, reason, now)
    return {
        "success": True,
        "message": f"Booking {booking.reference} has been cancelled.",
        "booking": booking,
        "refund_amount": refund_amount,
    }


@_operation
def record_entry(
    booking_id: str,
    gate: Optional[str] = None,
    verified_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BookingResult:
    """Check a confirmed booking in at the gate."""
    now = _now(now)
    booking = _bookings.get(booking_id)
    if booking is None:
        return _not_found(booking_id)
    _apply_event(booking, BookingEvent.CHECK_IN, now)
    booking.entry_log = EntryLog(time=now, gate=gate, verified_by=verified_by)
    logger.info("Entry recorded: %s at gate %s", booking.reference, gate)
    return {"success": True, "message": f"Welcome. Booking {booking.reference} is active.",
            "booking": booking}


@_operation
def record_exit(
    booking_id: str,
    gate: Optional[str] = None,
    verified_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BookingResult:
    """Check an active booking out, charging whole hours of overtime."""
    now = _now(now)
    booking = _bookings.get(booking_id)
    if booking is None:
        return _not_found(booking_id)

    machine = BookingStateMachine(initial=booking.status)
    if not machine.can_transition(BookingEvent.CHECK_OUT):
        return _reject(
            "invalid_transition",
            f"Booking {booking.reference} cannot be checked out from '{booking.status.value}'.",
        )

    entered_at = booking.entry_log.time if booking.entry_log else booking.details.start_time
    actual = compute_duration(entered_at, now) if now > entered_at else Duration()
    overtime = compute_overtime(get_lot(booking.lot_id), booking.details.end_time, now)

    _apply_event(booking, BookingEvent.CHECK_OUT, now)

    if overtime.total > 0:
        booking.pricing.base_price = round_currency(booking.pricing.base_price + overtime.charge, 2)
        booking.pricing.taxes = round_currency(booking.pricing.taxes + overtime.tax, 2)
        booking.pricing.total_amount = round_currency(
            booking.pricing.total_amount + overtime.total, 2
        )
    booking.exit_log = ExitLog(
        time=now,
        gate=gate,
        verified_by=verified_by,
        actual_duration=actual,
        overtime_charges=overtime.total,
    )
    logger.info("Exit recorded: %s (overtime %s)", booking.reference, overtime.total)
    return {"success": True, "message": f"Booking {booking.reference} completed.",
            "booking": booking, "additional_cost": overtime.total}


@_operation
def update_status(
    booking_id: str,
    status: BookingStatus,
    actor_id: str,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BookingResult:
    """Move a booking to a new status, enforcing the lifecycle and permissions."""
    now = _now(now)
    booking = _bookings.get(booking_id)
    if booking is None:
        return _not_found(booking_id)
    if not _can_manage(booking, actor_id):
        return _reject("forbidden", "Not authorized to update this booking.")
    if _reason_too_long(reason):
        return _reject("validation_error", "Reason too long.")

    event = event_for(booking.status, status)

    if event == BookingEvent.EXTEND:
        return _reject("extension_required", "Use extend_booking to extend a booking.")
    if event == BookingEvent.CHECK_IN:
        return record_entry(booking_id, verified_by=actor_id, now=now)
    if event == BookingEvent.CHECK_OUT:
        return record_exit(booking_id, verified_by=actor_id, now=now)

    if event == BookingEvent.CANCEL:
        refund_amount = _cancel(booking, actor_id, reason, now)
        return {"success": True, "message": f"Booking {status.value} successfully.",
                "booking": booking, "refund_amount": refund_amount}
    _apply_event(booking, event, now)
    return {"success": True, "message": f"Booking {status.value} successfully.", "booking": booking}


@_operation
def extend_booking(
    booking_id: str,
    user_id: str,
    additional_hours: int,
    now: Optional[datetime] = None,
) -> BookingResult:
    """Push an active booking's end time out by whole hours and charge for them."""
    now = _now(now)
    booking = _bookings.get(booking_id)
    if booking is None:
        return _not_found(booking_id)
    if booking.user_id != user_id:
        return _reject("forbidden", "Not authorized to extend this booking.")

    cfg = settings.booking
    if not cfg.min_extension_hours <= additional_hours <= cfg.max_extension_hours:
        return _reject(
            "validation_error",
            f"Additional hours must be {cfg.min_extension_hours}-{cfg.max_extension_hours}.",
        )

    extension = compute_extension_cost(
        get_lot(booking.lot_id), booking.details.end_time, additional_hours
    )
    _apply_event(booking, BookingEvent.EXTEND, now)

    details = booking.details
    details.end_time = details.end_time + timedelta(hours=additional_hours)
    details.duration = compute_duration(details.start_time, details.end_time)

    pricing = booking.pricing
    pricing.base_price = round_currency(pricing.base_price + extension.additional_cost, 2)
    pricing.taxes = round_currency(pricing.taxes + extension.tax, 2)
    pricing.total_amount = round_currency(pricing.total_amount + extension.total, 2)

    logger.info(
        "Booking extended: %s by %d h to %s (+%s)",
        booking.reference, additional_hours, details.end_time.isoformat(), extension.total,
    )
    return {
        "success": True,
        "message": f"Booking extended until {details.end_time.isoformat()}.",
        "booking": booking,
        "additional_cost": extension.total,
    }


# ---------------------------------------------------------------------- #
# Rating and notifications
# ---------------------------------------------------------------------- #

@_operation
def rate_booking(
    booking_id: str,
    user_id: str,
    score: int,
    review: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BookingResult:
    """Attach a 1-5 rating to a completed booking."""
    booking = _bookings.get(booking_id)
    if booking is None:
        return _not_found(booking_id)
    if booking.user_id != user_id:
        return _reject("forbidden", "Not authorized to rate this booking.")
    if booking.status != BookingStatus.COMPLETED:
        return _reject("invalid_state", "Only completed bookings can be rated.")
    if booking.rating is not None:
        return _reject("already_rated", "This booking has already been rated.")
    try:
        booking.rating = Rating(score=score, review=review, review_date=_now(now))
    except ValidationError:
        return _reject("validation_error", "Score must be between 1 and 5.")
    return {"success": True, "message": "Thanks for your feedback.", "booking": booking}


@_operation
def add_notification(
    booking_id: str,
    notification_type: NotificationType,
    message: str,
    channel: NotificationChannel = NotificationChannel.IN_APP,
    now: Optional[datetime] = None,
) -> BookingResult:
    """Append a sent notification to the booking's log."""
    booking = _bookings.get(booking_id)
    if booking is None:
        return _not_found(booking_id)
    notification = Notification(
        type=notification_type, message=message, sent_at=_now(now), channel=channel
    )
    booking.notifications.append(notification)
    logger.debug("Notification %s sent for %s via %s",
                 notification_type.value, booking.reference, channel.value)
    return {"success": True, "message": "Notification recorded.", "notification": notification}


def reset() -> None:
    """Clear all bookings. Used by test fixtures for isolation."""
    _bookings.clear()
