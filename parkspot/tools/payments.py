"""
Mock payment processor.

In production, this would call the payment gateway's order, capture and
refund APIs over HTTP. The stand-in keeps the same shape: orders are
created in minor currency units, captures are verified with an
HMAC-SHA256 signature over ``order_id|payment_id``, and refunds record an
amount computed by the refund policy.
"""

import hashlib
import hmac
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, TypedDict

from parkspot.config import settings
from parkspot.schemas.booking_schema import Booking, PaymentStatus

logger = logging.getLogger(__name__)


class OrderRecord(TypedDict):
    """Gateway order created for a booking."""

    order_id: str
    amount: int
    currency: str
    receipt: str
    status: str


class PaymentResult(TypedDict, total=False):
    """Result from capture_payment or refund_payment."""

    success: bool
    message: str
    transaction_id: str
    amount: float


_orders: dict[str, OrderRecord] = {}


def _to_minor_units(amount: float) -> int:
    return round(amount * settings.payment.minor_units_per_major)


def sign(order_id: str, payment_id: str) -> str:
    """Signature the gateway attaches to a successful payment."""
    body = f"{order_id}|{payment_id}".encode()
    secret = settings.payment.gateway_key_secret.encode()
    return hmac.new(secret, body, hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str) -> bool:
    """Check a payment signature in constant time."""
    return hmac.compare_digest(sign(order_id, payment_id), signature)


def create_order(booking: Booking) -> OrderRecord:
    """Open a gateway order for the booking's total and link it to the booking."""
    order: OrderRecord = {
        "order_id": f"order_{uuid.uuid4().hex[:14]}",
        "amount": _to_minor_units(booking.pricing.total_amount),
        "currency": booking.pricing.currency,
        "receipt": f"receipt_{booking.reference}",
        "status": "created",
    }
    _orders[order["order_id"]] = order
    booking.payment.order_id = order["order_id"]
    logger.info("Order %s created for booking %s", order["order_id"], booking.reference)
    return order


def get_order(order_id: str) -> Optional[OrderRecord]:
    return _orders.get(order_id)


def capture_payment(
    booking: Booking,
    payment_id: str,
    signature: str,
    now: Optional[datetime] = None,
) -> PaymentResult:
    """Verify and capture a payment against the booking's open order."""
    order_id = booking.payment.order_id
    if not order_id or order_id not in _orders:
        return {"success": False, "message": "No open payment order for this booking."}

    if not verify_signature(order_id, payment_id, signature):
        booking.payment.status = PaymentStatus.FAILED
        logger.warning("Signature mismatch for order %s", order_id)
        return {"success": False, "message": "Payment verification failed."}

    now = now or datetime.now(timezone.utc)
    transaction_id = f"txn_{uuid.uuid4().hex[:12]}"
    booking.payment.payment_id = payment_id
    booking.payment.transaction_id = transaction_id
    booking.payment.status = PaymentStatus.COMPLETED
    booking.payment.paid_at = now
    _orders[order_id]["status"] = "paid"
    logger.info("Payment captured: %s for %s", transaction_id, booking.reference)
    return {
        "success": True,
        "message": "Payment captured.",
        "transaction_id": transaction_id,
        "amount": booking.pricing.total_amount,
    }


def refund_payment(
    booking: Booking, amount: float, now: Optional[datetime] = None
) -> PaymentResult:
    """Refund part or all of a completed payment."""
    if booking.payment.status != PaymentStatus.COMPLETED:
        return {"success": False, "message": "Only completed payments can be refunded."}
    if amount <= 0:
        return {"success": False, "message": "Nothing to refund.", "amount": 0.0}

    amount = min(amount, booking.pricing.total_amount)
    now = now or datetime.now(timezone.utc)
    refund_id = f"rfnd_{uuid.uuid4().hex[:12]}"
    booking.payment.status = PaymentStatus.REFUNDED
    booking.payment.refund_amount = amount
    booking.payment.refunded_at = now
    logger.info("Refunded %s %s for %s (%s)", amount, booking.pricing.currency,
                booking.reference, refund_id)
    return {
        "success": True,
        "message": f"Refund of {amount} {booking.pricing.currency} issued.",
        "transaction_id": refund_id,
        "amount": amount,
    }


def reset() -> None:
    """Clear all orders. Used by test fixtures for isolation."""
    _orders.clear()
