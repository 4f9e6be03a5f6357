"""Integration tests: pricing + payment + lifecycle + lot inventory together."""

from datetime import timedelta

import pytest

from parkspot.pricing.refund import calculate_refund
from parkspot.realtime import hub
from parkspot.schemas.booking_schema import BookingStatus, PaymentMethod, PaymentStatus
from parkspot.schemas.pricing_schema import ServiceSelection
from parkspot.tools import booking, lots, payments
from parkspot.tools.lots import search_lots
from tests.conftest import NOW


class TestFullBookingFlow:
    """A driver finds a lot, books, pays, parks, overstays and leaves."""

    def test_happy_path_integration(self):
        # Find a lot in the city
        found = search_lots(city="new delhi", available_only=True)
        assert [lot.id for lot in found] == ["lot-002", "lot-001"]

        # Night-time preview at the lot with a night rate
        start = NOW.replace(hour=22) + timedelta(days=2)
        end = start + timedelta(hours=3)
        preview = booking.quote_price(
            "lot-002", start, end, [ServiceSelection(service_id="svc-wash-basic")]
        )
        assert preview["quote"].breakdown.is_night_rate
        assert preview["quote"].parking_cost == 60
        assert preview["quote"].services_cost == 120

        # Book it
        status_updates = []
        created = booking.create_booking(
            user_id="user-002",
            lot_id="lot-002",
            vehicle={"type": "car", "license_plate": "ka-05-mn-4321"},
            start=start,
            end=end,
            payment_method=PaymentMethod.UPI,
            services=[ServiceSelection(service_id="svc-wash-basic")],
            now=NOW,
        )
        b = created["booking"]
        assert b.pricing.total_amount == preview["quote"].total
        hub.subscribe(f"booking-{b.id}", lambda e: status_updates.append(e.payload["status"]))

        # Pay
        order = booking.start_payment(b.id)["order"]
        booking.confirm_payment(
            b.id, "pay_flow", payments.sign(order["order_id"], "pay_flow"), now=NOW
        )

        # Park, then leave 90 minutes late
        booking.record_entry(b.id, gate="North", now=start)
        exit_result = booking.record_exit(b.id, gate="North", now=end + timedelta(minutes=90))

        # 2 h overtime at the rate in force at the booked end (01:00, night)
        assert exit_result["additional_cost"] == 47  # 40 + 7.2 tax
        assert b.status == BookingStatus.COMPLETED
        assert status_updates == ["confirmed", "active", "completed"]
        assert lots.get_lot("lot-002").capacity.available == 45

        # Rate the stay
        assert booking.rate_booking(b.id, "user-002", 4)["success"]


class TestCancellationFlow:
    @pytest.mark.parametrize(
        "starts_in, expected_ratio",
        [(timedelta(days=3), 1.0), (timedelta(hours=6), 0.5)],
    )
    def test_cancel_refunds_per_policy(self, starts_in, expected_ratio):
        start = NOW + starts_in
        b = booking.create_booking(
            user_id="user-001",
            lot_id="lot-003",
            vehicle={"type": "bicycle", "license_plate": "CYCLE-7"},
            start=start,
            end=start + timedelta(hours=4),
            payment_method=PaymentMethod.WALLET,
            now=NOW,
        )["booking"]
        order = booking.start_payment(b.id)["order"]
        booking.confirm_payment(b.id, "pay_c", payments.sign(order["order_id"], "pay_c"), now=NOW)

        expected = calculate_refund(b, NOW)
        assert expected == pytest.approx(b.pricing.total_amount * expected_ratio)

        result = booking.cancel_booking(b.id, "user-001", now=NOW)
        assert result["refund_amount"] == pytest.approx(expected)
        assert b.payment.status == PaymentStatus.REFUNDED
        assert lots.get_lot("lot-003").capacity.available == 80

    def test_cancelled_booking_cannot_change_again(self):
        start = NOW + timedelta(days=2)
        b = booking.create_booking(
            user_id="user-001",
            lot_id="lot-001",
            vehicle={"type": "car", "license_plate": "DL8CAF5031"},
            start=start,
            end=start + timedelta(hours=1),
            payment_method=PaymentMethod.CASH,
            now=NOW,
        )["booking"]
        booking.cancel_booking(b.id, "user-001", now=NOW)
        result = booking.update_status(b.id, BookingStatus.CONFIRMED, "user-admin", now=NOW)
        assert result["error"] == "invalid_transition"
        assert booking.cancel_booking(b.id, "user-001", now=NOW)["error"] == "not_cancellable"
        assert lots.get_lot("lot-001").capacity.available == 35
