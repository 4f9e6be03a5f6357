"""Tests for duration, hourly rate and price calculation."""

from datetime import datetime, timedelta, timezone

import pytest

from parkspot.errors import (
    InvalidWindowError,
    NaiveTimestampError,
    ServiceUnavailableError,
    UnknownLotError,
    UnknownServiceError,
)
from parkspot.pricing.calculator import (
    billable_hours,
    compute_duration,
    compute_extension_cost,
    compute_overtime,
    compute_price,
    is_night_hour,
    quote_booking,
    resolve_services,
    select_hourly_rate,
)
from parkspot.schemas.booking_schema import BookedService
from parkspot.schemas.lot_schema import HourlyRate
from parkspot.schemas.pricing_schema import ServiceSelection
from tests.conftest import NOW, make_lot


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 15, hour, minute, tzinfo=timezone.utc)


class TestDuration:
    def test_hours_and_minutes(self):
        d = compute_duration(at(10), at(12, 15))
        assert (d.hours, d.minutes) == (2, 15)

    def test_ninety_minutes(self):
        d = compute_duration(at(10), at(11, 30))
        assert (d.hours, d.minutes) == (1, 30)

    def test_partial_minute_truncated(self):
        d = compute_duration(at(10), at(10) + timedelta(minutes=59, seconds=59))
        assert (d.hours, d.minutes) == (0, 59)

    def test_end_equal_to_start_rejected(self):
        with pytest.raises(InvalidWindowError):
            compute_duration(at(10), at(10))

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidWindowError):
            compute_duration(at(12), at(10))

    def test_naive_start_rejected(self):
        with pytest.raises(NaiveTimestampError, match="Start time"):
            compute_duration(at(10).replace(tzinfo=None), at(12))

    def test_naive_end_is_a_window_error(self):
        with pytest.raises(InvalidWindowError) as info:
            compute_duration(at(10), at(12).replace(tzinfo=None))
        assert info.value.kind == "naive_timestamp"


class TestBillableHours:
    def test_short_stay_billed_as_one_hour(self):
        assert billable_hours(at(10), at(10, 20)) == 1

    def test_exact_hours(self):
        assert billable_hours(at(10), at(12)) == 2

    def test_one_second_over_rounds_up(self):
        assert billable_hours(at(10), at(12) + timedelta(seconds=1)) == 3

    def test_rounded_up_hours_at_least_elapsed(self):
        start = at(9)
        for minutes in (1, 59, 60, 61, 119, 120, 121, 600):
            end = start + timedelta(minutes=minutes)
            assert billable_hours(start, end) >= (end - start) / timedelta(hours=1)


class TestNightRate:
    @pytest.mark.parametrize("hour", [22, 23, 0, 3, 5])
    def test_night_hours(self, hour):
        assert is_night_hour(hour)

    @pytest.mark.parametrize("hour", [6, 9, 12, 21])
    def test_day_hours(self, hour):
        assert not is_night_hour(hour)

    def test_night_rate_applied_at_night(self):
        rate, is_night = select_hourly_rate(HourlyRate(day=30, night=20), at(23))
        assert (rate, is_night) == (20, True)

    def test_day_rate_applied_during_day(self):
        rate, is_night = select_hourly_rate(HourlyRate(day=30, night=20), at(21, 59))
        assert (rate, is_night) == (30, False)

    def test_no_night_rate_falls_back_to_day(self):
        rate, is_night = select_hourly_rate(HourlyRate(day=40), at(23))
        assert (rate, is_night) == (40, False)

    def test_equal_night_rate_not_flagged(self):
        rate, is_night = select_hourly_rate(HourlyRate(day=40, night=40), at(2))
        assert (rate, is_night) == (40, False)

    def test_rate_chosen_by_start_hour(self):
        quote = compute_price(make_lot(day=30, night=20), at(21), at(23))
        assert quote.breakdown.rate_per_hour == 30
        assert quote.parking_cost == 60


class TestComputePrice:
    def test_parking_only(self):
        quote = compute_price(make_lot(day=40), at(10), at(12))
        assert quote.parking_cost == 80
        assert quote.services_cost == 0
        assert quote.subtotal == 80
        assert quote.tax == 14  # 14.4 rounded half-up to the unit
        assert quote.total == 94

    def test_with_services(self):
        services = [
            BookedService(service_id="svc-a", name="A", price=100),
            BookedService(service_id="svc-b", name="B", price=50, quantity=2),
        ]
        quote = compute_price(make_lot(day=40), at(10), at(12, 15), services)
        assert quote.parking_cost == 120
        assert quote.services_cost == 200
        assert quote.subtotal == 320
        assert quote.tax == 58  # 57.6
        assert quote.total == 378

    def test_tax_rounds_half_up(self):
        quote = compute_price(make_lot(day=25), at(10), at(11))
        assert quote.tax == 5  # 4.5
        assert quote.total == 30

    def test_discount_taken_before_tax(self):
        services = [BookedService(service_id="svc-a", name="A", price=100)]
        quote = compute_price(make_lot(day=40), at(10), at(12), services, discount=30)
        assert quote.subtotal == 150
        assert quote.tax == 27
        assert quote.total == 177

    def test_discount_cannot_push_subtotal_negative(self):
        quote = compute_price(make_lot(day=40), at(10), at(11), discount=500)
        assert quote.subtotal == 0
        assert quote.tax == 0
        assert quote.total == 0

    def test_negative_discount_rejected(self):
        with pytest.raises(ValueError):
            compute_price(make_lot(day=40), at(10), at(11), discount=-1)

    def test_total_is_subtotal_plus_tax(self):
        lot = make_lot(day=37.5, night=22)
        for start_hour in (0, 5, 6, 13, 22):
            for minutes in (15, 61, 180, 421):
                start = at(start_hour)
                quote = compute_price(lot, start, start + timedelta(minutes=minutes))
                assert quote.total == pytest.approx(quote.subtotal + quote.tax)
                assert quote.parking_cost == pytest.approx(
                    quote.breakdown.hours * quote.breakdown.rate_per_hour
                )

    def test_currency_from_lot(self):
        lot = make_lot().model_copy(update={"currency": "USD"})
        assert compute_price(lot, at(10), at(11)).currency == "USD"

    def test_deterministic(self):
        lot = make_lot(day=30, night=20)
        first = compute_price(lot, at(22, 30), at(23, 45))
        second = compute_price(lot, at(22, 30), at(23, 45))
        assert first == second

    def test_invalid_window(self):
        with pytest.raises(InvalidWindowError):
            compute_price(make_lot(), at(12), at(10))


class TestResolveServices:
    def test_custom_lot_price_used(self):
        booked = resolve_services(
            make_lot(lot_id="lot-002"), [ServiceSelection(service_id="svc-wash-basic")]
        )
        assert booked[0].price == 120
        assert booked[0].name == "Basic Car Wash"

    def test_base_price_used_without_custom_price(self):
        booked = resolve_services(
            make_lot(lot_id="lot-001"),
            [ServiceSelection(service_id="svc-wash-basic", quantity=2)],
        )
        assert booked[0].price == 150
        assert booked[0].quantity == 2

    def test_unknown_service(self):
        with pytest.raises(UnknownServiceError):
            resolve_services(make_lot(lot_id="lot-001"), [ServiceSelection(service_id="svc-nope")])

    def test_service_not_offered_at_lot(self):
        with pytest.raises(ServiceUnavailableError):
            resolve_services(
                make_lot(lot_id="lot-001"), [ServiceSelection(service_id="svc-ev-charge")]
            )

    def test_inactive_lot_offer(self):
        with pytest.raises(ServiceUnavailableError):
            resolve_services(
                make_lot(lot_id="lot-003"), [ServiceSelection(service_id="svc-ev-charge")]
            )

    def test_inactive_service(self):
        with pytest.raises(ServiceUnavailableError):
            resolve_services(
                make_lot(lot_id="lot-001"), [ServiceSelection(service_id="svc-tyre-check")]
            )


class TestQuoteBooking:
    def test_seeded_lot_with_valet(self):
        quote = quote_booking(
            "lot-001", at(10), at(12, 15), [ServiceSelection(service_id="svc-valet")]
        )
        assert quote.parking_cost == 120
        assert quote.services_cost == 100
        assert quote.tax == 40  # 39.6
        assert quote.total == 260
        assert quote.currency == "INR"

    def test_unknown_lot(self):
        with pytest.raises(UnknownLotError, match="lot-999"):
            quote_booking("lot-999", at(10), at(11))

    def test_window_checked_before_lookup(self):
        with pytest.raises(InvalidWindowError):
            quote_booking("lot-999", at(11), at(10))

    def test_naive_window_rejected(self):
        with pytest.raises(NaiveTimestampError):
            quote_booking("lot-001", datetime(2026, 3, 15, 10), datetime(2026, 3, 15, 12))

    def test_offset_timestamps_accepted(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        start = datetime(2026, 3, 15, 15, 30, tzinfo=ist)
        quote = quote_booking("lot-001", start, start + timedelta(hours=1))
        assert quote.parking_cost == 40

    def test_night_rate_at_seeded_lot(self):
        quote = quote_booking("lot-002", at(22), at(23))
        assert quote.breakdown.is_night_rate
        assert quote.parking_cost == 20


class TestExtensionAndOvertime:
    def test_extension_cost(self):
        ext = compute_extension_cost(make_lot(day=40), NOW, 2)
        assert ext.additional_cost == 80
        assert ext.tax == 14
        assert ext.total == 94

    def test_extension_uses_rate_at_current_end(self):
        ext = compute_extension_cost(make_lot(day=30, night=20), at(22), 1)
        assert ext.rate_per_hour == 20

    def test_extension_requires_whole_hours(self):
        with pytest.raises(ValueError):
            compute_extension_cost(make_lot(), NOW, 0)

    def test_overtime_rounds_up_to_hours(self):
        charge = compute_overtime(make_lot(day=40), at(12), at(12, 40))
        assert charge.overtime_hours == 1
        assert charge.charge == 40
        assert charge.tax == 7  # 7.2
        assert charge.total == 47

    def test_no_overtime_on_time(self):
        charge = compute_overtime(make_lot(day=40), at(12), at(11, 50))
        assert charge.overtime_hours == 0
        assert charge.total == 0

    def test_naive_exit_rejected(self):
        with pytest.raises(NaiveTimestampError, match="Exit time"):
            compute_overtime(make_lot(), at(12), at(13).replace(tzinfo=None))
