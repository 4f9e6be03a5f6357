"""
Offline console demo — runs booking scenarios end to end in the terminal.

Uses the real pricing, refund and lifecycle modules with the in-memory
lot, service, payment and booking stores. No database, no gateway, no
network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario cancel
    python console_demo.py --scenario extend
"""

import argparse
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from parkspot.config import settings
from parkspot.logging_context import set_request_id
from parkspot.pricing.refund import calculate_refund, can_be_cancelled
from parkspot.realtime import RoomFeed, connections, room_feed
from parkspot.schemas.booking_schema import Booking, PaymentMethod
from parkspot.schemas.pricing_schema import ServiceSelection
from parkspot.tools import booking as bookings
from parkspot.tools import payments
from parkspot.tools.lots import get_lot
from parkspot.tools.services import get_services_for_lot

GREEN = "\033[92m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_USER = "user-001"
DEMO_LOT = "lot-001"


class ConsoleSession:
    """Walks a booking through quote, payment and its lifecycle."""

    def __init__(self, feed: Optional[RoomFeed] = None) -> None:
        self.now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
        self.booking: Optional[Booking] = None
        self.feed = feed

    def say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[{settings.app_name}]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def error(self, text: str) -> None:
        print(f"{RED}  !! {text}{RESET}")

    def show_events(self) -> None:
        if self.feed is None:
            return
        for event in self.feed.drain():
            self.system_log(f"event {event.name} on {event.room}: {event.payload}")

    def _status(self) -> None:
        if self.booking:
            self.system_log(
                f"Status: {self.booking.status.value}, "
                f"total {self.booking.pricing.total_amount} {self.booking.pricing.currency}"
            )

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    def show_lot(self) -> None:
        lot = get_lot(DEMO_LOT)
        night = f", night {lot.rate.night}/h" if lot.rate.night is not None else ""
        self.say(f"{lot.name} in {lot.city}: day {lot.rate.day}/h{night}, "
                 f"{lot.capacity.available} of {lot.capacity.total} spots free.")
        for svc in get_services_for_lot(DEMO_LOT):
            self.system_log(f"service {svc['id']}: {svc['name']} ({svc['price']})")

    def quote_and_book(self, start_in_hours: float, length: timedelta) -> bool:
        start = self.now + timedelta(hours=start_in_hours)
        end = start + length
        selections = [ServiceSelection(service_id="svc-valet")]

        preview = bookings.quote_price(DEMO_LOT, start, end, selections)
        if not preview["success"]:
            self.error(preview["message"])
            return False
        quote = preview["quote"]
        self.say(
            f"{quote.breakdown.hours} h x {quote.breakdown.rate_per_hour} = {quote.parking_cost}, "
            f"services {quote.services_cost}, tax {quote.tax}, total {quote.total} {quote.currency}."
        )

        result = bookings.create_booking(
            user_id=DEMO_USER,
            lot_id=DEMO_LOT,
            vehicle={"type": "car", "license_plate": "dl 01 ab 1234", "color": "white"},
            start=start,
            end=end,
            payment_method=PaymentMethod.RAZORPAY,
            services=selections,
            now=self.now,
        )
        if not result["success"]:
            self.error(result["message"])
            return False
        self.booking = result["booking"]
        self.say(result["message"])
        self.show_events()
        self._status()
        return True

    def pay(self) -> None:
        assert self.booking is not None
        order = bookings.start_payment(self.booking.id)["order"]
        self.system_log(f"order {order['order_id']} for {order['amount']} minor units")
        payment_id = "pay_demo123"
        result = bookings.confirm_payment(
            self.booking.id, payment_id, payments.sign(order["order_id"], payment_id), now=self.now
        )
        self.say(result["message"])
        self._status()

    def check_in_and_out(self, overstay: timedelta = timedelta()) -> None:
        assert self.booking is not None
        entry_at = self.booking.details.start_time
        self.say(bookings.record_entry(self.booking.id, gate="G1", now=entry_at)["message"])
        exit_at = self.booking.details.end_time + overstay
        result = bookings.record_exit(self.booking.id, gate="G2", now=exit_at)
        self.say(result["message"])
        if result.get("additional_cost"):
            self.system_log(f"overtime charged: {result['additional_cost']}")
        self._status()

    def cancel(self) -> None:
        assert self.booking is not None
        eligible = can_be_cancelled(self.booking, self.now)
        refund = calculate_refund(self.booking, self.now)
        self.say(f"Cancellable: {eligible}. Refund if cancelled now: {refund}.")
        result = bookings.cancel_booking(self.booking.id, DEMO_USER, "Plans changed", now=self.now)
        if result["success"]:
            self.say(f"{result['message']} Refund: {result['refund_amount']}.")
            self.show_events()
        else:
            self.error(result["message"])
        self._status()

    def extend(self, hours: int) -> None:
        assert self.booking is not None
        entry_at = self.booking.details.start_time
        bookings.record_entry(self.booking.id, gate="G1", now=entry_at)
        result = bookings.extend_booking(self.booking.id, DEMO_USER, hours, now=entry_at)
        if result["success"]:
            self.say(f"{result['message']} Additional cost: {result['additional_cost']}.")
        else:
            self.error(result["message"])
        self._status()

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    def _scenario_booking(self) -> None:
        self.show_lot()
        if self.quote_and_book(start_in_hours=2, length=timedelta(hours=2, minutes=15)):
            self.pay()
            self.check_in_and_out(overstay=timedelta(minutes=40))

    def _scenario_cancel(self) -> None:
        self.show_lot()
        if self.quote_and_book(start_in_hours=10, length=timedelta(hours=3)):
            self.pay()
            self.cancel()

    def _scenario_extend(self) -> None:
        self.show_lot()
        if self.quote_and_book(start_in_hours=1.5, length=timedelta(hours=1)):
            self.pay()
            self.extend(2)

    SCENARIOS: dict[str, Callable[["ConsoleSession"], None]] = {
        "booking": _scenario_booking,
        "cancel": _scenario_cancel,
        "extend": _scenario_extend,
    }

    def run_scenario(self, scenario: str) -> None:
        """Play a pre-scripted scenario for demo purposes."""
        step = self.SCENARIOS.get(scenario)
        if step is None:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        set_request_id(f"DEMO-{scenario}")
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.app_name.upper()} - Scenario: {scenario}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

        step(self)

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        if self.booking:
            print(f"{DIM}  Reference: {self.booking.reference}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


async def _run(scenario: str) -> None:
    feed = await room_feed(f"lot-{DEMO_LOT}")
    try:
        ConsoleSession(feed).run_scenario(scenario)
    finally:
        await connections.close_all()


def main() -> None:
    parser = argparse.ArgumentParser(description="Parking booking console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default="booking",
        help="Pre-scripted scenario to run",
    )
    args = parser.parse_args()
    asyncio.run(_run(args.scenario))


if __name__ == "__main__":
    main()
