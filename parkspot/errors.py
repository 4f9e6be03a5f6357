"""Failure kinds raised by the pricing, refund and lifecycle core.

Each exception carries a machine-readable ``kind`` so the calling layer
can turn it into a user-visible message without string matching.
"""


class BookingError(Exception):
    """Base class for all booking core failures."""

    kind = "booking_error"


class InvalidWindowError(BookingError):
    """Raised when a booking's end time is not after its start time."""

    kind = "invalid_window"


class NaiveTimestampError(InvalidWindowError):
    """Raised when a booking timestamp carries no timezone offset."""

    kind = "naive_timestamp"


class UnknownLotError(BookingError):
    """Raised when a parking lot reference cannot be resolved."""

    kind = "unknown_lot"

    def __init__(self, lot_id: str) -> None:
        super().__init__(f"Parking lot '{lot_id}' not found.")
        self.lot_id = lot_id


class UnknownServiceError(BookingError):
    """Raised when a service reference cannot be resolved."""

    kind = "unknown_service"

    def __init__(self, service_id: str) -> None:
        super().__init__(f"Service '{service_id}' not found.")
        self.service_id = service_id


class ServiceUnavailableError(BookingError):
    """Raised when a known service is not offered at the requested lot."""

    kind = "service_unavailable"

    def __init__(self, service_id: str, lot_id: str) -> None:
        super().__init__(f"Service '{service_id}' is not available at lot '{lot_id}'.")
        self.service_id = service_id
        self.lot_id = lot_id


class InvalidTransitionError(BookingError):
    """Raised when a status transition is not valid from the current state."""

    kind = "invalid_transition"
