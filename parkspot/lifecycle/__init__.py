from parkspot.lifecycle.state_machine import (
    TERMINAL_STATES,
    BookingEvent,
    BookingStateMachine,
    event_for,
)

__all__ = [
    "BookingStateMachine",
    "BookingEvent",
    "TERMINAL_STATES",
    "event_for",
]
