"""
Finite state machine for the booking status lifecycle.

Defines the legal transitions between booking statuses and the events that
trigger them. Status changes go through ``transition`` so an illegal move
(e.g. completed -> pending) fails fast instead of being written by a
generic update.

Usage:
    sm = BookingStateMachine()
    sm.transition(BookingEvent.CONFIRM)
    assert sm.current_state == BookingStatus.CONFIRMED
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from parkspot.errors import InvalidTransitionError
from parkspot.schemas.booking_schema import BookingStatus

logger = logging.getLogger(__name__)


class BookingEvent(str, Enum):
    """Events that cause status transitions."""
    CONFIRM = "confirm"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    EXTEND = "extend"
    CANCEL = "cancel"
    NO_SHOW = "no_show"


TERMINAL_STATES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
)


@dataclass
class Transition:
    """A single valid status transition."""
    from_state: BookingStatus
    to_state: BookingStatus
    event: BookingEvent
    guard: Optional[Callable[[], bool]] = None


@dataclass
class StateEntry:
    """Recorded history entry for a status visit."""
    state: BookingStatus
    entered_at: datetime
    event: Optional[BookingEvent] = None


class BookingStateMachine:
    """
    Explicit status lifecycle for one booking.

    pending -> confirmed -> active -> completed, with cancelled and no-show
    as terminal off-ramps and extended as a side-state of active bookings.
    """

    TRANSITIONS: list[Transition] = [
        # --- Pending ---
        Transition(BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingEvent.CONFIRM),
        Transition(BookingStatus.PENDING, BookingStatus.CANCELLED, BookingEvent.CANCEL),
        Transition(BookingStatus.PENDING, BookingStatus.NO_SHOW, BookingEvent.NO_SHOW),

        # --- Confirmed ---
        Transition(BookingStatus.CONFIRMED, BookingStatus.ACTIVE, BookingEvent.CHECK_IN),
        Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingEvent.CANCEL),
        Transition(BookingStatus.CONFIRMED, BookingStatus.NO_SHOW, BookingEvent.NO_SHOW),

        # --- Active ---
        Transition(BookingStatus.ACTIVE, BookingStatus.COMPLETED, BookingEvent.CHECK_OUT),
        Transition(BookingStatus.ACTIVE, BookingStatus.EXTENDED, BookingEvent.EXTEND),
        Transition(BookingStatus.ACTIVE, BookingStatus.CANCELLED, BookingEvent.CANCEL),
        Transition(BookingStatus.ACTIVE, BookingStatus.NO_SHOW, BookingEvent.NO_SHOW),

        # --- Extended ---
        Transition(BookingStatus.EXTENDED, BookingStatus.EXTENDED, BookingEvent.EXTEND),
        Transition(BookingStatus.EXTENDED, BookingStatus.COMPLETED, BookingEvent.CHECK_OUT),
        Transition(BookingStatus.EXTENDED, BookingStatus.CANCELLED, BookingEvent.CANCEL),
    ]

    def __init__(self, initial: BookingStatus = BookingStatus.PENDING) -> None:
        self._current_state = initial
        self._history: list[StateEntry] = [
            StateEntry(state=initial, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> BookingStatus:
        return self._current_state

    def _find(self, event: BookingEvent) -> Optional[Transition]:
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.event == event:
                if t.guard is not None and not t.guard():
                    continue
                return t
        return None

    def can_transition(self, event: BookingEvent) -> bool:
        return self._find(event) is not None

    def transition(self, event: BookingEvent) -> BookingStatus:
        """
        Execute a status transition.

        Args:
            event: The event triggering the transition.

        Returns:
            The new booking status.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        t = self._find(event)
        if t is None:
            valid = [e.value for e in self.get_valid_events()]
            raise InvalidTransitionError(
                f"No valid transition from '{self._current_state.value}' "
                f"with event '{event.value}'. Valid events: {valid}"
            )

        old_state = self._current_state
        self._current_state = t.to_state
        self._history.append(StateEntry(
            state=self._current_state,
            entered_at=datetime.now(timezone.utc),
            event=event,
        ))
        logger.debug(
            "Status transition: %s -> %s (event: %s)",
            old_state.value, self._current_state.value, event.value,
        )
        return self._current_state

    def transition_to(self, target: BookingStatus) -> BookingStatus:
        """Move to a target status via whichever event leads there.

        Raises:
            InvalidTransitionError: If the target is not reachable in one step.
        """
        return self.transition(event_for(self._current_state, target))

    def get_valid_events(self) -> list[BookingEvent]:
        """Return all events valid from the current status."""
        return [t.event for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        """Return the full status history."""
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of statuses visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        return self._current_state in TERMINAL_STATES


def event_for(current: BookingStatus, target: BookingStatus) -> BookingEvent:
    """Return the event that moves ``current`` to ``target``.

    Raises:
        InvalidTransitionError: If no single transition connects the two.
    """
    for t in BookingStateMachine.TRANSITIONS:
        if t.from_state == current and t.to_state == target:
            return t.event
    raise InvalidTransitionError(
        f"Cannot change status from '{current.value}' to '{target.value}'."
    )
