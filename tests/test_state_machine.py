"""Tests for the booking status lifecycle."""

import pytest

from parkspot.lifecycle.state_machine import (
    BookingEvent,
    BookingStateMachine,
    InvalidTransitionError,
    event_for,
)
from parkspot.schemas.booking_schema import BookingStatus


class TestInitialState:
    def test_starts_pending(self, state_machine):
        assert state_machine.current_state == BookingStatus.PENDING

    def test_initial_history_has_one_entry(self, state_machine):
        assert len(state_machine.get_history()) == 1

    def test_not_terminal_at_start(self, state_machine):
        assert not state_machine.is_terminal()

    def test_custom_initial_state(self):
        sm = BookingStateMachine(initial=BookingStatus.ACTIVE)
        assert sm.current_state == BookingStatus.ACTIVE


class TestPendingTransitions:
    def test_confirm(self, state_machine):
        assert state_machine.transition(BookingEvent.CONFIRM) == BookingStatus.CONFIRMED

    def test_cancel(self, state_machine):
        assert state_machine.transition(BookingEvent.CANCEL) == BookingStatus.CANCELLED

    def test_no_show(self, state_machine):
        assert state_machine.transition(BookingEvent.NO_SHOW) == BookingStatus.NO_SHOW

    def test_cannot_check_in_before_confirmation(self, state_machine):
        with pytest.raises(InvalidTransitionError):
            state_machine.transition(BookingEvent.CHECK_IN)

    def test_cannot_extend_pending(self, state_machine):
        assert not state_machine.can_transition(BookingEvent.EXTEND)


class TestActiveLifecycle:
    def test_full_happy_path(self, state_machine):
        state_machine.transition(BookingEvent.CONFIRM)
        state_machine.transition(BookingEvent.CHECK_IN)
        assert state_machine.transition(BookingEvent.CHECK_OUT) == BookingStatus.COMPLETED
        assert state_machine.is_terminal()

    def test_confirmed_cannot_extend(self):
        sm = BookingStateMachine(initial=BookingStatus.CONFIRMED)
        with pytest.raises(InvalidTransitionError):
            sm.transition(BookingEvent.EXTEND)

    def test_active_extends(self):
        sm = BookingStateMachine(initial=BookingStatus.ACTIVE)
        assert sm.transition(BookingEvent.EXTEND) == BookingStatus.EXTENDED

    def test_extended_extends_again(self):
        sm = BookingStateMachine(initial=BookingStatus.EXTENDED)
        assert sm.transition(BookingEvent.EXTEND) == BookingStatus.EXTENDED

    def test_extended_checks_out(self):
        sm = BookingStateMachine(initial=BookingStatus.EXTENDED)
        assert sm.transition(BookingEvent.CHECK_OUT) == BookingStatus.COMPLETED

    def test_extended_cannot_be_no_show(self):
        sm = BookingStateMachine(initial=BookingStatus.EXTENDED)
        assert not sm.can_transition(BookingEvent.NO_SHOW)


class TestTerminalStates:
    @pytest.mark.parametrize(
        "status", [BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW]
    )
    def test_no_events_leave_terminal_state(self, status):
        sm = BookingStateMachine(initial=status)
        assert sm.is_terminal()
        assert sm.get_valid_events() == []
        for event in BookingEvent:
            with pytest.raises(InvalidTransitionError):
                sm.transition(event)

    def test_error_lists_valid_events(self):
        sm = BookingStateMachine(initial=BookingStatus.CONFIRMED)
        with pytest.raises(InvalidTransitionError, match="check_in"):
            sm.transition(BookingEvent.CHECK_OUT)


class TestEventLookup:
    def test_event_for_confirmation(self):
        assert event_for(BookingStatus.PENDING, BookingStatus.CONFIRMED) == BookingEvent.CONFIRM

    def test_event_for_check_in(self):
        assert event_for(BookingStatus.CONFIRMED, BookingStatus.ACTIVE) == BookingEvent.CHECK_IN

    def test_completed_to_pending_rejected(self):
        with pytest.raises(InvalidTransitionError, match="completed"):
            event_for(BookingStatus.COMPLETED, BookingStatus.PENDING)

    def test_pending_to_completed_rejected(self):
        with pytest.raises(InvalidTransitionError):
            event_for(BookingStatus.PENDING, BookingStatus.COMPLETED)

    def test_transition_to(self, state_machine):
        assert state_machine.transition_to(BookingStatus.CONFIRMED) == BookingStatus.CONFIRMED


class TestHistory:
    def test_trace_records_each_visit(self, state_machine):
        state_machine.transition(BookingEvent.CONFIRM)
        state_machine.transition(BookingEvent.CHECK_IN)
        state_machine.transition(BookingEvent.EXTEND)
        state_machine.transition(BookingEvent.CHECK_OUT)
        assert state_machine.get_state_trace() == [
            "pending", "confirmed", "active", "extended", "completed",
        ]

    def test_history_records_events(self, state_machine):
        state_machine.transition(BookingEvent.CANCEL)
        history = state_machine.get_history()
        assert history[0].event is None
        assert history[1].event == BookingEvent.CANCEL

    def test_failed_transition_leaves_history_untouched(self, state_machine):
        with pytest.raises(InvalidTransitionError):
            state_machine.transition(BookingEvent.CHECK_OUT)
        assert len(state_machine.get_history()) == 1
        assert state_machine.current_state == BookingStatus.PENDING
