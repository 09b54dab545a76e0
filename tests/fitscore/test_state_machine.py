"""
Tests for the date state machine.
"""

from datetime import timedelta

import pytest

from fitscore.clock import FrozenClock
from fitscore.errors import DateReadOnly, InvalidDate
from fitscore.state_machine import DateStateMachine
from fitscore.types import DateState


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def machine(clock):
    return DateStateMachine(clock)


# ============================================================
# STATE RESOLUTION
# ============================================================

class TestStateFor:
    """Editable window and ReadOnly history."""

    def test_today_is_editable(self, machine, today):
        assert machine.state_for(today) == DateState.EDITABLE

    def test_yesterday_is_editable(self, machine, today):
        assert machine.state_for(today - timedelta(days=1)) == DateState.EDITABLE

    def test_two_days_ago_is_read_only(self, machine, today):
        assert machine.state_for(today - timedelta(days=2)) == DateState.READ_ONLY

    def test_future_date_rejected(self, machine, today):
        with pytest.raises(InvalidDate):
            machine.state_for(today + timedelta(days=1))

    def test_wider_window(self, clock, today):
        """Test the editable window is configurable."""
        machine = DateStateMachine(clock, editable_window_days=3)

        assert machine.state_for(today - timedelta(days=3)) == DateState.EDITABLE
        assert machine.state_for(today - timedelta(days=4)) == DateState.READ_ONLY


# ============================================================
# TRANSITIONS
# ============================================================

class TestTransitions:
    """Dates move to ReadOnly as the clock advances."""

    def test_date_freezes_after_window(self, today):
        """Test yesterday becomes ReadOnly one day later and never returns."""
        clock = FrozenClock.on(today)
        machine = DateStateMachine(clock)
        target = today - timedelta(days=1)

        assert machine.state_for(target) == DateState.EDITABLE

        clock.advance(days=1)
        assert machine.state_for(target) == DateState.READ_ONLY

        clock.advance(days=30)
        assert machine.state_for(target) == DateState.READ_ONLY

    def test_transition_recorded_and_notified(self, today):
        clock = FrozenClock.on(today)
        machine = DateStateMachine(clock)
        events = []
        machine.add_listener(events.append)

        machine.state_for(today)
        clock.advance(days=2)
        machine.state_for(today)

        assert len(machine.history) == 1
        assert events[0].from_state == DateState.EDITABLE
        assert events[0].to_state == DateState.READ_ONLY

    def test_failing_listener_does_not_break_resolution(self, today):
        """Test listener errors are logged, not raised."""
        clock = FrozenClock.on(today)
        machine = DateStateMachine(clock)

        def broken(event):
            raise RuntimeError("listener down")

        machine.add_listener(broken)
        machine.state_for(today)
        clock.advance(days=2)

        assert machine.state_for(today) == DateState.READ_ONLY


# ============================================================
# GUARDS
# ============================================================

class TestGuards:
    """Operation permissions per state."""

    def test_read_only_refuses_compute(self, machine, today):
        with pytest.raises(DateReadOnly):
            machine.require(today - timedelta(days=5), "compute")

    @pytest.mark.parametrize("operation", ["add_meal", "delete_session", "set_water_band", "recalculate"])
    def test_read_only_refuses_mutations(self, machine, today, operation):
        assert machine.can_perform(today - timedelta(days=5), operation) is False

    def test_read_only_allows_lookup_and_narrative(self, machine, today):
        past = today - timedelta(days=5)

        assert machine.require(past, "lookup") == DateState.READ_ONLY
        assert machine.can_perform(past, "narrative") is True

    def test_editable_allows_compute(self, machine, today):
        assert machine.require(today, "compute") == DateState.EDITABLE

    def test_require_editable(self, machine, today):
        machine.require_editable(today)

        with pytest.raises(DateReadOnly):
            machine.require_editable(today - timedelta(days=2))

    def test_labels(self, machine, today):
        assert machine.label_for(today) == "today"
        assert machine.label_for(today - timedelta(days=1)) == "yesterday"
        assert machine.label_for(today - timedelta(days=2)) == (today - timedelta(days=2)).isoformat()
