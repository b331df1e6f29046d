"""
Tests for the schedule status policy (traceman.status).
"""

import itertools

import pytest

from traceman.exceptions import TraceValidationError
from traceman.status import (
    STATUS_COLORS,
    UNKNOWN_COLOR,
    VALID_TRANSITIONS,
    ScheduleStatus,
    can_confirm,
    can_edit,
    color_for,
    is_known,
    is_valid_transition,
    label_for,
    normalize,
    transition_error,
)

ALL = list(ScheduleStatus)


class TestNormalize:
    def test_planned_is_scheduled(self):
        assert normalize("planned") == ScheduleStatus.SCHEDULED
        assert normalize("planned") == "scheduled"

    def test_hyphenated_in_progress(self):
        assert normalize("in-progress") == ScheduleStatus.IN_PROGRESS

    def test_known_values_pass_through(self):
        for status in ALL:
            assert normalize(status.value) is status

    def test_unknown_values_pass_through(self):
        assert normalize("archived") == "archived"
        assert normalize(None) is None

    @pytest.mark.parametrize("value", ["planned", "scheduled", "in-progress", "completed", "bogus", "", None])
    def test_idempotent(self, value):
        assert normalize(normalize(value)) == normalize(value)

    def test_is_known(self):
        assert is_known("planned")
        assert not is_known("archived")


class TestTransitions:
    def test_table(self):
        assert is_valid_transition("scheduled", "in_progress")
        assert is_valid_transition("scheduled", "completed")
        assert is_valid_transition("scheduled", "cancelled")
        assert is_valid_transition("in_progress", "completed")
        assert is_valid_transition("in_progress", "cancelled")

    def test_closure(self):
        """Every pair outside the table is rejected, self-transitions included."""
        for current, new in itertools.product(ALL, ALL):
            expected = new in VALID_TRANSITIONS[current]
            assert is_valid_transition(current, new) is expected

    def test_self_transitions_invalid(self):
        for status in ALL:
            assert not is_valid_transition(status, status)

    def test_terminal_states(self):
        for new in ALL:
            assert not is_valid_transition("completed", new)
            assert not is_valid_transition("cancelled", new)

    def test_legacy_current_is_normalized(self):
        assert is_valid_transition("planned", "in_progress")
        assert not is_valid_transition("planned", "scheduled")

    def test_unknown_current_fails_closed(self):
        assert not is_valid_transition("archived", "completed")
        assert not is_valid_transition(None, "scheduled")

    def test_unknown_target_rejected(self):
        assert not is_valid_transition("scheduled", "archived")


class TestDisplay:
    def test_colors(self):
        assert color_for("scheduled") == "#3498db"
        assert color_for("in_progress") == "#f39c12"
        assert color_for("completed") == "#2ecc71"
        assert color_for("cancelled") == "#e74c3c"
        assert color_for("planned") == STATUS_COLORS[ScheduleStatus.SCHEDULED]

    def test_unknown_color(self):
        assert color_for("bogus") == UNKNOWN_COLOR == "#95a5a6"

    def test_labels(self):
        assert label_for("in_progress") == "In Progress"
        assert label_for("planned") == "Scheduled"
        assert label_for("bogus") == "Unknown"

    def test_can_edit_and_confirm(self):
        assert can_edit("scheduled") and can_edit("in_progress")
        assert not can_edit("completed") and not can_edit("cancelled")
        assert can_confirm("scheduled") and can_confirm("in_progress")
        assert not can_confirm("completed")


class TestTransitionError:
    def test_names_both_statuses(self):
        error = transition_error("completed", "scheduled")

        assert isinstance(error, TraceValidationError)
        assert error.code == "INVALID_TRANSITION"
        assert str(error) == "Cannot change status from Completed to Scheduled"
        assert error.details == {"current": "completed", "requested": "scheduled"}

    def test_unknown_target_label(self):
        error = transition_error("scheduled", "archived")

        assert error.message == "Cannot change status from Scheduled to Unknown"
        assert error.details["requested"] == "archived"
