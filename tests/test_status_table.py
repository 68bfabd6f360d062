"""Unit tests for the blocker status table."""

import pytest

from blocker_workflow.workflow.enums import Action, Capability, Status
from blocker_workflow.workflow.status_table import (
    ACTION_CAPABILITIES,
    STATUS_TABLE,
    TRANSITIONS,
    get_definition,
    next_statuses,
    target_status,
)


class TestStatusTable:
    """The table describes every status exactly once."""

    def test_every_status_has_a_definition(self):
        assert set(STATUS_TABLE) == set(Status)

    def test_definitions_are_keyed_by_their_own_status(self):
        for status, definition in STATUS_TABLE.items():
            assert definition.status == status

    def test_colors_are_distinct(self):
        colors = [d.color for d in STATUS_TABLE.values()]
        assert len(set(colors)) == len(colors)

    @pytest.mark.parametrize("status", [Status.VERIFIED_COMPLETE, Status.REJECTED])
    def test_terminal_statuses(self, status):
        definition = get_definition(status)
        assert definition.is_terminal
        assert definition.allowed_actions == ()
        assert next_statuses(status) == []

    def test_pending_review_actions(self):
        definition = get_definition(Status.PENDING_REVIEW)
        assert definition.allowed_actions == (
            Action.REVIEW,
            Action.ASSIGN,
            Action.APPROVE,
            Action.REJECT,
        )
        assert definition.required_capabilities == {Capability.MANAGE_BLOCKERS}

    def test_assigned_needs_perform_work(self):
        definition = get_definition(Status.ASSIGNED)
        assert definition.allowed_actions == (Action.MARK_COMPLETE,)
        assert definition.required_capabilities == {Capability.PERFORM_WORK}

    def test_get_definition_accepts_string(self):
        assert get_definition("completed").label == "Completed"

    def test_every_action_has_a_capability(self):
        assert set(ACTION_CAPABILITIES) == set(Action)


class TestTransitions:
    """The transition table is exhaustive."""

    def test_exact_transitions(self):
        assert TRANSITIONS == {
            (Status.PENDING_REVIEW, Action.APPROVE): Status.ASSIGNED,
            (Status.PENDING_REVIEW, Action.REJECT): Status.REJECTED,
            (Status.ASSIGNED, Action.MARK_COMPLETE): Status.COMPLETED,
            (Status.COMPLETED, Action.VERIFY_COMPLETE): Status.VERIFIED_COMPLETE,
            (Status.COMPLETED, Action.REJECT_COMPLETION): Status.ASSIGNED,
        }

    def test_transition_actions_are_allowed_from_their_status(self):
        for (status, action) in TRANSITIONS:
            assert action in get_definition(status).allowed_actions

    @pytest.mark.parametrize(
        "status,expected",
        [
            (Status.PENDING_REVIEW, [Status.ASSIGNED, Status.REJECTED]),
            (Status.ASSIGNED, [Status.COMPLETED]),
            (Status.COMPLETED, [Status.VERIFIED_COMPLETE, Status.ASSIGNED]),
        ],
    )
    def test_next_statuses(self, status, expected):
        assert next_statuses(status) == expected

    def test_gate_actions_are_not_transitions(self):
        assert target_status(Status.PENDING_REVIEW, Action.REVIEW) is None
        assert target_status(Status.PENDING_REVIEW, Action.ASSIGN) is None

    def test_target_status(self):
        assert target_status("completed", "reject_completion") == Status.ASSIGNED
