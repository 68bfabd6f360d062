"""Unit tests for the permission evaluator."""

from itertools import product

import pytest

from blocker_workflow.workflow.blocker import Blocker
from blocker_workflow.workflow.enums import Action, Role, Status
from blocker_workflow.workflow.permissions import (
    ROLE_HIERARCHY,
    available_actions,
    can_perform,
    can_view,
    is_at_least,
    is_authorized,
    manager_roles,
    rank_of,
)
from blocker_workflow.workflow.primitives import Actor, Assignee

MANAGERS = {Role.COMPANY_OWNER, Role.COMPANY_ADMIN, Role.MAIN_CONTRACTOR}

MANAGER_PERMITTED = {
    (Status.PENDING_REVIEW, Action.REVIEW),
    (Status.PENDING_REVIEW, Action.ASSIGN),
    (Status.PENDING_REVIEW, Action.APPROVE),
    (Status.PENDING_REVIEW, Action.REJECT),
    (Status.COMPLETED, Action.VERIFY_COMPLETE),
    (Status.COMPLETED, Action.REJECT_COMPLETION),
}
WORKER_PERMITTED = {(Status.ASSIGNED, Action.MARK_COMPLETE)}


def make_blocker(status: Status, **overrides) -> Blocker:
    defaults = {
        "id": "blocker-1",
        "project_id": "project-1",
        "reporter_id": "worker-1",
        "title": "Missing fire stopping",
        "status": status,
        "assignee": Assignee(id="contractor-7", contact_user_id="sub-7"),
    }
    defaults.update(overrides)
    return Blocker(**defaults)


class TestRoleHierarchy:
    def test_hierarchy_order(self):
        assert ROLE_HIERARCHY[0] == Role.COMPANY_OWNER
        assert ROLE_HIERARCHY[-1] == Role.FIELD_WORKER
        assert set(ROLE_HIERARCHY) == set(Role)

    def test_rank_is_strictly_decreasing(self):
        ranks = [rank_of(role) for role in ROLE_HIERARCHY]
        assert ranks == sorted(ranks, reverse=True)
        assert len(set(ranks)) == len(ranks)

    @pytest.mark.parametrize(
        "role,expected",
        [
            (Role.COMPANY_OWNER, True),
            (Role.COMPANY_ADMIN, True),
            (Role.MAIN_CONTRACTOR, True),
            (Role.PROJECT_MANAGER, False),
            (Role.SUPERVISOR, False),
            (Role.SUBCONTRACTOR, False),
            (Role.FIELD_WORKER, False),
        ],
    )
    def test_is_at_least_main_contractor(self, role, expected):
        assert is_at_least(role, Role.MAIN_CONTRACTOR) is expected

    def test_manager_roles(self):
        assert manager_roles() == [
            Role.COMPANY_OWNER,
            Role.COMPANY_ADMIN,
            Role.MAIN_CONTRACTOR,
        ]


class TestCanPerformGrid:
    """Every (role, action, status) combination against the explicit rules."""

    @pytest.mark.parametrize(
        "role,status,action", list(product(Role, Status, Action))
    )
    def test_grid_for_non_assignee(self, role, status, action):
        blocker = make_blocker(status)
        if role in MANAGERS:
            expected = (status, action) in MANAGER_PERMITTED
        elif role == Role.SUBCONTRACTOR:
            expected = (status, action) in WORKER_PERMITTED
        else:
            expected = False

        assert can_perform(role, "outsider-1", blocker, action) is expected


class TestCanPerform:
    def test_assignee_can_mark_complete_regardless_of_role(self):
        blocker = make_blocker(Status.ASSIGNED)
        assert can_perform(Role.FIELD_WORKER, "contractor-7", blocker, Action.MARK_COMPLETE)

    def test_contractor_contact_counts_as_assignee(self):
        blocker = make_blocker(Status.ASSIGNED)
        assert can_perform(Role.FIELD_WORKER, "sub-7", blocker, Action.MARK_COMPLETE)

    def test_assignee_cannot_mark_complete_outside_assigned(self):
        blocker = make_blocker(Status.COMPLETED)
        assert not can_perform(Role.FIELD_WORKER, "contractor-7", blocker, Action.MARK_COMPLETE)

    def test_assignee_cannot_verify(self):
        blocker = make_blocker(Status.COMPLETED)
        assert not can_perform(Role.FIELD_WORKER, "contractor-7", blocker, Action.VERIFY_COMPLETE)

    def test_unknown_role_returns_false(self):
        blocker = make_blocker(Status.PENDING_REVIEW)
        assert can_perform("wizard", "x", blocker, Action.APPROVE) is False

    def test_unknown_action_returns_false(self):
        blocker = make_blocker(Status.PENDING_REVIEW)
        assert can_perform(Role.COMPANY_OWNER, "x", blocker, "resubmit") is False
        assert is_authorized(Role.COMPANY_OWNER, "x", blocker, "resubmit") is False

    def test_is_authorized_ignores_status(self):
        blocker = make_blocker(Status.VERIFIED_COMPLETE)
        assert is_authorized(Role.MAIN_CONTRACTOR, "mc-1", blocker, Action.APPROVE)
        assert not can_perform(Role.MAIN_CONTRACTOR, "mc-1", blocker, Action.APPROVE)


class TestAvailableActions:
    def test_manager_on_pending_review(self):
        actor = Actor(actor_id="mc-1", role=Role.MAIN_CONTRACTOR)
        blocker = make_blocker(Status.PENDING_REVIEW, assignee=None)
        assert available_actions(actor, blocker) == [
            Action.REVIEW,
            Action.ASSIGN,
            Action.APPROVE,
            Action.REJECT,
        ]

    def test_assignee_on_assigned(self):
        actor = Actor(actor_id="contractor-7", role=Role.FIELD_WORKER)
        assert available_actions(actor, make_blocker(Status.ASSIGNED)) == [
            Action.MARK_COMPLETE
        ]

    def test_manager_on_assigned_has_nothing(self):
        actor = Actor(actor_id="mc-1", role=Role.MAIN_CONTRACTOR)
        assert available_actions(actor, make_blocker(Status.ASSIGNED)) == []

    def test_terminal_has_nothing(self):
        actor = Actor(actor_id="owner-1", role=Role.COMPANY_OWNER)
        assert available_actions(actor, make_blocker(Status.REJECTED)) == []


class TestCanView:
    def test_pending_review_hidden_from_subcontractors(self):
        actor = Actor(actor_id="sub-9", role=Role.SUBCONTRACTOR)
        assert not can_view(actor, make_blocker(Status.PENDING_REVIEW, assignee=None))

    def test_project_manager_sees_pending_review(self):
        actor = Actor(actor_id="pm-1", role=Role.PROJECT_MANAGER)
        assert can_view(actor, make_blocker(Status.PENDING_REVIEW, assignee=None))

    def test_reporter_always_sees_own_blocker(self):
        actor = Actor(actor_id="worker-1", role=Role.FIELD_WORKER)
        assert can_view(actor, make_blocker(Status.PENDING_REVIEW, assignee=None))

    def test_assignee_sees_assigned_blocker(self):
        actor = Actor(actor_id="sub-7", role=Role.FIELD_WORKER)
        assert can_view(actor, make_blocker(Status.ASSIGNED))

    def test_field_worker_cannot_see_others_assigned_blocker(self):
        actor = Actor(actor_id="worker-2", role=Role.FIELD_WORKER)
        assert not can_view(actor, make_blocker(Status.ASSIGNED))

    @pytest.mark.parametrize("status", [Status.VERIFIED_COMPLETE, Status.REJECTED])
    def test_terminal_statuses_visible_to_everyone(self, status):
        actor = Actor(actor_id="worker-2", role=Role.FIELD_WORKER)
        assert can_view(actor, make_blocker(status))
