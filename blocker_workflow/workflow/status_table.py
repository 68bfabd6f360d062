"""
Blocker Status Table.

The single source of truth for blocker statuses: their presentation data,
which actions may be requested from each status, which capability each
action needs, where each transition leads, and who may view blockers in
each status. The permission evaluator, the engine and every listing read
from here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from .enums import Action, Capability, Role, Status

_MANAGERS: FrozenSet[Role] = frozenset(
    {Role.COMPANY_OWNER, Role.COMPANY_ADMIN, Role.MAIN_CONTRACTOR}
)


@dataclass(frozen=True)
class StatusDefinition:
    """Static description of one blocker status."""

    status: Status
    label: str
    description: str
    color: str
    allowed_actions: Tuple[Action, ...]
    # None means every role may view
    viewable_by: Optional[FrozenSet[Role]]

    @property
    def is_terminal(self) -> bool:
        return not self.allowed_actions

    @property
    def required_capabilities(self) -> FrozenSet[Capability]:
        return frozenset(ACTION_CAPABILITIES[a] for a in self.allowed_actions)


ACTION_CAPABILITIES: Dict[Action, Capability] = {
    Action.REVIEW: Capability.MANAGE_BLOCKERS,
    Action.ASSIGN: Capability.MANAGE_BLOCKERS,
    Action.APPROVE: Capability.MANAGE_BLOCKERS,
    Action.REJECT: Capability.MANAGE_BLOCKERS,
    Action.MARK_COMPLETE: Capability.PERFORM_WORK,
    Action.VERIFY_COMPLETE: Capability.MANAGE_BLOCKERS,
    Action.REJECT_COMPLETION: Capability.MANAGE_BLOCKERS,
}

# (from status, action) -> to status. Exhaustive.
TRANSITIONS: Dict[Tuple[Status, Action], Status] = {
    (Status.PENDING_REVIEW, Action.APPROVE): Status.ASSIGNED,
    (Status.PENDING_REVIEW, Action.REJECT): Status.REJECTED,
    (Status.ASSIGNED, Action.MARK_COMPLETE): Status.COMPLETED,
    (Status.COMPLETED, Action.VERIFY_COMPLETE): Status.VERIFIED_COMPLETE,
    (Status.COMPLETED, Action.REJECT_COMPLETION): Status.ASSIGNED,
}

STATUS_TABLE: Dict[Status, StatusDefinition] = {
    Status.PENDING_REVIEW: StatusDefinition(
        status=Status.PENDING_REVIEW,
        label="Pending Review",
        description="Awaiting main contractor review and assignment",
        color="#f59e0b",
        allowed_actions=(Action.REVIEW, Action.ASSIGN, Action.APPROVE, Action.REJECT),
        viewable_by=_MANAGERS | {Role.PROJECT_MANAGER},
    ),
    Status.ASSIGNED: StatusDefinition(
        status=Status.ASSIGNED,
        label="Assigned",
        description="Assigned to a contractor, work in progress",
        color="#3b82f6",
        allowed_actions=(Action.MARK_COMPLETE,),
        viewable_by=_MANAGERS | {Role.PROJECT_MANAGER, Role.SUBCONTRACTOR},
    ),
    Status.COMPLETED: StatusDefinition(
        status=Status.COMPLETED,
        label="Completed",
        description="Marked complete by the contractor, pending verification",
        color="#10b981",
        allowed_actions=(Action.VERIFY_COMPLETE, Action.REJECT_COMPLETION),
        viewable_by=_MANAGERS | {Role.PROJECT_MANAGER, Role.SUBCONTRACTOR},
    ),
    Status.VERIFIED_COMPLETE: StatusDefinition(
        status=Status.VERIFIED_COMPLETE,
        label="Verified Complete",
        description="Verified complete by the main contractor",
        color="#059669",
        allowed_actions=(),
        viewable_by=None,
    ),
    Status.REJECTED: StatusDefinition(
        status=Status.REJECTED,
        label="Rejected",
        description="Rejected by the main contractor with comments",
        color="#ef4444",
        allowed_actions=(),
        viewable_by=None,
    ),
}


def get_definition(status: Status) -> StatusDefinition:
    """Return the table entry for a status."""
    return STATUS_TABLE[Status(status)]


def target_status(status: Status, action: Action) -> Optional[Status]:
    """Where ``action`` leads from ``status``, or None if it is not a transition."""
    return TRANSITIONS.get((Status(status), Action(action)))


def next_statuses(status: Status) -> List[Status]:
    """Statuses reachable in one transition from ``status``."""
    return [to for (frm, _), to in TRANSITIONS.items() if frm == status]
