"""
Permission evaluator for blocker workflow actions.

Pure predicates: no database access, no request objects, no exceptions for
unknown combinations. A False answer means the action is neither shown nor
applied.

Rules:
- review, assign, approve, reject, verify_complete and reject_completion
  need the MANAGE_BLOCKERS capability: role main_contractor or above.
- mark_complete needs PERFORM_WORK: the actor is the blocker's current
  assignee, or holds the subcontractor role.
- An action is only performable from a status whose table entry lists it.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .blocker import Blocker
from .enums import Action, Capability, Role, Status
from .primitives import Actor
from .status_table import ACTION_CAPABILITIES, STATUS_TABLE, get_definition

# Highest first. Rank is the only ordering used for roles.
ROLE_HIERARCHY: List[Role] = [
    Role.COMPANY_OWNER,
    Role.COMPANY_ADMIN,
    Role.MAIN_CONTRACTOR,
    Role.PROJECT_MANAGER,
    Role.SUPERVISOR,
    Role.SUBCONTRACTOR,
    Role.FIELD_WORKER,
]

_RANKS: Dict[Role, int] = {
    role: len(ROLE_HIERARCHY) - index for index, role in enumerate(ROLE_HIERARCHY)
}

MANAGER_ROLE = Role.MAIN_CONTRACTOR


def rank_of(role: Role) -> int:
    """Position of a role in the hierarchy; higher outranks lower."""
    return _RANKS[Role(role)]


def is_at_least(role: Role, minimum: Role) -> bool:
    """True when ``role`` ranks at or above ``minimum``."""
    return rank_of(role) >= rank_of(minimum)


def _safe_role(role) -> Optional[Role]:
    try:
        return Role(role)
    except ValueError:
        return None


def has_capability(
    actor_role: Role, actor_id: str, blocker: Blocker, capability: Capability
) -> bool:
    """Whether the actor holds ``capability`` with respect to ``blocker``.

    Ignores the blocker's status: this is the authorization step only.
    """
    role = _safe_role(actor_role)
    if role is None:
        return False

    if capability == Capability.MANAGE_BLOCKERS:
        return is_at_least(role, MANAGER_ROLE)
    if capability == Capability.PERFORM_WORK:
        is_assignee = blocker.assignee is not None and blocker.assignee.represents(actor_id)
        return is_assignee or role == Role.SUBCONTRACTOR
    return False


def is_authorized(actor_role: Role, actor_id: str, blocker: Blocker, action: Action) -> bool:
    """Whether the actor's role/identity is allowed to request ``action`` at all."""
    try:
        capability = ACTION_CAPABILITIES[Action(action)]
    except (KeyError, ValueError):
        return False
    return has_capability(actor_role, actor_id, blocker, capability)


def can_perform(actor_role: Role, actor_id: str, blocker: Blocker, action: Action) -> bool:
    """Whether ``action`` should be offered to the actor for ``blocker`` now.

    True only when the actor is authorized and the blocker's current status
    allows the action.
    """
    try:
        action = Action(action)
    except ValueError:
        return False
    if action not in get_definition(blocker.status).allowed_actions:
        return False
    return is_authorized(actor_role, actor_id, blocker, action)


def available_actions(actor: Actor, blocker: Blocker) -> List[Action]:
    """Actions the actor can currently perform on ``blocker``, in table order."""
    return [
        action
        for action in get_definition(blocker.status).allowed_actions
        if is_authorized(actor.role, actor.actor_id, blocker, action)
    ]


def can_view(actor: Actor, blocker: Blocker) -> bool:
    """Visibility rule: role listed for the status, or the reporter/assignee."""
    viewable_by = get_definition(blocker.status).viewable_by
    if viewable_by is None or actor.role in viewable_by:
        return True
    if blocker.reporter_id == actor.actor_id:
        return True
    return blocker.assignee is not None and blocker.assignee.represents(actor.actor_id)


def statuses_visible_to(role: Role) -> List[Status]:
    """Statuses whose blockers ``role`` sees regardless of who reported or holds them.

    Together with the reporter and assignee clauses of ``can_view`` this lets
    storage apply the visibility rule in its own query.
    """
    return [
        definition.status
        for definition in STATUS_TABLE.values()
        if definition.viewable_by is None or role in definition.viewable_by
    ]


def manager_roles() -> List[Role]:
    """Roles holding MANAGE_BLOCKERS, highest first."""
    return [role for role in ROLE_HIERARCHY if is_at_least(role, MANAGER_ROLE)]
