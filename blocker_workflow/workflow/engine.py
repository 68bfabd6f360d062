"""
Blocker transition engine.

This module implements a pure, testable engine that validates and applies a
requested workflow action to a blocker snapshot. It either returns the new
snapshot together with the history record for the transition, or raises a
WorkflowError with a stable error code.

Legal transitions:
- pending_review --approve--> assigned            (requires assignee)
- pending_review --reject--> rejected             (requires comments)
- assigned --mark_complete--> completed           (requires work_description)
- completed --verify_complete--> verified_complete
- completed --reject_completion--> assigned       (requires rejection_reason)

Validation order (first failure wins, nothing is applied on failure):
1. authorization of the actor for the action
2. legality of the action from the blocker's current status
3. completeness of the action's payload

The engine never persists anything. Callers save the new snapshot with a
compare-and-swap on the old status and append the record to history.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from .blocker import Blocker, BlockerCreate
from .enums import Action, Status
from .errors import IncompletePayload, InvalidTransition, UnauthorizedAction
from .permissions import is_authorized
from .primitives import Actor, generate_ulid, utc_now
from .status_table import target_status
from .transition import TransitionPayload, TransitionRecord


class TransitionResult(BaseModel):
    """Outcome of a successfully applied transition."""

    model_config = ConfigDict(frozen=True)

    old_blocker: Blocker
    blocker: Blocker
    record: TransitionRecord


# Payload field each action cannot do without
REQUIRED_FIELDS: Dict[Action, str] = {
    Action.APPROVE: "assignee",
    Action.REJECT: "comments",
    Action.MARK_COMPLETE: "work_description",
    Action.REJECT_COMPLETION: "rejection_reason",
}


def _clean(value: Optional[str]) -> Optional[str]:
    """Strip a free-text field; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def create_blocker(
    data: BlockerCreate, reporter: Actor, now: Optional[datetime] = None
) -> Blocker:
    """Build a new blocker in pending_review reported by ``reporter``."""
    now = now or utc_now()
    return Blocker(
        id=generate_ulid(),
        project_id=data.project_id,
        company_id=data.company_id,
        reporter_id=reporter.actor_id,
        title=data.title.strip(),
        description=_clean(data.description),
        location=_clean(data.location),
        category=data.category,
        priority=data.priority,
        photos=tuple(data.photos),
        status=Status.PENDING_REVIEW,
        created_at=now,
        updated_at=now,
    )


def _validate_authorization(blocker: Blocker, action: Action, actor: Actor) -> None:
    if not is_authorized(actor.role, actor.actor_id, blocker, action):
        raise UnauthorizedAction(
            f"Role '{actor.role.value}' may not perform '{action.value}' "
            f"on blocker '{blocker.id}'",
            blocker_id=blocker.id,
        )


def _validate_transition(blocker: Blocker, action: Action) -> Status:
    new_status = target_status(blocker.status, action)
    if new_status is None:
        raise InvalidTransition(
            f"Action '{action.value}' is not allowed from status "
            f"'{blocker.status.value}'",
            blocker_id=blocker.id,
        )
    return new_status


def _validate_payload(blocker: Blocker, action: Action, payload: TransitionPayload) -> None:
    field = REQUIRED_FIELDS.get(action)
    if field is not None and _is_blank(getattr(payload, field)):
        raise IncompletePayload(
            f"Action '{action.value}' requires a non-empty '{field}'",
            field=field,
            blocker_id=blocker.id,
        )


# Each applier returns (blocker field updates, record comments, record meta)
_Applied = Tuple[Dict[str, Any], Optional[str], Dict[str, Any]]


def _apply_approve(blocker: Blocker, actor: Actor, payload: TransitionPayload, now: datetime) -> _Applied:
    assignee = payload.assignee
    priority = payload.priority or blocker.priority
    updates = {
        "assignee": assignee,
        "priority": priority,
        "estimated_duration": _clean(payload.estimated_duration),
        "due_date": payload.due_date,
        "review_comments": _clean(payload.comments),
    }
    meta = {
        "assignee_id": assignee.id,
        "assignee_kind": assignee.kind.value,
        "priority": priority.value,
    }
    if updates["estimated_duration"]:
        meta["estimated_duration"] = updates["estimated_duration"]
    if payload.due_date:
        meta["due_date"] = payload.due_date.isoformat()
    return updates, _clean(payload.comments), meta


def _apply_reject(blocker: Blocker, actor: Actor, payload: TransitionPayload, now: datetime) -> _Applied:
    comments = _clean(payload.comments)
    return {"review_comments": comments}, comments, {}


def _apply_mark_complete(blocker: Blocker, actor: Actor, payload: TransitionPayload, now: datetime) -> _Applied:
    work_description = _clean(payload.work_description)
    updates = {
        "completed_at": now,
        "completed_by": actor.actor_id,
        "completion_notes": work_description,
        "materials_used": _clean(payload.materials_used),
        "time_spent": _clean(payload.time_spent),
        "completion_photos": tuple(payload.completion_photos),
    }
    meta = {"work_description": work_description}
    if updates["materials_used"]:
        meta["materials_used"] = updates["materials_used"]
    if updates["time_spent"]:
        meta["time_spent"] = updates["time_spent"]
    if payload.completion_photos:
        meta["photo_count"] = len(payload.completion_photos)
    return updates, _clean(payload.comments) or work_description, meta


def _apply_verify_complete(blocker: Blocker, actor: Actor, payload: TransitionPayload, now: datetime) -> _Applied:
    notes = _clean(payload.verification_notes) or _clean(payload.comments)
    updates = {
        "verified_at": now,
        "verified_by": actor.actor_id,
        "verification_notes": notes,
    }
    return updates, notes, {}


def _apply_reject_completion(blocker: Blocker, actor: Actor, payload: TransitionPayload, now: datetime) -> _Applied:
    reason = _clean(payload.rejection_reason)
    # Back to assigned: every completion detail is reset
    updates = {
        "rejection_reason": reason,
        "completed_at": None,
        "completed_by": None,
        "completion_notes": None,
        "materials_used": None,
        "time_spent": None,
        "completion_photos": (),
    }
    return updates, reason, {"rejection_reason": reason}


_APPLIERS: Dict[Action, Callable[..., _Applied]] = {
    Action.APPROVE: _apply_approve,
    Action.REJECT: _apply_reject,
    Action.MARK_COMPLETE: _apply_mark_complete,
    Action.VERIFY_COMPLETE: _apply_verify_complete,
    Action.REJECT_COMPLETION: _apply_reject_completion,
}


def _coerce_action(blocker: Blocker, action: Union[Action, str]) -> Action:
    try:
        return Action(action)
    except ValueError:
        raise InvalidTransition(
            f"Unknown action '{action}'", blocker_id=blocker.id
        ) from None


def apply_transition(
    blocker: Blocker,
    action: Union[Action, str],
    actor: Actor,
    payload: Optional[TransitionPayload] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """
    Validate ``action`` against ``blocker`` and return the resulting state.

    This is a pure function: the input blocker is never modified.

    Checks run in a fixed order and the first failure is raised: who the
    actor is (their role or assignment, whatever the status), then whether
    the action leads anywhere from the current status, then the payload. So
    an actor lacking the capability always gets UnauthorizedAction, while a
    manager asking for an action the current status does not offer gets
    InvalidTransition. ``permissions.can_perform`` is False in both cases.

    Args:
        blocker: Current snapshot of the blocker
        action: Requested workflow action
        actor: Who is requesting it (role and identity)
        payload: Action-specific input; defaults to an empty payload
        now: Instant of the transition. Captured once and used for both the
             new snapshot and the history record. Defaults to utc_now().

    Returns:
        TransitionResult with the old snapshot, the new snapshot and the record

    Raises:
        UnauthorizedAction: The actor may not perform this action
        InvalidTransition: The action is not legal from the current status
        IncompletePayload: A required payload field is missing or blank
    """
    now = now or utc_now()
    payload = payload or TransitionPayload()
    action = _coerce_action(blocker, action)

    _validate_authorization(blocker, action, actor)
    new_status = _validate_transition(blocker, action)
    _validate_payload(blocker, action, payload)

    updates, comments, meta = _APPLIERS[action](blocker, actor, payload, now)

    record = TransitionRecord(
        blocker_id=blocker.id,
        action=action,
        old_status=blocker.status,
        new_status=new_status,
        actor_id=actor.actor_id,
        actor_role=actor.role,
        timestamp=now,
        comments=comments,
        meta={"action": action.value, **meta},
    )

    updates.update(
        status=new_status,
        updated_at=now,
        history=blocker.history + (record,),
    )
    new_blocker = blocker.model_copy(update=updates)

    return TransitionResult(old_blocker=blocker, blocker=new_blocker, record=record)
