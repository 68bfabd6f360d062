"""
Transition payloads and history records.

A TransitionPayload carries the action-specific input an actor supplies
with a request. A TransitionRecord is the immutable history entry written
for every applied transition.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, constr

from .enums import Action, Priority, Role, Status
from .primitives import Assignee, generate_ulid


class TransitionPayload(BaseModel):
    """Action-specific input for a transition request.

    Which fields are required depends on the action; completeness is checked
    by the engine, not here, so that a missing field surfaces as an
    IncompletePayload workflow error.
    """

    model_config = ConfigDict(extra="forbid")

    # approve
    assignee: Optional[Assignee] = Field(None, description="Who the blocker is assigned to")
    priority: Optional[Priority] = Field(None, description="Override the blocker priority")
    estimated_duration: Optional[constr(max_length=128)] = None
    due_date: Optional[date] = None

    # approve / reject
    comments: Optional[str] = Field(None, description="Reviewer or actor comments")

    # mark_complete
    work_description: Optional[str] = Field(None, description="Description of work done")
    materials_used: Optional[str] = None
    time_spent: Optional[constr(max_length=128)] = None
    completion_photos: List[str] = Field(
        default_factory=list, description="Attachment references for completion evidence"
    )

    # verify_complete
    verification_notes: Optional[str] = None

    # reject_completion
    rejection_reason: Optional[str] = Field(None, description="Why the completion was refused")


class TransitionRecord(BaseModel):
    """Immutable history entry for one applied transition."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: constr(min_length=1, max_length=128) = Field(
        default_factory=generate_ulid, description="Globally unique identifier (ULID)"
    )
    blocker_id: constr(min_length=1, max_length=128)
    action: Action
    old_status: Status
    new_status: Status
    actor_id: constr(min_length=1, max_length=128)
    actor_role: Role
    timestamp: datetime
    comments: Optional[str] = None
    meta: Dict[str, Any] = Field(
        default_factory=dict, description="Action-specific metadata"
    )
