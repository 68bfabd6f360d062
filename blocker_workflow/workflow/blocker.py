"""
Blocker Schema.

A blocker is an issue raised against a construction project. It is created
in pending_review by its reporter and changes only through transitions
applied by the workflow engine.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, constr, model_validator

from .enums import Priority, Status
from .primitives import Assignee, utc_now
from .transition import TransitionRecord


class Blocker(BaseModel):
    """Snapshot of a blocker.

    Snapshots are immutable; the engine produces a new snapshot for every
    applied transition. ``history`` is append-only and ordered by timestamp.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Object identity
    id: constr(min_length=1, max_length=128)

    # Ownership
    project_id: constr(min_length=1, max_length=128)
    company_id: Optional[constr(min_length=1, max_length=128)] = None
    reporter_id: constr(min_length=1, max_length=128)

    # Content
    title: constr(min_length=1, max_length=512)
    description: Optional[str] = None
    location: Optional[str] = None
    category: Optional[constr(max_length=128)] = None
    priority: Priority = Priority.MEDIUM
    photos: Tuple[str, ...] = ()

    # Workflow
    status: Status = Status.PENDING_REVIEW
    assignee: Optional[Assignee] = None
    estimated_duration: Optional[str] = None
    due_date: Optional[date] = None
    review_comments: Optional[str] = None

    # Completion
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    completion_notes: Optional[str] = None
    materials_used: Optional[str] = None
    time_spent: Optional[str] = None
    completion_photos: Tuple[str, ...] = ()

    # Verification
    verified_at: Optional[datetime] = None
    verified_by: Optional[str] = None
    verification_notes: Optional[str] = None

    # Set when a completion is refused
    rejection_reason: Optional[str] = None

    history: Tuple[TransitionRecord, ...] = ()

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _assigned_requires_assignee(self) -> "Blocker":
        if self.status == Status.ASSIGNED and self.assignee is None:
            raise ValueError("an assigned blocker must have an assignee")
        return self


class BlockerCreate(BaseModel):
    """Schema for reporting a new blocker."""

    model_config = ConfigDict(extra="forbid")

    project_id: constr(min_length=1, max_length=128)
    company_id: Optional[constr(min_length=1, max_length=128)] = None
    title: constr(min_length=1, max_length=512)
    description: Optional[str] = None
    location: Optional[str] = None
    category: Optional[constr(max_length=128)] = None
    priority: Priority = Priority.MEDIUM
    photos: List[str] = Field(default_factory=list)
