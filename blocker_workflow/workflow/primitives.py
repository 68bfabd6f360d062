"""
Blocker Workflow Common Primitives.

Building blocks shared by blockers, transitions and notifications.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, constr
from ulid import ULID

from .enums import AssigneeKind, Role


def generate_ulid() -> str:
    """Generate a ULID for object IDs.

    ULIDs are lexicographically sortable and globally unique.
    """
    return str(ULID())


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class Actor(BaseModel):
    """The explicit session context for a workflow call.

    Every engine call receives the acting user's identity and role; there is
    no ambient session state.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    actor_id: constr(min_length=1, max_length=128) = Field(
        ..., description="Unique identifier for the acting user"
    )
    role: Role = Field(..., description="Organisational role of the actor")
    display: Optional[constr(min_length=1, max_length=256)] = Field(
        None, description="Human-readable display name"
    )


class Assignee(BaseModel):
    """Reference to the contractor or user a blocker is assigned to.

    Owned by the company; the workflow only references it.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: constr(min_length=1, max_length=128) = Field(
        ..., description="Contractor or user ID"
    )
    kind: AssigneeKind = Field(
        default=AssigneeKind.CONTRACTOR, description="Contractor or user"
    )
    display_name: Optional[constr(max_length=256)] = Field(
        None, description="Human-readable name"
    )
    trade_type: Optional[constr(max_length=128)] = Field(
        None, description="Trade of the contractor (e.g. 'electrical')"
    )
    contact_user_id: Optional[constr(min_length=1, max_length=128)] = Field(
        None, description="User who acts for a contractor (receives notifications)"
    )

    def represents(self, actor_id: str) -> bool:
        """True when the given user acts as this assignee."""
        return actor_id == self.id or (
            self.contact_user_id is not None and actor_id == self.contact_user_id
        )

    @property
    def notification_recipient(self) -> str:
        return self.contact_user_id or self.id


class CompanyUser(BaseModel):
    """A member of the company directory, used to resolve notification recipients."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: constr(min_length=1, max_length=128)
    role: Role
    full_name: Optional[str] = None
    email: Optional[str] = None
    active: bool = True
