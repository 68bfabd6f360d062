"""
Canonical Blocker Workflow Enums.

These enums define the allowed values for blocker status, workflow actions,
organisational roles and notification categories. Storage and UI layers
MUST map their values into these canonical sets.
"""

from enum import Enum


class Status(str, Enum):
    """Lifecycle status of a blocker."""

    PENDING_REVIEW = "pending_review"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    VERIFIED_COMPLETE = "verified_complete"
    REJECTED = "rejected"


class Action(str, Enum):
    """Actions an actor can request against a blocker.

    REVIEW and ASSIGN are capability gates used to decide whether the review
    form is offered; the transitions they lead to are APPROVE and REJECT.
    """

    REVIEW = "review"
    ASSIGN = "assign"
    APPROVE = "approve"
    REJECT = "reject"
    MARK_COMPLETE = "mark_complete"
    VERIFY_COMPLETE = "verify_complete"
    REJECT_COMPLETION = "reject_completion"


class Role(str, Enum):
    """Organisational roles, highest first."""

    COMPANY_OWNER = "company_owner"
    COMPANY_ADMIN = "company_admin"
    MAIN_CONTRACTOR = "main_contractor"
    PROJECT_MANAGER = "project_manager"
    SUPERVISOR = "supervisor"
    SUBCONTRACTOR = "subcontractor"
    FIELD_WORKER = "field_worker"


class Priority(str, Enum):
    """Blocker priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AssigneeKind(str, Enum):
    """What kind of party a blocker is assigned to."""

    CONTRACTOR = "contractor"
    USER = "user"


class NotificationCategory(str, Enum):
    """Categories of workflow notifications."""

    ASSIGNMENT = "assignment"
    VERIFICATION_NEEDED = "verification_needed"
    REJECTION = "rejection"
    COMPLETION_REJECTED = "completion_rejected"


class Capability(str, Enum):
    """Coarse capabilities that gate workflow actions."""

    # Review, assign, verify and reject blockers (main contractor and above)
    MANAGE_BLOCKERS = "manage_blockers"
    # Complete assigned work (the assignee, or any subcontractor)
    PERFORM_WORK = "perform_work"
