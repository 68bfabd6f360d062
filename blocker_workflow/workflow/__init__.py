"""
Blocker Workflow Engine

A storage-agnostic state machine for construction blockers:

- Status Table: statuses, allowed actions, transitions, visibility
- Permission Evaluator: can_perform / can_view over the role hierarchy
- Transition Engine: apply_transition -> new snapshot + history record
- Notification Dispatcher: compute_notifications + best-effort delivery
- Query Layer: filters and counts over fetched blockers

Lifecycle:
    pending_review -> assigned -> completed -> verified_complete
    pending_review -> rejected
    completed -> assigned (completion rejected)
"""

# Enums
from .enums import (
    Action,
    AssigneeKind,
    Capability,
    NotificationCategory,
    Priority,
    Role,
    Status,
)

# Primitives
from .primitives import Actor, Assignee, CompanyUser, generate_ulid, utc_now

# Object types
from .transition import TransitionPayload, TransitionRecord
from .blocker import Blocker, BlockerCreate

# Status table and permissions
from .status_table import STATUS_TABLE, TRANSITIONS, StatusDefinition, get_definition
from .permissions import (
    ROLE_HIERARCHY,
    available_actions,
    can_perform,
    can_view,
    is_at_least,
    rank_of,
    statuses_visible_to,
)

# Errors
from .errors import (
    BlockerNotFound,
    ConflictError,
    IncompletePayload,
    InvalidTransition,
    NotificationDeliveryFailure,
    UnauthorizedAction,
    WorkflowError,
)

# Engine, notifications, queries
from .engine import TransitionResult, apply_transition, create_blocker
from .notifications import (
    DispatchReport,
    Notification,
    NotificationDispatcher,
    NotificationSender,
    compute_notifications,
)
from .queries import counts_by_status, filter_blockers, select_blockers

__all__ = [
    # Enums
    "Action",
    "AssigneeKind",
    "Capability",
    "NotificationCategory",
    "Priority",
    "Role",
    "Status",
    # Primitives
    "Actor",
    "Assignee",
    "CompanyUser",
    "generate_ulid",
    "utc_now",
    # Object types
    "Blocker",
    "BlockerCreate",
    "TransitionPayload",
    "TransitionRecord",
    "TransitionResult",
    # Status table and permissions
    "STATUS_TABLE",
    "TRANSITIONS",
    "StatusDefinition",
    "get_definition",
    "ROLE_HIERARCHY",
    "available_actions",
    "can_perform",
    "can_view",
    "statuses_visible_to",
    "is_at_least",
    "rank_of",
    # Errors
    "WorkflowError",
    "UnauthorizedAction",
    "InvalidTransition",
    "IncompletePayload",
    "ConflictError",
    "BlockerNotFound",
    "NotificationDeliveryFailure",
    # Engine, notifications, queries
    "apply_transition",
    "create_blocker",
    "compute_notifications",
    "Notification",
    "NotificationDispatcher",
    "NotificationSender",
    "DispatchReport",
    "counts_by_status",
    "filter_blockers",
    "select_blockers",
]
