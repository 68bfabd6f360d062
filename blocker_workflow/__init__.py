"""
Blocker Workflow

Review, assignment, completion and verification of construction blockers.
"""

import importlib.metadata

__version__ = importlib.metadata.version("blocker-workflow")

from .workflow import (
    Action,
    Actor,
    Assignee,
    Blocker,
    BlockerCreate,
    Role,
    Status,
    TransitionPayload,
    apply_transition,
    can_perform,
    compute_notifications,
    create_blocker,
)

__all__ = [
    "Action",
    "Actor",
    "Assignee",
    "Blocker",
    "BlockerCreate",
    "Role",
    "Status",
    "TransitionPayload",
    "apply_transition",
    "can_perform",
    "compute_notifications",
    "create_blocker",
]
