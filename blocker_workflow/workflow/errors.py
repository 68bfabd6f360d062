"""
Workflow error taxonomy.

Every error carries a stable ``code`` for programmatic handling and a
human-readable ``message``. None of them is raised after state has been
mutated.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class WorkflowError(Exception):
    """
    Base class for blocker workflow errors.

    Attributes:
        code: Stable error code for programmatic handling
        message: Human-readable error description
        blocker_id: The blocker the request was made against, if known
    """

    code = "WORKFLOW_ERROR"

    def __init__(self, message: str, blocker_id: Optional[str] = None):
        self.message = message
        self.blocker_id = blocker_id
        super().__init__(f"{self.code}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "error": "workflow_error",
            "code": self.code,
            "message": self.message,
            "blocker_id": self.blocker_id,
        }


class UnauthorizedAction(WorkflowError):
    """The actor lacks the capability for the requested action."""

    code = "UNAUTHORIZED_ACTION"


class InvalidTransition(WorkflowError):
    """The action is not legal from the blocker's current status."""

    code = "INVALID_TRANSITION"


class IncompletePayload(WorkflowError):
    """A field required by the action is missing or blank."""

    code = "INCOMPLETE_PAYLOAD"

    def __init__(self, message: str, field: str, blocker_id: Optional[str] = None):
        self.field = field
        super().__init__(message, blocker_id=blocker_id)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["field"] = self.field
        return data


class ConflictError(WorkflowError):
    """The blocker's status changed between read and write."""

    code = "STATE_CONFLICT"

    def __init__(
        self,
        message: str,
        blocker_id: Optional[str] = None,
        expected_status: Optional[str] = None,
    ):
        self.expected_status = expected_status
        super().__init__(message, blocker_id=blocker_id)


class BlockerNotFound(WorkflowError):
    """No blocker exists with the requested ID."""

    code = "BLOCKER_NOT_FOUND"


class NotificationDeliveryFailure(WorkflowError):
    """A notification could not be delivered. Logged, never propagated."""

    code = "NOTIFICATION_DELIVERY_FAILED"

    def __init__(
        self,
        message: str,
        recipient: Optional[str] = None,
        blocker_id: Optional[str] = None,
    ):
        self.recipient = recipient
        super().__init__(message, blocker_id=blocker_id)
