"""
Workflow notification dispatcher.

``compute_notifications`` decides who must hear about a transition and what
they are told. It is a pure function of the before/after snapshots, the
history record and the company directory, so it can be tested without any
delivery mechanism.

``NotificationDispatcher`` hands the computed list to a NotificationSender.
Delivery is best effort: a failure is logged and never affects the
transition that caused it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog
from pydantic import BaseModel, ConfigDict, Field

from .blocker import Blocker
from .enums import NotificationCategory, Status
from .errors import NotificationDeliveryFailure
from .permissions import MANAGER_ROLE, is_at_least
from .primitives import CompanyUser
from .transition import TransitionRecord

logger = structlog.get_logger()


class Notification(BaseModel):
    """A message to one recipient about one transition."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    recipient: str = Field(..., description="User ID of the recipient")
    title: str
    message: str
    category: NotificationCategory
    meta: Dict[str, Any] = Field(default_factory=dict)


def _base_meta(blocker: Blocker, record: TransitionRecord) -> Dict[str, Any]:
    return {
        "blocker_id": blocker.id,
        "project_id": blocker.project_id,
        "transition_id": record.id,
        "old_status": record.old_status.value,
        "new_status": record.new_status.value,
    }


def _verifiers(company_users: Sequence[CompanyUser]) -> List[CompanyUser]:
    """Active users at or above main contractor, ordered by ID, without duplicates."""
    seen = {}
    for user in company_users:
        if user.active and is_at_least(user.role, MANAGER_ROLE):
            seen.setdefault(user.id, user)
    return [seen[user_id] for user_id in sorted(seen)]


def compute_notifications(
    old_blocker: Blocker,
    new_blocker: Blocker,
    record: TransitionRecord,
    company_users: Sequence[CompanyUser] = (),
) -> List[Notification]:
    """
    Compute the notifications a transition requires.

    Rules:
    - pending_review -> assigned: the new assignee is told of the assignment
    - assigned -> completed: every active company user at or above
      main_contractor is asked to verify
    - any -> rejected: the reporter is told, with the rejection comments
    - completed -> assigned: the assignee is told the completion was refused

    Args:
        old_blocker: Snapshot before the transition
        new_blocker: Snapshot after the transition
        record: History record of the transition
        company_users: Directory of the blocker's company

    Returns:
        Notifications in a deterministic order
    """
    old_status = old_blocker.status
    new_status = new_blocker.status
    meta = _base_meta(new_blocker, record)
    notifications: List[Notification] = []

    if old_status == Status.PENDING_REVIEW and new_status == Status.ASSIGNED:
        notifications.append(
            Notification(
                recipient=new_blocker.assignee.notification_recipient,
                title="New Blocker Assigned",
                message=f"You have been assigned blocker: {new_blocker.title}",
                category=NotificationCategory.ASSIGNMENT,
                meta=meta,
            )
        )

    elif old_status == Status.ASSIGNED and new_status == Status.COMPLETED:
        for user in _verifiers(company_users):
            notifications.append(
                Notification(
                    recipient=user.id,
                    title="Blocker Completed - Verification Needed",
                    message=(
                        f'Blocker "{new_blocker.title}" has been marked complete '
                        "and needs verification"
                    ),
                    category=NotificationCategory.VERIFICATION_NEEDED,
                    meta=meta,
                )
            )

    elif old_status == Status.COMPLETED and new_status == Status.ASSIGNED:
        notifications.append(
            Notification(
                recipient=new_blocker.assignee.notification_recipient,
                title="Blocker Completion Rejected",
                message=(
                    f'Completion of blocker "{new_blocker.title}" was rejected: '
                    f"{record.comments}"
                ),
                category=NotificationCategory.COMPLETION_REJECTED,
                meta=meta,
            )
        )

    if new_status == Status.REJECTED:
        notifications.append(
            Notification(
                recipient=new_blocker.reporter_id,
                title="Blocker Rejected",
                message=f'Your blocker "{new_blocker.title}" was rejected: {record.comments}',
                category=NotificationCategory.REJECTION,
                meta=meta,
            )
        )

    return notifications


class NotificationSender(ABC):
    """Delivers notifications (in-app, email, ...).

    Implementations raise NotificationDeliveryFailure when a notification
    cannot be delivered.
    """

    @abstractmethod
    def send(self, notification: Notification) -> None:
        """Deliver one notification."""
        pass


@dataclass
class DispatchReport:
    """What happened when a batch of notifications was handed to a sender."""

    delivered: int = 0
    failed: List[Tuple[Notification, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class NotificationDispatcher:
    """Best-effort delivery of computed notifications.

    Usage:
        dispatcher = NotificationDispatcher(sender)
        report = dispatcher.dispatch(compute_notifications(old, new, record, users))
    """

    def __init__(self, sender: Optional[NotificationSender], enabled: bool = True):
        self.sender = sender
        self.enabled = enabled and sender is not None
        self.logger = logger.bind(
            sender=type(sender).__name__ if sender is not None else None
        )

    def dispatch(self, notifications: Sequence[Notification]) -> DispatchReport:
        """Send every notification; failures are recorded and logged, never raised."""
        report = DispatchReport()
        if not self.enabled:
            if notifications:
                self.logger.info("notifications_skipped", count=len(notifications))
            return report

        for notification in notifications:
            blocker_id = notification.meta.get("blocker_id")
            try:
                self.sender.send(notification)
            except NotificationDeliveryFailure as e:
                report.failed.append((notification, e.message))
                self.logger.warning(
                    "notification_delivery_failed",
                    blocker_id=blocker_id,
                    recipient=notification.recipient,
                    category=notification.category.value,
                    error=e.message,
                )
            except Exception as e:
                report.failed.append((notification, str(e)))
                self.logger.exception(
                    "notification_delivery_error",
                    blocker_id=blocker_id,
                    recipient=notification.recipient,
                    category=notification.category.value,
                )
            else:
                report.delivered += 1

        self.logger.info(
            "notifications_dispatched",
            delivered=report.delivered,
            failed=len(report.failed),
        )
        return report
