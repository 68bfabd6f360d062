"""
Blocker workflow service layer.

Glues the pure engine to its collaborators: the blocker store, the audit
log and the notification dispatcher. One transition request is:

    load -> apply -> compare-and-swap save + history + audit (one commit)
         -> compute notifications -> best-effort dispatch

If any write before the commit fails, the transaction is rolled back and
the blocker keeps its old status, so the request can be retried.

Nothing is retried here. A ConflictError means another writer won the race;
the caller re-fetches and decides what to do.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union

import structlog
from sqlalchemy.orm import Session

from ..config import get_settings
from ..db.audit_service import AuditService
from ..db.notifications import DatabaseNotificationSender
from ..db.repository import BlockerStore, SqlBlockerStore
from .blocker import Blocker, BlockerCreate
from .engine import TransitionResult, apply_transition, create_blocker
from .enums import Action, AssigneeKind, Status
from .errors import ConflictError, WorkflowError
from .notifications import (
    DispatchReport,
    Notification,
    NotificationDispatcher,
    NotificationSender,
    compute_notifications,
)
from .permissions import available_actions
from .primitives import Actor, utc_now
from .transition import TransitionPayload

logger = structlog.get_logger()


@dataclass
class TransitionOutcome:
    """Everything a caller needs after a committed transition."""

    result: TransitionResult
    notifications: List[Notification] = field(default_factory=list)
    delivery: DispatchReport = field(default_factory=DispatchReport)

    @property
    def blocker(self) -> Blocker:
        return self.result.blocker


class BlockerWorkflowService:
    """Service for creating blockers and moving them through the workflow."""

    def __init__(
        self,
        db: Session,
        store: Optional[BlockerStore] = None,
        sender: Optional[NotificationSender] = None,
        audit: Optional[AuditService] = None,
        notifications_enabled: Optional[bool] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        settings = get_settings()
        self.db = db
        self.store = store or SqlBlockerStore(db)
        self.audit = audit or AuditService(db)
        if notifications_enabled is None:
            notifications_enabled = settings.notifications_enabled
        self.dispatcher = NotificationDispatcher(
            sender or DatabaseNotificationSender(db), enabled=notifications_enabled
        )
        self.clock = clock
        self.max_page_size = settings.max_page_size

    def create_blocker(self, data: BlockerCreate, reporter: Actor) -> Blocker:
        """Report a new blocker; it starts in pending_review."""
        blocker = create_blocker(data, reporter, now=self.clock())
        try:
            self.store.create(blocker)
            self.audit.record_created(
                blocker.id,
                blocker.model_dump(mode="json", exclude={"history"}),
                actor_id=reporter.actor_id,
                actor_role=reporter.role.value,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(
            "blocker_created",
            blocker_id=blocker.id,
            project_id=blocker.project_id,
            reporter_id=reporter.actor_id,
        )
        return blocker

    def get_blocker(self, blocker_id: str) -> Blocker:
        """Get a blocker by ID; raises BlockerNotFound."""
        return self.store.load(blocker_id)

    def list_blockers(
        self,
        project_id: Optional[str] = None,
        status: Optional[Status] = None,
        assignee_id: Optional[str] = None,
        viewer: Optional[Actor] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Blocker]:
        """List blockers; with ``viewer`` only those the viewer may see.

        Visibility is applied before paging, so ``limit`` and ``offset``
        count visible blockers.
        """
        return self.store.list_blockers(
            project_id=project_id,
            status=status,
            assignee_id=assignee_id,
            viewer=viewer,
            limit=min(limit, self.max_page_size),
            offset=offset,
        )

    def status_counts(
        self, project_id: Optional[str] = None, viewer: Optional[Actor] = None
    ) -> Dict[str, int]:
        """Counts by status for dashboard tab badges, over every matching blocker."""
        return self.store.count_by_status(project_id=project_id, viewer=viewer)

    def available_actions(self, blocker_id: str, actor: Actor) -> List[Action]:
        """Actions the actor may perform on the blocker right now."""
        return available_actions(actor, self.store.load(blocker_id))

    def _resolve_assignee(self, payload: Optional[TransitionPayload]) -> Optional[TransitionPayload]:
        """Fill in contractor details the caller did not supply."""
        if payload is None or payload.assignee is None:
            return payload
        if payload.assignee.kind != AssigneeKind.CONTRACTOR:
            return payload
        contractor = self.store.get_contractor(payload.assignee.id)
        if contractor is None:
            return payload
        explicit = payload.assignee.model_dump(exclude_unset=True)
        return payload.model_copy(update={"assignee": contractor.model_copy(update=explicit)})

    def request_transition(
        self,
        blocker_id: str,
        action: Union[Action, str],
        actor: Actor,
        payload: Optional[TransitionPayload] = None,
    ) -> TransitionOutcome:
        """
        Apply a workflow action and persist it.

        Args:
            blocker_id: Blocker to act on
            action: Requested workflow action
            actor: Acting user (identity and role)
            payload: Action-specific input

        Returns:
            TransitionOutcome with the new snapshot, history record,
            computed notifications and their delivery report

        Raises:
            BlockerNotFound: No such blocker
            UnauthorizedAction, InvalidTransition, IncompletePayload: from the engine
            ConflictError: The blocker's status changed since it was loaded
        """
        log = logger.bind(blocker_id=blocker_id, action=str(action), actor_id=actor.actor_id)

        blocker = self.store.load(blocker_id)
        try:
            result = apply_transition(
                blocker, action, actor, self._resolve_assignee(payload), now=self.clock()
            )
        except WorkflowError as e:
            log.info("transition_refused", code=e.code, status=blocker.status.value)
            raise

        record = result.record
        try:
            if not self.store.compare_and_swap_save(
                result.blocker, expected_old_status=blocker.status
            ):
                log.warning("transition_conflict", expected_status=blocker.status.value)
                raise ConflictError(
                    f"Blocker '{blocker_id}' is no longer '{blocker.status.value}'",
                    blocker_id=blocker_id,
                    expected_status=blocker.status.value,
                )
            self.store.append_history(record)
            self.audit.record_transition(
                blocker_id,
                old_status=record.old_status.value,
                new_status=record.new_status.value,
                actor_id=actor.actor_id,
                actor_role=actor.role.value,
                snapshot=result.blocker.model_dump(mode="json", exclude={"history"}),
                note=record.comments,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        log.info(
            "transition_applied",
            old_status=record.old_status.value,
            new_status=record.new_status.value,
            transition_id=record.id,
        )

        company_users = []
        if result.blocker.company_id:
            company_users = self.store.list_company_users(result.blocker.company_id)
        elif record.new_status == Status.COMPLETED:
            log.warning("no_verifiers_for_blocker")
        notifications = compute_notifications(
            result.old_blocker, result.blocker, record, company_users
        )
        delivery = self.dispatcher.dispatch(notifications)

        return TransitionOutcome(result=result, notifications=notifications, delivery=delivery)
