"""
Blocker audit log service.

BlockerWorkflowService calls ``record_created`` when a blocker is reported
and ``record_transition`` for each transition, inside the same transaction
as the change itself. Writes only flush; the caller commits.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..workflow.primitives import generate_ulid, utc_now
from .audit_models import AuditLogModel


class AuditService:
    """Writes and reads the blocker audit trail.

    Usage:
        audit = AuditService(db_session)
        audit.record_created(blocker.id, snapshot, actor_id="fw-1", actor_role="field_worker")
        audit.for_blocker(blocker.id)
    """

    def __init__(self, db: Session):
        self.db = db

    def _record(self, **columns: Any) -> AuditLogModel:
        entry = AuditLogModel(id=generate_ulid(), recorded_at=utc_now(), **columns)
        self.db.add(entry)
        self.db.flush()
        return entry

    def record_created(
        self,
        blocker_id: str,
        snapshot: Dict[str, Any],
        actor_id: str,
        actor_role: Optional[str] = None,
        note: Optional[str] = None,
    ) -> AuditLogModel:
        """Audit a newly reported blocker with its initial snapshot."""
        return self._record(
            blocker_id=blocker_id,
            event="created",
            actor_id=actor_id,
            actor_role=actor_role,
            new_status=snapshot.get("status"),
            snapshot=snapshot,
            note=note,
        )

    def record_transition(
        self,
        blocker_id: str,
        old_status: str,
        new_status: str,
        actor_id: str,
        actor_role: Optional[str] = None,
        snapshot: Optional[Dict[str, Any]] = None,
        note: Optional[str] = None,
    ) -> AuditLogModel:
        """Audit a transition in the caller's open transaction.

        Args:
            blocker_id: Blocker that moved
            old_status: Status before the transition
            new_status: Status after the transition
            actor_id: Who requested it
            actor_role: Their role at the time
            snapshot: Optional state after the transition
            note: Free text; defaults to "old -> new"
        """
        return self._record(
            blocker_id=blocker_id,
            event="status_changed",
            actor_id=actor_id,
            actor_role=actor_role,
            old_status=old_status,
            new_status=new_status,
            snapshot=snapshot,
            note=note or f"{old_status} -> {new_status}",
        )

    def for_blocker(self, blocker_id: str, limit: int = 100, offset: int = 0) -> List[AuditLogModel]:
        """Audit trail of one blocker, oldest first."""
        return (
            self.db.query(AuditLogModel)
            .filter(AuditLogModel.blocker_id == blocker_id)
            .order_by(AuditLogModel.recorded_at, AuditLogModel.id)
            .offset(offset)
            .limit(limit)
            .all()
        )

    def by_actor(self, actor_id: str, limit: int = 100, offset: int = 0) -> List[AuditLogModel]:
        """Everything one user did, newest first."""
        return (
            self.db.query(AuditLogModel)
            .filter(AuditLogModel.actor_id == actor_id)
            .order_by(desc(AuditLogModel.recorded_at))
            .offset(offset)
            .limit(limit)
            .all()
        )
