"""
Blocker audit trail.

status_history drives the workflow; audit_log answers "who did what to
which blocker, and what did it look like afterwards" for dispute
reporting. Rows are written in the same transaction as the workflow change and
are never updated.
"""

from typing import Any, Dict

from sqlalchemy import JSON, Column, DateTime, Enum, Index, String, Text
from sqlalchemy.sql import func

from .base import Base

AUDIT_EVENTS = ("created", "status_changed")

audit_event_enum = Enum(*AUDIT_EVENTS, name="audit_event")


class AuditLogModel(Base):
    """One audit entry: a reported blocker or a status transition."""

    __tablename__ = "audit_log"

    id = Column(String(36), primary_key=True)
    recorded_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    blocker_id = Column(String(128), nullable=False, index=True)
    event = Column(audit_event_enum, nullable=False)

    actor_id = Column(String(128), nullable=False, index=True)
    actor_role = Column(String(64), nullable=True)

    # Only set for status_changed
    old_status = Column(String(32), nullable=True)
    new_status = Column(String(32), nullable=True)

    snapshot = Column(JSON, nullable=True)
    note = Column(Text, nullable=True)

    __table_args__ = (
        Index("ix_audit_log_blocker_recorded", "blocker_id", "recorded_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "recorded_at": self.recorded_at.isoformat() if self.recorded_at else None,
            "blocker_id": self.blocker_id,
            "event": self.event,
            "actor_id": self.actor_id,
            "actor_role": self.actor_role,
            "old_status": self.old_status,
            "new_status": self.new_status,
            "snapshot": self.snapshot,
            "note": self.note,
        }
