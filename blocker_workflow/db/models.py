"""
SQLAlchemy models for the blocker workflow.

Tables:
- blockers: current snapshot of every blocker (never hard-deleted)
- status_history: append-only transition records
- user_profiles: company directory used for notification recipients
- contractors: companies/people blockers are assigned to
- notifications: in-app notifications written by DatabaseNotificationSender
"""

from typing import Any, Dict

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..workflow.enums import Action, NotificationCategory, Priority, Role, Status
from .base import Base


def _values(enum_cls) -> list:
    return [member.value for member in enum_cls]


blocker_status_enum = Enum(*_values(Status), name="blocker_status")
blocker_priority_enum = Enum(*_values(Priority), name="blocker_priority")
workflow_action_enum = Enum(*_values(Action), name="workflow_action")
user_role_enum = Enum(*_values(Role), name="user_role")
notification_type_enum = Enum(*_values(NotificationCategory), name="notification_type")


def _iso(value) -> Any:
    return value.isoformat() if value else None


class BlockerModel(Base):
    """Current state of a blocker."""

    __tablename__ = "blockers"

    id = Column(String(128), primary_key=True)
    project_id = Column(String(128), nullable=False, index=True)
    company_id = Column(String(128), nullable=True, index=True)
    reporter_id = Column(String(128), nullable=False, index=True)

    # Content
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    category = Column(String(128), nullable=True)
    priority = Column(blocker_priority_enum, nullable=False, default="medium")
    photos = Column(JSON, nullable=False, default=list)

    # Workflow
    status = Column(blocker_status_enum, nullable=False, default="pending_review", index=True)
    assignee_id = Column(String(128), nullable=True, index=True)
    assignee_kind = Column(String(32), nullable=True)
    assignee_name = Column(String(256), nullable=True)
    assignee_trade = Column(String(128), nullable=True)
    assignee_contact_user_id = Column(String(128), nullable=True)
    estimated_duration = Column(String(128), nullable=True)
    due_date = Column(Date, nullable=True)
    review_comments = Column(Text, nullable=True)

    # Completion
    completed_at = Column(DateTime(timezone=True), nullable=True)
    completed_by = Column(String(128), nullable=True)
    completion_notes = Column(Text, nullable=True)
    materials_used = Column(Text, nullable=True)
    time_spent = Column(String(128), nullable=True)
    completion_photos = Column(JSON, nullable=False, default=list)

    # Verification
    verified_at = Column(DateTime(timezone=True), nullable=True)
    verified_by = Column(String(128), nullable=True)
    verification_notes = Column(Text, nullable=True)

    rejection_reason = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    history = relationship(
        "StatusHistoryModel",
        back_populates="blocker",
        order_by=lambda: StatusHistoryModel.sequence,
    )

    __table_args__ = (
        Index("ix_blockers_project_status", "project_id", "status"),
        Index("ix_blockers_assignee_status", "assignee_id", "status"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "company_id": self.company_id,
            "reporter_id": self.reporter_id,
            "title": self.title,
            "priority": self.priority,
            "status": self.status,
            "assignee_id": self.assignee_id,
            "completed_at": _iso(self.completed_at),
            "verified_at": _iso(self.verified_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class StatusHistoryModel(Base):
    """Append-only record of one blocker transition."""

    __tablename__ = "status_history"

    id = Column(String(128), primary_key=True)
    blocker_id = Column(
        String(128), ForeignKey("blockers.id"), nullable=False, index=True
    )
    # 1-based position in the blocker's history
    sequence = Column(Integer, nullable=False)
    action = Column(workflow_action_enum, nullable=False)
    old_status = Column(blocker_status_enum, nullable=False)
    new_status = Column(blocker_status_enum, nullable=False)
    changed_by = Column(String(128), nullable=False, index=True)
    changed_by_role = Column(user_role_enum, nullable=False)
    changed_at = Column(DateTime(timezone=True), nullable=False)
    comments = Column(Text, nullable=True)
    meta = Column("metadata", JSON, nullable=False, default=dict)

    blocker = relationship("BlockerModel", back_populates="history")

    __table_args__ = (
        Index("ix_status_history_blocker_changed", "blocker_id", "changed_at"),
        UniqueConstraint("blocker_id", "sequence", name="uq_status_history_blocker_sequence"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "blocker_id": self.blocker_id,
            "sequence": self.sequence,
            "action": self.action,
            "old_status": self.old_status,
            "new_status": self.new_status,
            "changed_by": self.changed_by,
            "changed_by_role": self.changed_by_role,
            "changed_at": _iso(self.changed_at),
            "comments": self.comments,
            "metadata": self.meta,
        }


class UserProfileModel(Base):
    """Company member."""

    __tablename__ = "user_profiles"

    id = Column(String(128), primary_key=True)
    company_id = Column(String(128), nullable=False, index=True)
    full_name = Column(String(256), nullable=True)
    email = Column(String(320), nullable=True)
    role = Column(user_role_enum, nullable=False, index=True)
    status = Column(
        Enum("active", "inactive", name="user_status"),
        nullable=False,
        default="active",
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "company_id": self.company_id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role,
            "status": self.status,
        }


class ContractorModel(Base):
    """A contractor blockers can be assigned to."""

    __tablename__ = "contractors"

    id = Column(String(128), primary_key=True)
    company_id = Column(String(128), nullable=False, index=True)
    name = Column(String(256), nullable=False)
    trade_type = Column(String(128), nullable=True)
    primary_contact_user_id = Column(String(128), nullable=True)
    status = Column(
        Enum("active", "inactive", name="contractor_status"),
        nullable=False,
        default="active",
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "trade_type": self.trade_type,
            "primary_contact_user_id": self.primary_contact_user_id,
            "status": self.status,
        }


class NotificationModel(Base):
    """In-app notification."""

    __tablename__ = "notifications"

    id = Column(String(128), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    title = Column(String(256), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(notification_type_enum, nullable=False)
    meta = Column("metadata", JSON, nullable=False, default=dict)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = (Index("ix_notifications_user_read", "user_id", "read"),)

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "metadata": self.meta,
            "read": self.read,
            "created_at": _iso(self.created_at),
        }
