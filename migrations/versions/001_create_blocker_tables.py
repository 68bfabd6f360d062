"""Create blocker workflow tables

Revision ID: 001_create_blocker_tables
Revises:
Create Date: 2026-10-19

"""
import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001_create_blocker_tables"
down_revision = None
branch_labels = None
depends_on = None

BLOCKER_STATUSES = ("pending_review", "assigned", "completed", "verified_complete", "rejected")
PRIORITIES = ("low", "medium", "high", "critical")
ACTIONS = (
    "review",
    "assign",
    "approve",
    "reject",
    "mark_complete",
    "verify_complete",
    "reject_completion",
)
ROLES = (
    "company_owner",
    "company_admin",
    "main_contractor",
    "project_manager",
    "supervisor",
    "subcontractor",
    "field_worker",
)
NOTIFICATION_TYPES = ("assignment", "verification_needed", "rejection", "completion_rejected")


def upgrade() -> None:
    # Create blockers table
    op.create_table(
        "blockers",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("project_id", sa.String(128), nullable=False, index=True),
        sa.Column("company_id", sa.String(128), nullable=True, index=True),
        sa.Column("reporter_id", sa.String(128), nullable=False, index=True),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("location", sa.Text, nullable=True),
        sa.Column("category", sa.String(128), nullable=True),
        sa.Column(
            "priority",
            sa.Enum(*PRIORITIES, name="blocker_priority"),
            nullable=False,
            server_default="medium",
        ),
        sa.Column("photos", sa.JSON, nullable=False),
        sa.Column(
            "status",
            sa.Enum(*BLOCKER_STATUSES, name="blocker_status"),
            nullable=False,
            server_default="pending_review",
            index=True,
        ),
        sa.Column("assignee_id", sa.String(128), nullable=True, index=True),
        sa.Column("assignee_kind", sa.String(32), nullable=True),
        sa.Column("assignee_name", sa.String(256), nullable=True),
        sa.Column("assignee_trade", sa.String(128), nullable=True),
        sa.Column("assignee_contact_user_id", sa.String(128), nullable=True),
        sa.Column("estimated_duration", sa.String(128), nullable=True),
        sa.Column("due_date", sa.Date, nullable=True),
        sa.Column("review_comments", sa.Text, nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_by", sa.String(128), nullable=True),
        sa.Column("completion_notes", sa.Text, nullable=True),
        sa.Column("materials_used", sa.Text, nullable=True),
        sa.Column("time_spent", sa.String(128), nullable=True),
        sa.Column("completion_photos", sa.JSON, nullable=False),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verified_by", sa.String(128), nullable=True),
        sa.Column("verification_notes", sa.Text, nullable=True),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_blockers_project_status", "blockers", ["project_id", "status"])
    op.create_index("ix_blockers_assignee_status", "blockers", ["assignee_id", "status"])

    # Create status_history table
    op.create_table(
        "status_history",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column(
            "blocker_id",
            sa.String(128),
            sa.ForeignKey("blockers.id"),
            nullable=False,
            index=True,
        ),
        sa.Column("sequence", sa.Integer, nullable=False),
        sa.Column("action", sa.Enum(*ACTIONS, name="workflow_action"), nullable=False),
        sa.Column(
            "old_status",
            postgresql.ENUM(*BLOCKER_STATUSES, name="blocker_status", create_type=False),
            nullable=False,
        ),
        sa.Column(
            "new_status",
            postgresql.ENUM(*BLOCKER_STATUSES, name="blocker_status", create_type=False),
            nullable=False,
        ),
        sa.Column("changed_by", sa.String(128), nullable=False, index=True),
        sa.Column("changed_by_role", sa.Enum(*ROLES, name="user_role"), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("comments", sa.Text, nullable=True),
        sa.Column("metadata", sa.JSON, nullable=False),
        sa.UniqueConstraint("blocker_id", "sequence", name="uq_status_history_blocker_sequence"),
    )
    op.create_index(
        "ix_status_history_blocker_changed", "status_history", ["blocker_id", "changed_at"]
    )

    # Create user_profiles table
    op.create_table(
        "user_profiles",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("company_id", sa.String(128), nullable=False, index=True),
        sa.Column("full_name", sa.String(256), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column(
            "role",
            postgresql.ENUM(*ROLES, name="user_role", create_type=False),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "status",
            sa.Enum("active", "inactive", name="user_status"),
            nullable=False,
            server_default="active",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # Create contractors table
    op.create_table(
        "contractors",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("company_id", sa.String(128), nullable=False, index=True),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("trade_type", sa.String(128), nullable=True),
        sa.Column("primary_contact_user_id", sa.String(128), nullable=True),
        sa.Column(
            "status",
            sa.Enum("active", "inactive", name="contractor_status"),
            nullable=False,
            server_default="active",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # Create notifications table
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False, index=True),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column(
            "type",
            sa.Enum(*NOTIFICATION_TYPES, name="notification_type"),
            nullable=False,
        ),
        sa.Column("metadata", sa.JSON, nullable=False),
        sa.Column("read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "read"])

    # Create audit_log table
    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "recorded_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("blocker_id", sa.String(128), nullable=False, index=True),
        sa.Column(
            "event",
            sa.Enum("created", "status_changed", name="audit_event"),
            nullable=False,
        ),
        sa.Column("actor_id", sa.String(128), nullable=False, index=True),
        sa.Column("actor_role", sa.String(64), nullable=True),
        sa.Column("old_status", sa.String(32), nullable=True),
        sa.Column("new_status", sa.String(32), nullable=True),
        sa.Column("snapshot", sa.JSON, nullable=True),
        sa.Column("note", sa.Text, nullable=True),
    )
    op.create_index(
        "ix_audit_log_blocker_recorded", "audit_log", ["blocker_id", "recorded_at"]
    )


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table("audit_log")
    op.drop_table("notifications")
    op.drop_table("contractors")
    op.drop_table("user_profiles")
    op.drop_table("status_history")
    op.drop_table("blockers")

    # Drop custom enums (PostgreSQL only)
    if op.get_bind().dialect.name != "postgresql":
        return
    op.execute("DROP TYPE IF EXISTS audit_event")
    op.execute("DROP TYPE IF EXISTS notification_type")
    op.execute("DROP TYPE IF EXISTS contractor_status")
    op.execute("DROP TYPE IF EXISTS user_status")
    op.execute("DROP TYPE IF EXISTS user_role")
    op.execute("DROP TYPE IF EXISTS workflow_action")
    op.execute("DROP TYPE IF EXISTS blocker_status")
    op.execute("DROP TYPE IF EXISTS blocker_priority")
