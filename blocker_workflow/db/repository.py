"""
Blocker persistence.

``BlockerStore`` is the contract the workflow service needs from storage.
``SqlBlockerStore`` implements it on SQLAlchemy. Store methods only flush;
the caller owns the transaction and commits once per logical operation.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, func, or_, update
from sqlalchemy.orm import Session

from ..workflow.blocker import Blocker
from ..workflow.enums import AssigneeKind, Status
from ..workflow.errors import BlockerNotFound
from ..workflow.permissions import statuses_visible_to
from ..workflow.primitives import Actor, Assignee, CompanyUser
from ..workflow.transition import TransitionRecord
from .models import BlockerModel, ContractorModel, StatusHistoryModel, UserProfileModel


class BlockerStore(ABC):
    """Persistence collaborator for the workflow service."""

    @abstractmethod
    def load(self, blocker_id: str) -> Blocker:
        """Return the blocker with its history or raise BlockerNotFound."""
        pass

    @abstractmethod
    def create(self, blocker: Blocker) -> Blocker:
        """Insert a new blocker."""
        pass

    @abstractmethod
    def compare_and_swap_save(self, blocker: Blocker, expected_old_status: Status) -> bool:
        """Save ``blocker`` only if its stored status is still ``expected_old_status``.

        Returns False when another writer changed the status first.
        """
        pass

    @abstractmethod
    def append_history(self, record: TransitionRecord) -> None:
        """Append one transition record."""
        pass

    @abstractmethod
    def list_blockers(
        self,
        project_id: Optional[str] = None,
        status: Optional[Status] = None,
        assignee_id: Optional[str] = None,
        viewer: Optional[Actor] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Blocker]:
        """Fetch blockers, newest first.

        With ``viewer``, only blockers the viewer may see are returned and
        paging counts visible blockers only.
        """
        pass

    @abstractmethod
    def count_by_status(
        self, project_id: Optional[str] = None, viewer: Optional[Actor] = None
    ) -> Dict[str, int]:
        """Counts per status over every matching blocker, plus an ``all`` total."""
        pass

    @abstractmethod
    def list_company_users(self, company_id: str) -> List[CompanyUser]:
        """Directory of a company's users."""
        pass

    @abstractmethod
    def get_contractor(self, contractor_id: str) -> Optional[Assignee]:
        """Contractor reference by ID, or None."""
        pass


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo; every stored instant is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _record_to_domain(row: StatusHistoryModel) -> TransitionRecord:
    return TransitionRecord(
        id=row.id,
        blocker_id=row.blocker_id,
        action=row.action,
        old_status=row.old_status,
        new_status=row.new_status,
        actor_id=row.changed_by,
        actor_role=row.changed_by_role,
        timestamp=_as_utc(row.changed_at),
        comments=row.comments,
        meta=row.meta or {},
    )


def _to_domain(row: BlockerModel) -> Blocker:
    assignee = None
    if row.assignee_id:
        assignee = Assignee(
            id=row.assignee_id,
            kind=row.assignee_kind or AssigneeKind.CONTRACTOR,
            display_name=row.assignee_name,
            trade_type=row.assignee_trade,
            contact_user_id=row.assignee_contact_user_id,
        )
    return Blocker(
        id=row.id,
        project_id=row.project_id,
        company_id=row.company_id,
        reporter_id=row.reporter_id,
        title=row.title,
        description=row.description,
        location=row.location,
        category=row.category,
        priority=row.priority,
        photos=tuple(row.photos or ()),
        status=row.status,
        assignee=assignee,
        estimated_duration=row.estimated_duration,
        due_date=row.due_date,
        review_comments=row.review_comments,
        completed_at=_as_utc(row.completed_at),
        completed_by=row.completed_by,
        completion_notes=row.completion_notes,
        materials_used=row.materials_used,
        time_spent=row.time_spent,
        completion_photos=tuple(row.completion_photos or ()),
        verified_at=_as_utc(row.verified_at),
        verified_by=row.verified_by,
        verification_notes=row.verification_notes,
        rejection_reason=row.rejection_reason,
        history=tuple(_record_to_domain(h) for h in row.history),
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _to_columns(blocker: Blocker) -> Dict[str, Any]:
    """Column values for a blocker snapshot (everything but id and history)."""
    assignee = blocker.assignee
    return {
        "project_id": blocker.project_id,
        "company_id": blocker.company_id,
        "reporter_id": blocker.reporter_id,
        "title": blocker.title,
        "description": blocker.description,
        "location": blocker.location,
        "category": blocker.category,
        "priority": blocker.priority.value,
        "photos": list(blocker.photos),
        "status": blocker.status.value,
        "assignee_id": assignee.id if assignee else None,
        "assignee_kind": assignee.kind.value if assignee else None,
        "assignee_name": assignee.display_name if assignee else None,
        "assignee_trade": assignee.trade_type if assignee else None,
        "assignee_contact_user_id": assignee.contact_user_id if assignee else None,
        "estimated_duration": blocker.estimated_duration,
        "due_date": blocker.due_date,
        "review_comments": blocker.review_comments,
        "completed_at": blocker.completed_at,
        "completed_by": blocker.completed_by,
        "completion_notes": blocker.completion_notes,
        "materials_used": blocker.materials_used,
        "time_spent": blocker.time_spent,
        "completion_photos": list(blocker.completion_photos),
        "verified_at": blocker.verified_at,
        "verified_by": blocker.verified_by,
        "verification_notes": blocker.verification_notes,
        "rejection_reason": blocker.rejection_reason,
        "created_at": blocker.created_at,
        "updated_at": blocker.updated_at,
    }


class SqlBlockerStore(BlockerStore):
    """SQLAlchemy implementation of BlockerStore."""

    def __init__(self, db: Session):
        self.db = db

    def load(self, blocker_id: str) -> Blocker:
        row = self.db.query(BlockerModel).filter(BlockerModel.id == blocker_id).first()
        if row is None:
            raise BlockerNotFound(f"Blocker '{blocker_id}' not found", blocker_id=blocker_id)
        return _to_domain(row)

    def create(self, blocker: Blocker) -> Blocker:
        self.db.add(BlockerModel(id=blocker.id, **_to_columns(blocker)))
        for record in blocker.history:
            self.append_history(record)
        self.db.flush()
        return blocker

    def compare_and_swap_save(self, blocker: Blocker, expected_old_status: Status) -> bool:
        result = self.db.execute(
            update(BlockerModel)
            .where(
                BlockerModel.id == blocker.id,
                BlockerModel.status == Status(expected_old_status).value,
            )
            .values(**_to_columns(blocker))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def append_history(self, record: TransitionRecord) -> None:
        # The status swap that precedes this in the transaction serialises writers
        position = (
            self.db.query(func.count(StatusHistoryModel.id))
            .filter(StatusHistoryModel.blocker_id == record.blocker_id)
            .scalar()
        )
        self.db.add(
            StatusHistoryModel(
                id=record.id,
                blocker_id=record.blocker_id,
                sequence=position + 1,
                action=record.action.value,
                old_status=record.old_status.value,
                new_status=record.new_status.value,
                changed_by=record.actor_id,
                changed_by_role=record.actor_role.value,
                changed_at=record.timestamp,
                comments=record.comments,
                meta=dict(record.meta),
            )
        )
        self.db.flush()

    def _matching(
        self,
        project_id: Optional[str] = None,
        status: Optional[Status] = None,
        assignee_id: Optional[str] = None,
        viewer: Optional[Actor] = None,
    ):
        query = self.db.query(BlockerModel)

        if project_id:
            query = query.filter(BlockerModel.project_id == project_id)
        if status:
            query = query.filter(BlockerModel.status == Status(status).value)
        if assignee_id:
            query = query.filter(BlockerModel.assignee_id == assignee_id)
        if viewer is not None:
            # Same rule as permissions.can_view
            visible_statuses = [s.value for s in statuses_visible_to(viewer.role)]
            query = query.filter(
                or_(
                    BlockerModel.status.in_(visible_statuses),
                    BlockerModel.reporter_id == viewer.actor_id,
                    BlockerModel.assignee_id == viewer.actor_id,
                    BlockerModel.assignee_contact_user_id == viewer.actor_id,
                )
            )
        return query

    def list_blockers(
        self,
        project_id: Optional[str] = None,
        status: Optional[Status] = None,
        assignee_id: Optional[str] = None,
        viewer: Optional[Actor] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Blocker]:
        rows = (
            self._matching(project_id, status, assignee_id, viewer)
            .order_by(desc(BlockerModel.created_at), desc(BlockerModel.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [_to_domain(row) for row in rows]

    def count_by_status(
        self, project_id: Optional[str] = None, viewer: Optional[Actor] = None
    ) -> Dict[str, int]:
        rows = (
            self._matching(project_id=project_id, viewer=viewer)
            .with_entities(BlockerModel.status, func.count(BlockerModel.id))
            .group_by(BlockerModel.status)
            .all()
        )
        counts = {status.value: 0 for status in Status}
        for status, count in rows:
            counts[Status(status).value] = count
        counts["all"] = sum(count for _, count in rows)
        return counts

    def list_company_users(self, company_id: str) -> List[CompanyUser]:
        rows = (
            self.db.query(UserProfileModel)
            .filter(UserProfileModel.company_id == company_id)
            .order_by(UserProfileModel.id)
            .all()
        )
        return [
            CompanyUser(
                id=row.id,
                role=row.role,
                full_name=row.full_name,
                email=row.email,
                active=row.status == "active",
            )
            for row in rows
        ]

    def get_contractor(self, contractor_id: str) -> Optional[Assignee]:
        row = (
            self.db.query(ContractorModel)
            .filter(ContractorModel.id == contractor_id)
            .first()
        )
        if row is None:
            return None
        return Assignee(
            id=row.id,
            kind=AssigneeKind.CONTRACTOR,
            display_name=row.name,
            trade_type=row.trade_type,
            contact_user_id=row.primary_contact_user_id,
        )
