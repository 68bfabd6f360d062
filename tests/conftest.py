"""Test configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from blocker_workflow.db import audit_models, models  # noqa: F401
from blocker_workflow.db.base import Base
from blocker_workflow.db.models import ContractorModel, UserProfileModel
from blocker_workflow.workflow import (
    Action,
    Actor,
    Assignee,
    BlockerCreate,
    Role,
    TransitionPayload,
    apply_transition,
    create_blocker,
)

NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def reporter() -> Actor:
    return Actor(actor_id="worker-1", role=Role.FIELD_WORKER, display="Sam Worker")


@pytest.fixture
def manager() -> Actor:
    return Actor(actor_id="mc-1", role=Role.MAIN_CONTRACTOR)


@pytest.fixture
def contractor() -> Assignee:
    return Assignee(
        id="contractor-7",
        display_name="Spark Electrical",
        trade_type="electrical",
        contact_user_id="sub-7",
    )


@pytest.fixture
def assignee_actor() -> Actor:
    """The contractor acting as itself; holds no manager role."""
    return Actor(actor_id="contractor-7", role=Role.FIELD_WORKER)


@pytest.fixture
def make_blocker(reporter, now):
    """Factory for pending_review blockers with optional overrides."""

    def _make(**overrides):
        data = {
            "project_id": "project-1",
            "company_id": "company-1",
            "title": "Conduit route blocked by ductwork",
            "description": "HVAC duct installed through planned conduit path",
            "location": "Level 2, grid C4",
            "category": "electrical",
        }
        data.update(overrides)
        return create_blocker(BlockerCreate(**data), reporter, now=now)

    return _make


@pytest.fixture
def pending_blocker(make_blocker):
    return make_blocker()


@pytest.fixture
def assigned_blocker(pending_blocker, manager, contractor, now):
    return apply_transition(
        pending_blocker,
        Action.APPROVE,
        manager,
        TransitionPayload(assignee=contractor),
        now=now + timedelta(minutes=1),
    ).blocker


@pytest.fixture
def completed_blocker(assigned_blocker, assignee_actor, now):
    return apply_transition(
        assigned_blocker,
        Action.MARK_COMPLETE,
        assignee_actor,
        TransitionPayload(work_description="Rerouted conduit below duct"),
        now=now + timedelta(minutes=2),
    ).blocker


# Database fixtures


@pytest.fixture
def db_engine():
    """Fresh in-memory database shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    Session = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def seeded_session(db_session):
    """Session with a company directory and one contractor."""
    db_session.add_all(
        [
            UserProfileModel(id="owner-1", company_id="company-1", role="company_owner"),
            UserProfileModel(id="admin-1", company_id="company-1", role="company_admin"),
            UserProfileModel(id="mc-1", company_id="company-1", role="main_contractor"),
            UserProfileModel(
                id="mc-2", company_id="company-1", role="main_contractor", status="inactive"
            ),
            UserProfileModel(id="pm-1", company_id="company-1", role="project_manager"),
            UserProfileModel(id="sub-7", company_id="company-1", role="subcontractor"),
            UserProfileModel(id="worker-1", company_id="company-1", role="field_worker"),
            UserProfileModel(id="mc-other", company_id="company-2", role="main_contractor"),
            ContractorModel(
                id="contractor-7",
                company_id="company-1",
                name="Spark Electrical",
                trade_type="electrical",
                primary_contact_user_id="sub-7",
            ),
        ]
    )
    db_session.commit()
    return db_session
