"""
Tests for the SQLAlchemy blocker store.

Verifies:
- Snapshots and history survive a round trip through the database
- compare_and_swap_save only writes against the expected status
- Directory and contractor lookups
"""

from datetime import timedelta

import pytest

from blocker_workflow.db.models import BlockerModel, StatusHistoryModel
from blocker_workflow.db.repository import SqlBlockerStore
from blocker_workflow.workflow.engine import apply_transition
from blocker_workflow.workflow.enums import Action, AssigneeKind, Role, Status
from blocker_workflow.workflow.errors import BlockerNotFound
from blocker_workflow.workflow.primitives import Actor
from blocker_workflow.workflow.transition import TransitionPayload


@pytest.fixture
def store(seeded_session):
    return SqlBlockerStore(seeded_session)


class TestLoadAndCreate:
    def test_round_trip(self, store, seeded_session, pending_blocker):
        store.create(pending_blocker)
        seeded_session.commit()

        loaded = store.load(pending_blocker.id)

        assert loaded == pending_blocker

    def test_round_trip_with_history(self, store, seeded_session, completed_blocker):
        store.create(completed_blocker)
        seeded_session.commit()

        loaded = store.load(completed_blocker.id)

        assert loaded.status == Status.COMPLETED
        assert loaded.assignee == completed_blocker.assignee
        assert loaded.completed_at == completed_blocker.completed_at
        assert loaded.history == completed_blocker.history

    def test_load_missing(self, store):
        with pytest.raises(BlockerNotFound) as exc_info:
            store.load("no-such-blocker")

        assert exc_info.value.blocker_id == "no-such-blocker"
        assert exc_info.value.code == "BLOCKER_NOT_FOUND"


class TestCompareAndSwap:
    def test_save_against_expected_status(self, store, seeded_session, pending_blocker, manager, contractor, now):
        store.create(pending_blocker)
        seeded_session.commit()

        result = apply_transition(
            pending_blocker,
            Action.APPROVE,
            manager,
            TransitionPayload(assignee=contractor),
            now=now + timedelta(minutes=1),
        )
        assert store.compare_and_swap_save(result.blocker, Status.PENDING_REVIEW)
        store.append_history(result.record)
        seeded_session.commit()

        loaded = store.load(pending_blocker.id)
        assert loaded.status == Status.ASSIGNED
        assert loaded.assignee.id == "contractor-7"
        assert loaded.history == (result.record,)

    def test_stale_expected_status_is_rejected(self, store, seeded_session, pending_blocker, manager, contractor):
        store.create(pending_blocker)
        seeded_session.commit()

        approved = apply_transition(
            pending_blocker, Action.APPROVE, manager, TransitionPayload(assignee=contractor)
        )
        rejected = apply_transition(
            pending_blocker, Action.REJECT, manager, TransitionPayload(comments="duplicate")
        )

        # Both were computed from pending_review; only the first may land
        assert store.compare_and_swap_save(approved.blocker, Status.PENDING_REVIEW)
        assert not store.compare_and_swap_save(rejected.blocker, Status.PENDING_REVIEW)
        seeded_session.commit()

        assert store.load(pending_blocker.id).status == Status.ASSIGNED

    def test_missing_blocker_is_a_conflict(self, store, pending_blocker):
        assert not store.compare_and_swap_save(pending_blocker, Status.PENDING_REVIEW)


class TestHistory:
    def test_history_in_append_order_when_instants_tie(self, store, seeded_session, pending_blocker, manager, contractor, assignee_actor, now):
        store.create(pending_blocker)
        first = apply_transition(
            pending_blocker, Action.APPROVE, manager, TransitionPayload(assignee=contractor), now=now
        )
        second = apply_transition(
            first.blocker,
            Action.MARK_COMPLETE,
            assignee_actor,
            TransitionPayload(work_description="done"),
            now=now,
        )
        # Ids sort opposite to the order the transitions happened
        first_record = first.record.model_copy(update={"id": "01Z"})
        second_record = second.record.model_copy(update={"id": "01A"})
        store.append_history(first_record)
        store.append_history(second_record)
        seeded_session.commit()

        rows = seeded_session.query(StatusHistoryModel).order_by(StatusHistoryModel.sequence).all()
        assert [(r.id, r.sequence) for r in rows] == [("01Z", 1), ("01A", 2)]
        history = store.load(pending_blocker.id).history
        assert [r.new_status for r in history] == [Status.ASSIGNED, Status.COMPLETED]


class TestListing:
    def test_list_filters_and_newest_first(self, store, seeded_session, make_blocker, manager, contractor, now):
        older = make_blocker(title="Older")
        newer = make_blocker(title="Newer", project_id="project-2")
        store.create(older)
        store.create(newer.model_copy(update={"created_at": now + timedelta(hours=1)}))
        assigned = apply_transition(
            older, Action.APPROVE, manager, TransitionPayload(assignee=contractor)
        )
        store.compare_and_swap_save(assigned.blocker, Status.PENDING_REVIEW)
        seeded_session.commit()

        assert [b.title for b in store.list_blockers()] == ["Newer", "Older"]
        assert [b.title for b in store.list_blockers(project_id="project-2")] == ["Newer"]
        assert [b.title for b in store.list_blockers(status=Status.ASSIGNED)] == ["Older"]
        assert [b.title for b in store.list_blockers(assignee_id="contractor-7")] == ["Older"]
        assert [b.title for b in store.list_blockers(limit=1, offset=1)] == ["Older"]

    def test_list_company_users(self, store):
        users = store.list_company_users("company-1")

        assert [u.id for u in users] == [
            "admin-1",
            "mc-1",
            "mc-2",
            "owner-1",
            "pm-1",
            "sub-7",
            "worker-1",
        ]
        inactive = {u.id for u in users if not u.active}
        assert inactive == {"mc-2"}
        assert users[0].role == Role.COMPANY_ADMIN

    def test_get_contractor(self, store):
        contractor = store.get_contractor("contractor-7")

        assert contractor.kind == AssigneeKind.CONTRACTOR
        assert contractor.display_name == "Spark Electrical"
        assert contractor.contact_user_id == "sub-7"
        assert store.get_contractor("nobody") is None

    def test_model_to_dict(self, store, seeded_session, pending_blocker):
        store.create(pending_blocker)
        seeded_session.commit()

        row = seeded_session.get(BlockerModel, pending_blocker.id)
        data = row.to_dict()

        assert data["id"] == pending_blocker.id
        assert data["status"] == "pending_review"
        assert data["assignee_id"] is None


class TestVisibleListingAndCounts:
    @pytest.fixture
    def mixed(self, store, seeded_session, make_blocker, now):
        """One old blocker of worker-1, three newer ones of worker-2, all pending."""
        mine = make_blocker(title="Mine")
        store.create(mine)
        for minutes in (1, 2, 3):
            store.create(
                make_blocker(title=f"Theirs {minutes}").model_copy(
                    update={"reporter_id": "worker-2", "created_at": now + timedelta(minutes=minutes)}
                )
            )
        seeded_session.commit()
        return mine

    def test_paging_counts_visible_blockers_only(self, store, mixed, reporter):
        assert [b.id for b in store.list_blockers(viewer=reporter, limit=1)] == [mixed.id]
        assert store.list_blockers(viewer=reporter, limit=1, offset=1) == []

    def test_role_sees_every_blocker_of_listed_status(self, store, mixed, manager):
        assert len(store.list_blockers(viewer=manager)) == 4

    def test_contact_user_sees_contractor_work(self, store, seeded_session, mixed, manager, contractor):
        assigned = apply_transition(mixed, Action.APPROVE, manager, TransitionPayload(assignee=contractor))
        store.compare_and_swap_save(assigned.blocker, Status.PENDING_REVIEW)
        seeded_session.commit()

        contact = Actor(actor_id="sub-7", role=Role.FIELD_WORKER)
        assert [b.title for b in store.list_blockers(viewer=contact)] == ["Mine"]

    def test_count_by_status(self, store, mixed, reporter):
        counts = store.count_by_status(project_id="project-1")
        assert counts["pending_review"] == 4
        assert counts["assigned"] == 0
        assert counts["all"] == 4

        assert store.count_by_status(viewer=reporter)["all"] == 1
        assert store.count_by_status(project_id="elsewhere")["all"] == 0
