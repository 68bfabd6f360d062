"""
Workflow query layer.

Read-only filters and aggregations over an already-fetched sequence of
blockers. Fetching is the persistence layer's job.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .blocker import Blocker
from .enums import Status
from .permissions import can_view
from .primitives import Actor

BlockerPredicate = Callable[[Blocker], bool]


def by_status(status: Status) -> BlockerPredicate:
    status = Status(status)
    return lambda blocker: blocker.status == status


def by_assignee(assignee_id: str) -> BlockerPredicate:
    return lambda blocker: (
        blocker.assignee is not None and blocker.assignee.id == assignee_id
    )


def by_project(project_id: str) -> BlockerPredicate:
    return lambda blocker: blocker.project_id == project_id


def visible_to(actor: Actor) -> BlockerPredicate:
    return lambda blocker: can_view(actor, blocker)


def all_of(*predicates: BlockerPredicate) -> BlockerPredicate:
    return lambda blocker: all(predicate(blocker) for predicate in predicates)


def filter_blockers(
    blockers: Iterable[Blocker], predicate: BlockerPredicate
) -> List[Blocker]:
    """Blockers matching ``predicate``, in their original order."""
    return [blocker for blocker in blockers if predicate(blocker)]


def select_blockers(
    blockers: Iterable[Blocker],
    status: Optional[Status] = None,
    assignee_id: Optional[str] = None,
    project_id: Optional[str] = None,
    viewer: Optional[Actor] = None,
) -> List[Blocker]:
    """Filter by any combination of status, assignee, project and viewer."""
    predicates: List[BlockerPredicate] = []
    if status is not None:
        predicates.append(by_status(status))
    if assignee_id is not None:
        predicates.append(by_assignee(assignee_id))
    if project_id is not None:
        predicates.append(by_project(project_id))
    if viewer is not None:
        predicates.append(visible_to(viewer))
    return filter_blockers(blockers, all_of(*predicates))


def counts_by_status(blockers: Sequence[Blocker]) -> Dict[str, int]:
    """Count blockers per status for dashboard tab badges.

    Every status is present (zero when empty), plus an ``all`` total.
    """
    counts = {status.value: 0 for status in Status}
    for blocker in blockers:
        counts[blocker.status.value] += 1
    counts["all"] = len(blockers)
    return counts
