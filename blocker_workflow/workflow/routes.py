"""
Blocker Workflow API Routes.

REST endpoints over BlockerWorkflowService. All endpoints are prefixed with
/blockers. The acting user is always passed explicitly in the request.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..config import get_settings
from ..db.base import get_db
from .blocker import BlockerCreate
from .enums import Action, Role, Status
from .errors import WorkflowError
from .primitives import Actor
from .services import BlockerWorkflowService
from .status_table import STATUS_TABLE, next_statuses
from .transition import TransitionPayload

router = APIRouter(prefix="/blockers", tags=["Blockers"])
status_router = APIRouter(tags=["Blockers"])

_settings = get_settings()

ERROR_STATUS_CODES: Dict[str, int] = {
    "UNAUTHORIZED_ACTION": 403,
    "BLOCKER_NOT_FOUND": 404,
    "INVALID_TRANSITION": 409,
    "STATE_CONFLICT": 409,
    "INCOMPLETE_PAYLOAD": 422,
}


class CreateBlockerRequest(BaseModel):
    """Body for reporting a blocker."""

    model_config = ConfigDict(extra="forbid")

    reporter: Actor
    blocker: BlockerCreate


class TransitionRequest(BaseModel):
    """Body for requesting a workflow action."""

    model_config = ConfigDict(extra="forbid")

    action: Action
    actor: Actor
    payload: TransitionPayload = Field(default_factory=TransitionPayload)


def _http_error(error: WorkflowError) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS_CODES.get(error.code, 400),
        detail=error.to_dict(),
    )


def _viewer(viewer_id: Optional[str], viewer_role: Optional[Role]) -> Optional[Actor]:
    if viewer_id and viewer_role:
        return Actor(actor_id=viewer_id, role=viewer_role)
    if viewer_id or viewer_role:
        raise HTTPException(
            status_code=422,
            detail="viewer_id and viewer_role must be given together",
        )
    return None


# =============================================================================
# Blocker Endpoints
# =============================================================================


@router.post("", status_code=201)
async def create_blocker(
    request: CreateBlockerRequest,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Report a new blocker."""
    service = BlockerWorkflowService(db)
    blocker = service.create_blocker(request.blocker, request.reporter)
    return {
        "status": "success",
        "blocker": blocker.model_dump(mode="json"),
    }


@router.get("")
async def list_blockers(
    project_id: Optional[str] = None,
    status: Optional[Status] = None,
    assignee_id: Optional[str] = None,
    viewer_id: Optional[str] = None,
    viewer_role: Optional[Role] = None,
    limit: int = Query(_settings.default_page_size, ge=1, le=_settings.max_page_size),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    """List blockers with optional filtering."""
    service = BlockerWorkflowService(db)
    blockers = service.list_blockers(
        project_id=project_id,
        status=status,
        assignee_id=assignee_id,
        viewer=_viewer(viewer_id, viewer_role),
        limit=limit,
        offset=offset,
    )
    return [b.model_dump(mode="json", exclude={"history"}) for b in blockers]


@router.get("/counts")
async def blocker_counts(
    project_id: Optional[str] = None,
    viewer_id: Optional[str] = None,
    viewer_role: Optional[Role] = None,
    db: Session = Depends(get_db),
) -> Dict[str, int]:
    """Blocker counts per status (dashboard tab badges)."""
    service = BlockerWorkflowService(db)
    return service.status_counts(project_id=project_id, viewer=_viewer(viewer_id, viewer_role))


@router.get("/{blocker_id}")
async def get_blocker(
    blocker_id: str,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Get a blocker by ID, including its history."""
    service = BlockerWorkflowService(db)
    try:
        blocker = service.get_blocker(blocker_id)
    except WorkflowError as e:
        raise _http_error(e)
    return blocker.model_dump(mode="json")


@router.get("/{blocker_id}/history")
async def get_blocker_history(
    blocker_id: str,
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    """Transition history, oldest first."""
    service = BlockerWorkflowService(db)
    try:
        blocker = service.get_blocker(blocker_id)
    except WorkflowError as e:
        raise _http_error(e)
    return [record.model_dump(mode="json") for record in blocker.history]


@router.get("/{blocker_id}/actions")
async def get_available_actions(
    blocker_id: str,
    actor_id: str = Query(..., min_length=1),
    role: Role = Query(...),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Actions the given actor may perform on the blocker now."""
    service = BlockerWorkflowService(db)
    try:
        actions = service.available_actions(blocker_id, Actor(actor_id=actor_id, role=role))
    except WorkflowError as e:
        raise _http_error(e)
    return {"blocker_id": blocker_id, "actions": [a.value for a in actions]}


@router.post("/{blocker_id}/transitions")
async def request_transition(
    blocker_id: str,
    request: TransitionRequest,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Apply a workflow action (approve, reject, mark_complete, ...)."""
    service = BlockerWorkflowService(db)
    try:
        outcome = service.request_transition(
            blocker_id, request.action, request.actor, request.payload
        )
    except WorkflowError as e:
        raise _http_error(e)

    return {
        "status": "success",
        "blocker": outcome.blocker.model_dump(mode="json"),
        "transition": outcome.result.record.model_dump(mode="json"),
        "notifications": [n.model_dump(mode="json") for n in outcome.notifications],
        "notifications_delivered": outcome.delivery.delivered,
    }


# =============================================================================
# Status Table
# =============================================================================


@status_router.get("/statuses")
async def list_statuses() -> List[Dict[str, Any]]:
    """The status table: labels, colours, allowed actions and next statuses."""
    return [
        {
            "status": definition.status.value,
            "label": definition.label,
            "description": definition.description,
            "color": definition.color,
            "allowed_actions": [a.value for a in definition.allowed_actions],
            "next_statuses": [s.value for s in next_statuses(definition.status)],
            "terminal": definition.is_terminal,
        }
        for definition in STATUS_TABLE.values()
    ]
