"""MOC request routes: intake, listing, detail and request-level actions."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import asc, desc, or_
from sqlalchemy.orm import Session

from emoc.core import request_actions
from emoc.core.database import get_db
from emoc.core.deps import get_request_or_404, http_error_for
from emoc.core.errors import WorkflowError
from emoc.core.intake_validation import group_errors_by_section, validate_intake
from emoc.core.reference_data import get_area
from emoc.core.request_store import apply_snapshot, create_request, load_state, record_audit
from emoc.models.audit_log import AuditLog
from emoc.models.moc_request import MOCRequest
from emoc.schemas.moc_request import (
    AuditLogResponse,
    CancelRequestInput,
    ChangeChampionInput,
    ChangeTeamInput,
    ExtendTemporaryInput,
    MOCRequestCreate,
    MOCRequestListItem,
    TaskEventResponse,
)
from emoc.schemas.workflow import MOCRequestState, RequestStatus, StageKind

logger = logging.getLogger(__name__)

router = APIRouter()

SORTABLE_COLUMNS = {
    "moc_no": MOCRequest.moc_no,
    "title": MOCRequest.title,
    "status": MOCRequest.status,
    "current_stage": MOCRequest.current_stage,
    "created_at": MOCRequest.created_at,
    "updated_at": MOCRequest.updated_at,
    "estimated_cost": MOCRequest.estimated_cost,
}


def _list_item(row: MOCRequest) -> MOCRequestListItem:
    item = MOCRequestListItem.model_validate(row)
    area = get_area(row.area_id)
    item.area_name = area.name if area else ""
    return item


@router.post("/", response_model=MOCRequestState, status_code=status.HTTP_201_CREATED)
def create_moc_request(
    request_data: MOCRequestCreate,
    db: Session = Depends(get_db),
):
    """
    Submit a new MOC request.

    All intake errors are returned together, keyed by field and grouped by
    form section. On success the request starts with the first Initiation
    task open.
    """
    errors = validate_intake(request_data)
    if errors:
        logger.warning("MOC intake rejected with %d error(s)", len(errors))
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": "Please fix the highlighted fields",
                "errors": errors,
                "sections": group_errors_by_section(errors),
            }
        )

    row = create_request(db, request_data)
    return load_state(row)


@router.get("/", response_model=List[MOCRequestListItem])
def list_moc_requests(
    search: Optional[str] = Query(None, description="Matches MOC number or title"),
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    stage: Optional[StageKind] = None,
    area_id: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    """List MOC requests with search, filters and sorting."""
    if sort_by not in SORTABLE_COLUMNS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot sort by '{sort_by}'"
        )

    query = db.query(MOCRequest)
    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            MOCRequest.moc_no.ilike(term),
            MOCRequest.title.ilike(term),
        ))
    if status_filter:
        query = query.filter(MOCRequest.status == status_filter.value)
    if stage:
        query = query.filter(MOCRequest.current_stage == stage.value)
    if area_id:
        query = query.filter(MOCRequest.area_id == area_id)

    order = asc if sort_order == "asc" else desc
    query = query.order_by(order(SORTABLE_COLUMNS[sort_by]), order(MOCRequest.request_id))
    return [_list_item(row) for row in query.all()]


@router.get("/{request_id}", response_model=MOCRequestState)
def get_moc_request(row: MOCRequest = Depends(get_request_or_404)):
    """Get the full snapshot of a request."""
    return load_state(row)


@router.get("/{request_id}/events", response_model=List[TaskEventResponse])
def get_moc_request_events(row: MOCRequest = Depends(get_request_or_404)):
    """Task status changes of a request, oldest first."""
    return row.events


@router.get("/{request_id}/audit-logs", response_model=List[AuditLogResponse])
def get_moc_request_audit_logs(
    row: MOCRequest = Depends(get_request_or_404),
    db: Session = Depends(get_db),
):
    """Request-level actions taken on a request, newest first."""
    return db.query(AuditLog).filter(
        AuditLog.entity_type == "MOCRequest",
        AuditLog.entity_id == row.request_id,
    ).order_by(AuditLog.timestamp.desc(), AuditLog.log_id.desc()).all()


def _run_action(db: Session, row: MOCRequest, action: str, actor: str, handler, *args) -> MOCRequestState:
    """Run a side action on the stored snapshot and persist it with its audit entry."""
    try:
        new_state, changes = handler(load_state(row), *args)
    except WorkflowError as exc:
        logger.warning("MOC %s: %s refused: %s", row.moc_no, action, exc)
        raise http_error_for(exc)

    apply_snapshot(row, new_state)
    record_audit(db, row, action, actor, changes)
    db.commit()
    db.refresh(row)
    return new_state


@router.post("/{request_id}/cancel", response_model=MOCRequestState)
def cancel_moc_request(
    action_data: CancelRequestInput,
    row: MOCRequest = Depends(get_request_or_404),
    db: Session = Depends(get_db),
):
    """Cancel a request from any stage."""
    return _run_action(db, row, "CANCEL", action_data.requested_by, request_actions.cancel, action_data)


@router.post("/{request_id}/change-champion", response_model=MOCRequestState)
def change_moc_champion(
    action_data: ChangeChampionInput,
    row: MOCRequest = Depends(get_request_or_404),
    db: Session = Depends(get_db),
):
    """Hand the request over to another champion."""
    return _run_action(
        db, row, "CHANGE_CHAMPION", action_data.requested_by, request_actions.change_champion, action_data
    )


@router.post("/{request_id}/change-team", response_model=MOCRequestState)
def change_moc_team(
    action_data: ChangeTeamInput,
    row: MOCRequest = Depends(get_request_or_404),
    db: Session = Depends(get_db),
):
    """Move the request to another area and unit."""
    return _run_action(db, row, "CHANGE_TEAM", action_data.requested_by, request_actions.change_team, action_data)


@router.post("/{request_id}/extend", response_model=MOCRequestState)
def extend_moc_request(
    action_data: ExtendTemporaryInput,
    row: MOCRequest = Depends(get_request_or_404),
    db: Session = Depends(get_db),
):
    """Extend the end date of a temporary change."""
    return _run_action(
        db, row, "EXTEND_TEMPORARY", action_data.requested_by, request_actions.extend_temporary, action_data
    )
