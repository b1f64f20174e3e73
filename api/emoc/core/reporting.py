"""Dashboard statistics, personal task lists and KPI figures.

Counts are taken from the projection columns of the request table; the task
list reads the snapshot documents because task assignment lives there.
"""
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from emoc.core.request_store import load_state
from emoc.core.time import format_task_timestamp, utc_now
from emoc.models.moc_request import MOCRequest
from emoc.schemas.reports import DashboardStats, KPIReport, MyTaskItem
from emoc.schemas.risk_assessment import RiskBand
from emoc.schemas.workflow import RequestStatus, STAGE_ORDER, StageKind, TaskStatus


def _safe_percentage(numerator: int, denominator: int) -> float:
    """Calculate percentage safely, returning 0 if denominator is 0."""
    if denominator == 0:
        return 0.0
    return round((numerator / denominator) * 100, 2)


def _count_by(db: Session, column) -> Dict[str, int]:
    rows = db.query(column, func.count(MOCRequest.request_id)).group_by(column).all()
    return {key: count for key, count in rows if key is not None}


def dashboard_stats(db: Session) -> DashboardStats:
    by_status = _count_by(db, MOCRequest.status)
    in_progress_by_stage = dict(
        db.query(MOCRequest.current_stage, func.count(MOCRequest.request_id))
        .filter(MOCRequest.status == RequestStatus.IN_PROGRESS.value)
        .group_by(MOCRequest.current_stage)
        .all()
    )
    return DashboardStats(
        total=sum(by_status.values()),
        in_progress=by_status.get(RequestStatus.IN_PROGRESS.value, 0),
        closed=by_status.get(RequestStatus.CLOSED.value, 0),
        cancelled=by_status.get(RequestStatus.CANCELLED.value, 0),
        by_stage={kind.value: in_progress_by_stage.get(kind.value, 0) for kind in STAGE_ORDER},
    )


def my_tasks(db: Session, assignee: str) -> List[MyTaskItem]:
    """
    Current open task of every in-progress request assigned to a person.

    The assignee matches either the person id or the display name
    (case-insensitive). Rejected tasks are listed as well since they wait on
    the same person to reopen them.
    """
    needle = assignee.strip().lower()
    if not needle:
        return []

    items = []
    rows = (
        db.query(MOCRequest)
        .filter(MOCRequest.status == RequestStatus.IN_PROGRESS.value)
        .order_by(MOCRequest.request_id)
        .all()
    )
    for row in rows:
        state = load_state(row)
        kind = state.current_stage
        if kind is None:
            continue
        stage = state.stage(kind)
        index = stage.current_index()
        if index is None:
            continue
        task = stage.tasks[index]
        if task.status not in (TaskStatus.IN_PROGRESS, TaskStatus.REJECTED):
            continue
        if needle not in ((task.assignee_id or "").lower(), task.assignee_name.lower()):
            continue
        items.append(MyTaskItem(
            request_id=state.request_id,
            moc_no=state.moc_no,
            title=state.title,
            stage=kind,
            task_index=index,
            task_name=task.name,
            role=task.role,
            assignee_name=task.assignee_name,
            status=task.status,
            assigned_on=task.assigned_on,
            assigned_on_display=format_task_timestamp(task.assigned_on),
        ))
    return items


def kpi_report(db: Session, area_id: Optional[str] = None) -> KPIReport:
    """
    Compute the MOC KPI figures.

    Pending requests are those still waiting in Initiation for approval;
    the completion rate is closed requests over all requests.
    """
    query = db.query(MOCRequest)
    if area_id:
        query = query.filter(MOCRequest.area_id == area_id)
    requests = query.all()

    total = len(requests)
    completed = sum(1 for r in requests if r.status == RequestStatus.CLOSED.value)
    cancelled = sum(1 for r in requests if r.status == RequestStatus.CANCELLED.value)
    open_requests = [r for r in requests if r.status == RequestStatus.IN_PROGRESS.value]
    pending = sum(1 for r in open_requests if r.current_stage == StageKind.INITIATION.value)

    bands = {band.value: 0 for band in RiskBand}
    by_template: Dict[str, int] = {}
    for r in requests:
        if r.risk_after_band in bands:
            bands[r.risk_after_band] += 1
        by_template[r.template_name] = by_template.get(r.template_name, 0) + 1

    return KPIReport(
        total_requests=total,
        completed=completed,
        in_progress=len(open_requests) - pending,
        pending=pending,
        cancelled=cancelled,
        completion_rate=_safe_percentage(completed, total),
        total_estimated_cost=round(sum(r.estimated_cost for r in requests), 2),
        total_estimated_benefit=round(sum(r.estimated_benefit for r in requests), 2),
        risk_band_distribution=bands,
        by_template=by_template,
        generated_at=utc_now(),
    )
