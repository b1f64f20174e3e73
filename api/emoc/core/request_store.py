"""Persistence of MOC request snapshots.

A request row holds the snapshot document plus projection columns. Loading
hands the snapshot to a WorkflowSession; persisting writes the new snapshot
and the events of a transition in a single commit.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from emoc.core.config import settings
from emoc.core.reference_data import PersonDirectory, default_directory
from emoc.core.risk_matrix import assess_risk
from emoc.core.time import utc_now
from emoc.core.workflow_engine import TransitionResult, WorkflowSession
from emoc.core.workflow_templates import build_stages, select_form_template
from emoc.models.audit_log import AuditLog
from emoc.models.moc_request import MOCRequest
from emoc.models.moc_task_event import MOCTaskEvent
from emoc.schemas.moc_request import MOCRequestCreate
from emoc.schemas.workflow import ChangeDetails, FileAttachment, MOCRequestState

logger = logging.getLogger(__name__)


def format_moc_no(request_id: int, year: int, prefix: Optional[str] = None) -> str:
    """MOC number, e.g. MOC-2026-0007."""
    return f"{prefix or settings.MOC_NUMBER_PREFIX}-{year}-{request_id:04d}"


def load_state(row: MOCRequest) -> MOCRequestState:
    return MOCRequestState.model_validate(row.document)


def load_session(row: MOCRequest, directory: Optional[PersonDirectory] = None) -> WorkflowSession:
    return WorkflowSession(load_state(row), directory=directory)


def apply_snapshot(row: MOCRequest, state: MOCRequestState) -> None:
    """Write the snapshot document and refresh the projection columns from it."""
    row.document = state.model_dump(mode="json")
    row.moc_no = state.moc_no
    row.title = state.title
    row.status = state.status.value
    row.current_stage = state.current_stage.value if state.current_stage else None
    row.area_id = state.area_id
    row.unit_id = state.unit_id
    row.priority_id = state.priority_id
    row.champion_name = state.champion_name
    row.requester_name = state.requester_name
    row.template_name = state.template_name
    row.risk_before_code = state.risk_before.risk_code if state.risk_before else None
    row.risk_before_band = state.risk_before.risk_band.value if state.risk_before else None
    row.risk_after_code = state.risk_after.risk_code if state.risk_after else None
    row.risk_after_band = state.risk_after.risk_band.value if state.risk_after else None
    row.estimated_cost = state.details.estimated_cost
    row.estimated_benefit = state.details.estimated_benefit


def build_initial_state(
    request_id: int,
    data: MOCRequestCreate,
    directory: PersonDirectory,
    now: datetime,
) -> MOCRequestState:
    """Snapshot of a freshly submitted request with Initiation task 0 open."""
    attachments = [
        FileAttachment(
            attachment_id=f"att-{position}",
            category=item.category,
            file_name=item.file_name,
            file_size=item.file_size,
            file_type=item.file_type,
            uploaded_by=data.requester_name,
            uploaded_at=now,
        )
        for position, item in enumerate(data.attachments, start=1)
    ]

    return MOCRequestState(
        request_id=request_id,
        moc_no=format_moc_no(request_id, now.year),
        title=data.title.strip(),
        requester_name=data.requester_name,
        request_date=now.date(),
        area_id=data.area_id,
        unit_id=data.unit_id,
        priority_id=data.priority_id,
        length_of_change=data.length_of_change,
        type_of_change=data.type_of_change,
        template_name=select_form_template(
            data.priority_id, data.type_of_change, data.length_of_change,
            data.estimated_start, data.estimated_end,
        ),
        details=ChangeDetails(
            detail_of_change=data.detail_of_change or "",
            reason_for_change=data.reason_for_change or "",
            scope_of_work=data.scope_of_work or "",
            tpm_loss_type_id=data.tpm_loss_type_id,
            loss_eliminate_value=data.loss_eliminate_value,
            estimated_benefit=data.estimated_benefit,
            estimated_cost=data.estimated_cost,
            benefits=list(data.benefits),
            expected_benefits=data.expected_benefits,
            estimated_start=data.estimated_start,
            estimated_end=data.estimated_end,
        ),
        risk_before=assess_risk(data.risk_before.severity, data.risk_before.probability),
        risk_after=assess_risk(data.risk_after.severity, data.risk_after.probability),
        attachments=attachments,
        stages=build_stages(directory, now),
    )


def create_request(
    db: Session,
    data: MOCRequestCreate,
    directory: PersonDirectory = default_directory,
    now: Optional[datetime] = None,
) -> MOCRequest:
    """
    Insert a new request row built from a validated intake form.

    The MOC number depends on the generated primary key, so the row is
    flushed with a placeholder number first and completed before commit.
    """
    now = now or utc_now()
    row = MOCRequest(
        moc_no=f"PENDING-{uuid.uuid4().hex}",
        title=data.title,
        area_id=data.area_id,
        unit_id=data.unit_id,
        priority_id=data.priority_id,
        document={},
        created_at=now,
        updated_at=now,
    )
    db.add(row)
    db.flush()

    state = build_initial_state(row.request_id, data, directory, now)
    apply_snapshot(row, state)
    record_audit(db, row, "CREATE", data.requester_name, {
        "moc_no": state.moc_no,
        "template_name": state.template_name,
    })
    db.commit()
    db.refresh(row)

    logger.info("MOC %s created from template '%s'", state.moc_no, state.template_name)
    return row


def persist_transition(db: Session, row: MOCRequest, result: TransitionResult) -> List[MOCTaskEvent]:
    """Store the new snapshot and the transition events together."""
    apply_snapshot(row, result.state)
    rows = [
        MOCTaskEvent(
            request_id=row.request_id,
            stage=event.stage.value,
            task_index=event.task_index,
            new_status=event.new_status.value,
            occurred_at=event.occurred_at,
        )
        for event in result.events
    ]
    db.add_all(rows)
    db.commit()
    for event_row in rows:
        db.refresh(event_row)
    db.refresh(row)
    return rows


def record_audit(db: Session, row: MOCRequest, action: str, actor_name: str, changes: dict) -> AuditLog:
    """Stage an audit entry for a request-level action; the caller commits."""
    log = AuditLog(
        entity_type="MOCRequest",
        entity_id=row.request_id,
        action=action,
        actor_name=actor_name or "",
        changes=changes,
        timestamp=utc_now(),
    )
    db.add(log)
    return log
