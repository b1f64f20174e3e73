"""Workflow task routes: complete, reject, reopen and save draft."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from emoc.core.database import get_db
from emoc.core.deps import get_request_or_404, http_error_for
from emoc.core.errors import WorkflowError
from emoc.core.request_store import load_session, persist_transition
from emoc.core.workflow_engine import TransitionResult
from emoc.models.moc_request import MOCRequest
from emoc.schemas.moc_request import (
    CompleteTaskInput,
    RejectTaskInput,
    TaskDraftInput,
    TaskEventResponse,
    TransitionResponse,
)
from emoc.schemas.workflow import StageKind

logger = logging.getLogger(__name__)

router = APIRouter()

TASK_PATH = "/{request_id}/stages/{stage}/tasks/{task_index}"


def _respond(db: Session, row: MOCRequest, result: TransitionResult) -> TransitionResponse:
    events = persist_transition(db, row, result)
    return TransitionResponse(
        request=result.state,
        events=[TaskEventResponse.model_validate(event) for event in events],
    )


@router.post(TASK_PATH + "/complete", response_model=TransitionResponse)
def complete_task(
    stage: StageKind,
    task_index: int,
    task_data: CompleteTaskInput,
    row: MOCRequest = Depends(get_request_or_404),
    db: Session = Depends(get_db),
):
    """
    Complete the current task of a stage.

    The submitted payload is applied before validation, so a task can be
    filled in and completed in one call. Returns the new snapshot and the
    task events (the completion plus the next task being opened).
    """
    session = load_session(row)
    try:
        result = session.complete_task(stage, task_index, task_data.payload, task_data.comments)
    except WorkflowError as exc:
        raise http_error_for(exc)
    return _respond(db, row, result)


@router.post(TASK_PATH + "/reject", response_model=TransitionResponse)
def reject_task(
    stage: StageKind,
    task_index: int,
    task_data: RejectTaskInput,
    row: MOCRequest = Depends(get_request_or_404),
    db: Session = Depends(get_db),
):
    """Reject the current task. The stage stays on it until it is reopened."""
    session = load_session(row)
    try:
        result = session.reject_task(stage, task_index, task_data.remark)
    except WorkflowError as exc:
        raise http_error_for(exc)
    return _respond(db, row, result)


@router.post(TASK_PATH + "/reopen", response_model=TransitionResponse)
def reopen_task(
    stage: StageKind,
    task_index: int,
    row: MOCRequest = Depends(get_request_or_404),
    db: Session = Depends(get_db),
):
    """Put a rejected task back in progress."""
    session = load_session(row)
    try:
        result = session.reopen_task(stage, task_index)
    except WorkflowError as exc:
        raise http_error_for(exc)
    return _respond(db, row, result)


@router.post(TASK_PATH + "/draft", response_model=TransitionResponse)
def save_task_draft(
    stage: StageKind,
    task_index: int,
    task_data: TaskDraftInput,
    row: MOCRequest = Depends(get_request_or_404),
    db: Session = Depends(get_db),
):
    """Save payload and comments on the current task without completing it."""
    session = load_session(row)
    try:
        result = session.save_task_draft(stage, task_index, task_data.payload, task_data.comments)
    except WorkflowError as exc:
        raise http_error_for(exc)
    return _respond(db, row, result)
