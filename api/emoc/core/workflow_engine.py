"""Task-by-task, stage-by-stage workflow state machine.

Each transition is a pure function over an explicitly passed request
snapshot: it works on a deep copy and returns the new snapshot together with
the task events it produced. Any error is raised before the copy is
returned, so the caller's snapshot is never partially changed.

Per stage, the current task is the lowest-index task that is not Completed.
Only the current task may be completed, rejected, reopened or edited.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple, Union

from emoc.core.approval_propagation import DEFAULT_PROPAGATION_RULES, PropagationRule
from emoc.core.errors import OutOfOrderCompletion, TerminalStateError, ValidationFailed
from emoc.core.reference_data import PersonDirectory, default_directory
from emoc.core.task_validation import ValidationRule, run_validation
from emoc.core.time import utc_now
from emoc.schemas.workflow import (
    MOCRequestState,
    RequestStatus,
    Stage,
    StageKind,
    Task,
    TaskEvent,
    TaskPayload,
    TaskStatus,
    TeamApprovalPayload,
    TERMINAL_REQUEST_STATUSES,
)

logger = logging.getLogger(__name__)

StageRef = Union[StageKind, str]


@dataclass(frozen=True)
class TransitionResult:
    """New snapshot plus the task events emitted on the way."""
    state: MOCRequestState
    events: List[TaskEvent] = field(default_factory=list)


# ============================================================================
# Guards
# ============================================================================

def ensure_not_terminal(state: MOCRequestState) -> None:
    if state.status in TERMINAL_REQUEST_STATUSES:
        raise TerminalStateError(state.moc_no, state.status.value)


def _coerce_stage(stage: StageRef, task_index: int) -> StageKind:
    if isinstance(stage, StageKind):
        return stage
    try:
        return StageKind(stage)
    except ValueError:
        raise OutOfOrderCompletion(str(stage), task_index, reason="unknown stage") from None


def _current_task(
    state: MOCRequestState, kind: StageKind, task_index: int, expected: TaskStatus
) -> Tuple[Stage, Task]:
    """Locate the addressed task and check it is the current one in the expected status."""
    try:
        stage = state.stage(kind)
    except KeyError:
        raise OutOfOrderCompletion(kind.value, task_index, reason="request has no such stage") from None

    if task_index < 0 or task_index >= len(stage.tasks):
        raise OutOfOrderCompletion(kind.value, task_index, reason="no such task")

    if state.current_stage != kind:
        active = state.current_stage.value if state.current_stage else "none"
        raise OutOfOrderCompletion(
            kind.value, task_index, reason=f"stage is not active (active stage: {active})"
        )

    current = stage.current_index()
    if task_index != current:
        raise OutOfOrderCompletion(kind.value, task_index, current_index=current)

    task = stage.tasks[task_index]
    if task.status != expected:
        raise OutOfOrderCompletion(
            kind.value, task_index, current_index=current,
            reason=f"task is {task.status.value}, expected {expected.value}",
        )
    return stage, task


# ============================================================================
# Payload handling
# ============================================================================

def _merge_team_decisions(current: TeamApprovalPayload, submitted: TeamApprovalPayload) -> None:
    """Copy operator decisions onto the propagated rows; the row set itself is fixed."""
    rows_by_id = {row.row_id: row for row in current.rows}
    for incoming in submitted.rows:
        row = rows_by_id.get(incoming.row_id)
        if row is None:
            raise ValidationFailed(f"unknown approval row {incoming.row_id}")
        row.approval_status = incoming.approval_status
        row.remark = incoming.remark


def _apply_task_input(task: Task, payload: Optional[TaskPayload], comments: Optional[str]) -> None:
    if payload is not None:
        if payload.kind != task.payload.kind:
            raise ValidationFailed(
                f"task '{task.name}' expects a {task.payload.kind} payload, got {payload.kind}"
            )
        if isinstance(task.payload, TeamApprovalPayload):
            _merge_team_decisions(task.payload, payload)
        else:
            task.payload = payload.model_copy(deep=True)
    if comments is not None:
        task.comments = comments


def _event(kind: StageKind, task: Task, now: datetime) -> TaskEvent:
    return TaskEvent(stage=kind, task_index=task.index, new_status=task.status, occurred_at=now)


def _open_task(kind: StageKind, task: Task, now: datetime) -> TaskEvent:
    task.status = TaskStatus.IN_PROGRESS
    task.assigned_on = now
    return _event(kind, task, now)


def _advance(state: MOCRequestState, kind: StageKind, task_index: int, now: datetime) -> List[TaskEvent]:
    """Open the task after task_index, the first task of the next stage, or close the request."""
    stage = state.stage(kind)
    if task_index + 1 < len(stage.tasks):
        return [_open_task(kind, stage.tasks[task_index + 1], now)]

    logger.info("MOC %s: stage %s completed", state.moc_no, kind.value)
    position = next(i for i, s in enumerate(state.stages) if s.kind == kind)
    for next_stage in state.stages[position + 1:]:
        # A stage without tasks is complete as soon as it is reached
        if next_stage.tasks:
            return [_open_task(next_stage.kind, next_stage.tasks[0], now)]

    state.status = RequestStatus.CLOSED
    logger.info("MOC %s: final stage completed, request closed", state.moc_no)
    return []


# ============================================================================
# Transitions
# ============================================================================

def complete_task(
    state: MOCRequestState,
    stage: StageRef,
    task_index: int,
    payload: Optional[TaskPayload] = None,
    comments: Optional[str] = None,
    *,
    directory: PersonDirectory = default_directory,
    validation_rules: Optional[Dict[Tuple[StageKind, int], ValidationRule]] = None,
    propagation_rules: Optional[Dict[Tuple[StageKind, int], PropagationRule]] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """
    Complete the current task of a stage and unlock the next one.

    Order of work:
    1. The task must be the stage's current In Progress task
    2. The submitted payload/comments are applied to a working copy
    3. The registered validation rule runs (ValidationFailed aborts)
    4. The task is Completed and the registered propagation rule runs
    5. The next task (or next stage's first task) opens, or the request closes

    Raises:
        TerminalStateError, OutOfOrderCompletion, ValidationFailed
    """
    ensure_not_terminal(state)
    kind = _coerce_stage(stage, task_index)
    now = now or utc_now()

    working = state.model_copy(deep=True)
    _, task = _current_task(working, kind, task_index, TaskStatus.IN_PROGRESS)
    _apply_task_input(task, payload, comments)

    try:
        run_validation(kind, task, validation_rules)
    except ValidationFailed as exc:
        logger.warning("MOC %s: %s task %d not completed: %s", state.moc_no, kind.value, task_index, exc.reason)
        raise

    task.status = TaskStatus.COMPLETED
    task.completed_on = now
    events = [_event(kind, task, now)]

    rules = DEFAULT_PROPAGATION_RULES if propagation_rules is None else propagation_rules
    propagate = rules.get((kind, task_index))
    if propagate is not None:
        propagate(working, directory)

    events.extend(_advance(working, kind, task_index, now))
    logger.info("MOC %s: %s task %d '%s' completed", state.moc_no, kind.value, task_index, task.name)
    return TransitionResult(state=working, events=events)


def reject_task(
    state: MOCRequestState,
    stage: StageRef,
    task_index: int,
    remark: str = "",
    *,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Mark the current task Rejected; the stage does not advance."""
    ensure_not_terminal(state)
    kind = _coerce_stage(stage, task_index)
    now = now or utc_now()

    working = state.model_copy(deep=True)
    _, task = _current_task(working, kind, task_index, TaskStatus.IN_PROGRESS)
    task.status = TaskStatus.REJECTED
    if remark:
        task.comments = remark

    logger.info("MOC %s: %s task %d '%s' rejected", state.moc_no, kind.value, task_index, task.name)
    return TransitionResult(state=working, events=[_event(kind, task, now)])


def reopen_task(
    state: MOCRequestState,
    stage: StageRef,
    task_index: int,
    *,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Return a Rejected task to In Progress, the only way out of Rejected."""
    ensure_not_terminal(state)
    kind = _coerce_stage(stage, task_index)
    now = now or utc_now()

    working = state.model_copy(deep=True)
    _, task = _current_task(working, kind, task_index, TaskStatus.REJECTED)
    event = _open_task(kind, task, now)

    logger.info("MOC %s: %s task %d '%s' reopened", state.moc_no, kind.value, task_index, task.name)
    return TransitionResult(state=working, events=[event])


def save_task_draft(
    state: MOCRequestState,
    stage: StageRef,
    task_index: int,
    payload: Optional[TaskPayload] = None,
    comments: Optional[str] = None,
) -> TransitionResult:
    """Store work in progress on the current task without changing any status."""
    ensure_not_terminal(state)
    kind = _coerce_stage(stage, task_index)

    working = state.model_copy(deep=True)
    _, task = _current_task(working, kind, task_index, TaskStatus.IN_PROGRESS)
    _apply_task_input(task, payload, comments)
    return TransitionResult(state=working)


def cancel_request(state: MOCRequestState, reason: str) -> TransitionResult:
    """Move the request to Cancelled from any stage. Stage and task state is left as is."""
    ensure_not_terminal(state)
    working = state.model_copy(deep=True)
    working.status = RequestStatus.CANCELLED
    working.cancellation_reason = reason
    logger.info("MOC %s: cancelled", state.moc_no)
    return TransitionResult(state=working)


# ============================================================================
# Session
# ============================================================================

TaskEventListener = Callable[[TaskEvent], None]


class WorkflowSession:
    """Holds one request snapshot and applies transitions to it.

    The session swaps in the new snapshot only when a transition succeeds and
    then hands each event to the subscribers. Subscribers are notified
    fire-and-forget: a failing subscriber is logged and does not undo the
    transition.
    """

    def __init__(
        self,
        state: MOCRequestState,
        directory: Optional[PersonDirectory] = None,
        validation_rules: Optional[Dict[Tuple[StageKind, int], ValidationRule]] = None,
        propagation_rules: Optional[Dict[Tuple[StageKind, int], PropagationRule]] = None,
    ):
        self.state = state
        self.directory = directory or default_directory
        self.validation_rules = validation_rules
        self.propagation_rules = propagation_rules
        self._listeners: List[TaskEventListener] = []

    def subscribe(self, listener: TaskEventListener) -> None:
        self._listeners.append(listener)

    def _apply(self, result: TransitionResult) -> TransitionResult:
        self.state = result.state
        for event in result.events:
            for listener in self._listeners:
                try:
                    listener(event)
                except Exception:
                    logger.exception("Task event listener failed for %s task %d", event.stage.value, event.task_index)
        return result

    def complete_task(self, stage: StageRef, task_index: int, payload: Optional[TaskPayload] = None,
                      comments: Optional[str] = None) -> TransitionResult:
        return self._apply(complete_task(
            self.state, stage, task_index, payload, comments,
            directory=self.directory,
            validation_rules=self.validation_rules,
            propagation_rules=self.propagation_rules,
        ))

    def reject_task(self, stage: StageRef, task_index: int, remark: str = "") -> TransitionResult:
        return self._apply(reject_task(self.state, stage, task_index, remark))

    def reopen_task(self, stage: StageRef, task_index: int) -> TransitionResult:
        return self._apply(reopen_task(self.state, stage, task_index))

    def save_task_draft(self, stage: StageRef, task_index: int, payload: Optional[TaskPayload] = None,
                        comments: Optional[str] = None) -> TransitionResult:
        return self._apply(save_task_draft(self.state, stage, task_index, payload, comments))

    def cancel(self, reason: str) -> TransitionResult:
        return self._apply(cancel_request(self.state, reason))
