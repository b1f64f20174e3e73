"""Errors raised by the workflow and risk engines.

Every error is raised before the engine touches the snapshot it was given,
so a caller that catches one still holds the unchanged state.
"""
from typing import Optional


class WorkflowError(Exception):
    """Base class for engine errors."""

    code = "WORKFLOW_ERROR"


class OutOfOrderCompletion(WorkflowError):
    """The addressed task is not the one currently open in its stage."""

    code = "OUT_OF_ORDER"

    def __init__(self, stage: str, task_index: int, current_index: Optional[int] = None,
                 reason: Optional[str] = None):
        msg = f"Task {task_index} of stage {stage} is not the current task"
        if current_index is not None:
            msg += f" (current task is {current_index})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.stage = stage
        self.task_index = task_index
        self.current_index = current_index


class ValidationFailed(WorkflowError):
    """A registered rule rejected the task payload."""

    code = "VALIDATION_FAILED"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class TerminalStateError(WorkflowError):
    """The request is Closed or Cancelled and accepts no further transitions."""

    code = "TERMINAL_STATE"

    def __init__(self, moc_no: str, status: str):
        super().__init__(f"MOC {moc_no} is {status}; no further transitions are permitted")
        self.moc_no = moc_no
        self.status = status


class InvalidRiskInput(WorkflowError):
    """Severity or probability outside the matrix."""

    code = "INVALID_RISK_INPUT"

    def __init__(self, field: str, value, max_level: int):
        super().__init__(f"{field} must be an integer between 1 and {max_level}, got {value!r}")
        self.field = field
        self.value = value


class InvalidActionInput(WorkflowError):
    """A request-level action was submitted with unusable input."""

    code = "INVALID_ACTION_INPUT"

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message
