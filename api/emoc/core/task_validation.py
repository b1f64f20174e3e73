"""Pre-completion rules for workflow tasks.

Rules are keyed by (stage kind, task index) and inspect only the task's
current payload. A rule returns None when the task may complete, or the
reason it may not. Tasks without a registered rule always pass.
"""
from typing import Callable, Dict, Iterable, Optional, Tuple

from emoc.core.errors import ValidationFailed
from emoc.schemas.workflow import (
    DisciplineAssignment,
    DisciplineAssignmentPayload,
    StageKind,
    Task,
)

ValidationRule = Callable[[Task], Optional[str]]

NO_DISCIPLINE_ASSIGNED = "no discipline assigned"
DUPLICATE_DISCIPLINE = "discipline assigned more than once"


def validate_assigned_disciplines(disciplines: Iterable[DisciplineAssignment]) -> bool:
    """True iff at least one applicable discipline has a reviewer assigned."""
    return any(
        d.assigned_person_id is not None and not d.not_applicable
        for d in disciplines
    )


def _check_technical_review_team(task: Task) -> Optional[str]:
    payload = task.payload
    if not isinstance(payload, DisciplineAssignmentPayload):
        return f"task '{task.name}' expects a discipline assignment payload"
    ids = [d.discipline_id for d in payload.disciplines]
    if len(ids) != len(set(ids)):
        return DUPLICATE_DISCIPLINE
    if not validate_assigned_disciplines(payload.disciplines):
        return NO_DISCIPLINE_ASSIGNED
    return None


DEFAULT_VALIDATION_RULES: Dict[Tuple[StageKind, int], ValidationRule] = {
    # Assign Technical Review Team
    (StageKind.REVIEW, 0): _check_technical_review_team,
}


def run_validation(
    stage: StageKind,
    task: Task,
    rules: Optional[Dict[Tuple[StageKind, int], ValidationRule]] = None,
) -> None:
    """
    Run the rule registered for a task, if any.

    Args:
        stage: Stage the task belongs to
        task: Task as it will be completed (payload already applied)
        rules: Rule registry; defaults to DEFAULT_VALIDATION_RULES

    Raises:
        ValidationFailed: when the rule reports a reason
    """
    registry = DEFAULT_VALIDATION_RULES if rules is None else rules
    rule = registry.get((stage, task.index))
    if rule is None:
        return
    reason = rule(task)
    if reason:
        raise ValidationFailed(reason)
