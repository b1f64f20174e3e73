"""Cross-task data propagation.

When certain tasks complete, their payload seeds the input of a later task:
- Assign Technical Review Team -> Approve Technical Review Team rows
- Assign Project Engineer -> engineer confirmation and Project Engineer tasks

Propagation rules run on the engine's working copy of the snapshot, inside
complete_task, before the next task is opened.
"""
import logging
from typing import Callable, Dict, Iterable, List, Tuple

from emoc.core.reference_data import PersonDirectory
from emoc.core.workflow_templates import PROJECT_ENGINEER_ROLE
from emoc.schemas.workflow import (
    ApprovalRow,
    DisciplineAssignment,
    DisciplineAssignmentPayload,
    EngineerConfirmationPayload,
    EngineerSelectionPayload,
    MOCRequestState,
    STAGE_ORDER,
    StageKind,
    TaskStatus,
    TeamApprovalPayload,
)

logger = logging.getLogger(__name__)

PropagationRule = Callable[[MOCRequestState, PersonDirectory], None]

# Position of the approval task that receives the rows
TEAM_APPROVAL_TASK = (StageKind.REVIEW, 1)


def approval_row_id(discipline_id: str) -> str:
    return f"row-{discipline_id}"


def build_approval_rows(
    disciplines: Iterable[DisciplineAssignment],
    directory: PersonDirectory,
) -> List[ApprovalRow]:
    """
    Turn the discipline assignments into fresh approval rows.

    A discipline is dropped when it is flagged not applicable or has nobody
    assigned; either condition alone excludes it. Unknown person ids yield an
    empty name rather than an error. Every row starts undecided.

    Args:
        disciplines: Current assignments from the Assign Technical Review Team task
        directory: Person lookup for display names

    Returns:
        One ApprovalRow per surviving discipline, in input order
    """
    rows = []
    for discipline in disciplines:
        if discipline.not_applicable or discipline.assigned_person_id is None:
            continue

        person = directory.resolve(discipline.assigned_person_id)
        if person is None:
            logger.warning(
                "UnresolvedPersonReference: discipline %s points at unknown person %s",
                discipline.discipline_id, discipline.assigned_person_id,
            )

        rows.append(ApprovalRow(
            row_id=approval_row_id(discipline.discipline_id),
            discipline_name=discipline.discipline_name,
            assigned_person_name=person.name if person else "",
            direct_manager_name=discipline.direct_manager_name,
            approval_status=None,
            remark="",
        ))
    return rows


def propagate_review_team(state: MOCRequestState, directory: PersonDirectory) -> None:
    """Replace the approval task rows with the image of the current assignments."""
    source = state.stage(StageKind.REVIEW).tasks[0]
    if not isinstance(source.payload, DisciplineAssignmentPayload):
        return

    stage_kind, index = TEAM_APPROVAL_TASK
    target = state.stage(stage_kind).tasks[index]
    rows = build_approval_rows(source.payload.disciplines, directory)
    # Full rebuild: earlier decisions and remarks are discarded
    target.payload = TeamApprovalPayload(rows=rows)
    logger.info("MOC %s: %d approval row(s) rebuilt for '%s'", state.moc_no, len(rows), target.name)


def propagate_project_engineer(state: MOCRequestState, directory: PersonDirectory) -> None:
    """Carry the selected engineer into the confirmation task and onto Project Engineer tasks."""
    initiation = state.stage(StageKind.INITIATION)
    source = initiation.tasks[1]
    if not isinstance(source.payload, EngineerSelectionPayload):
        return

    engineer_id = source.payload.selected_engineer_id
    engineer_name = directory.name_of(engineer_id)
    if engineer_id and not engineer_name:
        logger.warning("UnresolvedPersonReference: project engineer %s is unknown", engineer_id)

    if len(initiation.tasks) > 2 and isinstance(initiation.tasks[2].payload, EngineerConfirmationPayload):
        initiation.tasks[2].payload = EngineerConfirmationPayload(selected_engineer_name=engineer_name)

    for kind in STAGE_ORDER[STAGE_ORDER.index(StageKind.INITIATION) + 1:]:
        for task in state.stage(kind).tasks:
            if task.role == PROJECT_ENGINEER_ROLE and task.status != TaskStatus.COMPLETED:
                task.assignee_id = engineer_id
                task.assignee_name = engineer_name


DEFAULT_PROPAGATION_RULES: Dict[Tuple[StageKind, int], PropagationRule] = {
    # Assign Project Engineer
    (StageKind.INITIATION, 1): propagate_project_engineer,
    # Assign Technical Review Team
    (StageKind.REVIEW, 0): propagate_review_team,
}
