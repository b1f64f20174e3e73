"""Workflow form templates and the task layout of each stage.

Every form template shares the same four-part layout; the template name is
recorded on the request so reports can group by it.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from emoc.core.reference_data import (
    LENGTH_OF_CHANGE_OPTIONS,
    TYPE_OF_CHANGE_OPTIONS,
    PersonDirectory,
    is_emergency,
    option_name,
)
from emoc.schemas.workflow import (
    ApprovalPayload,
    DisciplineAssignment,
    DisciplineAssignmentPayload,
    DocumentReviewItem,
    DocumentReviewPayload,
    EngineerConfirmationPayload,
    EngineerSelectionPayload,
    Stage,
    StageKind,
    STAGE_ORDER,
    Task,
    TaskStatus,
    TeamApprovalPayload,
)

PROJECT_ENGINEER_ROLE = "Project Engineer"

# Override changes longer than this many days use the longer override form
OVERRIDE_SHORT_LIMIT_DAYS = 3

EMERGENCY_TEMPLATE = "Emergency"

FORM_TEMPLATES = [
    "Plant Change - Permanent",
    "Plant Change - Temporary",
    "Maintenance Change - Permanent",
    "Maintenance Change - Temporary",
    "Process Change - Permanent",
    "Process Change - Temporary",
    "Override - More than 3 days",
    "Override - Less than 3 days",
    EMERGENCY_TEMPLATE,
]

TECHNICAL_DISCIPLINES = [
    ("d1", "Electrical Engineering"),
    ("d2", "Mechanical Engineering"),
    ("d3", "Control & Instrument Engineering"),
    ("d4", "Electrical Maintenance"),
    ("d5", "Mechanical Maintenance"),
    ("d6", "Control & Instrument Maintenance"),
    ("d7", "Operation"),
    ("d8", "SHE"),
]

REVIEW_DOCUMENTS = [
    ("doc1", "Preliminary Risk Assessment & PHA Review", "preliminary-safety"),
    ("doc2", "Process Safety Information (PSI) Checklist", "psi-checklist"),
    ("doc3", "Government Verification Check List", "govt-verification"),
    ("doc4", "SHE Assessment Check List", "she-assessment"),
]


def _discipline_payload():
    return DisciplineAssignmentPayload(disciplines=[
        DisciplineAssignment(discipline_id=did, discipline_name=name)
        for did, name in TECHNICAL_DISCIPLINES
    ])


def _document_payload():
    return DocumentReviewPayload(documents=[
        DocumentReviewItem(document_id=doc_id, name=name, form_type=form_type)
        for doc_id, name, form_type in REVIEW_DOCUMENTS
    ])


@dataclass(frozen=True)
class TaskTemplate:
    name: str
    role: str
    assignee_id: Optional[str] = None
    assignee_name: str = ""
    payload_factory: Callable = field(default=ApprovalPayload)


STAGE_TEMPLATES: Dict[StageKind, List[TaskTemplate]] = {
    StageKind.INITIATION: [
        TaskTemplate("Initial Review and Approve MOC Request", "Direct Manager of Requester", assignee_id="p1"),
        TaskTemplate("Assign Project Engineer", "Division Manager", assignee_id="p2",
                     payload_factory=EngineerSelectionPayload),
        TaskTemplate("Review and Approve MOC Request", "VP Operation", assignee_id="p3",
                     payload_factory=EngineerConfirmationPayload),
    ],
    StageKind.REVIEW: [
        TaskTemplate("Assign Technical Review Team", PROJECT_ENGINEER_ROLE,
                     payload_factory=_discipline_payload),
        TaskTemplate("Approve Technical Review Team", "Relevant Managers", assignee_name="Multiple Managers",
                     payload_factory=TeamApprovalPayload),
        TaskTemplate("Perform Technical Review", PROJECT_ENGINEER_ROLE,
                     payload_factory=_document_payload),
        TaskTemplate("Review and Approve Technical Design Package", "Technical Review Team"),
        TaskTemplate("Review and Approve for Implementation", "VP Area"),
    ],
    StageKind.IMPLEMENTATION: [
        TaskTemplate("Implementation Execution", "Project Manager", assignee_name="David Lee"),
        TaskTemplate("Testing & Commissioning", "Quality Assurance", assignee_name="Emma Davis"),
    ],
    StageKind.CLOSEOUT: [
        TaskTemplate("Final Documentation Review", "Operations Manager", assignee_id="p1"),
        TaskTemplate("Handover & Training", "Training Coordinator", assignee_name="Lisa Martinez"),
    ],
}


def select_form_template(
    priority_id: Optional[str],
    type_of_change_id: Optional[str],
    length_of_change_id: Optional[str],
    estimated_start: Optional[date] = None,
    estimated_end: Optional[date] = None,
) -> str:
    """
    Choose the workflow form template for a new request.

    Args:
        priority_id: Emergency priority always selects the Emergency form
        type_of_change_id: Plant / Maintenance / Process change
        length_of_change_id: Permanent / Temporary / Overriding
        estimated_start, estimated_end: used to split override forms by duration

    Returns:
        Template name, one of FORM_TEMPLATES
    """
    if is_emergency(priority_id):
        return EMERGENCY_TEMPLATE

    length = option_name(LENGTH_OF_CHANGE_OPTIONS, length_of_change_id)
    if length == "Overriding":
        if estimated_start and estimated_end and (estimated_end - estimated_start).days > OVERRIDE_SHORT_LIMIT_DAYS:
            return "Override - More than 3 days"
        return "Override - Less than 3 days"

    change_type = option_name(TYPE_OF_CHANGE_OPTIONS, type_of_change_id) or "Plant Change"
    return f"{change_type} - {length or 'Permanent'}"


def build_stages(directory: PersonDirectory, now: datetime) -> List[Stage]:
    """Create the stages of a new request with the first task opened."""
    stages = []
    for kind in STAGE_ORDER:
        tasks = []
        for index, template in enumerate(STAGE_TEMPLATES[kind]):
            tasks.append(Task(
                index=index,
                name=template.name,
                role=template.role,
                assignee_id=template.assignee_id,
                assignee_name=template.assignee_name or directory.name_of(template.assignee_id),
                payload=template.payload_factory(),
            ))
        stages.append(Stage(kind=kind, tasks=tasks))

    first = stages[0].tasks[0]
    first.status = TaskStatus.IN_PROGRESS
    first.assigned_on = now
    return stages
