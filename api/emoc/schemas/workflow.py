"""Pydantic schemas for the MOC workflow snapshot.

A request snapshot (MOCRequestState) is the unit the engine transforms and
the document the store persists. Task payloads are a tagged union on
``kind`` so each handler only sees the variant it understands.
"""
import enum
from datetime import date, datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, computed_field

from emoc.schemas.risk_assessment import RiskAssessment


class StageKind(str, enum.Enum):
    """The four fixed workflow phases, in order."""
    INITIATION = "Initiation"
    REVIEW = "Review"
    IMPLEMENTATION = "Implementation"
    CLOSEOUT = "Closeout"


STAGE_ORDER: List[StageKind] = [
    StageKind.INITIATION,
    StageKind.REVIEW,
    StageKind.IMPLEMENTATION,
    StageKind.CLOSEOUT,
]


class TaskStatus(str, enum.Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    REJECTED = "Rejected"


class StageStatus(str, enum.Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class RequestStatus(str, enum.Enum):
    IN_PROGRESS = "In Progress"
    CLOSED = "Closed"
    CANCELLED = "Cancelled"


TERMINAL_REQUEST_STATUSES = (RequestStatus.CLOSED, RequestStatus.CANCELLED)


class ApprovalStatus(str, enum.Enum):
    APPROVED = "Approved"
    REJECTED = "Rejected"


class DocumentReviewStatus(str, enum.Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class FileCategory(str, enum.Enum):
    TECHNICAL_INFORMATION = "Technical Information"
    MINUTE_OF_MEETING = "Minute of Meeting"
    OTHER_DOCUMENTS = "Other Documents"


# ============================================================================
# Payload building blocks
# ============================================================================

class DisciplineAssignment(BaseModel):
    """Reviewer assignment for one engineering discipline."""
    discipline_id: str
    discipline_name: str
    assigned_person_id: Optional[str] = None
    direct_manager_name: str = ""
    not_applicable: bool = False


class ApprovalRow(BaseModel):
    """One manager decision on a proposed technical reviewer."""
    row_id: str
    discipline_name: str
    assigned_person_name: str = ""
    direct_manager_name: str = ""
    approval_status: Optional[ApprovalStatus] = None
    remark: str = ""


class DocumentReviewItem(BaseModel):
    document_id: str
    name: str
    status: DocumentReviewStatus = DocumentReviewStatus.NOT_STARTED
    form_type: Optional[str] = None


# ============================================================================
# Task payload variants
# ============================================================================

class ApprovalPayload(BaseModel):
    """Review-and-approve tasks carry no data beyond comments."""
    kind: Literal["approval"] = "approval"


class EngineerSelectionPayload(BaseModel):
    kind: Literal["engineer_selection"] = "engineer_selection"
    selected_engineer_id: Optional[str] = None


class EngineerConfirmationPayload(BaseModel):
    kind: Literal["engineer_confirmation"] = "engineer_confirmation"
    selected_engineer_name: str = ""


class DisciplineAssignmentPayload(BaseModel):
    kind: Literal["discipline_assignment"] = "discipline_assignment"
    disciplines: List[DisciplineAssignment] = Field(default_factory=list)


class TeamApprovalPayload(BaseModel):
    kind: Literal["team_approval"] = "team_approval"
    rows: List[ApprovalRow] = Field(default_factory=list)


class DocumentReviewPayload(BaseModel):
    kind: Literal["document_review"] = "document_review"
    documents: List[DocumentReviewItem] = Field(default_factory=list)


TaskPayload = Annotated[
    Union[
        ApprovalPayload,
        EngineerSelectionPayload,
        EngineerConfirmationPayload,
        DisciplineAssignmentPayload,
        TeamApprovalPayload,
        DocumentReviewPayload,
    ],
    Field(discriminator="kind"),
]


# ============================================================================
# Tasks, stages, requests
# ============================================================================

class Task(BaseModel):
    index: int
    name: str
    role: str
    assignee_name: str = ""
    assignee_id: Optional[str] = None
    status: TaskStatus = TaskStatus.NOT_STARTED
    assigned_on: Optional[datetime] = None
    completed_on: Optional[datetime] = None
    comments: str = ""
    attachments: List[str] = Field(default_factory=list)
    payload: TaskPayload = Field(default_factory=ApprovalPayload)


class Stage(BaseModel):
    kind: StageKind
    tasks: List[Task] = Field(default_factory=list)

    @computed_field
    @property
    def status(self) -> StageStatus:
        if all(t.status == TaskStatus.COMPLETED for t in self.tasks):
            return StageStatus.COMPLETED
        if all(t.status == TaskStatus.NOT_STARTED for t in self.tasks):
            return StageStatus.NOT_STARTED
        return StageStatus.IN_PROGRESS

    def current_index(self) -> Optional[int]:
        """Lowest task that is not Completed, or None when the stage is done."""
        for task in self.tasks:
            if task.status != TaskStatus.COMPLETED:
                return task.index
        return None


class FileAttachment(BaseModel):
    attachment_id: str
    category: FileCategory
    file_name: str
    file_size: int
    file_type: str = ""
    uploaded_by: str = ""
    uploaded_at: Optional[datetime] = None


class ChangeDetails(BaseModel):
    """Free-form intake content that the workflow carries but never branches on."""
    detail_of_change: str = ""
    reason_for_change: str = ""
    scope_of_work: str = ""
    tpm_loss_type_id: Optional[str] = None
    loss_eliminate_value: float = 0
    estimated_benefit: float = 0
    estimated_cost: float = 0
    benefits: List[str] = Field(default_factory=list)
    expected_benefits: str = ""
    estimated_start: Optional[date] = None
    estimated_end: Optional[date] = None


class MOCRequestState(BaseModel):
    """Full snapshot of one MOC request."""
    request_id: int
    moc_no: str
    title: str
    status: RequestStatus = RequestStatus.IN_PROGRESS
    requester_name: str = ""
    request_date: Optional[date] = None
    champion_name: str = ""
    area_id: str
    unit_id: str
    priority_id: str
    length_of_change: Optional[str] = None
    type_of_change: Optional[str] = None
    template_name: str = ""
    details: ChangeDetails = Field(default_factory=ChangeDetails)
    risk_before: Optional[RiskAssessment] = None
    risk_after: Optional[RiskAssessment] = None
    attachments: List[FileAttachment] = Field(default_factory=list)
    stages: List[Stage] = Field(default_factory=list)
    cancellation_reason: Optional[str] = None

    def stage(self, kind: StageKind) -> Stage:
        for stage in self.stages:
            if stage.kind == kind:
                return stage
        raise KeyError(kind)

    @computed_field
    @property
    def current_stage(self) -> Optional[StageKind]:
        """First stage that is not Completed; None once every stage is done."""
        for stage in self.stages:
            if stage.status != StageStatus.COMPLETED:
                return stage.kind
        return None


class TaskEvent(BaseModel):
    """Progress notification emitted for every task status change."""
    stage: StageKind
    task_index: int
    new_status: TaskStatus
    occurred_at: datetime
