"""Pydantic schemas for MOC request intake, listing and request-level actions."""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from emoc.schemas.risk_assessment import RiskInput
from emoc.schemas.workflow import (
    FileCategory,
    MOCRequestState,
    RequestStatus,
    StageKind,
    TaskPayload,
    TaskStatus,
)


# ============================================================================
# Intake
# ============================================================================

class AttachmentInput(BaseModel):
    """File metadata only; storage of the file itself is handled elsewhere."""
    category: FileCategory
    file_name: str
    file_size: int = Field(ge=0)
    file_type: str = ""


class MOCRequestCreate(BaseModel):
    """
    Intake form for a new MOC request.

    Fields are optional at the schema level so that every missing field is
    reported together by the intake validation, grouped by form section.
    """
    requester_name: str = ""
    title: Optional[str] = None
    area_id: Optional[str] = None
    unit_id: Optional[str] = None
    priority_id: Optional[str] = None
    length_of_change: Optional[str] = None
    type_of_change: Optional[str] = None
    estimated_start: Optional[date] = None
    estimated_end: Optional[date] = None
    tpm_loss_type_id: Optional[str] = None
    loss_eliminate_value: float = 0

    detail_of_change: Optional[str] = None
    reason_for_change: Optional[str] = None
    scope_of_work: Optional[str] = None

    estimated_benefit: float = 0
    estimated_cost: float = 0
    benefits: List[str] = Field(default_factory=list)
    expected_benefits: str = ""

    risk_before: Optional[RiskInput] = None
    risk_after: Optional[RiskInput] = None

    attachments: List[AttachmentInput] = Field(default_factory=list)


# ============================================================================
# Request-level actions
# ============================================================================

class CancelRequestInput(BaseModel):
    category: str
    reason: str
    acknowledge_impact: bool = False
    confirm_cancellation: bool = False
    requested_by: str = ""

    @field_validator('category', 'reason')
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError('This field is required')
        return v.strip()


class ChangeChampionInput(BaseModel):
    new_champion_id: str
    reason: str
    effective_date: date
    requested_by: str = ""

    @field_validator('new_champion_id', 'reason')
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError('This field is required')
        return v.strip()


class ChangeTeamInput(BaseModel):
    new_area_id: str
    new_unit_id: str
    reason: str
    requested_by: str = ""

    @field_validator('new_area_id', 'new_unit_id', 'reason')
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError('This field is required')
        return v.strip()


class ExtendTemporaryInput(BaseModel):
    """Either a new end date or an extension in months/days."""
    new_end_date: Optional[date] = None
    extend_months: int = Field(0, ge=0)
    extend_days: int = Field(0, ge=0)
    reason: str
    requested_by: str = ""

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, v):
        if not v or not v.strip():
            raise ValueError('Reason is required')
        return v.strip()


# ============================================================================
# Workflow actions
# ============================================================================

class CompleteTaskInput(BaseModel):
    payload: Optional[TaskPayload] = None
    comments: Optional[str] = None


class RejectTaskInput(BaseModel):
    remark: str = ""


class TaskDraftInput(BaseModel):
    payload: Optional[TaskPayload] = None
    comments: Optional[str] = None


# ============================================================================
# Responses
# ============================================================================

class TaskEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    event_id: int
    stage: StageKind
    task_index: int
    new_status: TaskStatus
    occurred_at: datetime


class TransitionResponse(BaseModel):
    """New request snapshot plus the events the transition produced."""
    request: MOCRequestState
    events: List[TaskEventResponse] = Field(default_factory=list)


class MOCRequestListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    request_id: int
    moc_no: str
    title: str
    status: RequestStatus
    current_stage: Optional[StageKind] = None
    area_id: str
    area_name: str = ""
    unit_id: str
    priority_id: str
    champion_name: str = ""
    requester_name: str = ""
    template_name: str = ""
    risk_before_code: Optional[str] = None
    risk_after_code: Optional[str] = None
    risk_after_band: Optional[str] = None
    estimated_cost: float = 0
    estimated_benefit: float = 0
    created_at: datetime
    updated_at: datetime


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    log_id: int
    entity_type: str
    entity_id: int
    action: str
    actor_name: str
    changes: Optional[dict] = None
    timestamp: datetime
