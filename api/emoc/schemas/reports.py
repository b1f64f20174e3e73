"""Schemas for dashboard statistics and KPI reports."""
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from emoc.schemas.workflow import StageKind, TaskStatus


class DashboardStats(BaseModel):
    total: int
    in_progress: int
    closed: int
    cancelled: int
    by_stage: Dict[str, int] = Field(default_factory=dict)


class MyTaskItem(BaseModel):
    """Current task of an in-progress request, as listed on a person's task card."""
    request_id: int
    moc_no: str
    title: str
    stage: StageKind
    task_index: int
    task_name: str
    role: str
    assignee_name: str
    status: TaskStatus
    assigned_on: Optional[datetime] = None
    assigned_on_display: str = ""


class KPIReport(BaseModel):
    total_requests: int
    completed: int
    in_progress: int
    pending: int
    cancelled: int
    completion_rate: float
    total_estimated_cost: float
    total_estimated_benefit: float
    risk_band_distribution: Dict[str, int] = Field(default_factory=dict)
    by_template: Dict[str, int] = Field(default_factory=dict)
    generated_at: datetime
