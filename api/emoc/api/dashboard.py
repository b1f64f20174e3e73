"""Dashboard routes."""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from emoc.core.database import get_db
from emoc.core.reporting import dashboard_stats, my_tasks
from emoc.schemas.reports import DashboardStats, MyTaskItem

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(db: Session = Depends(get_db)):
    """Request counts by status, and open requests by current stage."""
    return dashboard_stats(db)


@router.get("/my-tasks", response_model=List[MyTaskItem])
def get_my_tasks(
    assignee: str = Query(..., min_length=1, description="Person id or display name"),
    db: Session = Depends(get_db),
):
    return my_tasks(db, assignee)
