"""KPI report and export routes."""
import csv
import io
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from emoc.core.database import get_db
from emoc.core.reference_data import get_area, option_name, PRIORITY_OPTIONS
from emoc.core.reporting import kpi_report
from emoc.models.moc_request import MOCRequest
from emoc.schemas.reports import KPIReport

router = APIRouter()


@router.get("/kpis", response_model=KPIReport)
def get_kpi_report(
    area_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    MOC KPI figures.

    Returns totals by status, completion rate, estimated cost and benefit
    totals, and the distribution of post-mitigation risk bands. Optionally
    restricted to one area.
    """
    return kpi_report(db, area_id)


@router.get("/export/csv")
def export_requests_csv(db: Session = Depends(get_db)):
    """Export all MOC requests to CSV."""
    requests = db.query(MOCRequest).order_by(MOCRequest.request_id).all()

    # Create CSV in memory
    output = io.StringIO()
    writer = csv.writer(output)

    # Write header
    writer.writerow([
        "MOC No",
        "Title",
        "Status",
        "Current Stage",
        "Area",
        "Priority",
        "Template",
        "Champion",
        "Requester",
        "Risk Before",
        "Risk After",
        "Risk Band",
        "Estimated Cost",
        "Estimated Benefit",
        "Created At",
    ])

    # Write data rows
    for moc in requests:
        area = get_area(moc.area_id)
        writer.writerow([
            moc.moc_no,
            moc.title,
            moc.status,
            moc.current_stage or "",
            area.name if area else moc.area_id,
            option_name(PRIORITY_OPTIONS, moc.priority_id),
            moc.template_name,
            moc.champion_name,
            moc.requester_name,
            moc.risk_before_code or "",
            moc.risk_after_code or "",
            moc.risk_after_band or "",
            moc.estimated_cost,
            moc.estimated_benefit,
            moc.created_at.isoformat() if moc.created_at else "",
        ])

    # Reset stream position
    output.seek(0)

    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={
            "Content-Disposition": "attachment; filename=moc_requests_export.csv"
        }
    )
