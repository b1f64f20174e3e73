"""MOC request model.

The full workflow snapshot is stored as one JSON document; the columns
beside it are a projection of that document kept for filtering, sorting
and reports.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import String, Integer, Float, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from emoc.models.base import Base
from emoc.core.time import utc_now


class MOCRequest(Base):
    """One management-of-change request."""
    __tablename__ = "moc_requests"

    request_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    moc_no: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="In Progress", index=True
    )  # In Progress, Closed, Cancelled
    current_stage: Mapped[Optional[str]] = mapped_column(
        String(30), nullable=True, index=True
    )  # Initiation, Review, Implementation, Closeout

    area_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    unit_id: Mapped[str] = mapped_column(String(50), nullable=False)
    priority_id: Mapped[str] = mapped_column(String(50), nullable=False)
    champion_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    requester_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    template_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    # Risk assessment codes (e.g. "C4") and bands
    risk_before_code: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    risk_before_band: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    risk_after_code: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    risk_after_band: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    estimated_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    estimated_benefit: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    document: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, onupdate=utc_now
    )

    events: Mapped[List["MOCTaskEvent"]] = relationship(
        "MOCTaskEvent", back_populates="request", cascade="all, delete-orphan",
        order_by="MOCTaskEvent.event_id"
    )
