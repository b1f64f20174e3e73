"""Persisted workflow task events."""
from datetime import datetime
from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from emoc.models.base import Base


class MOCTaskEvent(Base):
    """A task status change emitted by the workflow engine."""
    __tablename__ = "moc_task_events"

    event_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("moc_requests.request_id", ondelete="CASCADE"), nullable=False, index=True
    )
    stage: Mapped[str] = mapped_column(String(30), nullable=False)
    task_index: Mapped[int] = mapped_column(Integer, nullable=False)
    new_status: Mapped[str] = mapped_column(String(30), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    request: Mapped["MOCRequest"] = relationship("MOCRequest", back_populates="events")
