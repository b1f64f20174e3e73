"""Audit log model for tracking request-level actions."""
from datetime import datetime
from sqlalchemy import String, Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from emoc.models.base import Base
from emoc.core.time import utc_now


class AuditLog(Base):
    """Audit log table for side actions taken on MOC requests."""
    __tablename__ = "audit_logs"

    log_id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)  # e.g., "MOCRequest"
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)  # CREATE, CANCEL, CHANGE_CHAMPION, ...
    actor_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    changes: Mapped[dict] = mapped_column(JSON, nullable=True)  # JSON of what changed
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
