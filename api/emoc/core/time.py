"""Central time utilities for the application.

Workflow snapshots store naive UTC datetimes so that documents written by
the engine compare cleanly with the naive DateTime columns of the request
tables.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Return current UTC time as a naive datetime object.

    Returns:
        datetime: Current UTC time as a naive datetime object
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_task_timestamp(value: Optional[datetime]) -> str:
    """Render a task timestamp the way task cards show it (dd/mm/YYYY HH:MM)."""
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y %H:%M")
