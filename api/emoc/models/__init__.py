"""Models package."""
from emoc.models.moc_request import MOCRequest
from emoc.models.moc_task_event import MOCTaskEvent
from emoc.models.audit_log import AuditLog

__all__ = [
    "MOCRequest",
    "MOCTaskEvent",
    "AuditLog",
]
