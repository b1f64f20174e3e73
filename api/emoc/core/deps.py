"""Shared route dependencies and engine error translation."""
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from emoc.core.database import get_db
from emoc.core.errors import (
    InvalidActionInput,
    InvalidRiskInput,
    OutOfOrderCompletion,
    TerminalStateError,
    ValidationFailed,
    WorkflowError,
)
from emoc.models.moc_request import MOCRequest

_STATUS_BY_ERROR = [
    (OutOfOrderCompletion, status.HTTP_409_CONFLICT),
    (TerminalStateError, status.HTTP_409_CONFLICT),
    (ValidationFailed, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidRiskInput, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidActionInput, status.HTTP_422_UNPROCESSABLE_ENTITY),
]


def http_error_for(exc: WorkflowError) -> HTTPException:
    """Map an engine error onto the HTTP status the routes report it with."""
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break
    return HTTPException(
        status_code=status_code,
        detail={"code": exc.code, "message": str(exc)},
    )


def get_request_or_404(request_id: int, db: Session = Depends(get_db)) -> MOCRequest:
    """Load a request row by id or fail with 404."""
    row = db.query(MOCRequest).filter(MOCRequest.request_id == request_id).first()
    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="MOC request not found"
        )
    return row
