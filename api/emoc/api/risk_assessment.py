"""Risk matrix routes."""
from fastapi import APIRouter

from emoc.core.deps import http_error_for
from emoc.core.errors import InvalidRiskInput
from emoc.core.risk_matrix import assess_risk, build_risk_matrix
from emoc.schemas.risk_assessment import RiskAssessment, RiskInput, RiskMatrixResponse

router = APIRouter()


@router.post("/assess", response_model=RiskAssessment)
def assess(risk_input: RiskInput):
    """Score a severity/probability pair, e.g. (4, 3) -> C4 Critical."""
    try:
        return assess_risk(risk_input.severity, risk_input.probability)
    except InvalidRiskInput as exc:
        raise http_error_for(exc)


@router.get("/matrix", response_model=RiskMatrixResponse)
def get_risk_matrix():
    """Full 4x4 matrix with axis descriptions for the selection dialog."""
    return build_risk_matrix()
