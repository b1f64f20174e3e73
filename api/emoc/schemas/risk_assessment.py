"""Pydantic schemas for the severity/probability risk matrix."""
import enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class RiskBand(str, enum.Enum):
    """Categorical risk produced by the matrix."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class RiskAssessment(BaseModel):
    """Result of classifying one (severity, probability) pair.

    Frozen: a new assessment is produced for new inputs, never edited.
    """
    model_config = ConfigDict(frozen=True)

    severity_level: int
    probability_level: int
    severity_label: str
    probability_label: str
    probability_letter: str
    score: int
    risk_code: str
    risk_band: RiskBand


class RiskInput(BaseModel):
    """Raw pair submitted by the intake form or the assess endpoint.

    Range checks are left to the engine so that out-of-range input surfaces
    as an InvalidRiskInput rather than a schema error.
    """
    severity: int
    probability: int


class RiskMatrixCell(BaseModel):
    severity_level: int
    probability_level: int
    risk_code: str
    risk_band: RiskBand
    score: int


class SeverityDescription(BaseModel):
    level: int
    label: str
    people: str
    assets: str
    environment_community: str
    security: str


class ProbabilityDescription(BaseModel):
    level: int
    letter: str
    label: str
    description: str


class RiskMatrixResponse(BaseModel):
    """Full matrix for the risk selection dialog."""
    severities: List[SeverityDescription] = Field(default_factory=list)
    probabilities: List[ProbabilityDescription] = Field(default_factory=list)
    cells: List[RiskMatrixCell] = Field(default_factory=list)
