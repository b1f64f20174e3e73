"""Risk matrix logic for MOC risk assessment.

Implements:
- Risk code construction (probability letter + severity number)
- Risk band derivation from the severity x probability product
- The full matrix for the selection dialog

Assessments are pure: the same pair always yields the same result and
nothing is cached between calls.
"""
import string
from typing import Dict, List, Tuple

from emoc.core.errors import InvalidRiskInput
from emoc.schemas.risk_assessment import (
    ProbabilityDescription,
    RiskAssessment,
    RiskBand,
    RiskMatrixCell,
    RiskMatrixResponse,
    SeverityDescription,
)


# Both axes run 1..MAX_LEVEL
MAX_LEVEL = 4

# Inclusive upper bound of the severity*probability product for each band,
# checked in order
BAND_UPPER_BOUNDS: List[Tuple[int, RiskBand]] = [
    (2, RiskBand.LOW),
    (6, RiskBand.MEDIUM),
    (10, RiskBand.HIGH),
    (MAX_LEVEL * MAX_LEVEL, RiskBand.CRITICAL),
]

SEVERITY_LABELS: Dict[int, str] = {
    1: "Minor",
    2: "Moderate",
    3: "Major",
    4: "Catastrophic",
}

PROBABILITY_LABELS: Dict[int, str] = {
    1: "Rare",
    2: "Unlikely",
    3: "Possible",
    4: "Likely",
}

SEVERITY_DESCRIPTIONS = [
    SeverityDescription(
        level=1,
        label="Minor",
        people="First aid case, no lost time",
        assets="Slight damage, no disruption to operation",
        environment_community="Slight effect contained within the site",
        security="Minor breach with no loss",
    ),
    SeverityDescription(
        level=2,
        label="Moderate",
        people="Medical treatment or restricted work case",
        assets="Local damage, brief disruption to operation",
        environment_community="Minor effect, single complaint from the community",
        security="Breach with limited loss, handled locally",
    ),
    SeverityDescription(
        level=3,
        label="Major",
        people="Lost time injury or permanent partial disability",
        assets="Major damage, partial shutdown of the unit",
        environment_community="Localized effect beyond the fence, repeated complaints",
        security="Breach requiring external authority involvement",
    ),
    SeverityDescription(
        level=4,
        label="Catastrophic",
        people="Fatality or permanent total disability",
        assets="Extensive damage, total loss of production",
        environment_community="Massive effect, national media attention",
        security="Breach with severe loss or sabotage of critical assets",
    ),
]

PROBABILITY_DESCRIPTIONS = [
    ProbabilityDescription(
        level=1, letter="A", label="Rare",
        description="Never heard of in the industry",
    ),
    ProbabilityDescription(
        level=2, letter="B", label="Unlikely",
        description="Has occurred in the industry",
    ),
    ProbabilityDescription(
        level=3, letter="C", label="Possible",
        description="Has occurred in the company or more than once in the industry",
    ),
    ProbabilityDescription(
        level=4, letter="D", label="Likely",
        description="Happens several times per year at the site",
    ),
]


def _check_level(field: str, value) -> int:
    # bool is an int subclass but never a valid level
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRiskInput(field, value, MAX_LEVEL)
    if value < 1 or value > MAX_LEVEL:
        raise InvalidRiskInput(field, value, MAX_LEVEL)
    return value


def probability_letter(probability: int) -> str:
    """Map a probability level to its column letter (1 -> A, 2 -> B, ...)."""
    return string.ascii_uppercase[probability - 1]


def build_risk_code(severity: int, probability: int) -> str:
    """
    Build the risk code shown in the matrix cell.

    Args:
        severity: Severity level (row)
        probability: Probability level (column)

    Returns:
        Probability letter followed by the severity number, e.g. "C4"
    """
    return f"{probability_letter(probability)}{severity}"


def band_for_score(score: int) -> RiskBand:
    """
    Bucket a severity*probability product into a risk band.

    Args:
        score: Product of severity and probability (1..16)

    Returns:
        Low (<=2), Medium (3-6), High (7-10) or Critical (11-16)
    """
    for upper, band in BAND_UPPER_BOUNDS:
        if score <= upper:
            return band
    return RiskBand.CRITICAL


def assess_risk(severity: int, probability: int) -> RiskAssessment:
    """
    Classify a (severity, probability) pair.

    Args:
        severity: 1..4, Minor to Catastrophic
        probability: 1..4, Rare to Likely

    Returns:
        Immutable RiskAssessment with code, score and band

    Raises:
        InvalidRiskInput: if either value is outside 1..4 or not an integer
    """
    severity = _check_level("severity", severity)
    probability = _check_level("probability", probability)

    score = severity * probability
    return RiskAssessment(
        severity_level=severity,
        probability_level=probability,
        severity_label=SEVERITY_LABELS.get(severity, str(severity)),
        probability_label=PROBABILITY_LABELS.get(probability, str(probability)),
        probability_letter=probability_letter(probability),
        score=score,
        risk_code=build_risk_code(severity, probability),
        risk_band=band_for_score(score),
    )


def build_risk_matrix() -> RiskMatrixResponse:
    """Every cell of the matrix, severity-major, for the selection dialog."""
    cells = []
    for severity in range(1, MAX_LEVEL + 1):
        for probability in range(1, MAX_LEVEL + 1):
            assessment = assess_risk(severity, probability)
            cells.append(RiskMatrixCell(
                severity_level=severity,
                probability_level=probability,
                risk_code=assessment.risk_code,
                risk_band=assessment.risk_band,
                score=assessment.score,
            ))

    return RiskMatrixResponse(
        severities=SEVERITY_DESCRIPTIONS,
        probabilities=PROBABILITY_DESCRIPTIONS,
        cells=cells,
    )
