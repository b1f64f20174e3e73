"""Tests for the severity/probability risk matrix."""
import pytest

from emoc.core.errors import InvalidRiskInput
from emoc.core.risk_matrix import (
    BAND_UPPER_BOUNDS,
    assess_risk,
    band_for_score,
    build_risk_code,
    build_risk_matrix,
    probability_letter,
)
from emoc.schemas.risk_assessment import RiskBand


class TestRiskCode:
    """Probability letter followed by the severity number."""

    def test_probability_letters(self):
        assert [probability_letter(p) for p in range(1, 5)] == ["A", "B", "C", "D"]

    def test_code_puts_probability_first(self):
        assert build_risk_code(severity=4, probability=3) == "C4"
        assert build_risk_code(severity=1, probability=4) == "D1"


class TestBandForScore:

    @pytest.mark.parametrize("score,band", [
        (1, RiskBand.LOW),
        (2, RiskBand.LOW),
        (3, RiskBand.MEDIUM),
        (6, RiskBand.MEDIUM),
        (8, RiskBand.HIGH),
        (9, RiskBand.HIGH),
        (12, RiskBand.CRITICAL),
        (16, RiskBand.CRITICAL),
    ])
    def test_band_boundaries(self, score, band):
        assert band_for_score(score) == band

    def test_bounds_cover_whole_matrix(self):
        assert BAND_UPPER_BOUNDS[-1][0] == 16


class TestAssessRisk:

    def test_worst_plausible_case(self):
        """Catastrophic and possible is C4, Critical."""
        result = assess_risk(4, 3)
        assert result.risk_code == "C4"
        assert result.score == 12
        assert result.risk_band == RiskBand.CRITICAL
        assert result.severity_label == "Catastrophic"
        assert result.probability_label == "Possible"

    def test_lowest_cell(self):
        result = assess_risk(1, 1)
        assert result.risk_code == "A1"
        assert result.risk_band == RiskBand.LOW

    def test_same_input_same_result(self):
        assert assess_risk(3, 2) == assess_risk(3, 2)

    def test_assessment_is_frozen(self):
        result = assess_risk(2, 2)
        with pytest.raises(Exception):
            result.score = 16

    @pytest.mark.parametrize("severity,probability,field", [
        (0, 1, "severity"),
        (5, 1, "severity"),
        (1, 0, "probability"),
        (1, 5, "probability"),
        (-1, 2, "severity"),
    ])
    def test_out_of_range_rejected(self, severity, probability, field):
        with pytest.raises(InvalidRiskInput) as exc_info:
            assess_risk(severity, probability)
        assert exc_info.value.field == field

    def test_non_integer_rejected(self):
        with pytest.raises(InvalidRiskInput):
            assess_risk(2.5, 1)
        with pytest.raises(InvalidRiskInput):
            assess_risk(True, 1)


class TestRiskMatrix:

    def test_sixteen_cells(self):
        matrix = build_risk_matrix()
        assert len(matrix.cells) == 16
        assert len(matrix.severities) == 4
        assert len(matrix.probabilities) == 4

    def test_cells_match_assessment(self):
        for cell in build_risk_matrix().cells:
            expected = assess_risk(cell.severity_level, cell.probability_level)
            assert cell.risk_code == expected.risk_code
            assert cell.risk_band == expected.risk_band


class TestRiskAPI:

    def test_assess_endpoint(self, client):
        response = client.post("/risk/assess", json={"severity": 4, "probability": 3})
        assert response.status_code == 200
        data = response.json()
        assert data["risk_code"] == "C4"
        assert data["risk_band"] == "Critical"

    def test_assess_endpoint_out_of_range(self, client):
        response = client.post("/risk/assess", json={"severity": 5, "probability": 1})
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INVALID_RISK_INPUT"

    def test_matrix_endpoint(self, client):
        response = client.get("/risk/matrix")
        assert response.status_code == 200
        assert len(response.json()["cells"]) == 16
