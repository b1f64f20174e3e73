"""Tests for MOC intake form validation."""
from datetime import date

import pytest

from emoc.core.intake_validation import (
    MAX_FILE_SIZE,
    format_file_size,
    group_errors_by_section,
    validate_file_size,
    validate_file_type,
    validate_intake,
)
from emoc.core.workflow_templates import select_form_template
from emoc.schemas.moc_request import MOCRequestCreate


@pytest.fixture
def errors_for(intake_factory):
    """Validate the standard intake form with some fields overridden."""
    def _errors(**overrides):
        return validate_intake(MOCRequestCreate(**intake_factory(**overrides)))
    return _errors


class TestFileChecks:

    @pytest.mark.parametrize("name", ["drawing.DWG", "minutes.docx", "photo.png", "plan.pdf"])
    def test_allowed_types(self, name):
        assert validate_file_type(name)

    @pytest.mark.parametrize("name", ["script.exe", "archive.zip", "no_extension"])
    def test_rejected_types(self, name):
        assert not validate_file_type(name)

    def test_size_limit_is_inclusive(self):
        assert validate_file_size(MAX_FILE_SIZE)
        assert not validate_file_size(MAX_FILE_SIZE + 1)

    def test_format_file_size(self):
        assert format_file_size(0) == "0 Bytes"
        assert format_file_size(1536) == "1.5 KB"
        assert format_file_size(MAX_FILE_SIZE) == "10 MB"


class TestValidateIntake:

    def test_complete_form_is_valid(self, intake_form):
        assert validate_intake(intake_form) == {}

    def test_all_missing_fields_reported_together(self):
        errors = validate_intake(MOCRequestCreate())
        for field in ("title", "area_id", "unit_id", "priority_id", "tpm_loss_type_id",
                      "detail_of_change", "reason_for_change", "scope_of_work",
                      "risk_before", "risk_after"):
            assert field in errors

    def test_blank_title(self, errors_for):
        assert "title" in errors_for(title="   ")

    def test_unit_must_belong_to_area(self, errors_for):
        errors = errors_for(area_id="area-2", unit_id="unit-1-1")
        assert errors["unit_id"] == "Unit does not belong to the selected area"

    def test_normal_priority_requires_length(self, errors_for):
        assert "length_of_change" in errors_for(length_of_change=None)

    def test_emergency_skips_length_and_type(self, errors_for):
        errors = errors_for(priority_id="priority-2", length_of_change=None, type_of_change=None)
        assert errors == {}

    def test_overriding_skips_type(self, errors_for):
        assert errors_for(length_of_change="length-3", type_of_change=None) == {}

    def test_end_before_start(self, errors_for):
        errors = errors_for(estimated_start="2026-12-01", estimated_end="2026-11-01")
        assert "estimated_end" in errors

    def test_risk_out_of_range(self, errors_for):
        errors = errors_for(risk_after={"severity": 5, "probability": 1})
        assert "severity" in errors["risk_after"]

    def test_bad_attachment(self, errors_for):
        errors = errors_for(attachments=[
            {"category": "Other Documents", "file_name": "virus.exe", "file_size": 10},
            {"category": "Other Documents", "file_name": "huge.pdf", "file_size": MAX_FILE_SIZE + 1},
        ])
        assert "virus.exe" in errors["attachments"]
        assert "huge.pdf" in errors["attachments"]


class TestGroupErrorsBySection:

    def test_grouping(self):
        sections = group_errors_by_section({
            "title": "MOC Title is required",
            "scope_of_work": "Scope of Work is required",
            "risk_before": "Risk Assessment (Before) is required",
        })
        assert set(sections) == {"section-general-info", "section-change-details", "section-risk"}
        assert sections["section-general-info"] == {"title": "MOC Title is required"}

    def test_no_errors_no_sections(self):
        assert group_errors_by_section({}) == {}


class TestSelectFormTemplate:

    def test_emergency_wins(self):
        assert select_form_template("priority-2", "type-1", "length-1") == "Emergency"

    def test_type_and_length(self):
        assert select_form_template("priority-1", "type-2", "length-2") == "Maintenance Change - Temporary"

    def test_override_split_by_duration(self):
        assert select_form_template(
            "priority-1", None, "length-3", date(2026, 11, 1), date(2026, 11, 3)
        ) == "Override - Less than 3 days"
        assert select_form_template(
            "priority-1", None, "length-3", date(2026, 11, 1), date(2026, 11, 10)
        ) == "Override - More than 3 days"
