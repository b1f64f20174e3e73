"""Intake validation for new MOC requests.

All field errors are collected in one pass and grouped by the form section
they belong to, so the caller can show a per-section error count.
"""
import math
import os
from typing import Dict, Optional

from emoc.core.errors import InvalidRiskInput
from emoc.core.reference_data import (
    LENGTH_OF_CHANGE_OPTIONS,
    TPM_LOSS_TYPE_OPTIONS,
    TYPE_OF_CHANGE_OPTIONS,
    get_area,
    get_priority,
    is_emergency,
    option_name,
    unit_belongs_to_area,
)
from emoc.core.risk_matrix import assess_risk
from emoc.schemas.moc_request import AttachmentInput, MOCRequestCreate
from emoc.schemas.risk_assessment import RiskInput

ALLOWED_FILE_TYPES = (
    ".pdf", ".dwg", ".ppt", ".pptx", ".doc", ".docx", ".xls", ".xlsx", ".jpg", ".png"
)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

SECTION_FIELDS: Dict[str, tuple] = {
    "section-general-info": (
        "title", "length_of_change", "type_of_change", "priority_id", "area_id", "unit_id",
        "estimated_end", "tpm_loss_type_id",
    ),
    "section-change-details": (
        "detail_of_change", "reason_for_change", "scope_of_work",
    ),
    "section-risk": ("risk_before", "risk_after"),
    "section-attachments": ("attachments",),
}


def validate_file_type(file_name: str) -> bool:
    extension = os.path.splitext(file_name.lower())[1]
    return extension in ALLOWED_FILE_TYPES


def validate_file_size(size: int) -> bool:
    return size <= MAX_FILE_SIZE


def format_file_size(size: int) -> str:
    """Human readable size, e.g. 1536 -> '1.5 KB'."""
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    exponent = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / math.pow(1024, exponent), 2)
    return f"{value:g} {units[exponent]}"


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _risk_error(value: Optional[RiskInput], label: str) -> Optional[str]:
    if value is None:
        return f"Risk Assessment ({label}) is required"
    try:
        assess_risk(value.severity, value.probability)
    except InvalidRiskInput as exc:
        return str(exc)
    return None


def _attachment_error(attachment: AttachmentInput) -> Optional[str]:
    if not validate_file_type(attachment.file_name):
        return f"{attachment.file_name}: file type is not allowed"
    if not validate_file_size(attachment.file_size):
        return (
            f"{attachment.file_name}: {format_file_size(attachment.file_size)} exceeds "
            f"the {format_file_size(MAX_FILE_SIZE)} limit"
        )
    return None


def validate_intake(data: MOCRequestCreate) -> Dict[str, str]:
    """
    Validate an intake form.

    Business Rules:
    - Title, area, unit, priority, TPM loss type and the three change detail
      fields are required
    - The unit must belong to the selected area
    - Normal priority requires a length of change; Emergency hides it
    - Type of change is required unless Emergency or the length is Overriding
    - The estimated end date cannot precede the start date
    - Both risk assessments are required and must be on the matrix
    - Attachments must have an allowed type and be at most 10 MB

    Returns:
        Mapping of field name to message; empty when the form is valid
    """
    errors: Dict[str, str] = {}

    if _blank(data.title):
        errors["title"] = "MOC Title is required"

    if _blank(data.area_id):
        errors["area_id"] = "Area is required"
    elif get_area(data.area_id) is None:
        errors["area_id"] = "Unknown area"

    if _blank(data.unit_id):
        errors["unit_id"] = "Unit is required"
    elif "area_id" not in errors and not unit_belongs_to_area(data.unit_id, data.area_id):
        errors["unit_id"] = "Unit does not belong to the selected area"

    if _blank(data.priority_id):
        errors["priority_id"] = "Priority is required"
    elif get_priority(data.priority_id) is None:
        errors["priority_id"] = "Unknown priority"

    emergency = is_emergency(data.priority_id)
    length = option_name(LENGTH_OF_CHANGE_OPTIONS, data.length_of_change)
    if not emergency:
        if _blank(data.length_of_change):
            errors["length_of_change"] = "Length of Change is required"
        elif not length:
            errors["length_of_change"] = "Unknown length of change"

        if length != "Overriding":
            if _blank(data.type_of_change):
                errors["type_of_change"] = "Type of Change is required"
            elif not option_name(TYPE_OF_CHANGE_OPTIONS, data.type_of_change):
                errors["type_of_change"] = "Unknown type of change"

    if _blank(data.tpm_loss_type_id):
        errors["tpm_loss_type_id"] = "TPM Loss Type is required"
    elif not option_name(TPM_LOSS_TYPE_OPTIONS, data.tpm_loss_type_id):
        errors["tpm_loss_type_id"] = "Unknown TPM loss type"

    if data.estimated_start and data.estimated_end and data.estimated_end < data.estimated_start:
        errors["estimated_end"] = "Estimated end date cannot be before the start date"

    if _blank(data.detail_of_change):
        errors["detail_of_change"] = "Detail of Change is required"
    if _blank(data.reason_for_change):
        errors["reason_for_change"] = "Reason for Change is required"
    if _blank(data.scope_of_work):
        errors["scope_of_work"] = "Scope of Work is required"

    before = _risk_error(data.risk_before, "Before")
    if before:
        errors["risk_before"] = before
    after = _risk_error(data.risk_after, "After")
    if after:
        errors["risk_after"] = after

    attachment_errors = [e for e in (_attachment_error(a) for a in data.attachments) if e]
    if attachment_errors:
        errors["attachments"] = "; ".join(attachment_errors)

    return errors


def group_errors_by_section(errors: Dict[str, str]) -> Dict[str, Dict[str, str]]:
    """Split field errors into their form sections, omitting sections without errors."""
    sections = {}
    for section, fields in SECTION_FIELDS.items():
        section_errors = {f: errors[f] for f in fields if f in errors}
        if section_errors:
            sections[section] = section_errors
    return sections
