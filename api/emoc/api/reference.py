"""Reference catalog routes."""
from typing import List

from fastapi import APIRouter, HTTPException, status

from emoc.core.reference_data import default_directory, get_area, get_catalogs
from emoc.core.workflow_templates import FORM_TEMPLATES, REVIEW_DOCUMENTS, TECHNICAL_DISCIPLINES
from emoc.schemas.reference import CatalogsResponse, OptionItem, Person, UnitOption
from emoc.schemas.workflow import DocumentReviewItem

router = APIRouter()


@router.get("/catalogs", response_model=CatalogsResponse)
def list_catalogs():
    """All dropdown catalogs used by the intake form and action dialogs."""
    return get_catalogs()


@router.get("/people", response_model=List[Person])
def list_people():
    return default_directory.all()


@router.get("/areas/{area_id}/units", response_model=List[UnitOption])
def list_units(area_id: str):
    """Units of one area, for the cascading unit selector."""
    area = get_area(area_id)
    if not area:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Area not found"
        )
    return area.units


@router.get("/disciplines", response_model=List[OptionItem])
def list_disciplines():
    """Technical review disciplines offered by Assign Technical Review Team."""
    return [OptionItem(id=did, name=name) for did, name in TECHNICAL_DISCIPLINES]


@router.get("/review-documents", response_model=List[DocumentReviewItem])
def list_review_documents():
    """Checklist documents worked through in Perform Technical Review."""
    return [
        DocumentReviewItem(document_id=doc_id, name=name, form_type=form_type)
        for doc_id, name, form_type in REVIEW_DOCUMENTS
    ]


@router.get("/form-templates", response_model=List[str])
def list_form_templates():
    return FORM_TEMPLATES
