"""Pydantic schemas for read-only reference catalogs."""
from typing import List, Optional
from pydantic import BaseModel, Field


class Person(BaseModel):
    id: str
    name: str
    role: Optional[str] = None


class OptionItem(BaseModel):
    id: str
    name: str


class UnitOption(BaseModel):
    id: str
    name: str
    area_id: str


class AreaOption(BaseModel):
    id: str
    name: str
    units: List[UnitOption] = Field(default_factory=list)


class PriorityOption(BaseModel):
    id: str
    name: str
    level: int


class CatalogsResponse(BaseModel):
    """Everything the intake and action forms need to populate their selects."""
    areas: List[AreaOption]
    length_of_change: List[OptionItem]
    type_of_change: List[OptionItem]
    priorities: List[PriorityOption]
    benefits: List[OptionItem]
    tpm_loss_types: List[OptionItem]
    cancellation_categories: List[OptionItem]
    champions: List[Person]
    file_categories: List[str]
