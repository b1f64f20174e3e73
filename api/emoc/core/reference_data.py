"""Static reference catalogs and the person directory.

The workflow never branches on these values except the priority level
(Normal vs Emergency), which only affects which intake fields are required.
"""
from typing import Dict, Iterable, List, Optional

from emoc.schemas.reference import (
    AreaOption,
    CatalogsResponse,
    OptionItem,
    Person,
    PriorityOption,
    UnitOption,
)
from emoc.schemas.workflow import FileCategory


PEOPLE: List[Person] = [
    Person(id="p1", name="Robert Chen", role="Direct Manager"),
    Person(id="p2", name="Sarah Williams", role="Division Manager"),
    Person(id="p3", name="David Thompson", role="VP Operation"),
    Person(id="p4", name="Michael Anderson", role="Project Engineer"),
    Person(id="p5", name="Thomas Wilson", role="Electrical Engineering"),
    Person(id="p6", name="Jennifer Martinez", role="Mechanical Engineering"),
    Person(id="p7", name="Ozaki Furugori", role="Control & Instrument"),
    Person(id="p8", name="Emily Wong", role="Manager"),
    Person(id="p9", name="Karen Williams", role="Manager"),
    Person(id="p10", name="James Harris", role="Senior Engineer"),
    Person(id="p11", name="Lisa Anderson", role="Technical Lead"),
    Person(id="p12", name="Mark Johnson", role="Maintenance Lead"),
    Person(id="p13", name="Susan Chen", role="SHE Coordinator"),
    Person(id="p14", name="Peter Brown", role="Operations Lead"),
]


def _units(area_id: str, label: str, count: int) -> List[UnitOption]:
    return [
        UnitOption(id=f"unit-{area_id.split('-')[1]}-{n}", name=f"{label} UNIT - {n}", area_id=area_id)
        for n in range(1, count + 1)
    ]


AREAS: List[AreaOption] = [
    AreaOption(id="area-1", name="Production Area A", units=_units("area-1", "Production Area A", 3)),
    AreaOption(id="area-2", name="Production Area B", units=_units("area-2", "Production Area B", 2)),
    AreaOption(id="area-3", name="Utilities", units=_units("area-3", "Utilities", 2)),
    AreaOption(id="area-4", name="Storage", units=_units("area-4", "Storage", 2)),
    AreaOption(id="area-5", name="Laboratory", units=_units("area-5", "Laboratory", 1)),
]

LENGTH_OF_CHANGE_OPTIONS: List[OptionItem] = [
    OptionItem(id="length-1", name="Permanent"),
    OptionItem(id="length-2", name="Temporary"),
    OptionItem(id="length-3", name="Overriding"),
]

TYPE_OF_CHANGE_OPTIONS: List[OptionItem] = [
    OptionItem(id="type-1", name="Plant Change"),
    OptionItem(id="type-2", name="Maintenance Change"),
    OptionItem(id="type-3", name="Process Change"),
]

PRIORITY_NORMAL = "priority-1"
PRIORITY_EMERGENCY = "priority-2"

PRIORITY_OPTIONS: List[PriorityOption] = [
    PriorityOption(id=PRIORITY_NORMAL, name="Normal", level=1),
    PriorityOption(id=PRIORITY_EMERGENCY, name="Emergency", level=2),
]

BENEFIT_OPTIONS: List[OptionItem] = [
    OptionItem(id="benefit-1", name="Safety"),
    OptionItem(id="benefit-2", name="Environment"),
    OptionItem(id="benefit-3", name="Community"),
    OptionItem(id="benefit-4", name="Reputation"),
    OptionItem(id="benefit-5", name="Law"),
    OptionItem(id="benefit-6", name="Money"),
]

TPM_LOSS_TYPE_OPTIONS: List[OptionItem] = [
    OptionItem(id="tpm-1", name="Safety"),
    OptionItem(id="tpm-2", name="Environment"),
    OptionItem(id="tpm-3", name="Quality"),
    OptionItem(id="tpm-4", name="Productivity"),
]

CANCELLATION_CATEGORIES: List[OptionItem] = [
    OptionItem(id="cancel-1", name="No Longer Required"),
    OptionItem(id="cancel-2", name="Duplicate Request"),
    OptionItem(id="cancel-3", name="Budget Not Approved"),
    OptionItem(id="cancel-4", name="Superseded by Another MOC"),
    OptionItem(id="cancel-5", name="Other"),
]

CHAMPION_IDS = ("p2", "p3", "p4", "p10", "p11")


def _index(options: Iterable) -> Dict[str, object]:
    return {option.id: option for option in options}


_PEOPLE_BY_ID = _index(PEOPLE)
_AREAS_BY_ID = _index(AREAS)
_PRIORITIES_BY_ID = _index(PRIORITY_OPTIONS)


class PersonDirectory:
    """Lookup of people by id.

    Resolution never raises: unknown ids come back as None so callers can
    fall back to an empty display name.
    """

    def __init__(self, people: Optional[Iterable[Person]] = None):
        self._people = _index(people) if people is not None else dict(_PEOPLE_BY_ID)

    def resolve(self, person_id: Optional[str]) -> Optional[Person]:
        if not person_id:
            return None
        return self._people.get(person_id)

    def name_of(self, person_id: Optional[str]) -> str:
        person = self.resolve(person_id)
        return person.name if person else ""

    def all(self) -> List[Person]:
        return list(self._people.values())


default_directory = PersonDirectory()


def get_area(area_id: Optional[str]) -> Optional[AreaOption]:
    if not area_id:
        return None
    return _AREAS_BY_ID.get(area_id)


def get_units_for_area(area_id: Optional[str]) -> List[UnitOption]:
    area = get_area(area_id)
    return list(area.units) if area else []


def unit_belongs_to_area(unit_id: Optional[str], area_id: Optional[str]) -> bool:
    return any(unit.id == unit_id for unit in get_units_for_area(area_id))


def get_priority(priority_id: Optional[str]) -> Optional[PriorityOption]:
    if not priority_id:
        return None
    return _PRIORITIES_BY_ID.get(priority_id)


def is_emergency(priority_id: Optional[str]) -> bool:
    return priority_id == PRIORITY_EMERGENCY


def option_name(options: Iterable[OptionItem], option_id: Optional[str]) -> str:
    for option in options:
        if option.id == option_id:
            return option.name
    return ""


def option_id_for_name(options: Iterable[OptionItem], name: Optional[str]) -> Optional[str]:
    for option in options:
        if option.name == name:
            return option.id
    return None


def get_champions() -> List[Person]:
    return [_PEOPLE_BY_ID[pid] for pid in CHAMPION_IDS]


def get_catalogs() -> CatalogsResponse:
    return CatalogsResponse(
        areas=AREAS,
        length_of_change=LENGTH_OF_CHANGE_OPTIONS,
        type_of_change=TYPE_OF_CHANGE_OPTIONS,
        priorities=PRIORITY_OPTIONS,
        benefits=BENEFIT_OPTIONS,
        tpm_loss_types=TPM_LOSS_TYPE_OPTIONS,
        cancellation_categories=CANCELLATION_CATEGORIES,
        champions=get_champions(),
        file_categories=[c.value for c in FileCategory],
    )
