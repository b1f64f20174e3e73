"""Seed demo MOC requests."""
import os
import sys
from datetime import date, timedelta
from typing import List

from sqlalchemy.orm import Session

from emoc.core import request_actions
from emoc.core.config import settings
from emoc.core.database import SessionLocal, init_db
from emoc.core.request_store import (
    apply_snapshot,
    create_request,
    load_session,
    load_state,
    persist_transition,
    record_audit,
)
from emoc.core.workflow_templates import TECHNICAL_DISCIPLINES
from emoc.models import MOCRequest
from emoc.schemas.moc_request import AttachmentInput, CancelRequestInput, MOCRequestCreate
from emoc.schemas.risk_assessment import RiskInput
from emoc.schemas.workflow import (
    DisciplineAssignment,
    DisciplineAssignmentPayload,
    EngineerSelectionPayload,
    FileCategory,
    StageKind,
)

DEMO_TITLES = ["Pump Upgrade", "Valve Replacement", "Sensor Calibration", "Safety Override"]

# Demo request layout: (title index, area, unit, length, type, priority, severity, probability)
DEMO_REQUESTS = [
    (0, "area-1", "unit-1-1", "length-1", "type-1", "priority-1", 3, 3),
    (1, "area-1", "unit-1-2", "length-2", "type-2", "priority-1", 2, 2),
    (2, "area-2", "unit-2-1", "length-1", "type-3", "priority-1", 2, 1),
    (3, "area-3", "unit-3-1", "length-3", None, "priority-1", 4, 3),
    (0, "area-4", "unit-4-2", None, None, "priority-2", 4, 4),
    (1, "area-5", "unit-5-1", "length-2", "type-1", "priority-1", 1, 2),
]


def is_production_env() -> bool:
    return settings.ENVIRONMENT.lower() == "production"


def parse_bool_env(value: str | None) -> bool | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y"}:
        return True
    if normalized in {"0", "false", "no", "n"}:
        return False
    return None


def should_seed_demo_data() -> bool:
    override = parse_bool_env(os.getenv("SEED_DEMO_DATA"))
    if override is None:
        return not is_production_env()
    return override


def build_demo_request(position: int) -> MOCRequestCreate:
    title_index, area_id, unit_id, length, change_type, priority, severity, probability = (
        DEMO_REQUESTS[position % len(DEMO_REQUESTS)]
    )
    start = date.today() + timedelta(days=7)
    return MOCRequestCreate(
        requester_name="Robert Chen",
        title=f"MOC Title {position + 1}: {DEMO_TITLES[title_index]}",
        area_id=area_id,
        unit_id=unit_id,
        priority_id=priority,
        length_of_change=length,
        type_of_change=change_type,
        estimated_start=start,
        estimated_end=start + timedelta(days=30 if length != "length-3" else 5),
        tpm_loss_type_id="tpm-1",
        detail_of_change=f"Replace existing equipment as part of {DEMO_TITLES[title_index].lower()}",
        reason_for_change="Equipment reached end of life",
        scope_of_work="Mechanical and control modifications",
        estimated_cost=25000 * (position + 1),
        estimated_benefit=40000 * (position + 1),
        benefits=["benefit-1", "benefit-6"],
        risk_before=RiskInput(severity=severity, probability=probability),
        risk_after=RiskInput(severity=max(1, severity - 1), probability=max(1, probability - 1)),
        attachments=[
            AttachmentInput(
                category=FileCategory.TECHNICAL_INFORMATION,
                file_name="P&ID-rev2.pdf",
                file_size=1_245_000,
                file_type="application/pdf",
            )
        ],
    )


def advance_through_initiation(db: Session, row: MOCRequest) -> None:
    """Approve the Initiation stage and assign a review team."""
    session = load_session(row)
    for result in (
        session.complete_task(StageKind.INITIATION, 0, comments="Approved"),
        session.complete_task(StageKind.INITIATION, 1, EngineerSelectionPayload(selected_engineer_id="p4")),
        session.complete_task(StageKind.INITIATION, 2, comments="Approved"),
    ):
        persist_transition(db, row, result)

    disciplines = [
        DisciplineAssignment(discipline_id=did, discipline_name=name)
        for did, name in TECHNICAL_DISCIPLINES
    ]
    disciplines[0].assigned_person_id = "p5"
    disciplines[0].direct_manager_name = "Emily Wong"
    disciplines[1].assigned_person_id = "p6"
    disciplines[1].direct_manager_name = "Karen Williams"
    disciplines[7].not_applicable = True
    result = session.complete_task(
        StageKind.REVIEW, 0, DisciplineAssignmentPayload(disciplines=disciplines)
    )
    persist_transition(db, row, result)


def seed_demo_requests(db: Session, count: int = len(DEMO_REQUESTS)) -> List[MOCRequest]:
    """Create demo requests in a spread of workflow positions."""
    rows = []
    for position in range(count):
        row = create_request(db, build_demo_request(position))
        if position % 3 == 1:
            advance_through_initiation(db, row)
        elif position % 3 == 2 and position > 2:
            state, changes = request_actions.cancel(load_state(row), CancelRequestInput(
                category="cancel-1",
                reason="Superseded by plant shutdown plan",
                acknowledge_impact=True,
                confirm_cancellation=True,
                requested_by="Robert Chen",
            ))
            apply_snapshot(row, state)
            record_audit(db, row, "CANCEL", "Robert Chen", changes)
            db.commit()
        rows.append(row)
    return rows


def seed_database():
    """Seed demo requests into an empty database."""
    init_db()
    db = SessionLocal()

    try:
        print("Starting database seeding...")

        if not should_seed_demo_data():
            print("✓ Demo data disabled, nothing to seed")
            return

        if db.query(MOCRequest).count() > 0:
            print("✓ MOC requests already exist")
            return

        rows = seed_demo_requests(db)
        print(f"✓ Created {len(rows)} demo MOC requests")
    except Exception as e:
        db.rollback()
        print(f"Seeding failed: {e}", file=sys.stderr)
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
