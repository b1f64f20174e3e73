"""Tests for the demo data seed."""
from emoc.core.reporting import dashboard_stats
from emoc.models import AuditLog, MOCRequest, MOCTaskEvent
from emoc.seed import DEMO_REQUESTS, seed_demo_requests


def test_seed_creates_requests_in_several_positions(db_session):
    rows = seed_demo_requests(db_session)
    assert len(rows) == len(DEMO_REQUESTS)
    assert db_session.query(MOCRequest).count() == len(DEMO_REQUESTS)

    stats = dashboard_stats(db_session)
    assert stats.cancelled == 1
    assert stats.by_stage["Review"] == 2
    assert stats.by_stage["Initiation"] == 3


def test_seed_records_events_and_audit(db_session):
    seed_demo_requests(db_session)
    assert db_session.query(MOCTaskEvent).count() > 0
    actions = {log.action for log in db_session.query(AuditLog).all()}
    assert actions == {"CREATE", "CANCEL"}


def test_seeded_emergency_request_uses_emergency_template(db_session):
    rows = seed_demo_requests(db_session)
    assert rows[4].template_name == "Emergency"
    assert rows[3].template_name == "Override - More than 3 days"
