"""Tests for dashboard, KPI report, export and reference routes."""
import csv
import io

import pytest


def complete(client, request_id, stage, index, body=None):
    response = client.post(
        f"/moc-requests/{request_id}/stages/{stage}/tasks/{index}/complete", json=body or {}
    )
    assert response.status_code == 200, response.text


@pytest.fixture
def portfolio(client, intake_factory):
    """Three requests: one at Initiation, one in Review, one cancelled."""
    ids = []
    for position, cost in enumerate([1000, 2000, 3000]):
        response = client.post("/moc-requests/", json=intake_factory(
            title=f"Change {position}",
            estimated_cost=cost,
            estimated_benefit=cost * 2,
            risk_after={"severity": position + 1, "probability": position + 1},
        ))
        ids.append(response.json()["request_id"])

    complete(client, ids[1], "Initiation", 0)
    complete(client, ids[1], "Initiation", 1,
             {"payload": {"kind": "engineer_selection", "selected_engineer_id": "p4"}})
    complete(client, ids[1], "Initiation", 2)

    client.post(f"/moc-requests/{ids[2]}/cancel", json={
        "category": "cancel-1",
        "reason": "No longer needed",
        "acknowledge_impact": True,
        "confirm_cancellation": True,
    })
    return ids


class TestDashboard:

    def test_stats(self, client, portfolio):
        response = client.get("/dashboard/stats")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["in_progress"] == 2
        assert data["cancelled"] == 1
        assert data["closed"] == 0
        assert data["by_stage"] == {"Initiation": 1, "Review": 1, "Implementation": 0, "Closeout": 0}

    def test_my_tasks_by_name(self, client, portfolio):
        response = client.get("/dashboard/my-tasks", params={"assignee": "robert chen"})
        assert response.status_code == 200
        tasks = response.json()
        assert [(t["request_id"], t["stage"], t["task_index"]) for t in tasks] == [
            (portfolio[0], "Initiation", 0)
        ]
        assert tasks[0]["assigned_on_display"]

    def test_my_tasks_by_id(self, client, portfolio):
        tasks = client.get("/dashboard/my-tasks", params={"assignee": "p4"}).json()
        assert [(t["request_id"], t["task_name"]) for t in tasks] == [
            (portfolio[1], "Assign Technical Review Team")
        ]

    def test_my_tasks_requires_assignee(self, client):
        response = client.get("/dashboard/my-tasks")
        assert response.status_code == 422


class TestKPIReport:

    def test_kpis(self, client, portfolio):
        response = client.get("/reports/kpis")
        assert response.status_code == 200
        data = response.json()
        assert data["total_requests"] == 3
        assert data["pending"] == 1
        assert data["in_progress"] == 1
        assert data["cancelled"] == 1
        assert data["completed"] == 0
        assert data["completion_rate"] == 0.0
        assert data["total_estimated_cost"] == 6000
        assert data["total_estimated_benefit"] == 12000
        # risk after: A1 (1), B2 (4), C3 (9)
        assert data["risk_band_distribution"] == {"Low": 1, "Medium": 1, "High": 1, "Critical": 0}

    def test_kpis_for_area(self, client, portfolio):
        data = client.get("/reports/kpis", params={"area_id": "area-5"}).json()
        assert data["total_requests"] == 0
        assert data["completion_rate"] == 0.0

    def test_csv_export(self, client, portfolio):
        response = client.get("/reports/export/csv")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][0] == "MOC No"
        assert len(rows) == 4
        assert rows[3][2] == "Cancelled"
        assert rows[1][4] == "Production Area A"


class TestReference:

    def test_catalogs(self, client):
        response = client.get("/reference/catalogs")
        assert response.status_code == 200
        data = response.json()
        assert len(data["areas"]) == 5
        assert [p["name"] for p in data["priorities"]] == ["Normal", "Emergency"]
        assert "Minute of Meeting" in data["file_categories"]

    def test_people(self, client):
        people = client.get("/reference/people").json()
        assert {"id": "p5", "name": "Thomas Wilson", "role": "Electrical Engineering"} in people

    def test_units_for_area(self, client):
        units = client.get("/reference/areas/area-1/units").json()
        assert [u["id"] for u in units] == ["unit-1-1", "unit-1-2", "unit-1-3"]
        assert client.get("/reference/areas/area-9/units").status_code == 404

    def test_workflow_catalogs(self, client):
        disciplines = client.get("/reference/disciplines").json()
        assert len(disciplines) == 8
        assert disciplines[0] == {"id": "d1", "name": "Electrical Engineering"}

        documents = client.get("/reference/review-documents").json()
        assert [d["status"] for d in documents] == ["Not Started"] * 4

        templates = client.get("/reference/form-templates").json()
        assert "Emergency" in templates
