"""Tests for data carried from one workflow task into a later one."""
import logging

from emoc.core.approval_propagation import (
    build_approval_rows,
    propagate_project_engineer,
    propagate_review_team,
)
from emoc.core.reference_data import PersonDirectory, default_directory
from emoc.schemas.reference import Person
from emoc.schemas.workflow import (
    ApprovalRow,
    ApprovalStatus,
    DisciplineAssignment,
    DisciplineAssignmentPayload,
    EngineerSelectionPayload,
    StageKind,
    TaskStatus,
    TeamApprovalPayload,
)


def _assignments():
    return [
        DisciplineAssignment(discipline_id="d1", discipline_name="Electrical Engineering",
                             assigned_person_id="p5", direct_manager_name="Emily Wong"),
        DisciplineAssignment(discipline_id="d2", discipline_name="Mechanical Engineering"),
        DisciplineAssignment(discipline_id="d3", discipline_name="Control & Instrument Engineering",
                             assigned_person_id="p7", not_applicable=True),
    ]


class TestBuildApprovalRows:

    def test_only_assigned_applicable_disciplines(self):
        rows = build_approval_rows(_assignments(), default_directory)
        assert len(rows) == 1
        row = rows[0]
        assert row.row_id == "row-d1"
        assert row.discipline_name == "Electrical Engineering"
        assert row.assigned_person_name == "Thomas Wilson"
        assert row.direct_manager_name == "Emily Wong"
        assert row.approval_status is None
        assert row.remark == ""

    def test_rows_keep_input_order(self):
        disciplines = [
            DisciplineAssignment(discipline_id="d8", discipline_name="SHE", assigned_person_id="p13"),
            DisciplineAssignment(discipline_id="d1", discipline_name="Electrical Engineering",
                                 assigned_person_id="p5"),
        ]
        rows = build_approval_rows(disciplines, default_directory)
        assert [r.row_id for r in rows] == ["row-d8", "row-d1"]

    def test_unknown_person_gives_empty_name(self, caplog):
        disciplines = [
            DisciplineAssignment(discipline_id="d1", discipline_name="Electrical Engineering",
                                 assigned_person_id="p999"),
        ]
        with caplog.at_level(logging.WARNING):
            rows = build_approval_rows(disciplines, default_directory)
        assert rows[0].assigned_person_name == ""
        assert "UnresolvedPersonReference" in caplog.text

    def test_custom_directory(self):
        directory = PersonDirectory([Person(id="x1", name="Alex Kim")])
        disciplines = [
            DisciplineAssignment(discipline_id="d1", discipline_name="Electrical Engineering",
                                 assigned_person_id="x1"),
        ]
        assert build_approval_rows(disciplines, directory)[0].assigned_person_name == "Alex Kim"


class TestPropagateReviewTeam:

    def test_rows_replace_previous_rows(self, moc_state):
        review = moc_state.stage(StageKind.REVIEW)
        review.tasks[1].payload = TeamApprovalPayload(rows=[
            ApprovalRow(row_id="row-d9", discipline_name="Old", approval_status=ApprovalStatus.APPROVED),
        ])
        review.tasks[0].payload = DisciplineAssignmentPayload(disciplines=_assignments())

        propagate_review_team(moc_state, default_directory)

        rows = review.tasks[1].payload.rows
        assert [r.row_id for r in rows] == ["row-d1"]
        assert rows[0].approval_status is None

    def test_repeated_propagation_is_idempotent(self, moc_state):
        review = moc_state.stage(StageKind.REVIEW)
        review.tasks[0].payload = DisciplineAssignmentPayload(disciplines=_assignments())

        propagate_review_team(moc_state, default_directory)
        first = review.tasks[1].payload.model_copy(deep=True)
        propagate_review_team(moc_state, default_directory)

        assert review.tasks[1].payload == first


class TestPropagateProjectEngineer:

    def test_engineer_reaches_confirmation_and_engineer_tasks(self, moc_state):
        initiation = moc_state.stage(StageKind.INITIATION)
        initiation.tasks[1].payload = EngineerSelectionPayload(selected_engineer_id="p4")

        propagate_project_engineer(moc_state, default_directory)

        assert initiation.tasks[2].payload.selected_engineer_name == "Michael Anderson"
        review = moc_state.stage(StageKind.REVIEW)
        for index in (0, 2):
            assert review.tasks[index].assignee_id == "p4"
            assert review.tasks[index].assignee_name == "Michael Anderson"
        # Other roles keep their assignee
        assert review.tasks[1].assignee_name == "Multiple Managers"

    def test_completed_engineer_tasks_are_not_reassigned(self, moc_state):
        initiation = moc_state.stage(StageKind.INITIATION)
        review = moc_state.stage(StageKind.REVIEW)
        review.tasks[0].status = TaskStatus.COMPLETED
        review.tasks[0].assignee_id = "p10"
        review.tasks[0].assignee_name = "James Harris"
        initiation.tasks[1].payload = EngineerSelectionPayload(selected_engineer_id="p4")

        propagate_project_engineer(moc_state, default_directory)

        assert review.tasks[0].assignee_name == "James Harris"
        assert review.tasks[2].assignee_name == "Michael Anderson"
