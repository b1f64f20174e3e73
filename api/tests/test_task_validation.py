"""Tests for pre-completion task rules."""
import pytest

from emoc.core.errors import ValidationFailed
from emoc.core.task_validation import (
    DUPLICATE_DISCIPLINE,
    NO_DISCIPLINE_ASSIGNED,
    run_validation,
    validate_assigned_disciplines,
)
from emoc.schemas.workflow import (
    DisciplineAssignment,
    DisciplineAssignmentPayload,
    StageKind,
)


def _discipline(did, person=None, not_applicable=False):
    return DisciplineAssignment(
        discipline_id=did,
        discipline_name=f"Discipline {did}",
        assigned_person_id=person,
        not_applicable=not_applicable,
    )


class TestValidateAssignedDisciplines:

    def test_empty_list_fails(self):
        assert validate_assigned_disciplines([]) is False

    def test_one_assigned_discipline_passes(self):
        assert validate_assigned_disciplines([_discipline("d1", "p5"), _discipline("d2")]) is True

    def test_only_not_applicable_assignments_fail(self):
        """An assignee on a discipline flagged not applicable does not count."""
        assert validate_assigned_disciplines([_discipline("d1", "p5", not_applicable=True)]) is False

    def test_unassigned_disciplines_fail(self):
        assert validate_assigned_disciplines([_discipline("d1"), _discipline("d2")]) is False


class TestRunValidation:

    def test_review_team_task_without_assignment(self, moc_state):
        task = moc_state.stage(StageKind.REVIEW).tasks[0]
        with pytest.raises(ValidationFailed) as exc_info:
            run_validation(StageKind.REVIEW, task)
        assert exc_info.value.reason == NO_DISCIPLINE_ASSIGNED

    def test_review_team_task_with_assignment(self, moc_state):
        task = moc_state.stage(StageKind.REVIEW).tasks[0]
        task.payload = DisciplineAssignmentPayload(disciplines=[_discipline("d1", "p5")])
        run_validation(StageKind.REVIEW, task)

    def test_review_team_task_with_duplicate_discipline(self, moc_state):
        """Each discipline maps to exactly one approval row, so ids must be unique."""
        task = moc_state.stage(StageKind.REVIEW).tasks[0]
        task.payload = DisciplineAssignmentPayload(
            disciplines=[_discipline("d1", "p5"), _discipline("d1", "p6")]
        )
        with pytest.raises(ValidationFailed) as exc_info:
            run_validation(StageKind.REVIEW, task)
        assert exc_info.value.reason == DUPLICATE_DISCIPLINE

    def test_tasks_without_rule_pass(self, moc_state):
        for kind in (StageKind.INITIATION, StageKind.IMPLEMENTATION, StageKind.CLOSEOUT):
            for task in moc_state.stage(kind).tasks:
                run_validation(kind, task)

    def test_custom_registry(self, moc_state):
        task = moc_state.stage(StageKind.INITIATION).tasks[0]
        rules = {(StageKind.INITIATION, 0): lambda t: "comments required" if not t.comments else None}
        with pytest.raises(ValidationFailed, match="comments required"):
            run_validation(StageKind.INITIATION, task, rules)
        task.comments = "Looks good"
        run_validation(StageKind.INITIATION, task, rules)
