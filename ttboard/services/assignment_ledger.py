# ttboard/services/assignment_ledger.py
from __future__ import annotations

from typing import Callable
from uuid import uuid4

from ttboard.scheduling.date_range import end_of_duration
from ttboard.schemas.assignment import AssignmentCreateRequest
from ttboard.schemas.tt_task import AssignmentType, DateAssignment, TTTask


def new_assignment_id() -> str:
    return uuid4().hex


class AssignmentLedger:
    """
    The task's list of date assignments.
    Only place where assignment records are created, shrunk or dropped.
    """

    def __init__(self, task: TTTask):
        self.task = task

    def find(self, assignment_id: str | None) -> DateAssignment | None:
        if assignment_id is None:
            return None
        for a in self.task.date_assignments:
            if a.id == assignment_id:
                return a
        return None

    def active(self) -> list[DateAssignment]:
        return [a for a in self.task.date_assignments if a.is_active]

    def commit(
        self,
        req: AssignmentCreateRequest,
        *,
        subtask_ids: list[str],
        assigned_by: str,
        assigned_at: str,
        id_factory: Callable[[], str] = new_assignment_id,
    ) -> DateAssignment:
        """Append a new active record. ``req`` must already be validated and conflict-free."""
        kind = AssignmentType(req.assignment_type)

        fields: dict = {}
        if kind is AssignmentType.single_day:
            fields["date"] = req.date
        elif kind is AssignmentType.date_range:
            fields["start_date"] = req.start_date
            fields["end_date"] = req.end_date
        else:
            fields["start_date"] = req.start_date
            fields["duration_days"] = req.duration_days
            # stored so range queries need not recompute it
            fields["end_date"] = end_of_duration(req.start_date, req.duration_days)

        assignment = DateAssignment(
            id=id_factory(),
            assignment_type=kind,
            subtask_ids=list(subtask_ids),
            assigned_by=assigned_by,
            assigned_at=assigned_at,
            notes=req.notes,
            title=req.title,
            estimated_effort=req.estimated_effort,
            is_active=True,
            **fields,
        )
        self.task.date_assignments.append(assignment)
        return assignment

    def detach(self, assignment_id: str, subtask_id: str) -> tuple[bool, bool]:
        """Remove ``subtask_id`` from the record; drop the record once it is empty.

        Returns (changed, record_deleted). Safe to repeat: a second call is a no-op.
        """
        assignment = self.find(assignment_id)
        if assignment is None:
            return False, False

        changed = subtask_id in assignment.subtask_ids
        if changed:
            assignment.subtask_ids = [s for s in assignment.subtask_ids if s != subtask_id]

        if not assignment.subtask_ids:
            self.task.date_assignments = [a for a in self.task.date_assignments if a.id != assignment_id]
            return True, True

        return changed, False

    def deactivate_for(self, assignment_id: str, subtask_id: str) -> bool:
        """Override resolution: the older record stops claiming this one subtask."""
        changed, _ = self.detach(assignment_id, subtask_id)
        return changed
