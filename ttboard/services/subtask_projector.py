# ttboard/services/subtask_projector.py
from __future__ import annotations

from ttboard.fsm.schedule_fsm import Action, next_status
from ttboard.schemas.tt_task import DateAssignment, ExecutionStatus, TTSubtask, TTTask


def project_assignment(task: TTTask, assignment: DateAssignment, *, edited_by: str, now: str) -> list[TTSubtask]:
    """Copy a committed assignment onto each member's denormalized scheduling fields.

    The legacy ``assignedDate`` is not written here: ``TTSubtask.assigned_date``
    derives it from ``assigned_start_date`` when documents are read or dumped.
    """
    start = assignment.first_day
    end = assignment.last_day

    updated: list[TTSubtask] = []
    for subtask_id in assignment.subtask_ids:
        subtask = task.subtask(subtask_id)
        if subtask is None:
            continue

        subtask.execution_status = next_status(subtask, Action.ASSIGN.value)
        subtask.assignment_id = assignment.id
        subtask.is_assigned = True
        subtask.assignment_type = assignment.assignment_type
        subtask.assigned_start_date = start
        subtask.assigned_end_date = end
        subtask.assignment_conflict = False
        subtask.legacy_assigned_date = None
        subtask.last_edited_by = edited_by
        subtask.updated_at = now
        updated.append(subtask)

    return updated


def reset_scheduling(subtask: TTSubtask, *, edited_by: str, now: str) -> bool:
    """Back to unassigned defaults. Returns False when there was nothing to reset."""
    if not is_scheduled(subtask):
        return False

    subtask.execution_status = next_status(subtask, Action.UNASSIGN.value)
    subtask.assignment_id = None
    subtask.is_assigned = False
    subtask.assignment_type = None
    subtask.assigned_start_date = None
    subtask.assigned_end_date = None
    subtask.assignment_conflict = False
    subtask.legacy_assigned_date = None
    subtask.last_edited_by = edited_by
    subtask.updated_at = now
    return True


def is_scheduled(subtask: TTSubtask) -> bool:
    return (
        subtask.is_assigned
        or subtask.assignment_id is not None
        or subtask.assigned_date is not None
        or subtask.execution_status == ExecutionStatus.assigned
    )
