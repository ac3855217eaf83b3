# ttboard/services/removal_coordinator.py
from __future__ import annotations

from dataclasses import dataclass

from ttboard.core.errors import NotFoundError
from ttboard.core.logging import get_logger
from ttboard.schemas.tt_task import TTSubtask, TTTask
from ttboard.services.assignment_ledger import AssignmentLedger
from ttboard.services.subtask_projector import reset_scheduling

log = get_logger("services.removal")


@dataclass(frozen=True)
class RemovalResult:
    changed: bool
    assignment_deleted: bool = False


class RemovalCoordinator:
    """
    Explicit unassignment of one subtask.
    Both entry points are idempotent: on an already unassigned subtask they change nothing.
    """

    def __init__(self, task: TTTask, *, edited_by: str, now: str):
        self.task = task
        self.ledger = AssignmentLedger(task)
        self.edited_by = edited_by
        self.now = now

    def _subtask(self, subtask_id: str) -> TTSubtask:
        subtask = self.task.subtask(subtask_id)
        if subtask is None:
            raise NotFoundError(f"Subtask not found: {subtask_id}")
        return subtask

    def remove(self, assignment_id: str, subtask_id: str) -> RemovalResult:
        subtask = self._subtask(subtask_id)

        if self.ledger.find(assignment_id) is None:
            if subtask.assignment_id not in (None, assignment_id):
                # stale id from the caller, the item belongs to another assignment now
                return RemovalResult(changed=False)
            # ledger lookup failed: fall back to resetting the item directly
            log.warning(
                "assignment %s not found on task %s, falling back to legacy removal of %s",
                assignment_id, self.task.id, subtask_id,
            )
            return RemovalResult(changed=reset_scheduling(subtask, edited_by=self.edited_by, now=self.now))

        detached, deleted = self.ledger.detach(assignment_id, subtask_id)

        reset = False
        # the item may already point to a newer assignment; leave that one alone
        if subtask.assignment_id in (None, assignment_id):
            reset = reset_scheduling(subtask, edited_by=self.edited_by, now=self.now)

        return RemovalResult(changed=detached or reset, assignment_deleted=deleted)

    def remove_legacy(self, subtask_id: str) -> RemovalResult:
        subtask = self._subtask(subtask_id)

        if self.ledger.find(subtask.assignment_id) is not None:
            return self.remove(subtask.assignment_id, subtask_id)

        # pre-ledger records reference their members only through subtaskIds
        detached = deleted = False
        for a in [a for a in self.task.date_assignments if subtask_id in a.subtask_ids]:
            d, gone = self.ledger.detach(a.id, subtask_id)
            detached = detached or d
            deleted = deleted or gone

        reset = reset_scheduling(subtask, edited_by=self.edited_by, now=self.now)
        return RemovalResult(changed=detached or reset, assignment_deleted=deleted)
