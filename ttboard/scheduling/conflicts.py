# ttboard/scheduling/conflicts.py
"""Conflict detection for a candidate assignment.

Pure functions over an in-memory aggregate: nothing here loads, saves or
mutates. Detection is exhaustive (every targeted subtask is inspected, all
conflicts are returned); ``decide`` then turns the list into one outcome.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ttboard.scheduling.date_range import expand, overlap
from ttboard.schemas.conflict import AssignmentConflict, ConflictType, Severity
from ttboard.schemas.tt_task import DateAssignment, TTSubtask


class Outcome(str, enum.Enum):
    proceed = "proceed"
    reject = "reject"
    requires_confirmation = "requires_confirmation"


@dataclass(frozen=True)
class ConflictDecision:
    outcome: Outcome
    conflicts: list[AssignmentConflict] = field(default_factory=list)

    @property
    def blocking(self) -> list[AssignmentConflict]:
        return [c for c in self.conflicts if c.is_blocking]

    @property
    def overridable(self) -> list[AssignmentConflict]:
        return [c for c in self.conflicts if not c.is_blocking]


def _executed_conflict(subtask: TTSubtask) -> AssignmentConflict:
    reason = "already executed" if subtask.is_executed else "already completed"
    return AssignmentConflict(
        type=ConflictType.resource_conflict,
        message=f"Subtask {subtask.id} is {reason} and cannot be assigned",
        affected_dates=[],
        affected_subtasks=[subtask.id],
        severity=Severity.high,
        can_override=False,
    )


def _overlap_conflict(subtask: TTSubtask, days: list[str], assignment: DateAssignment | None) -> AssignmentConflict:
    if assignment is None:
        where = "a legacy date assignment"
    else:
        where = f"assignment {assignment.id}"
    return AssignmentConflict(
        type=ConflictType.date_overlap,
        message=f"Subtask {subtask.id} is already scheduled on {', '.join(days)} by {where}",
        affected_dates=days,
        affected_subtasks=[subtask.id],
        severity=Severity.medium,
        can_override=True,
        assignment_id=assignment.id if assignment else None,
    )


def claiming_assignments(subtask: TTSubtask, active: Sequence[DateAssignment]) -> list[DateAssignment]:
    """Active assignments holding the subtask: back-reference first, then membership."""
    out: list[DateAssignment] = []
    for a in active:
        if a.id == subtask.assignment_id:
            out.append(a)
    for a in active:
        if a.id != subtask.assignment_id and subtask.id in a.subtask_ids:
            out.append(a)
    return out


def detect_conflicts(
    candidate_days: Sequence[str],
    subtasks: Iterable[TTSubtask],
    assignments: Sequence[DateAssignment],
) -> list[AssignmentConflict]:
    """All conflicts between the candidate day-set and the targeted subtasks' commitments.

    ``assignments`` is the task's whole ledger; inactive records are ignored.
    """
    active = [a for a in assignments if a.is_active]
    conflicts: list[AssignmentConflict] = []

    for subtask in subtasks:
        if subtask.is_completed:
            conflicts.append(_executed_conflict(subtask))
            continue

        claiming = claiming_assignments(subtask, active)
        for a in claiming:
            days = overlap(candidate_days, expand(a))
            if days:
                conflicts.append(_overlap_conflict(subtask, days, a))

        # pre-ledger item: only the scalar date is known
        if not claiming and subtask.assignment_id is None and subtask.legacy_assigned_date:
            days = overlap(candidate_days, [subtask.legacy_assigned_date])
            if days:
                conflicts.append(_overlap_conflict(subtask, days, None))

    return conflicts


def decide(conflicts: Sequence[AssignmentConflict], *, override: bool) -> ConflictDecision:
    """Blocking conflicts always reject; overridable ones need ``override``."""
    conflicts = list(conflicts)
    if not conflicts:
        return ConflictDecision(Outcome.proceed, conflicts)
    if any(c.is_blocking for c in conflicts):
        return ConflictDecision(Outcome.reject, conflicts)
    if not override:
        return ConflictDecision(Outcome.requires_confirmation, conflicts)
    return ConflictDecision(Outcome.proceed, conflicts)
