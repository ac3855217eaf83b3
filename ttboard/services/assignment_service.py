# ttboard/services/assignment_service.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from ttboard.core.config import settings
from ttboard.core.errors import BlockingConflict, NotFoundError, ValidationError
from ttboard.core.logging import get_logger
from ttboard.repositories.tt_task_repository import TTTaskRepository
from ttboard.scheduling.conflicts import Outcome, decide, detect_conflicts
from ttboard.scheduling.date_range import (
    assignment_summary,
    expand,
    expand_range,
    summary_message,
)
from ttboard.scheduling.validator import FieldError, validate_request
from ttboard.schemas.assignment import AssignmentCreateRequest
from ttboard.schemas.conflict import AssignmentConflict
from ttboard.schemas.tt_task import DateAssignment, TTTask
from ttboard.services.assignment_ledger import AssignmentLedger, new_assignment_id
from ttboard.services.removal_coordinator import RemovalCoordinator, RemovalResult
from ttboard.services.subtask_projector import project_assignment, reset_scheduling

log = get_logger("services.assignment")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dedupe(ids: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out


@dataclass(frozen=True)
class AssignmentResult:
    """Outcome of a create request that was not rejected outright.

    ``committed`` False means overridable conflicts are waiting for the caller's
    consent; nothing was written in that case.
    """

    committed: bool
    assignment: DateAssignment | None = None
    covered_dates: list[str] = field(default_factory=list)
    summary_message: str = ""
    conflicts: list[AssignmentConflict] = field(default_factory=list)

    @property
    def requires_confirmation(self) -> bool:
        return not self.committed


@dataclass(frozen=True)
class CalendarEntry:
    date: str
    subtask_ids: list[str]
    assignment_ids: list[str]


class AssignmentService:
    """
    Scheduling entry points over one task aggregate:
      validate -> expand -> detect conflicts -> (reject | confirm | commit -> project) -> save

    Writes are guarded by the aggregate version (compare-and-swap in the repository);
    a concurrent writer makes save() raise VersionConflict instead of losing data.
    """

    def __init__(
        self,
        repository: TTTaskRepository,
        *,
        id_factory: Callable[[], str] = new_assignment_id,
        clock: Callable[[], str] = _now,
        max_days: int | None = None,
    ):
        self.repository = repository
        self.id_factory = id_factory
        self.clock = clock
        self.max_days = max_days if max_days is not None else settings.max_assignment_days

    # ---------- Public API ----------

    def create_assignment(self, task_id: str, req: AssignmentCreateRequest, *, actor: str) -> AssignmentResult:
        errors = validate_request(req, max_days=self.max_days)
        if errors:
            raise ValidationError(errors)

        task = self.repository.load(task_id)
        expected_version = task.version

        subtask_ids = _dedupe(req.subtask_ids)
        missing = [sid for sid in subtask_ids if task.subtask(sid) is None]
        if missing:
            raise NotFoundError(f"Subtask(s) not found in task {task_id}: {', '.join(missing)}")

        candidate_days = expand(req)
        targeted = [task.subtask(sid) for sid in subtask_ids]
        ledger = AssignmentLedger(task)

        conflicts = detect_conflicts(candidate_days, targeted, task.date_assignments)
        decision = decide(conflicts, override=req.override_conflicts)

        if decision.outcome is Outcome.reject:
            log.info(
                "assignment on task %s rejected: %d blocking of %d conflict(s)",
                task_id, len(decision.blocking), len(conflicts),
            )
            raise BlockingConflict(decision.conflicts)

        if decision.outcome is Outcome.requires_confirmation:
            log.info("assignment on task %s needs confirmation: %d conflict(s)", task_id, len(conflicts))
            return AssignmentResult(committed=False, covered_dates=candidate_days, conflicts=decision.conflicts)

        now = self.clock()

        for c in decision.overridable:
            for sid in c.affected_subtasks:
                if c.assignment_id is not None:
                    ledger.deactivate_for(c.assignment_id, sid)
                else:
                    reset_scheduling(task.subtask(sid), edited_by=actor, now=now)

        assignment = ledger.commit(
            req,
            subtask_ids=subtask_ids,
            assigned_by=actor,
            assigned_at=now,
            id_factory=self.id_factory,
        )
        project_assignment(task, assignment, edited_by=actor, now=now)

        self._touch(task, actor=actor, now=now)
        self.repository.save(task, expected_version=expected_version)

        log.info(
            "assignment %s committed on task %s: %d subtask(s), %s (overrode %d conflict(s))",
            assignment.id, task_id, len(subtask_ids), assignment_summary(assignment), len(conflicts),
        )
        return AssignmentResult(
            committed=True,
            assignment=assignment,
            covered_dates=expand(assignment),
            summary_message=summary_message(assignment, len(assignment.subtask_ids)),
            conflicts=decision.conflicts,
        )

    def remove_assignment(self, task_id: str, assignment_id: str, subtask_id: str, *, actor: str) -> RemovalResult:
        task = self.repository.load(task_id)
        expected_version = task.version
        now = self.clock()

        result = RemovalCoordinator(task, edited_by=actor, now=now).remove(assignment_id, subtask_id)
        if result.changed:
            self._touch(task, actor=actor, now=now)
            self.repository.save(task, expected_version=expected_version)
            log.info(
                "subtask %s removed from assignment %s on task %s (assignment deleted: %s)",
                subtask_id, assignment_id, task_id, result.assignment_deleted,
            )
        return result

    def remove_legacy_assignment(self, task_id: str, subtask_id: str, *, actor: str) -> RemovalResult:
        task = self.repository.load(task_id)
        expected_version = task.version
        now = self.clock()

        result = RemovalCoordinator(task, edited_by=actor, now=now).remove_legacy(subtask_id)
        if result.changed:
            self._touch(task, actor=actor, now=now)
            self.repository.save(task, expected_version=expected_version)
            log.info("subtask %s unassigned on task %s", subtask_id, task_id)
        return result

    def get_task(self, task_id: str) -> TTTask:
        return self.repository.load(task_id)

    def list_assignments(self, task_id: str) -> list[tuple[DateAssignment, list[str], str]]:
        task = self.repository.load(task_id)
        return [(a, expand(a), assignment_summary(a)) for a in AssignmentLedger(task).active()]

    def calendar(self, task_id: str, start: str, end: str) -> list[CalendarEntry]:
        """Per day in [start, end]: which subtasks are scheduled and by which assignments."""
        try:
            window = expand_range(start, end)
        except ValueError as e:
            raise ValidationError([FieldError("start", str(e))]) from e
        if not window:
            raise ValidationError([FieldError("end", "end must not be before start")])
        if len(window) > self.max_days:
            raise ValidationError([FieldError("end", f"window must not exceed {self.max_days} days")])

        task = self.repository.load(task_id)
        by_day: dict[str, tuple[list[str], list[str]]] = {d: ([], []) for d in window}

        for a in AssignmentLedger(task).active():
            for d in expand(a):
                if d in by_day:
                    subtasks, assignments = by_day[d]
                    subtasks.extend(s for s in a.subtask_ids if s not in subtasks)
                    assignments.append(a.id)

        # pre-ledger items only know their single date
        for s in task.subtasks:
            if s.assignment_id is None and s.legacy_assigned_date in by_day:
                subtasks, _ = by_day[s.legacy_assigned_date]
                if s.id not in subtasks:
                    subtasks.append(s.id)

        return [CalendarEntry(date=d, subtask_ids=by_day[d][0], assignment_ids=by_day[d][1]) for d in window]

    # ---------- Internals ----------

    @staticmethod
    def _touch(task: TTTask, *, actor: str, now: str) -> None:
        task.version += 1
        task.last_edited_by = actor
        task.updated_at = now
