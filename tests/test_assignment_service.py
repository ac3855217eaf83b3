# tests/test_assignment_service.py
"""
End-to-end scheduling through AssignmentService with a real repository (SQLite).

Covers the commit / reject / confirm / override paths and the removal entry points.
"""

from __future__ import annotations

import pytest

from ttboard.core.errors import BlockingConflict, NotFoundError, ValidationError, VersionConflict
from ttboard.scheduling.date_range import expand
from ttboard.schemas.assignment import AssignmentCreateRequest
from ttboard.schemas.conflict import ConflictType, Severity
from ttboard.schemas.tt_task import ExecutionStatus

from tests.factories import assign_existing, make_assignment, make_subtask, make_task, seed_task


def _req(**kw) -> AssignmentCreateRequest:
    return AssignmentCreateRequest.model_validate(kw)


def _seed_with_range_for_x1(repo, members=("x1",)):
    task = make_task(subtasks=[make_subtask("x1"), make_subtask("x2"), make_subtask("x3")])
    assign_existing(
        task,
        make_assignment(
            "old", list(members), assignment_type="date_range", start_date="2024-01-10", end_date="2024-01-12"
        ),
    )
    return seed_task(repo, task)


# ============================================================================
# Plain commit
# ============================================================================

def test_single_day_commit_updates_items_and_ledger(service, repo):
    seed_task(repo, make_task())

    result = service.create_assignment(
        "tt-1", _req(assignmentType="single_day", date="2024-01-10", subtaskIds=["x1", "x2"]), actor="alice"
    )

    assert result.committed
    assert result.assignment.subtask_ids == ["x1", "x2"]
    assert result.covered_dates == ["2024-01-10"]
    assert result.summary_message == "2 items over 1 day (Single day: 2024-01-10)"

    stored = repo.load("tt-1")
    assert stored.version == 2
    assert stored.last_edited_by == "alice"
    [a] = stored.date_assignments
    assert a.subtask_ids == ["x1", "x2"]
    assert a.is_active is True
    assert a.assigned_by == "alice"
    for sid in ("x1", "x2"):
        s = stored.subtask(sid)
        assert s.assigned_date == "2024-01-10"
        assert s.assignment_id == a.id
        assert s.execution_status == ExecutionStatus.assigned


def test_commit_then_expand_round_trip(service, repo):
    seed_task(repo, make_task())
    req = _req(assignmentType="duration_days", startDate="2024-01-30", durationDays=4, subtaskIds=["x2", "x1", "x2"])

    result = service.create_assignment("tt-1", req, actor="alice")

    [a] = repo.load("tt-1").date_assignments
    assert a.subtask_ids == ["x2", "x1"]
    assert expand(a) == expand(req) == ["2024-01-30", "2024-01-31", "2024-02-01", "2024-02-02"]
    assert a.end_date == "2024-02-02"
    assert result.covered_dates == expand(a)


# ============================================================================
# Overlap, confirmation, override
# ============================================================================

def test_overlap_without_override_requires_confirmation(service, repo):
    _seed_with_range_for_x1(repo)

    result = service.create_assignment(
        "tt-1", _req(assignmentType="single_day", date="2024-01-11", subtaskIds=["x1"]), actor="alice"
    )

    assert result.committed is False
    assert result.requires_confirmation is True
    [c] = result.conflicts
    assert c.type == ConflictType.date_overlap
    assert c.affected_dates == ["2024-01-11"]

    # nothing written
    stored = repo.load("tt-1")
    assert stored.version == 1
    assert [a.id for a in stored.date_assignments] == ["old"]


def test_override_replaces_prior_sole_member_assignment(service, repo):
    _seed_with_range_for_x1(repo)

    result = service.create_assignment(
        "tt-1",
        _req(assignmentType="single_day", date="2024-01-11", subtaskIds=["x1"], overrideConflicts=True),
        actor="alice",
    )

    assert result.committed
    stored = repo.load("tt-1")
    assert [a.id for a in stored.date_assignments] == [result.assignment.id]
    assert stored.date_assignments[0].is_active is True
    x1 = stored.subtask("x1")
    assert x1.assignment_id == result.assignment.id
    assert x1.assigned_date == "2024-01-11"


def test_override_keeps_prior_assignment_for_other_members(service, repo):
    _seed_with_range_for_x1(repo, members=("x1", "x2"))

    service.create_assignment(
        "tt-1",
        _req(assignmentType="single_day", date="2024-01-11", subtaskIds=["x1"], overrideConflicts=True),
        actor="alice",
    )

    stored = repo.load("tt-1")
    old = next(a for a in stored.date_assignments if a.id == "old")
    assert old.subtask_ids == ["x2"]
    assert stored.subtask("x2").assignment_id == "old"


def test_two_conflicts_on_same_prior_assignment_resolve_once(service, repo):
    _seed_with_range_for_x1(repo, members=("x1", "x2"))

    result = service.create_assignment(
        "tt-1",
        _req(assignmentType="single_day", date="2024-01-10", subtaskIds=["x1", "x2"], overrideConflicts=True),
        actor="alice",
    )

    assert len(result.conflicts) == 2
    assert {c.assignment_id for c in result.conflicts} == {"old"}
    stored = repo.load("tt-1")
    assert [a.id for a in stored.date_assignments] == [result.assignment.id]


def test_override_of_legacy_date(service, repo):
    seed_task(repo, make_task(subtasks=[make_subtask("x1", assignedDate="2024-01-10", is_assigned=True)]))

    pending = service.create_assignment(
        "tt-1", _req(assignmentType="single_day", date="2024-01-10", subtaskIds=["x1"]), actor="alice"
    )
    assert pending.requires_confirmation

    done = service.create_assignment(
        "tt-1",
        _req(assignmentType="date_range", startDate="2024-01-10", endDate="2024-01-11", subtaskIds=["x1"],
             overrideConflicts=True),
        actor="alice",
    )
    x1 = repo.load("tt-1").subtask("x1")
    assert x1.assignment_id == done.assignment.id
    assert x1.assigned_date == "2024-01-10"
    assert x1.assigned_end_date == "2024-01-11"


# ============================================================================
# Blocking conflicts
# ============================================================================

@pytest.mark.parametrize("override", [False, True])
def test_executed_item_blocks_regardless_of_override(service, repo, override):
    seed_task(repo, make_task(subtasks=[make_subtask("x1", is_executed=True), make_subtask("x2")]))

    with pytest.raises(BlockingConflict) as exc:
        service.create_assignment(
            "tt-1",
            _req(assignmentType="single_day", date="2024-01-10", subtaskIds=["x1", "x2"], overrideConflicts=override),
            actor="alice",
        )

    [c] = exc.value.conflicts
    assert c.type == ConflictType.resource_conflict
    assert c.severity == Severity.high
    assert c.can_override is False
    assert repo.load("tt-1").date_assignments == []


def test_blocking_plus_overridable_rejects_whole_request(service, repo):
    task = make_task(subtasks=[make_subtask("x1"), make_subtask("x2", is_executed=True)])
    assign_existing(task, make_assignment("old", ["x1"], date="2024-01-10"))
    seed_task(repo, task)

    with pytest.raises(BlockingConflict) as exc:
        service.create_assignment(
            "tt-1",
            _req(assignmentType="single_day", date="2024-01-10", subtaskIds=["x1", "x2"], overrideConflicts=True),
            actor="alice",
        )

    assert sorted(c.type.value for c in exc.value.conflicts) == ["date_overlap", "resource_conflict"]
    stored = repo.load("tt-1")
    assert [a.id for a in stored.date_assignments] == ["old"]
    assert stored.subtask("x1").assignment_id == "old"
    assert stored.version == 1


# ============================================================================
# Removal
# ============================================================================

def test_removing_sole_member_deletes_assignment(service, repo):
    seed_task(repo, make_task())
    result = service.create_assignment(
        "tt-1", _req(assignmentType="single_day", date="2024-01-10", subtaskIds=["x1"]), actor="alice"
    )

    removal = service.remove_assignment("tt-1", result.assignment.id, "x1", actor="bob")

    assert removal.changed and removal.assignment_deleted
    stored = repo.load("tt-1")
    assert stored.date_assignments == []
    x1 = stored.subtask("x1")
    assert x1.is_assigned is False
    assert x1.assignment_id is None
    assert x1.assigned_date is None
    assert x1.execution_status == ExecutionStatus.not_assigned


def test_legacy_removal_twice_same_state(service, repo):
    seed_task(repo, make_task(subtasks=[make_subtask("x1", assignedDate="2024-01-10", is_assigned=True)]))

    assert service.remove_legacy_assignment("tt-1", "x1", actor="bob").changed is True
    once = repo.load("tt-1")
    assert service.remove_legacy_assignment("tt-1", "x1", actor="bob").changed is False
    twice = repo.load("tt-1")

    assert once.to_document() == twice.to_document()


# ============================================================================
# Errors
# ============================================================================

def test_validation_error_has_no_side_effects(service, repo):
    seed_task(repo, make_task())
    with pytest.raises(ValidationError) as exc:
        service.create_assignment(
            "tt-1", _req(assignmentType="date_range", startDate="2024-01-12", endDate="2024-01-10",
                         subtaskIds=["x1"]),
            actor="alice",
        )
    assert [e.field for e in exc.value.errors] == ["endDate"]
    assert repo.load("tt-1").version == 1


@pytest.mark.parametrize(
    "body",
    [
        {"assignmentType": "single_day", "date": "20240110"},
        {"assignmentType": "date_range", "startDate": "2024-W02-3", "endDate": "2024-01-12"},
        {"assignmentType": "duration_days", "startDate": "2024-010", "durationDays": 2},
    ],
)
def test_non_calendar_iso_dates_never_stored(service, repo, body):
    seed_task(repo, make_task())

    with pytest.raises(ValidationError):
        service.create_assignment("tt-1", _req(subtaskIds=["x1"], **body), actor="alice")

    stored = repo.load("tt-1")
    assert stored.date_assignments == []
    assert stored.subtask("x1").assigned_date is None


def test_unknown_task_and_subtask(service, repo):
    seed_task(repo, make_task())
    req = _req(assignmentType="single_day", date="2024-01-10", subtaskIds=["x1"])

    with pytest.raises(NotFoundError):
        service.create_assignment("nope", req, actor="alice")

    with pytest.raises(NotFoundError):
        service.create_assignment(
            "tt-1", _req(assignmentType="single_day", date="2024-01-10", subtaskIds=["x1", "zz"]), actor="alice"
        )
    assert repo.load("tt-1").date_assignments == []


def test_concurrent_writer_is_detected(service, repo, session_factory):
    seed_task(repo, make_task())

    # another writer bumps the stored version after our load
    original_load = repo.load

    def load_then_race(task_id):
        task = original_load(task_id)
        other = session_factory()
        try:
            from ttboard.repositories.tt_task_repository import TTTaskRepository

            other_repo = TTTaskRepository(other)
            theirs = other_repo.load(task_id)
            theirs.version += 1
            other_repo.save(theirs, expected_version=task.version)
        finally:
            other.close()
        return task

    repo.load = load_then_race

    with pytest.raises(VersionConflict):
        service.create_assignment(
            "tt-1", _req(assignmentType="single_day", date="2024-01-10", subtaskIds=["x1"]), actor="alice"
        )


# ============================================================================
# Calendar view
# ============================================================================

def test_calendar_uses_same_expansion(service, repo):
    task = make_task(subtasks=[make_subtask("x1"), make_subtask("x2"), make_subtask("x3", assignedDate="2024-01-09")])
    seed_task(repo, task)
    service.create_assignment(
        "tt-1", _req(assignmentType="duration_days", startDate="2024-01-10", durationDays=2, subtaskIds=["x1"]),
        actor="alice",
    )
    service.create_assignment(
        "tt-1", _req(assignmentType="single_day", date="2024-01-11", subtaskIds=["x2"]), actor="alice"
    )

    days = {e.date: e.subtask_ids for e in service.calendar("tt-1", "2024-01-09", "2024-01-12")}

    assert days == {
        "2024-01-09": ["x3"],
        "2024-01-10": ["x1"],
        "2024-01-11": ["x1", "x2"],
        "2024-01-12": [],
    }


def test_calendar_rejects_bad_window(service, repo):
    seed_task(repo, make_task())
    with pytest.raises(ValidationError):
        service.calendar("tt-1", "2024-01-12", "2024-01-10")
    with pytest.raises(ValidationError):
        service.calendar("tt-1", "not-a-date", "2024-01-10")
