# ttboard/core/errors.py
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from ttboard.schemas.conflict import AssignmentConflict
    from ttboard.scheduling.validator import FieldError


class SchedulingError(Exception):
    """Base class for every failure the scheduling engine reports."""
    pass


class ValidationError(SchedulingError):
    """Malformed or incomplete request, rejected before conflict analysis."""

    def __init__(self, errors: Sequence["FieldError"]):
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))


class NotFoundError(SchedulingError):
    """Unknown task, subtask or assignment id."""
    pass


class BlockingConflict(SchedulingError):
    """At least one conflict can never be overridden (e.g. subtask already executed)."""

    def __init__(self, conflicts: Sequence["AssignmentConflict"]):
        self.conflicts = list(conflicts)
        super().__init__(f"{len(self.conflicts)} conflict(s), at least one cannot be overridden")


class PersistenceError(SchedulingError):
    """Store write/read failed. Propagated as-is, no retry."""
    pass


class VersionConflict(PersistenceError):
    """Aggregate was changed by another writer since it was loaded."""
    pass
